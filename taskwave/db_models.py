# PURPOSE: define how a collection record looks in the database.

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class RecordDB(Base):
    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False)  # users | tasks
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # storage order
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)


Index("ix_records_collection_position", RecordDB.collection, RecordDB.position)
