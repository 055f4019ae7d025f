from __future__ import annotations

from typing import List

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .db_models import RecordDB
from .exceptions import StorageError
from .store import CollectionStore, Record


class SqlCollectionStore(CollectionStore):
    """
    Keep a collection as ordered JSON rows in a SQL table.
    - load() reads rows by position
    - save() replaces every row of the collection in a single transaction,
      so a failed write leaves the previous snapshot in place
    """

    def __init__(self, engine: Engine, name: str) -> None:
        super().__init__()
        self.name = name
        self._session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def _session(self) -> Session:
        return self._session_factory()

    def load(self) -> List[Record]:
        try:
            with self._session() as db:
                rows = db.scalars(
                    select(RecordDB)
                    .where(RecordDB.collection == self.name)
                    .order_by(RecordDB.position.asc())
                ).all()
                return [dict(row.payload) for row in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot read collection {self.name}") from exc

    def save(self, records: List[Record]) -> None:
        try:
            with self._session() as db, db.begin():
                db.execute(delete(RecordDB).where(RecordDB.collection == self.name))
                db.add_all(
                    RecordDB(collection=self.name, position=i, payload=dict(rec))
                    for i, rec in enumerate(records)
                )
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot write collection {self.name}") from exc
