# PURPOSE: create a SQLAlchemy engine for the "sql" storage backend.

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

# Base: parent class for all ORM models (tables)
Base = declarative_base()


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite-specific connect_args only when needed."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    # Tables are tiny and schema-less (JSON payloads), so create on demand.
    from . import db_models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    return engine
