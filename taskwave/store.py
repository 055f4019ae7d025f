from __future__ import annotations

import copy
import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import StorageError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CollectionStore:
    """A whole collection of records, loaded and saved as one unit.

    Subclasses implement ``load`` and ``save``. Mutations should go through
    ``mutate()`` so that concurrent writers cannot lose each other's update.
    """

    name: str = "collection"

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def load(self) -> List[Record]:
        raise NotImplementedError

    def save(self, records: List[Record]) -> None:
        raise NotImplementedError

    @contextmanager
    def mutate(self) -> Iterator[List[Record]]:
        """Hold the store lock for a read-modify-write cycle.

        Yields the loaded records; they are saved when the block exits
        normally. An exception inside the block skips the save.
        """
        with self._lock:
            records = self.load()
            yield records
            self.save(records)

    def ping(self) -> None:
        """Raise StorageError if the collection cannot be read."""
        self.load()


class MemoryStore(CollectionStore):
    """In-process store; records are copied in and out."""

    def __init__(self, records: Optional[List[Record]] = None, name: str = "memory") -> None:
        super().__init__()
        self.name = name
        self._records: List[Record] = copy.deepcopy(records or [])

    def load(self) -> List[Record]:
        return copy.deepcopy(self._records)

    def save(self, records: List[Record]) -> None:
        self._records = copy.deepcopy(records)


class JsonFileStore(CollectionStore):
    """One JSON array per file, rewritten wholesale on every save."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self.name = self.path.stem

    def ensure(self) -> None:
        """Create the data directory and an empty collection file if missing."""
        with self._lock:
            if self.path.exists():
                return
            self.save([])
            logger.info("Created empty collection file path=%s", self.path)

    def load(self) -> List[Record]:
        try:
            raw = self.path.read_text("utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"Cannot read {self.path}") from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Corrupt collection file {self.path}") from exc
        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON array in {self.path}")
        return data

    def save(self, records: List[Record]) -> None:
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(records, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}") from exc


def build_stores(settings) -> tuple[CollectionStore, CollectionStore]:
    """Return (users, tasks) stores for the configured backend."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "sql":
        from .db import make_engine
        from .store_db import SqlCollectionStore

        engine = make_engine(settings.DATABASE_URL)
        return SqlCollectionStore(engine, "users"), SqlCollectionStore(engine, "tasks")
    if backend == "json":
        data_dir = Path(settings.DATA_DIR)
        return JsonFileStore(data_dir / "users.json"), JsonFileStore(data_dir / "tasks.json")
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")
