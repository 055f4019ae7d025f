# tests/test_store.py
# PURPOSE: storage backends (memory, JSON file, SQL) and serialized mutations.

import json
import threading
from types import SimpleNamespace

import pytest

from taskwave.db import make_engine
from taskwave.exceptions import NotFoundError, StorageError
from taskwave.store import JsonFileStore, MemoryStore, build_stores
from taskwave.store_db import SqlCollectionStore
from taskwave.store_tasks import create_task, list_tasks


def test_memory_store_hands_out_copies():
    store = MemoryStore([{"id": "1", "text": "a"}])
    loaded = store.load()
    loaded[0]["text"] = "changed"
    assert store.load()[0]["text"] == "a"


def test_mutate_saves_on_success_and_skips_on_error():
    store = MemoryStore()
    with store.mutate() as records:
        records.append({"id": "1"})
    assert store.load() == [{"id": "1"}]

    with pytest.raises(NotFoundError):
        with store.mutate() as records:
            records.append({"id": "2"})
            raise NotFoundError("Task not found")
    assert store.load() == [{"id": "1"}]


def test_json_store_missing_file_is_empty(tmp_path):
    store = JsonFileStore(tmp_path / "tasks.json")
    assert store.load() == []
    assert not store.path.exists()


def test_json_store_rewrites_whole_array(tmp_path):
    store = JsonFileStore(tmp_path / "nested" / "tasks.json")
    store.save([{"id": "1"}, {"id": "2"}])
    store.save([{"id": "2"}])

    assert json.loads(store.path.read_text("utf-8")) == [{"id": "2"}]
    assert store.load() == [{"id": "2"}]
    assert not store.path.with_suffix(".tmp").exists()


def test_json_store_ensure_creates_empty_array(tmp_path):
    store = JsonFileStore(tmp_path / "data" / "users.json")
    store.ensure()
    assert json.loads(store.path.read_text("utf-8")) == []

    store.save([{"id": "1"}])
    store.ensure()  # leaves existing content alone
    assert store.load() == [{"id": "1"}]


@pytest.mark.parametrize("content", ["{not json", '{"id": 1}'])
def test_json_store_bad_content_raises(tmp_path, content):
    path = tmp_path / "tasks.json"
    path.write_text(content, "utf-8")
    with pytest.raises(StorageError):
        JsonFileStore(path).load()


def test_sql_store_keeps_order_and_collections_apart(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'tw.db'}")
    users = SqlCollectionStore(engine, "users")
    tasks = SqlCollectionStore(engine, "tasks")

    tasks.save([{"id": "b", "n": 1}, {"id": "a", "n": 2}])
    users.save([{"id": "u1"}])
    assert [t["id"] for t in tasks.load()] == ["b", "a"]
    assert users.load() == [{"id": "u1"}]

    tasks.save([{"id": "a", "n": 3}])
    assert tasks.load() == [{"id": "a", "n": 3}]
    assert users.load() == [{"id": "u1"}]
    engine.dispose()


def test_build_stores_selects_backend(tmp_path):
    users, tasks = build_stores(SimpleNamespace(STORAGE_BACKEND="json", DATA_DIR=str(tmp_path)))
    assert isinstance(users, JsonFileStore) and users.path == tmp_path / "users.json"
    assert isinstance(tasks, JsonFileStore) and tasks.path == tmp_path / "tasks.json"

    users, tasks = build_stores(
        SimpleNamespace(STORAGE_BACKEND="sql", DATABASE_URL=f"sqlite:///{tmp_path / 'x.db'}")
    )
    assert isinstance(users, SqlCollectionStore) and users.name == "users"
    assert isinstance(tasks, SqlCollectionStore) and tasks.name == "tasks"

    with pytest.raises(ValueError):
        build_stores(SimpleNamespace(STORAGE_BACKEND="mongo"))


def test_concurrent_creates_are_not_lost(tmp_path):
    store = JsonFileStore(tmp_path / "tasks.json")

    def worker(n: int) -> None:
        create_task(store, owner_id="u1", text=f"task {n}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(list_tasks(store, owner_id="u1")) == 20
