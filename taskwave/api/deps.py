from fastapi import Request

from ..store import CollectionStore


def get_user_store(request: Request) -> CollectionStore:
    """Users collection configured at startup (overridden in tests)."""
    return request.app.state.user_store


def get_task_store(request: Request) -> CollectionStore:
    """Tasks collection configured at startup (overridden in tests)."""
    return request.app.state.task_store
