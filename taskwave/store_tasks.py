from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .accounts import new_id, now_iso
from .exceptions import NotFoundError, ValidationError
from .models import PRIORITIES, STATUSES
from .store import CollectionStore, Record

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = "low"
DEFAULT_STATUS = "todo"

# Older clients sent the middle column without a hyphen.
_STATUS_ALIASES = {"inprogress": "in-progress", "in_progress": "in-progress"}


# --- Helpers ---------------------------------------------------------------


def coerce_priority(value: Any) -> str:
    """Return a valid priority; anything unknown becomes the default."""
    return value if value in PRIORITIES else DEFAULT_PRIORITY


def parse_status(value: Any) -> Optional[str]:
    """Return the canonical status for value, or None when unrecognized."""
    if not isinstance(value, str):
        return None
    value = _STATUS_ALIASES.get(value, value)
    return value if value in STATUSES else None


def _clean_text(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Task text is required")
    return text.strip()


def normalize(task: Record) -> Record:
    """Fill defaults for records written before priority/status existed; createdAt may stay absent."""
    return {
        **task,
        "priority": coerce_priority(task.get("priority")),
        "status": parse_status(task.get("status")) or DEFAULT_STATUS,
        "completed": bool(task.get("completed", False)),
    }


def _find_owned(tasks: List[Record], task_id: str, owner_id: str) -> int:
    for i, task in enumerate(tasks):
        if task.get("id") == task_id and task.get("userId") == owner_id:
            return i
    raise NotFoundError("Task not found")


# --- CRUD: Tasks -----------------------------------------------------------


def list_tasks(store: CollectionStore, *, owner_id: str) -> List[Record]:
    """Return every task of the owner in storage order."""
    return [normalize(t) for t in store.load() if t.get("userId") == owner_id]


def create_task(
    store: CollectionStore,
    *,
    owner_id: str,
    text: Any,
    priority: Any = None,
    status: Any = None,
) -> Record:
    """Append a new task; bad priority/status fall back to low/todo."""
    task = {
        "id": new_id(),
        "userId": owner_id,
        "text": _clean_text(text),
        "completed": False,
        "priority": coerce_priority(priority),
        "status": parse_status(status) or DEFAULT_STATUS,
        "createdAt": now_iso(),
    }
    with store.mutate() as tasks:
        tasks.append(task)
    logger.debug("task created id=%s owner=%s", task["id"], owner_id)
    return task


def update_task(store: CollectionStore, task_id: str, data: Dict[str, Any], *, owner_id: str) -> Record:
    """Partial update: only keys present in data are applied.

    An unknown priority resets to the default; an unknown status is ignored
    and the previous status is kept.
    """
    with store.mutate() as tasks:
        idx = _find_owned(tasks, task_id, owner_id)
        task = tasks[idx]
        if data.get("text") is not None:
            task["text"] = _clean_text(data["text"])
        if data.get("completed") is not None:
            task["completed"] = bool(data["completed"])
        if "priority" in data:
            task["priority"] = coerce_priority(data["priority"])
        if "status" in data:
            status = parse_status(data["status"])
            if status is not None:
                task["status"] = status
        tasks[idx] = normalize(task)
        updated = tasks[idx]
    logger.debug("task updated id=%s fields=%s", task_id, ",".join(sorted(data)))
    return updated


def delete_task(store: CollectionStore, task_id: str, *, owner_id: str) -> None:
    """Remove one owned task; NotFoundError if absent or owned by someone else."""
    with store.mutate() as tasks:
        idx = _find_owned(tasks, task_id, owner_id)
        del tasks[idx]
    logger.debug("task deleted id=%s", task_id)


def delete_completed_tasks(store: CollectionStore, *, owner_id: str) -> int:
    """Remove all completed tasks of the owner in one pass; returns the count."""
    with store.mutate() as tasks:
        kept = [t for t in tasks if not (t.get("userId") == owner_id and t.get("completed"))]
        removed = len(tasks) - len(kept)
        tasks[:] = kept
    logger.debug("completed tasks deleted owner=%s count=%s", owner_id, removed)
    return removed
