# src/local_todo/tasks/task_repo.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ..db.store import Database
from ..errors import NotFoundError, database_errors
from ..utils.dates import Clock, local_day_window, now_local, now_ms
from .task_models import Task, changes_to_record

logger = logging.getLogger(__name__)


class TaskRepository:
    """
    Typed CRUD + queries over the `tasks` collection.

    Failure policy:
    - StorageError from the store -> logged, re-raised as DatabaseError
    - NotFoundError / ValueError (bad field names) propagate as-is
    - toggle_completion on a missing id is a no-op returning False
    """

    def __init__(self, db: Database, *, clock: Clock = now_local) -> None:
        self._db = db
        self._clock = clock

    # ---- queries ----

    async def get_all(self) -> list[Task]:
        with database_errors(logger, "get tasks"):
            records = await self._db.tasks.all()
        return [Task.from_record(r) for r in records]

    async def get_by_id(self, task_id: str) -> Task | None:
        with database_errors(logger, "get task"):
            record = await self._db.tasks.get(task_id)
        return Task.from_record(record) if record else None

    async def get_by_category(self, category_id: str) -> list[Task]:
        with database_errors(logger, "get tasks by category"):
            records = await self._db.tasks.where("category", category_id)
        return [Task.from_record(r) for r in records]

    async def get_by_status(self, completed: bool) -> list[Task]:
        with database_errors(logger, "get tasks by status"):
            records = await self._db.tasks.where("completed", bool(completed))
        return [Task.from_record(r) for r in records]

    async def get_today(self, now: datetime | None = None) -> list[Task]:
        """Tasks due in [start of local day, start of next local day)."""
        start, end = local_day_window(now or self._clock())
        with database_errors(logger, "get today tasks"):
            records = await self._db.tasks.between("dueDate", start, end)
        return [Task.from_record(r) for r in records]

    async def get_overdue(self, now: datetime | None = None) -> list[Task]:
        """Due strictly before now and not completed."""
        with database_errors(logger, "get overdue tasks"):
            records = await self._db.tasks.below("dueDate", now or self._clock())
        return [t for t in (Task.from_record(r) for r in records) if not t.completed]

    async def count_by_category(self, category_id: str) -> int:
        with database_errors(logger, "count tasks by category"):
            return await self._db.tasks.count("category", category_id)

    async def search(self, query: str) -> list[Task]:
        """
        Case-insensitive substring match on title, description and tags.
        Blank queries are the caller's business (they match everything here).
        """
        needle = (query or "").lower()
        with database_errors(logger, "search tasks"):
            records = await self._db.tasks.all()

        out: list[Task] = []
        for task in (Task.from_record(r) for r in records):
            if (
                needle in task.title.lower()
                or (task.description and needle in task.description.lower())
                or any(needle in tag.lower() for tag in task.tags)
            ):
                out.append(task)
        return out

    # ---- mutations ----

    async def add(self, data: Mapping[str, Any] | None = None) -> Task:
        task = Task.create(data)
        with database_errors(logger, "add task"):
            await self._db.tasks.add(task.to_record())
        logger.debug("Task added id=%s category=%s priority=%s", task.id, task.category, task.priority)
        return task

    async def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        record_changes = changes_to_record(changes)
        with database_errors(logger, "update task"):
            current = await self._db.tasks.get(task_id)
            if current is None:
                raise NotFoundError("tasks", task_id)
            previous = int(current.get("updatedAt") or 0)
            # Strictly increasing even when two updates land in the same millisecond.
            record_changes["updatedAt"] = max(now_ms(), previous + 1)
            merged = await self._db.tasks.update(task_id, record_changes)
        return Task.from_record(merged)

    async def delete(self, task_id: str) -> bool:
        with database_errors(logger, "delete task"):
            await self._db.tasks.delete(task_id)
        return True

    async def toggle_completion(self, task_id: str) -> bool:
        """Flip `completed`; returns the new value (False if the task is missing)."""
        with database_errors(logger, "toggle task completion"):
            current = await self._db.tasks.get(task_id)
        if current is None:
            logger.warning("toggle_completion: no task id=%s", task_id)
            return False
        completed = not bool(current.get("completed"))
        await self.update(task_id, {"completed": completed})
        return completed
