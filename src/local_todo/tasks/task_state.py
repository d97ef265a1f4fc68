# src/local_todo/tasks/task_state.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from ..core.container import StateContainer
from ..core.ports import TaskRepo
from ..utils.dates import Clock, is_due_today, is_past_due, local_day_window, now_local, now_ms
from .task_models import Priority, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    active: int
    overdue: int
    completion_rate: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "overdue": self.overdue,
            "completionRate": self.completion_rate,
        }


class TaskState(StateContainer):
    """
    In-memory mirror of the tasks collection.

    The cache is rebuilt by load_tasks() and then patched by each action
    (append on add, index-replace on update, filter-out on delete), never re-fetched.
    """

    def __init__(self, repo: TaskRepo, *, clock: Clock = now_local) -> None:
        super().__init__()
        self._repo = repo
        self._clock = clock
        self._tasks: list[Task] = []

    # ---- cached collection + derived views ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._memoized("tasks", self._version, lambda: tuple(self._tasks))

    @property
    def completed_tasks(self) -> tuple[Task, ...]:
        return self._memoized("completed", self._version, lambda: tuple(t for t in self._tasks if t.completed))

    @property
    def active_tasks(self) -> tuple[Task, ...]:
        return self._memoized("active", self._version, lambda: tuple(t for t in self._tasks if not t.completed))

    def tasks_by_category(self, category_id: str) -> tuple[Task, ...]:
        return self._memoized(
            ("category", category_id),
            self._version,
            lambda: tuple(t for t in self._tasks if t.category == category_id),
        )

    def tasks_by_priority(self, priority: Priority | str) -> tuple[Task, ...]:
        p = Priority.from_raw(priority)
        return self._memoized(
            ("priority", p),
            self._version,
            lambda: tuple(t for t in self._tasks if t.priority == p),
        )

    @property
    def today_tasks(self) -> tuple[Task, ...]:
        now = self._clock()
        day_start, _ = local_day_window(now)
        return self._memoized(
            "today",
            (self._version, day_start.timestamp()),
            lambda: tuple(t for t in self._tasks if is_due_today(t.due_date, now)),
        )

    @property
    def overdue_tasks(self) -> tuple[Task, ...]:
        now = self._clock()
        return self._memoized(
            "overdue",
            (self._version, int(now.timestamp())),
            lambda: tuple(t for t in self._tasks if not t.completed and is_past_due(t.due_date, now)),
        )

    @property
    def task_stats(self) -> TaskStats:
        total = len(self._tasks)
        completed = len(self.completed_tasks)
        return TaskStats(
            total=total,
            completed=completed,
            active=len(self.active_tasks),
            overdue=len(self.overdue_tasks),
            completion_rate=round(completed / total * 100) if total > 0 else 0,
        )

    def now(self) -> datetime:
        return self._clock()

    def get_task(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    # ---- actions ----

    async def load_tasks(self) -> None:
        async with self._action("load tasks", reraise=False):
            self._tasks = list(await self._repo.get_all())
            self._touch()
            logger.debug("Loaded %d task(s)", len(self._tasks))

    async def add_task(self, data: Mapping[str, Any]) -> Task:
        async with self._action("add task"):
            task = await self._repo.add(data)
            self._tasks.append(task)
            self._touch()
        return task

    async def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        async with self._lock_for(task_id), self._action("update task"):
            updated = await self._repo.update(task_id, changes)
            self._replace(updated)
        return updated

    async def delete_task(self, task_id: str) -> None:
        async with self._lock_for(task_id), self._action("delete task"):
            await self._repo.delete(task_id)
            self._tasks = [t for t in self._tasks if t.id != task_id]
            self._touch()
        self._forget_lock(task_id)

    async def toggle_task(self, task_id: str) -> bool:
        # Low-latency affordance: not tracked by `loading`, errors still captured + re-raised.
        async with self._lock_for(task_id), self._action("toggle task", track_loading=False):
            completed = await self._repo.toggle_completion(task_id)
            current = self.get_task(task_id)
            if current is not None:
                self._replace(
                    replace(current, completed=completed, updated_at=max(now_ms(), current.updated_at + 1))
                )
        return completed

    async def search_tasks(self, query: str) -> list[Task]:
        if not (query or "").strip():
            return list(self.tasks)
        self._last_error = None
        try:
            return await self._repo.search(query)
        except Exception as e:
            self._capture("search tasks", e)
            return []

    def _replace(self, task: Task) -> None:
        for i, t in enumerate(self._tasks):
            if t.id == task.id:
                self._tasks[i] = task
                self._touch()
                return
