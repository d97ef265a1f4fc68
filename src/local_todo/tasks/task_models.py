# src/local_todo/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..constants import DEFAULT_CATEGORY_ID
from ..utils.dates import due_to_text, now_ms


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: object) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


# attribute name -> record/document key
TASK_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "completed": "completed",
    "priority": "priority",
    "category": "category",
    "tags": "tags",
    "due_date": "dueDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "order": "order",
}
_RECORD_TO_ATTR = {v: k for k, v in TASK_FIELDS.items()}

IMMUTABLE_TASK_FIELDS = frozenset({"id", "created_at"})


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_int(raw: object, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _as_tags(raw: object) -> tuple[str, ...]:
    if not raw or isinstance(raw, (str, bytes)):
        return ()
    try:
        return tuple(str(t) for t in raw)  # type: ignore[union-attr]
    except TypeError:
        return ()


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY_ID
    tags: tuple[str, ...] = ()
    due_date: str | None = None
    created_at: int = 0
    updated_at: int = 0
    order: int = 0

    @classmethod
    def create(cls, data: Mapping[str, Any] | None = None) -> Task:
        """New task from user data: attribute names, missing fields defaulted."""
        data = dict(data or {})
        record = {TASK_FIELDS.get(k, k): v for k, v in data.items()}
        return cls.from_record(record)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Task:
        now = now_ms()
        created = _as_int(record.get("createdAt"), now) or now
        updated = _as_int(record.get("updatedAt"), now) or now
        return cls(
            id=str(record.get("id") or _new_id()),
            title=str(record.get("title") or ""),
            description=str(record.get("description") or ""),
            completed=bool(record.get("completed") or False),
            priority=Priority.from_raw(record.get("priority")),
            category=str(record.get("category") or DEFAULT_CATEGORY_ID),
            tags=_as_tags(record.get("tags")),
            due_date=due_to_text(record.get("dueDate")),
            created_at=created,
            updated_at=max(updated, created),
            order=_as_int(record.get("order"), 0),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value,
            "category": self.category,
            "tags": list(self.tags),
            "dueDate": self.due_date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "order": self.order,
        }


def changes_to_record(changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Translate an attribute-keyed partial update into record keys.

    Accepts record keys too (dueDate, updatedAt) so documents can be fed back in.
    Unknown or immutable fields raise ValueError.
    """
    out: dict[str, Any] = {}
    for name, value in changes.items():
        attr = name if name in TASK_FIELDS else _RECORD_TO_ATTR.get(name)
        if attr is None:
            raise ValueError(f"unknown task field: {name}")
        if attr in IMMUTABLE_TASK_FIELDS:
            raise ValueError(f"task field is immutable: {attr}")
        if attr == "priority":
            value = Priority.from_raw(value).value
        elif attr == "tags":
            value = list(_as_tags(value))
        elif attr == "completed":
            value = bool(value)
        elif attr == "due_date":
            value = due_to_text(value)
        out[TASK_FIELDS[attr]] = value
    return out
