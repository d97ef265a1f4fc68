# src/local_todo/categories/category_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON

CATEGORY_FIELDS = ("id", "name", "icon", "color", "order")


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    icon: str = DEFAULT_CATEGORY_ICON
    color: str = DEFAULT_CATEGORY_COLOR
    order: int = 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Category:
        raw_order = record.get("order")
        try:
            order = int(raw_order) if raw_order is not None and not isinstance(raw_order, bool) else 0
        except (TypeError, ValueError):
            order = 0
        return cls(
            id=str(record.get("id") or uuid.uuid4()),
            name=str(record.get("name") or ""),
            icon=str(record.get("icon") or DEFAULT_CATEGORY_ICON),
            color=str(record.get("color") or DEFAULT_CATEGORY_COLOR),
            order=order,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "order": self.order,
        }


def category_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in CATEGORY_FIELDS:
            raise ValueError(f"unknown category field: {name}")
        if name == "id":
            raise ValueError("category field is immutable: id")
        out[name] = int(value) if name == "order" else str(value)
    return out
