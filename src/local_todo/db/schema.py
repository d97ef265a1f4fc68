# src/local_todo/db/schema.py

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import aiosqlite

from ..constants import DB_VERSION
from ..utils.dates import to_timestamp

# Called inside the open() transaction when the stored version is below the hook's version.
Upgrade = Callable[[aiosqlite.Connection], Awaitable[None]]


def default_index_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float, str)):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


@dataclass(frozen=True, slots=True)
class IndexSpec:
    field: str
    encode: Callable[[Any], Any] | None = None

    @property
    def column(self) -> str:
        return f"ix_{self.field}"

    def value(self, raw: Any) -> Any:
        if self.encode is not None:
            return self.encode(raw)
        return default_index_value(raw)


@dataclass(frozen=True, slots=True)
class CollectionSchema:
    name: str
    key: str
    indexes: tuple[IndexSpec, ...] = ()

    def index(self, field: str) -> IndexSpec | None:
        for ix in self.indexes:
            if ix.field == field:
                return ix
        return None


@dataclass(frozen=True, slots=True)
class Schema:
    version: int
    collections: tuple[CollectionSchema, ...]

    def collection(self, name: str) -> CollectionSchema | None:
        for c in self.collections:
            if c.name == name:
                return c
        return None


TASKS = CollectionSchema(
    name="tasks",
    key="id",
    indexes=(
        IndexSpec("category"),
        IndexSpec("completed"),
        IndexSpec("dueDate", encode=to_timestamp),
        IndexSpec("priority"),
        IndexSpec("createdAt"),
    ),
)

CATEGORIES = CollectionSchema(name="categories", key="id", indexes=(IndexSpec("order"),))

SETTINGS = CollectionSchema(name="settings", key="key")

SCHEMA = Schema(version=DB_VERSION, collections=(TASKS, CATEGORIES, SETTINGS))

# version -> hook. Bump DB_VERSION and register a hook here when index definitions change.
UPGRADES: dict[int, Upgrade] = {}
