# src/local_todo/core/preferences.py

from __future__ import annotations

import logging
from typing import Any

from ..db.store import Database
from ..errors import database_errors

logger = logging.getLogger(__name__)


class PreferenceRepository:
    """Key/value access to the `settings` collection (upsert only)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, key: str, default: Any = None) -> Any:
        with database_errors(logger, f"read setting {key}"):
            record = await self._db.settings.get(key)
        if record is None:
            return default
        return record.get("value", default)

    async def put(self, key: str, value: Any) -> None:
        with database_errors(logger, f"write setting {key}"):
            await self._db.settings.put({"key": key, "value": value})
        logger.debug("Setting saved key=%s", key)

    async def all(self) -> dict[str, Any]:
        with database_errors(logger, "read settings"):
            records = await self._db.settings.all()
        return {str(r.get("key")): r.get("value") for r in records}
