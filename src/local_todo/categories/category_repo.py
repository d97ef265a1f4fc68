# src/local_todo/categories/category_repo.py

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..db.store import Database
from ..errors import ConflictError, StorageError, database_errors
from .category_models import Category, category_changes

logger = logging.getLogger(__name__)


class CategoryRepository:
    """
    Typed CRUD over the `categories` collection.

    The one cross-entity rule lives here: a category referenced by any task
    cannot be deleted (rejected, never cascaded).
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_all(self) -> list[Category]:
        """Ordered by `order` ascending."""
        with database_errors(logger, "get categories"):
            records = await self._db.categories.all(order_by="order")
        return [Category.from_record(r) for r in records]

    async def get_by_id(self, category_id: str) -> Category | None:
        # Tolerant read: a storage failure degrades to "absent".
        try:
            record = await self._db.categories.get(category_id)
        except StorageError:
            logger.exception("Failed to get category id=%s", category_id)
            return None
        return Category.from_record(record) if record else None

    async def add(self, data: Mapping[str, Any] | None = None) -> Category:
        """Without an explicit `order` the category goes last."""
        record = dict(data or {})
        with database_errors(logger, "add category"):
            if record.get("order") is None:
                record["order"] = await self._db.categories.count()
            category = Category.from_record(record)
            await self._db.categories.add(category.to_record())
        logger.debug("Category added id=%s name=%s", category.id, category.name)
        return category

    async def update(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        record_changes = category_changes(changes)
        with database_errors(logger, "update category"):
            merged = await self._db.categories.update(category_id, record_changes)
        return Category.from_record(merged)

    async def delete(self, category_id: str) -> bool:
        with database_errors(logger, "delete category"):
            in_use = await self._db.tasks.count("category", category_id)
            if in_use > 0:
                logger.info("Refusing to delete category id=%s: %d task(s) use it", category_id, in_use)
                raise ConflictError(f"Cannot delete category with existing tasks ({in_use})")
            await self._db.categories.delete(category_id)
        return True

    async def reorder(self, category_ids: Sequence[str]) -> bool:
        """
        Rewrite `order` to each id's position in `category_ids`.

        The sequence must list every existing category exactly once; anything else
        is a ConflictError and nothing is written.
        """
        ids = [str(i) for i in category_ids]
        with database_errors(logger, "reorder categories"):
            existing = {str(r.get("id")) for r in await self._db.categories.all()}
            if len(set(ids)) != len(ids):
                raise ConflictError("Category order contains duplicate ids")
            if set(ids) != existing:
                missing = sorted(existing - set(ids))
                unknown = sorted(set(ids) - existing)
                raise ConflictError(
                    f"Category order must list every category exactly once (missing={missing}, unknown={unknown})"
                )
            await self._db.categories.bulk_update((cid, {"order": index}) for index, cid in enumerate(ids))
        return True
