# src/local_todo/categories/category_state.py

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from ..core.container import StateContainer
from ..core.ports import CategoryRepo
from .category_models import Category


class CategoryState(StateContainer):
    """In-memory mirror of the categories collection, kept in `order`."""

    def __init__(self, repo: CategoryRepo) -> None:
        super().__init__()
        self._repo = repo
        self._categories: list[Category] = []

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._memoized("categories", self._version, lambda: tuple(self._categories))

    @property
    def category_count(self) -> int:
        return len(self._categories)

    def get_category_by_id(self, category_id: str) -> Category | None:
        index = self._memoized(
            "by_id", self._version, lambda: {c.id: c for c in self._categories}
        )
        return index.get(category_id)

    async def load_categories(self) -> None:
        async with self._action("load categories", reraise=False):
            self._categories = list(await self._repo.get_all())
            self._touch()

    async def add_category(self, data: Mapping[str, Any]) -> Category:
        async with self._action("add category"):
            category = await self._repo.add(data)
            self._categories.append(category)
            self._touch()
        return category

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        async with self._lock_for(category_id), self._action("update category"):
            updated = await self._repo.update(category_id, changes)
            for i, c in enumerate(self._categories):
                if c.id == category_id:
                    self._categories[i] = updated
                    self._touch()
                    break
        return updated

    async def delete_category(self, category_id: str) -> None:
        async with self._lock_for(category_id), self._action("delete category"):
            await self._repo.delete(category_id)
            self._categories = [c for c in self._categories if c.id != category_id]
            self._touch()
        self._forget_lock(category_id)

    async def reorder_categories(self, category_ids: Sequence[str]) -> None:
        async with self._action("reorder categories", track_loading=False):
            await self._repo.reorder(category_ids)
            by_id = {c.id: c for c in self._categories}
            self._categories = [
                replace(by_id[cid], order=index) for index, cid in enumerate(category_ids) if cid in by_id
            ]
            self._touch()
