# src/local_todo/db/defaults.py

from __future__ import annotations

import logging

from ..categories.category_models import Category
from ..constants import SETTING_THEME, THEME_LIGHT
from .store import Database

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="personal", name="Personal", icon="👤", color="#3b82f6", order=0),
    Category(id="work", name="Work", icon="💼", color="#8b5cf6", order=1),
    Category(id="study", name="Study", icon="📚", color="#10b981", order=2),
    Category(id="health", name="Health", icon="💪", color="#f59e0b", order=3),
)


async def initialize_default_data(db: Database) -> None:
    """
    Seed defaults exactly once:
    - the four default categories, only when no category exists
    - the theme setting, only when absent
    """
    try:
        if await db.categories.count() == 0:
            await db.categories.bulk_add(c.to_record() for c in DEFAULT_CATEGORIES)
            logger.info("Default categories initialized (%d)", len(DEFAULT_CATEGORIES))

        if await db.settings.get(SETTING_THEME) is None:
            await db.settings.put({"key": SETTING_THEME, "value": THEME_LIGHT})

        logger.debug("Default data check complete")
    except Exception:
        logger.exception("Failed to initialize default data")
        raise
