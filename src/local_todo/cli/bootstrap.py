# src/local_todo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- opens the store and seeds default data,
- wires repositories into the state containers,
- attaches platform signals and performs the initial loads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..categories.category_repo import CategoryRepository
from ..categories.category_state import CategoryState
from ..config import Settings, get_settings
from ..connectors.platform import LocalPlatform
from ..core.preferences import PreferenceRepository
from ..core.state import AppState
from ..db.defaults import initialize_default_data
from ..db.store import Database
from ..tasks.task_repo import TaskRepository
from ..tasks.task_state import TaskState
from ..utils.dates import Clock, now_local

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    settings: Settings
    db: Database
    platform: LocalPlatform
    task_repo: TaskRepository
    category_repo: CategoryRepository
    prefs: PreferenceRepository
    tasks: TaskState
    categories: CategoryState
    app: AppState


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


async def reload_state(ctx: AppContext) -> None:
    """Refresh every container from the store (startup, after an import)."""
    await ctx.app.load_theme()
    await ctx.categories.load_categories()
    await ctx.tasks.load_tasks()


async def create_context(
    *,
    settings: Settings | None = None,
    platform: LocalPlatform | None = None,
    clock: Clock = now_local,
) -> AppContext:
    """
    Build a ready-to-use AppContext.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    db = Database(settings.db_path)
    await db.open()
    try:
        await initialize_default_data(db)
    except Exception:
        await db.close()
        raise

    platform = platform or LocalPlatform()
    task_repo = TaskRepository(db, clock=clock)
    category_repo = CategoryRepository(db)
    prefs = PreferenceRepository(db)

    app = AppState(
        prefs,
        prefers_dark=platform.color_scheme_is_dark,
        is_online=platform.online,
    )
    app.attach_platform(platform)

    ctx = AppContext(
        settings=settings,
        db=db,
        platform=platform,
        task_repo=task_repo,
        category_repo=category_repo,
        prefs=prefs,
        tasks=TaskState(task_repo, clock=clock),
        categories=CategoryState(category_repo),
        app=app,
    )
    await reload_state(ctx)
    logger.info(
        "Context ready: db=%s tasks=%d categories=%d theme=%s",
        db.path,
        len(ctx.tasks.tasks),
        ctx.categories.category_count,
        app.theme,
    )
    return ctx


async def close_context(ctx: AppContext) -> None:
    ctx.app.detach_platform()
    await ctx.db.close()
