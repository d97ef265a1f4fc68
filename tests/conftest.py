# tests/conftest.py

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from local_todo.categories.category_repo import CategoryRepository
from local_todo.cli.bootstrap import AppContext, close_context, create_context
from local_todo.connectors.platform import LocalPlatform
from local_todo.core.preferences import PreferenceRepository
from local_todo.db.defaults import initialize_default_data
from local_todo.db.store import Database
from local_todo.tasks.task_repo import TaskRepository

# Mid-day so "today" has room on both sides; local time on purpose.
FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0).astimezone()


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def clock(now: datetime) -> Callable[[], datetime]:
    return lambda: now


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and command handlers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the process environment.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="local-todo-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=data_dir,
        db_path=data_dir / "todo.sqlite3",
        export_dir=tmp_path / "exports",
    )


@pytest_asyncio.fixture()
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    """Empty store (schema created, nothing seeded)."""
    database = Database(tmp_path / "todo.sqlite3")
    await database.open()
    yield database
    await database.close()


@pytest_asyncio.fixture()
async def seeded_db(db: Database) -> Database:
    await initialize_default_data(db)
    return db


@pytest.fixture()
def task_repo(seeded_db: Database, clock: Callable[[], datetime]) -> TaskRepository:
    return TaskRepository(seeded_db, clock=clock)


@pytest.fixture()
def category_repo(seeded_db: Database) -> CategoryRepository:
    return CategoryRepository(seeded_db)


@pytest.fixture()
def prefs(seeded_db: Database) -> PreferenceRepository:
    return PreferenceRepository(seeded_db)


@pytest.fixture()
def platform() -> LocalPlatform:
    return LocalPlatform()


@pytest_asyncio.fixture()
async def ctx(
    settings: SimpleNamespace, platform: LocalPlatform, clock: Callable[[], datetime]
) -> AsyncIterator[AppContext]:
    """
    Fully wired AppContext on a real SQLite file.

    NOTE: We keep the real store here because the interaction between
    repositories, containers and SQLite is part of what we want to test.
    """
    context = await create_context(settings=settings, platform=platform, clock=clock)  # type: ignore[arg-type]
    yield context
    await close_context(context)
