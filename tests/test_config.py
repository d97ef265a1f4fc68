# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from local_todo.config import Settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_NAME", "LOG_LEVEL", "DATA_DIR", "DB_PATH", "EXPORT_DIR", "CONSOLE_ENABLED"):
        monkeypatch.delenv(f"LOCAL_TODO_{name}", raising=False)

    s = Settings.from_env()
    assert s.app_name == "local-todo"
    assert s.console_enabled is True
    assert s.db_path == Path(".local/local_todo") / "todo.sqlite3"
    assert s.export_dir == Path(".local/local_todo") / "exports"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOCAL_TODO_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("LOCAL_TODO_DB_PATH", raising=False)
    monkeypatch.setenv("LOCAL_TODO_EXPORT_DIR", str(tmp_path / "bk"))
    monkeypatch.setenv("LOCAL_TODO_CONSOLE_ENABLED", "off")
    monkeypatch.setenv("LOCAL_TODO_APP_NAME", "  ")

    s = Settings.from_env()
    assert s.db_path == tmp_path / "todo.sqlite3"
    assert s.export_dir == tmp_path / "bk"
    assert s.console_enabled is False
    assert s.app_name == "local-todo"
