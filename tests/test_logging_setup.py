# tests/test_logging_setup.py

from __future__ import annotations

import logging

from local_todo.logging_setup import _ConsoleNoiseFilter


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_levels() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("local_todo.db.store", logging.DEBUG))
    assert not f.filter(_record("aiosqlite", logging.DEBUG))
    assert f.filter(_record("aiosqlite", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))
    # Prefix match is on the package boundary only.
    assert not f.filter(_record("local_todo_extras", logging.INFO))
