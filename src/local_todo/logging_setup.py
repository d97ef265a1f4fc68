# src/local_todo/logging_setup.py

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console REPL readable:
    - local_todo records pass through
    - aiosqlite only from WARNING up
    - captured Python warnings and any other library only from ERROR up
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name == "local_todo" or name.startswith("local_todo."):
            return True

        # aiosqlite logs every executed call at DEBUG.
        if name.startswith("aiosqlite"):
            return record.levelno >= logging.WARNING

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/local_todo",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    file_name: str = "local_todo.log",
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> Path:
    """
    Configure root logging once, before the first log call:
    - stderr handler at `console_level`, filtered for interactive use
    - rotating file handler under `log_dir` with everything from `file_level`

    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / file_name

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)
    logging.getLogger("aiosqlite").setLevel(logging.INFO)
    return log_file
