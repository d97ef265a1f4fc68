# src/local_todo/data/backup.py

"""
Backup documents.

Shape (version 1):

    {
      "version": 1,
      "exportDate": "<ISO-8601>",
      "tasks": [...],
      "categories": [...],
      "settings": [{"key": ..., "value": ...}, ...]
    }

Import is validate-then-swap: the whole document is checked and normalized in
memory first, then tasks and categories are replaced (and settings upserted) in a
single store transaction. A failure at any point leaves the store untouched.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..categories.category_models import Category
from ..constants import ERROR_MESSAGES, EXPORT_VERSION
from ..db.store import Database
from ..errors import ExportError, ImportDataError, StorageError, TodoError
from ..tasks.task_models import Task
from ..utils.dates import now_ms
from .validation import validate_import_data

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "todo-backup-"


async def export_data(db: Database) -> dict[str, Any]:
    """Snapshot every collection into one versioned document."""
    try:
        snap = await db.snapshot()
    except StorageError as e:
        logger.exception("Export snapshot failed")
        raise ExportError(ERROR_MESSAGES["export"]) from e

    doc = {
        "version": EXPORT_VERSION,
        "exportDate": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "tasks": snap.get("tasks", []),
        "categories": sorted(snap.get("categories", []), key=lambda c: c.get("order") or 0),
        "settings": snap.get("settings", []),
    }
    logger.info(
        "Export prepared: tasks=%d categories=%d settings=%d",
        len(doc["tasks"]),
        len(doc["categories"]),
        len(doc["settings"]),
    )
    return doc


def dumps_document(doc: Mapping[str, Any]) -> str:
    return json.dumps(doc, ensure_ascii=False, indent=2)


async def export_to_file(db: Database, directory: str | Path) -> Path:
    """Write `todo-backup-<ms>.json` into `directory`; returns the final path."""
    doc = await export_data(db)
    out_dir = Path(directory)
    target = out_dir / f"{BACKUP_PREFIX}{now_ms()}.json"
    tmp_name: str | None = None
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=out_dir, prefix=".tmp-", suffix=".json", delete=False
        ) as fh:
            tmp_name = fh.name
            fh.write(dumps_document(doc))
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as e:
        logger.exception("Failed to write backup to %s", out_dir)
        raise ExportError(ERROR_MESSAGES["export"]) from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)

    logger.info("Backup written: %s", target)
    return target


def _load_source(source: Mapping[str, Any] | str | bytes | Path) -> Any:
    if isinstance(source, Mapping):
        return source
    if isinstance(source, Path):
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ImportDataError(f"cannot read {source}: {e}") from e
    elif isinstance(source, bytes):
        try:
            text = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportDataError(f"not UTF-8 text: {e}") from e
    else:
        text = source
    try:
        return json.loads(text)
    except ValueError as e:
        raise ImportDataError(f"invalid JSON: {e}") from e


async def import_data(db: Database, source: Mapping[str, Any] | str | bytes | Path) -> dict[str, int]:
    """
    Replace tasks and categories with the document's contents.

    Settings present in the document are upserted; other settings are kept.
    Returns the number of records written per collection. Callers reload the
    state containers afterwards.
    """
    doc = validate_import_data(_load_source(source))

    tasks = [Task.from_record(r).to_record() for r in doc["tasks"]]
    categories = [Category.from_record(r).to_record() for r in doc["categories"]]
    settings = [{"key": s["key"], "value": s.get("value")} for s in doc["settings"] or ()]

    try:
        await db.replace_all(
            {"tasks": tasks, "categories": categories},
            upserts={"settings": settings} if settings else None,
        )
    except TodoError as e:
        logger.exception("Import failed while writing; store left unchanged")
        raise ImportDataError(str(e)) from e

    counts = {"tasks": len(tasks), "categories": len(categories), "settings": len(settings)}
    logger.info("Import complete: %s", counts)
    return counts
