# src/local_todo/data/validation.py

"""
Input validation.

Field validators return a tagged result instead of raising, so callers decide
whether to block a form submission:

    result = validate_task_title(title)
    if isinstance(result, Invalid):
        show(result.message)

validate_import_data() is the exception: a bad backup document raises
ImportDataError before anything touches the store.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..constants import (
    CATEGORY_NAME_MAX_LENGTH,
    SUPPORTED_IMPORT_VERSIONS,
    TASK_DESCRIPTION_MAX_LENGTH,
    TASK_TITLE_MAX_LENGTH,
)
from ..errors import ImportDataError
from ..tasks.task_models import Priority
from ..utils.dates import parse_due

UNSAFE_KEYS = frozenset({"__proto__", "constructor", "prototype"})


@dataclass(frozen=True, slots=True)
class Valid:
    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Invalid:
    message: str

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Valid | Invalid

VALID = Valid()


def validate_task_title(title: object) -> ValidationResult:
    if not title or not isinstance(title, str):
        return Invalid("Task title is required")
    trimmed = title.strip()
    if not trimmed:
        return Invalid("Task title is required")
    if len(trimmed) > TASK_TITLE_MAX_LENGTH:
        return Invalid(f"Task title cannot exceed {TASK_TITLE_MAX_LENGTH} characters")
    return VALID


def validate_task_description(description: object) -> ValidationResult:
    if not description:
        return VALID
    if not isinstance(description, str):
        return Invalid("Task description must be text")
    if len(description) > TASK_DESCRIPTION_MAX_LENGTH:
        return Invalid(f"Task description cannot exceed {TASK_DESCRIPTION_MAX_LENGTH} characters")
    return VALID


def validate_category_name(name: object) -> ValidationResult:
    if not name or not isinstance(name, str):
        return Invalid("Category name is required")
    trimmed = name.strip()
    if not trimmed:
        return Invalid("Category name is required")
    if len(trimmed) > CATEGORY_NAME_MAX_LENGTH:
        return Invalid(f"Category name cannot exceed {CATEGORY_NAME_MAX_LENGTH} characters")
    return VALID


def validate_priority(priority: object) -> ValidationResult:
    if isinstance(priority, str) and priority in {p.value for p in Priority}:
        return VALID
    return Invalid("Priority must be one of: low, medium, high")


def validate_date(value: object) -> ValidationResult:
    if not value:
        return VALID
    if parse_due(value) is None:
        return Invalid("Date format is not valid")
    return VALID


def validate_task_data(data: Mapping[str, Any]) -> ValidationResult:
    """First failing rule wins. Only fields present in `data` are checked (except title)."""
    checks = [validate_task_title(data.get("title"))]
    if "description" in data:
        checks.append(validate_task_description(data.get("description")))
    if "priority" in data:
        checks.append(validate_priority(data.get("priority")))
    if "due_date" in data:
        checks.append(validate_date(data.get("due_date")))
    for result in checks:
        if isinstance(result, Invalid):
            return result
    return VALID


def validate_category_data(data: Mapping[str, Any]) -> ValidationResult:
    return validate_category_name(data.get("name"))


# ---- import documents ----


def sanitize_record(value: Any) -> Any:
    """Copy with prototype-pollution keys removed at every nesting level."""
    if isinstance(value, Mapping):
        return {str(k): sanitize_record(v) for k, v in value.items() if k not in UNSAFE_KEYS}
    if isinstance(value, list):
        return [sanitize_record(v) for v in value]
    return value


def _clean_records(
    raw: list[Any], *, kind: str, required: tuple[str, ...]
) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise ImportDataError(f"{kind}[{i}] is not an object")
        for name in required:
            if not item.get(name):
                raise ImportDataError(f"{kind}[{i}] is missing required field {name!r}")
        rid = str(item["id"])
        if rid in seen:
            raise ImportDataError(f"{kind}[{i}] duplicates id {rid!r}")
        seen.add(rid)
        out.append(sanitize_record(item))
    return out


def validate_import_data(data: object) -> dict[str, Any]:
    """
    Structural check of a backup document. Returns a sanitized copy.

    Rejects: non-object documents, unknown/missing version, tasks or categories
    that are not lists, records missing id+title / id+name, duplicate ids,
    malformed settings.
    """
    if not isinstance(data, Mapping):
        raise ImportDataError("document is not an object")

    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        raise ImportDataError("version is missing or not a number")
    if version not in SUPPORTED_IMPORT_VERSIONS:
        raise ImportDataError(f"unsupported version {version!r}")

    tasks = data.get("tasks")
    if not isinstance(tasks, list):
        raise ImportDataError("tasks must be a list")
    categories = data.get("categories")
    if not isinstance(categories, list):
        raise ImportDataError("categories must be a list")

    settings = data.get("settings")
    clean_settings: list[dict[str, Any]] | None = None
    if settings is not None:
        if not isinstance(settings, list):
            raise ImportDataError("settings must be a list")
        clean_settings = []
        for i, item in enumerate(settings):
            if not isinstance(item, Mapping) or not isinstance(item.get("key"), str) or not item.get("key"):
                raise ImportDataError(f"settings[{i}] must be an object with a string key")
            clean_settings.append(sanitize_record(item))

    cleaned = sanitize_record(data)
    cleaned["version"] = int(version)
    cleaned["tasks"] = _clean_records(tasks, kind="tasks", required=("id", "title"))
    cleaned["categories"] = _clean_records(categories, kind="categories", required=("id", "name"))
    cleaned["settings"] = clean_settings
    return cleaned
