# tests/test_validation.py

from __future__ import annotations

import pytest

from local_todo.data.validation import (
    Invalid,
    Valid,
    sanitize_record,
    validate_category_data,
    validate_category_name,
    validate_date,
    validate_import_data,
    validate_priority,
    validate_task_data,
    validate_task_description,
    validate_task_title,
)
from local_todo.errors import ImportDataError


def test_task_title_rules() -> None:
    assert isinstance(validate_task_title("Buy milk"), Valid)
    assert validate_task_title("") == Invalid("Task title is required")
    assert validate_task_title("   ") == Invalid("Task title is required")
    assert validate_task_title(None) == Invalid("Task title is required")
    assert isinstance(validate_task_title("x" * 200), Valid)
    assert isinstance(validate_task_title("x" * 201), Invalid)


def test_description_category_priority_and_date_rules() -> None:
    assert validate_task_description("").ok
    assert validate_task_description("d" * 1000).ok
    assert not validate_task_description("d" * 1001).ok

    assert validate_category_name("Work").ok
    assert not validate_category_name(" ").ok
    assert not validate_category_name("n" * 51).ok

    assert validate_priority("high").ok
    assert not validate_priority("urgent").ok
    assert not validate_priority(None).ok

    assert validate_date(None).ok
    assert validate_date("2024-01-15").ok
    assert validate_date("2024-01-15T08:00:00").ok
    assert not validate_date("next tuesday").ok


def test_task_data_reports_first_failure() -> None:
    assert validate_task_data({"title": "ok", "priority": "low", "due_date": "2024-02-01"}).ok

    result = validate_task_data({"title": "", "priority": "nope"})
    assert result == Invalid("Task title is required")

    result = validate_task_data({"title": "ok", "priority": "nope"})
    assert isinstance(result, Invalid) and "Priority" in result.message

    assert not validate_category_data({"name": ""}).ok


def test_sanitize_strips_pollution_keys_recursively() -> None:
    dirty = {
        "id": "1",
        "__proto__": {"admin": True},
        "nested": {"constructor": "x", "ok": [{"prototype": 1, "keep": 2}]},
    }
    assert sanitize_record(dirty) == {"id": "1", "nested": {"ok": [{"keep": 2}]}}


def _doc(**overrides) -> dict:
    doc = {
        "version": 1,
        "exportDate": "2024-01-01T00:00:00.000Z",
        "tasks": [{"id": "t1", "title": "A"}],
        "categories": [{"id": "c1", "name": "C"}],
        "settings": [{"key": "theme", "value": "dark"}],
    }
    doc.update(overrides)
    return doc


def test_import_document_accepted_and_sanitized() -> None:
    doc = _doc(tasks=[{"id": "t1", "title": "A", "__proto__": {"x": 1}}])
    clean = validate_import_data(doc)
    assert clean["tasks"] == [{"id": "t1", "title": "A"}]
    assert clean["settings"] == [{"key": "theme", "value": "dark"}]


def test_import_document_settings_are_optional() -> None:
    doc = _doc()
    del doc["settings"]
    assert validate_import_data(doc)["settings"] is None


@pytest.mark.parametrize(
    "doc",
    [
        [],
        _doc(version=None),
        _doc(version="1"),
        _doc(version=True),
        _doc(version=2),
        _doc(tasks={"id": "t1"}),
        _doc(categories=None),
        _doc(tasks=[{"title": "no id"}]),
        _doc(tasks=[{"id": "t1"}]),
        _doc(categories=[{"id": "c1"}]),
        _doc(tasks=["not an object"]),
        _doc(tasks=[{"id": "t1", "title": "A"}, {"id": "t1", "title": "B"}]),
        _doc(settings={"theme": "dark"}),
        _doc(settings=[{"value": "dark"}]),
    ],
)
def test_import_document_rejected(doc: object) -> None:
    with pytest.raises(ImportDataError):
        validate_import_data(doc)
