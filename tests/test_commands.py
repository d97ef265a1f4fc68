# tests/test_commands.py

from __future__ import annotations

from pathlib import Path

import pytest

from local_todo.cli.bootstrap import AppContext
from local_todo.cli.commands import CommandRegistry, parse_add_args, registry, resolve_id


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_3_params(ctx: AppContext) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    async def h2(ctx, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    async def h3(ctx, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert await reg.handle(ctx, "/a x y") == "h2:x,y"
    assert await reg.handle(ctx, "/BEE", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(ctx: AppContext) -> None:
    reg = CommandRegistry()
    assert await reg.handle(ctx, "hello") is None
    assert "Unknown command" in (await reg.handle(ctx, "/nope") or "")
    assert "Empty command" in (await reg.handle(ctx, "/") or "")


@pytest.mark.asyncio
async def test_domain_errors_become_replies(ctx: AppContext) -> None:
    reg = CommandRegistry()

    async def broken(ctx, args):
        raise ValueError("bad input")

    reg.register("broken", broken, "x")
    assert await reg.handle(ctx, "/broken") == "Error: bad input"


def test_parse_add_args() -> None:
    data = parse_add_args(["Buy", "milk", "!HIGH", "#work", "@2024-06-20"])
    assert data == {"title": "Buy milk", "priority": "high", "category": "work", "due_date": "2024-06-20"}
    assert parse_add_args(["!", "#"]) == {"title": "! #"}


def test_resolve_id_prefixes() -> None:
    ids = ["abc123", "abd456", "xyz"]
    assert resolve_id(ids, "xyz") == "xyz"
    assert resolve_id(ids, "abc") == "abc123"
    with pytest.raises(ValueError, match="ambiguous"):
        resolve_id(ids, "ab")
    with pytest.raises(ValueError, match="no task"):
        resolve_id(ids, "q")


@pytest.mark.asyncio
async def test_add_list_done_rm_flow(ctx: AppContext) -> None:
    reply = await registry.handle(ctx, "/add Buy milk !high @2024-06-15")
    assert reply is not None and reply.startswith("Added:")
    task = ctx.tasks.tasks[0]
    assert (task.title, task.priority.value, task.due_date) == ("Buy milk", "high", "2024-06-15")

    listing = await registry.handle(ctx, "/list today")
    assert "Buy milk" in (listing or "")

    assert "completed" in (await registry.handle(ctx, f"/done {task.id[:6]}") or "")
    assert ctx.tasks.completed_tasks[0].id == task.id
    assert "Buy milk" in (await registry.handle(ctx, "/list completed") or "")

    assert "deleted" in (await registry.handle(ctx, f"/rm {task.id[:6]}") or "")
    assert ctx.tasks.tasks == ()
    assert await registry.handle(ctx, "/list") == "No tasks."


@pytest.mark.asyncio
async def test_add_rejects_invalid_input(ctx: AppContext) -> None:
    assert await registry.handle(ctx, "/add") == "Task title is required"
    assert "Unknown category" in (await registry.handle(ctx, "/add Thing #nowhere") or "")
    assert "Priority" in (await registry.handle(ctx, "/add Thing !urgent") or "")
    assert ctx.tasks.tasks == ()


@pytest.mark.asyncio
async def test_view_category_scopes_add_and_list(ctx: AppContext) -> None:
    assert await registry.handle(ctx, "/view category wor") == "Viewing category work."
    await registry.handle(ctx, "/add Quarterly report")
    assert ctx.tasks.tasks[0].category == "work"

    await registry.handle(ctx, "/view all")
    await registry.handle(ctx, "/add Groceries")
    assert ctx.tasks.tasks[1].category == "personal"

    await registry.handle(ctx, "/view category work")
    listing = await registry.handle(ctx, "/list") or ""
    assert "Quarterly report" in listing and "Groceries" not in listing


@pytest.mark.asyncio
async def test_category_commands(ctx: AppContext) -> None:
    reply = await registry.handle(ctx, "/cat add Side projects 🚀 #123456")
    assert reply is not None and "Side projects" in reply
    added = ctx.categories.categories[-1]
    assert (added.name, added.icon, added.color, added.order) == ("Side projects", "🚀", "#123456", 4)

    await registry.handle(ctx, "/add Ship it #work")
    reply = await registry.handle(ctx, "/cat rm work")
    assert reply is not None and reply.startswith("Error:")
    assert ctx.categories.get_category_by_id("work") is not None

    order = ["health", "study", "work", "personal", added.id]
    assert "reordered" in (await registry.handle(ctx, "/cat order " + " ".join(order)) or "")
    assert [c.id for c in ctx.categories.categories] == order

    assert "Error:" in (await registry.handle(ctx, "/cat order work personal") or "")
    listing = await registry.handle(ctx, "/cats") or ""
    assert listing.splitlines()[1].strip().startswith("0.")


@pytest.mark.asyncio
async def test_stats_theme_search(ctx: AppContext) -> None:
    await registry.handle(ctx, "/add Buy groceries")
    await registry.handle(ctx, "/add Walk dog")
    await registry.handle(ctx, f"/done {ctx.tasks.tasks[0].id}")

    stats = await registry.handle(ctx, "/stats") or ""
    assert "Total: 2" in stats and "Completion rate: 50%" in stats

    assert await registry.handle(ctx, "/theme toggle") == "Theme set to dark."
    assert await ctx.prefs.get("theme") == "dark"
    assert "Usage" in (await registry.handle(ctx, "/theme blue") or "")

    found = await registry.handle(ctx, "/search GROCERIES") or ""
    assert "Buy groceries" in found and "Walk dog" not in found
    assert ctx.app.search_query == "GROCERIES"


@pytest.mark.asyncio
async def test_export_then_import_restores_state(ctx: AppContext, tmp_path: Path) -> None:
    await registry.handle(ctx, "/add Keep me")
    reply = await registry.handle(ctx, f"/export {tmp_path / 'bk'}") or ""
    assert reply.startswith("Backup written to ")
    backup = Path(reply.removeprefix("Backup written to "))
    assert backup.exists()

    await registry.handle(ctx, "/add Throw away")
    assert len(ctx.tasks.tasks) == 2

    notes: list[str] = []
    reply = await registry.handle(ctx, f"/import {backup}", emit=notes.append) or ""
    assert reply.startswith("Imported 1 task(s)")
    assert notes and "Importing" in notes[0]
    assert [t.title for t in ctx.tasks.tasks] == ["Keep me"]

    bad = tmp_path / "bad.json"
    bad.write_text('{"version": 1}', encoding="utf-8")
    assert (await registry.handle(ctx, f"/import {bad}") or "").startswith("Error:")
    assert [t.title for t in ctx.tasks.tasks] == ["Keep me"]
