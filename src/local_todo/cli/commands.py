# src/local_todo/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import cast

from ..constants import DEFAULT_CATEGORY_ID, THEME_DARK, THEME_LIGHT, VIEW_ALL, VIEW_CATEGORY, VIEW_COMPLETED, VIEW_TODAY
from ..data.backup import export_to_file, import_data
from ..data.validation import Invalid, validate_category_data, validate_task_data
from ..errors import TodoError
from ..tasks.task_models import Priority, Task
from ..utils.dates import format_relative
from .bootstrap import AppContext, reload_state

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppContext, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppContext, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

LIST_VIEWS = ("all", "today", "completed", "overdue", "active")


class CommandRegistry:
    """Slash-command registry used by connectors (/help, /add, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        ctx: AppContext,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Domain failures (TodoError, ValueError) become a one-line reply; anything
        else propagates to the connector.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return await h3(ctx, args, emit)
            h2 = cast(CommandHandler2, handler)
            return await h2(ctx, args)
        except (TodoError, ValueError) as e:
            logger.info("Command /%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def resolve_id(candidates: Iterable[str], prefix: str, *, kind: str = "task") -> str:
    """Exact id, else a unique id prefix. Ambiguous or unknown prefixes raise ValueError."""
    ids = list(candidates)
    if prefix in ids:
        return prefix
    matches = [i for i in ids if i.startswith(prefix)]
    if not matches:
        raise ValueError(f"no {kind} matches id {prefix!r}")
    if len(matches) > 1:
        raise ValueError(f"{kind} id {prefix!r} is ambiguous ({len(matches)} matches)")
    return matches[0]


def parse_add_args(args: list[str]) -> dict[str, object]:
    """`title words [!prio] [#category] [@date]` -> task data (attribute names)."""
    data: dict[str, object] = {}
    words: list[str] = []
    for token in args:
        if token.startswith("!") and len(token) > 1:
            data["priority"] = token[1:].lower()
        elif token.startswith("#") and len(token) > 1:
            data["category"] = token[1:]
        elif token.startswith("@") and len(token) > 1:
            data["due_date"] = token[1:]
        else:
            words.append(token)
    data["title"] = " ".join(words).strip()
    return data


def _format_task(ctx: AppContext, task: Task) -> str:
    mark = "x" if task.completed else " "
    bits = [f"[{mark}] {task.id[:8]} {task.title}"]
    if task.priority is not Priority.MEDIUM:
        bits.append(f"!{task.priority.value}")
    bits.append(f"#{task.category}")
    if task.due_date:
        bits.append(f"@{format_relative(task.due_date, ctx.tasks.now())}")
    return " ".join(bits)


def _format_tasks(ctx: AppContext, tasks: Iterable[Task], empty: str = "No tasks.") -> str:
    lines = [_format_task(ctx, t) for t in tasks]
    return "\n".join(lines) if lines else empty


# ---- handlers ----


async def cmd_help(ctx: AppContext, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(ctx: AppContext, args: list[str]) -> str:
    """
    /list            -> tasks of the current view
    /list <view>     -> all | today | completed | overdue | active
    """
    tasks = ctx.tasks
    view = args[0].lower() if args else None

    if view is None:
        if ctx.app.current_view == VIEW_CATEGORY and ctx.app.current_category:
            return _format_tasks(ctx, tasks.tasks_by_category(ctx.app.current_category))
        view = ctx.app.current_view

    if view not in LIST_VIEWS:
        return f"Usage: /list [{'|'.join(LIST_VIEWS)}]"

    selected = {
        "all": tasks.tasks,
        "today": tasks.today_tasks,
        "completed": tasks.completed_tasks,
        "overdue": tasks.overdue_tasks,
        "active": tasks.active_tasks,
    }[view]
    return _format_tasks(ctx, selected)


async def cmd_add(ctx: AppContext, args: list[str]) -> str:
    data = parse_add_args(args)
    result = validate_task_data(data)
    if isinstance(result, Invalid):
        return result.message

    category = str(data.get("category") or ctx.app.current_category or DEFAULT_CATEGORY_ID)
    if ctx.categories.get_category_by_id(category) is None:
        return f"Unknown category: {category}. Use /cats to list categories."
    data["category"] = category

    task = await ctx.tasks.add_task(data)
    return f"Added: {_format_task(ctx, task)}"


async def cmd_done(ctx: AppContext, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task_id = resolve_id((t.id for t in ctx.tasks.tasks), args[0])
    completed = await ctx.tasks.toggle_task(task_id)
    return f"Task {task_id[:8]} marked {'completed' if completed else 'active'}."


async def cmd_rm(ctx: AppContext, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    task_id = resolve_id((t.id for t in ctx.tasks.tasks), args[0])
    await ctx.tasks.delete_task(task_id)
    return f"Task {task_id[:8]} deleted."


async def cmd_search(ctx: AppContext, args: list[str]) -> str:
    query = " ".join(args)
    ctx.app.set_search_query(query)
    found = await ctx.tasks.search_tasks(query)
    if ctx.tasks.last_error:
        return f"Search failed: {ctx.tasks.last_error}"
    return _format_tasks(ctx, found, empty="No matching tasks.")


async def cmd_cats(ctx: AppContext, args: list[str]) -> str:
    cats = ctx.categories.categories
    if not cats:
        return "No categories."
    lines = ["Categories:"]
    for c in cats:
        n = len(ctx.tasks.tasks_by_category(c.id))
        lines.append(f"  {c.order}. {c.icon} {c.name} ({c.id}) {c.color} - {n} task(s)")
    return "\n".join(lines)


async def cmd_cat(ctx: AppContext, args: list[str]) -> str:
    """
    /cat add <name> [icon] [#color]
    /cat rm <id>
    /cat order <id> <id> ...
    """
    usage = "Usage: /cat add <name> [icon] [#color] | /cat rm <id> | /cat order <id> <id> ..."
    if not args:
        return usage

    sub = args[0].lower()
    rest = args[1:]
    known = [c.id for c in ctx.categories.categories]

    if sub == "add":
        data: dict[str, object] = {}
        words: list[str] = []
        for token in rest:
            if token.startswith("#") and len(token) > 1:
                data["color"] = token
            elif words and "icon" not in data and not token.isascii():
                data["icon"] = token
            else:
                words.append(token)
        data["name"] = " ".join(words).strip()
        result = validate_category_data(data)
        if isinstance(result, Invalid):
            return result.message
        data["order"] = ctx.categories.category_count
        category = await ctx.categories.add_category(data)
        return f"Category added: {category.icon} {category.name} ({category.id})"

    if sub == "rm":
        if not rest:
            return usage
        category_id = resolve_id(known, rest[0], kind="category")
        await ctx.categories.delete_category(category_id)
        if ctx.app.current_category == category_id:
            ctx.app.set_current_view(VIEW_ALL)
        return f"Category {category_id} deleted."

    if sub == "order":
        if not rest:
            return usage
        ordered = [resolve_id(known, p, kind="category") for p in rest]
        await ctx.categories.reorder_categories(ordered)
        return "Categories reordered: " + ", ".join(ordered)

    return usage


async def cmd_stats(ctx: AppContext, args: list[str]) -> str:
    s = ctx.tasks.task_stats
    return (
        "Stats:\n"
        f"  Total: {s.total}\n"
        f"  Completed: {s.completed}\n"
        f"  Active: {s.active}\n"
        f"  Overdue: {s.overdue}\n"
        f"  Completion rate: {s.completion_rate}%"
    )


async def cmd_theme(ctx: AppContext, args: list[str]) -> str:
    """
    /theme          -> show current theme
    /theme toggle   -> switch light/dark
    /theme <name>   -> light | dark
    """
    if not args:
        return f"Theme is {ctx.app.theme}. Use /theme light | dark | toggle."
    arg = args[0].lower()
    if arg == "toggle":
        await ctx.app.toggle_theme()
    elif arg in (THEME_LIGHT, THEME_DARK):
        await ctx.app.set_theme(arg)
    else:
        return "Usage: /theme [light|dark|toggle]"
    return f"Theme set to {ctx.app.theme}."


async def cmd_view(ctx: AppContext, args: list[str]) -> str:
    if not args:
        current = ctx.app.current_view
        if current == VIEW_CATEGORY:
            current = f"category {ctx.app.current_category}"
        return f"Current view: {current}"

    view = args[0].lower()
    if view == VIEW_CATEGORY:
        if len(args) < 2:
            return "Usage: /view category <id>"
        category_id = resolve_id((c.id for c in ctx.categories.categories), args[1], kind="category")
        ctx.app.set_current_category(category_id)
        return f"Viewing category {category_id}."
    if view in (VIEW_ALL, VIEW_TODAY, VIEW_COMPLETED):
        ctx.app.set_current_view(view)
        return f"Viewing {view}."
    return "Usage: /view <all|today|completed|category <id>>"


async def cmd_export(ctx: AppContext, args: list[str]) -> str:
    directory = Path(args[0]).expanduser() if args else ctx.settings.export_dir
    path = await export_to_file(ctx.db, directory)
    return f"Backup written to {path}"


async def cmd_import(ctx: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import <path>"
    path = Path(" ".join(args)).expanduser()
    if emit:
        emit(f"Importing {path} (this replaces all tasks and categories)...")

    counts = await import_data(ctx.db, path)

    await reload_state(ctx)
    return f"Imported {counts['tasks']} task(s), {counts['categories']} category(ies), {counts['settings']} setting(s)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks: /list [all|today|completed|overdue|active].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [!low|!medium|!high] [#category] [@YYYY-MM-DD].")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.")
registry.register("search", cmd_search, help_text="Search title, description and tags: /search <text>.")
registry.register("cats", cmd_cats, help_text="List categories.")
registry.register("cat", cmd_cat, help_text="Manage categories: /cat add | rm | order.")
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("theme", cmd_theme, help_text="Show or change theme: /theme [light|dark|toggle].")
registry.register("view", cmd_view, help_text="Switch view: /view <all|today|completed|category <id>>.")
registry.register("export", cmd_export, help_text="Write a JSON backup: /export [dir].")
registry.register("import", cmd_import, help_text="Restore a JSON backup: /import <path>.")
