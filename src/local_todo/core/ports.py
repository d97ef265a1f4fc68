# src/local_todo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the state containers.

Containers depend on Protocols instead of concrete repositories and platform
hooks. This keeps storage swappable and makes testing with fakes easy.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from ..categories.category_models import Category
from ..tasks.task_models import Task

# Receives "light" / "dark" and applies it to whatever renders the app.
ThemeSink = Callable[[str], None]

# Returns True when the platform prefers a dark colour scheme.
ColorSchemeQuery = Callable[[], bool]

SignalHandler = Callable[[Any], Awaitable[None] | None]


class TaskRepo(Protocol):
    async def get_all(self) -> list[Task]: ...
    async def add(self, data: Mapping[str, Any] | None = None) -> Task: ...
    async def update(self, task_id: str, changes: Mapping[str, Any]) -> Task: ...
    async def delete(self, task_id: str) -> bool: ...
    async def toggle_completion(self, task_id: str) -> bool: ...
    async def search(self, query: str) -> list[Task]: ...


class CategoryRepo(Protocol):
    async def get_all(self) -> list[Category]: ...
    async def add(self, data: Mapping[str, Any] | None = None) -> Category: ...
    async def update(self, category_id: str, changes: Mapping[str, Any]) -> Category: ...
    async def delete(self, category_id: str) -> bool: ...
    async def reorder(self, category_ids: Sequence[str]) -> bool: ...


class PreferenceRepo(Protocol):
    async def get(self, key: str, default: Any = None) -> Any: ...
    async def put(self, key: str, value: Any) -> None: ...


class InstallPrompt(Protocol):
    """
    Deferred "install this app" prompt captured from the platform.

    prompt() shows it; user_choice() resolves to "accepted" or "dismissed".
    """

    def prompt(self) -> None: ...
    def user_choice(self) -> Awaitable[str]: ...


class PlatformSignals(Protocol):
    """
    Inbound platform notifications. Events used by AppState:
    - "online" / "offline"           (payload ignored)
    - "beforeinstallprompt"          (payload: InstallPrompt)
    - "appinstalled"                 (payload ignored)
    - "color-scheme"                 (payload: bool, True = dark)
    """

    def add_listener(self, event: str, handler: SignalHandler) -> None: ...
    def remove_listener(self, event: str, handler: SignalHandler) -> None: ...
