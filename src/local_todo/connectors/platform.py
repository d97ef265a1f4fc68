# src/local_todo/connectors/platform.py

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any

from ..core.ports import SignalHandler

logger = logging.getLogger(__name__)


class LocalPlatform:
    """
    In-process PlatformSignals implementation.

    Whatever hosts the app (console, a GUI shell, tests) calls emit() when the
    platform reports connectivity, colour-scheme or install-prompt events.
    Handlers may be sync or async; a failing handler is logged and does not stop
    the others.
    """

    def __init__(self, *, online: bool = True, prefers_dark: bool = False) -> None:
        self.online = online
        self.prefers_dark = prefers_dark
        self._listeners: dict[str, list[SignalHandler]] = defaultdict(list)

    def add_listener(self, event: str, handler: SignalHandler) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: SignalHandler) -> None:
        handlers = self._listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(h) for h in self._listeners.values())

    def color_scheme_is_dark(self) -> bool:
        return self.prefers_dark

    async def emit(self, event: str, payload: Any = None) -> None:
        if event == "online":
            self.online = True
        elif event == "offline":
            self.online = False
        elif event == "color-scheme":
            self.prefers_dark = bool(payload)

        for handler in list(self._listeners.get(event, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Platform handler for %r failed", event)
