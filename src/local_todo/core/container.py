# src/local_todo/core/container.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateContainer:
    """
    Shared lifecycle for in-memory state containers.

    Every async action:
    - marks itself in flight (loading) and clears last_error
    - on failure records the message in last_error and optionally re-raises
    - always leaves the in-flight count in the `finally` step

    Derived views are memoized per (name, key); keys include `version`, which is
    bumped on every mutation of the cached collection, so stale entries are
    recomputed lazily on the next read.

    Writes to the same entity id are serialized through a per-id asyncio.Lock.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._last_error: str | None = None
        self._version = 0
        self._memo: dict[Hashable, tuple[Hashable, Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def version(self) -> int:
        return self._version

    def clear_error(self) -> None:
        self._last_error = None

    # ---- helpers for subclasses ----

    def _touch(self) -> None:
        self._version += 1
        self._memo.clear()

    def _memoized(self, name: Hashable, key: Hashable, compute: Callable[[], T]) -> T:
        entry = self._memo.get(name)
        if entry is not None and entry[0] == key:
            return entry[1]
        value = compute()
        self._memo[name] = (key, value)
        return value

    def _lock_for(self, entity_id: str) -> asyncio.Lock:
        lock = self._locks.get(entity_id)
        if lock is None:
            lock = self._locks[entity_id] = asyncio.Lock()
        return lock

    def _forget_lock(self, entity_id: str) -> None:
        lock = self._locks.get(entity_id)
        if lock is not None and not lock.locked():
            del self._locks[entity_id]

    def _capture(self, what: str, exc: BaseException) -> None:
        self._last_error = str(exc) or exc.__class__.__name__
        logger.error("%s: %s failed: %s", self.__class__.__name__, what, self._last_error)

    @contextlib.asynccontextmanager
    async def _action(self, what: str, *, reraise: bool = True, track_loading: bool = True) -> AsyncIterator[None]:
        if track_loading:
            self._in_flight += 1
        self._last_error = None
        try:
            yield
        except Exception as e:
            self._capture(what, e)
            if reraise:
                raise
        finally:
            if track_loading:
                self._in_flight -= 1
