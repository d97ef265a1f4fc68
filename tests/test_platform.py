# tests/test_platform.py

from __future__ import annotations

import pytest

from local_todo.cli.bootstrap import AppContext
from local_todo.connectors.platform import LocalPlatform


@pytest.mark.asyncio
async def test_emit_runs_sync_and_async_handlers_and_isolates_failures() -> None:
    platform = LocalPlatform()
    seen: list[str] = []

    def broken(_payload) -> None:
        raise RuntimeError("handler bug")

    async def async_handler(payload) -> None:
        seen.append(f"async:{payload}")

    platform.add_listener("color-scheme", broken)
    platform.add_listener("color-scheme", lambda p: seen.append(f"sync:{p}"))
    platform.add_listener("color-scheme", async_handler)

    await platform.emit("color-scheme", True)

    assert seen == ["sync:True", "async:True"]
    assert platform.color_scheme_is_dark() is True

    platform.remove_listener("color-scheme", broken)
    platform.remove_listener("color-scheme", broken)
    assert platform.listener_count("color-scheme") == 2


@pytest.mark.asyncio
async def test_context_wires_platform_and_detaches_on_close(ctx: AppContext, platform: LocalPlatform) -> None:
    assert platform.listener_count() == 5
    assert ctx.app.theme == "light"
    assert ctx.categories.category_count == 4

    await platform.emit("offline")
    assert ctx.app.is_online is False
