# tests/test_app_state.py

from __future__ import annotations

import pytest

from local_todo.connectors.platform import LocalPlatform
from local_todo.core.preferences import PreferenceRepository
from local_todo.core.state import AppState
from local_todo.errors import DatabaseError

from .fakes import FakeInstallPrompt, MemoryPrefs, ThemeRecorder


@pytest.mark.asyncio
async def test_theme_is_applied_and_persisted(prefs: PreferenceRepository) -> None:
    sink = ThemeRecorder()
    state = AppState(prefs, apply_theme=sink)

    await state.set_theme("dark")
    assert state.is_dark_mode
    assert sink.applied == ["dark"]
    assert await prefs.get("theme") == "dark"

    await state.toggle_theme()
    assert state.theme == "light"
    assert await prefs.get("theme") == "light"

    with pytest.raises(ValueError):
        await state.set_theme("sepia")


@pytest.mark.asyncio
async def test_load_theme_prefers_saved_value() -> None:
    prefs = MemoryPrefs({"theme": "dark"})
    state = AppState(prefs, prefers_dark=lambda: False)
    await state.load_theme()
    assert state.theme == "dark"


@pytest.mark.asyncio
async def test_load_theme_falls_back_to_platform_preference() -> None:
    prefs = MemoryPrefs()
    state = AppState(prefs, prefers_dark=lambda: True)
    await state.load_theme()
    assert state.theme == "dark"
    assert prefs.values["theme"] == "dark"


@pytest.mark.asyncio
async def test_theme_write_failure_is_captured_and_raised() -> None:
    state = AppState(MemoryPrefs(fail_writes=True))
    with pytest.raises(DatabaseError):
        await state.set_theme("dark")
    assert state.last_error == "read-only"
    assert state.loading is False


def test_view_and_category_are_exclusive() -> None:
    state = AppState(MemoryPrefs())
    assert (state.current_view, state.current_category) == ("all", None)

    state.set_current_category("work")
    assert (state.current_view, state.current_category) == ("category", "work")

    state.set_current_view("today")
    assert (state.current_view, state.current_category) == ("today", None)

    with pytest.raises(ValueError):
        state.set_current_view("category")
    with pytest.raises(ValueError):
        state.set_current_view("someday")


def test_simple_flags() -> None:
    state = AppState(MemoryPrefs(), is_online=False)
    assert state.is_online is False

    state.set_online_status(True)
    state.set_search_query("milk")
    state.toggle_sidebar()
    assert (state.is_online, state.search_query, state.sidebar_open) == (True, "milk", False)


@pytest.mark.asyncio
async def test_install_prompt_cleared_after_any_outcome() -> None:
    state = AppState(MemoryPrefs())
    assert await state.install_pwa() is False

    prompt = FakeInstallPrompt("accepted")
    state.set_install_prompt(prompt)
    assert state.show_install_prompt is True
    assert await state.install_pwa() is True
    assert prompt.prompted == 1
    assert state.deferred_prompt is None and state.show_install_prompt is False

    state.set_install_prompt(FakeInstallPrompt("dismissed"))
    assert await state.install_pwa() is False
    assert state.deferred_prompt is None

    state.set_install_prompt(FakeInstallPrompt(error=RuntimeError("gone")))
    with pytest.raises(RuntimeError):
        await state.install_pwa()
    assert state.deferred_prompt is None
    assert state.last_error == "gone"


@pytest.mark.asyncio
async def test_platform_signals_drive_state() -> None:
    platform = LocalPlatform()
    state = AppState(MemoryPrefs(), prefers_dark=platform.color_scheme_is_dark)
    state.attach_platform(platform)
    assert platform.listener_count() == 5

    await platform.emit("offline")
    assert state.is_online is False
    await platform.emit("online")
    assert state.is_online is True

    prompt = FakeInstallPrompt()
    await platform.emit("beforeinstallprompt", prompt)
    assert state.deferred_prompt is prompt
    await platform.emit("appinstalled")
    assert state.show_install_prompt is False

    state.detach_platform()
    assert platform.listener_count() == 0
    await platform.emit("offline")
    assert state.is_online is True


@pytest.mark.asyncio
async def test_color_scheme_follows_platform_until_user_chooses() -> None:
    platform = LocalPlatform()
    state = AppState(MemoryPrefs(), prefers_dark=platform.color_scheme_is_dark)
    state.attach_platform(platform)
    await state.load_theme()
    assert state.theme == "light"

    await platform.emit("color-scheme", True)
    assert state.theme == "dark"

    await state.set_theme("light")
    await platform.emit("color-scheme", True)
    assert state.theme == "light"
