# src/local_todo/core/state.py

from __future__ import annotations

import logging
from typing import Any

from ..constants import (
    SETTING_THEME,
    THEME_DARK,
    THEME_LIGHT,
    THEMES,
    VIEW_ALL,
    VIEW_CATEGORY,
    VIEW_TYPES,
)
from .container import StateContainer
from .ports import ColorSchemeQuery, InstallPrompt, PlatformSignals, PreferenceRepo, SignalHandler, ThemeSink

logger = logging.getLogger(__name__)


class AppState(StateContainer):
    """
    App-level UI state, separate from task/category data.

    Owns:
    - theme (persisted to the settings collection on every change)
    - current view XOR selected category
    - search query, sidebar flag
    - online flag and the deferred install prompt, both fed by platform signals
    """

    def __init__(
        self,
        prefs: PreferenceRepo,
        *,
        apply_theme: ThemeSink | None = None,
        prefers_dark: ColorSchemeQuery | None = None,
        is_online: bool = True,
    ) -> None:
        super().__init__()
        self._prefs = prefs
        self._apply_theme = apply_theme
        self._prefers_dark = prefers_dark

        self.theme: str = THEME_LIGHT
        self.current_view: str = VIEW_ALL
        self.current_category: str | None = None
        self.search_query: str = ""
        self.is_online: bool = bool(is_online)
        self.sidebar_open: bool = True
        self.show_install_prompt: bool = False

        self._deferred_prompt: InstallPrompt | None = None
        self._theme_chosen = False
        self._signals: PlatformSignals | None = None
        self._handlers: dict[str, SignalHandler] = {}

    @property
    def is_dark_mode(self) -> bool:
        return self.theme == THEME_DARK

    @property
    def deferred_prompt(self) -> InstallPrompt | None:
        return self._deferred_prompt

    # ---- theme ----

    async def set_theme(self, theme: str, *, explicit: bool = True) -> None:
        if theme not in THEMES:
            raise ValueError(f"unknown theme: {theme!r}")
        self.theme = theme
        if explicit:
            self._theme_chosen = True
        if self._apply_theme is not None:
            self._apply_theme(theme)
        async with self._action("save theme"):
            await self._prefs.put(SETTING_THEME, theme)

    async def toggle_theme(self) -> None:
        await self.set_theme(THEME_LIGHT if self.theme == THEME_DARK else THEME_DARK)

    async def load_theme(self) -> None:
        """Saved theme if any, else the platform colour-scheme preference."""
        async with self._action("load theme", reraise=False):
            saved = await self._prefs.get(SETTING_THEME)
            if saved in THEMES:
                await self.set_theme(saved)
            else:
                dark = bool(self._prefers_dark()) if self._prefers_dark is not None else False
                await self.set_theme(THEME_DARK if dark else THEME_LIGHT, explicit=False)

    # ---- view selection ----

    def set_current_view(self, view: str) -> None:
        if view not in VIEW_TYPES:
            raise ValueError(f"unknown view: {view!r}")
        if view == VIEW_CATEGORY:
            raise ValueError("select a category with set_current_category()")
        self.current_view = view
        self.current_category = None

    def set_current_category(self, category_id: str) -> None:
        if not category_id:
            raise ValueError("category_id is required")
        self.current_category = category_id
        self.current_view = VIEW_CATEGORY

    def set_search_query(self, query: str) -> None:
        self.search_query = query or ""

    def set_online_status(self, online: bool) -> None:
        if self.is_online != bool(online):
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        self.is_online = bool(online)

    def toggle_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open

    # ---- install prompt ----

    def set_install_prompt(self, prompt: InstallPrompt | None) -> None:
        self._deferred_prompt = prompt
        self.show_install_prompt = prompt is not None

    async def install_pwa(self) -> bool:
        """Show the deferred prompt; True if the user accepted. The slot is cleared either way."""
        prompt = self._deferred_prompt
        if prompt is None:
            return False
        try:
            async with self._action("install prompt", track_loading=False):
                prompt.prompt()
                outcome = await prompt.user_choice()
        finally:
            self.set_install_prompt(None)
        logger.info("Install prompt outcome: %s", outcome)
        return outcome == "accepted"

    # ---- platform signals ----

    def attach_platform(self, signals: PlatformSignals) -> None:
        if self._signals is not None:
            self.detach_platform()

        async def on_color_scheme(dark: Any) -> None:
            if not self._theme_chosen:
                await self.set_theme(THEME_DARK if dark else THEME_LIGHT, explicit=False)

        self._handlers = {
            "online": lambda _payload: self.set_online_status(True),
            "offline": lambda _payload: self.set_online_status(False),
            "beforeinstallprompt": lambda prompt: self.set_install_prompt(prompt),
            "appinstalled": lambda _payload: self.set_install_prompt(None),
            "color-scheme": on_color_scheme,
        }
        for event, handler in self._handlers.items():
            signals.add_listener(event, handler)
        self._signals = signals

    def detach_platform(self) -> None:
        if self._signals is None:
            return
        for event, handler in self._handlers.items():
            self._signals.remove_listener(event, handler)
        self._handlers = {}
        self._signals = None
