# src/local_todo/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.bootstrap import AppContext
from ..cli.commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _status_line(ctx: AppContext) -> str:
    s = ctx.tasks.task_stats
    net = "online" if ctx.app.is_online else "offline"
    return f"{s.active} active, {s.completed} done, {s.overdue} overdue | theme={ctx.app.theme} | {net}"


async def run_console_loop(ctx: AppContext) -> None:
    logger.info("Console connector started (db=%s).", ctx.db.path)
    _print_ts(f"[{ctx.settings.app_name}] {_status_line(ctx)}")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g. import)
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            # Bare text is a quick add.
            user_input = f"/add {user_input}"

        try:
            response = await command_registry.handle(ctx, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts(response)

    logger.info("Console connector finished.")
