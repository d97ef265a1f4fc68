# src/local_todo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the AppContext, then runs the console REPL
(optional) until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import close_context, create_context
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    ctx = await create_context(settings=settings)
    try:
        if settings.console_enabled:
            await run_console_loop(ctx)
        else:
            logger.info("Console disabled. Store initialized at %s, nothing else to run.", ctx.db.path)
    finally:
        await close_context(ctx)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
