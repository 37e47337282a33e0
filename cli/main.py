"""CLI entry point."""

import asyncio
import os
import sys

from common.logging_config import setup_logging
from cli.config import DEFAULT_CONFIG_PATH, Config
from cli.console_sink import ConsoleNotificationSink
from cli.repl import repl_loop
from cli.store_client import HttpObjectStore
from explorer.explorer_view import ExplorerView
from explorer.memory_store import InMemoryObjectStore
from explorer.store import ObjectStore


def build_store(config: Config, use_memory: bool) -> ObjectStore:
    """Select the backing store: the HTTP gateway, or an in-process store."""
    if use_memory:
        return InMemoryObjectStore()
    return HttpObjectStore(config)


async def run(use_memory: bool) -> None:
    config = Config()
    store = build_store(config, use_memory)
    view = ExplorerView(
        store,
        sink=ConsoleNotificationSink(),
        poll_interval=config.get_poll_interval(),
        link_expiry_seconds=config.get_link_expiry(),
    )
    try:
        await repl_loop(view, config)
    finally:
        await store.close()


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'INFO')

    log_file = os.getenv('EXPLORER_LOG_FILE', str(DEFAULT_CONFIG_PATH.parent / 'explorer.log'))
    logger = setup_logging('cli', log_level=log_level, log_file=log_file)
    setup_logging('explorer', log_level=log_level, log_file=log_file)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    use_memory = '--memory' in sys.argv
    if use_memory:
        logger.info("Using in-memory object store")
        sys.argv.remove('--memory')

    logger.info("CLI starting...")
    try:
        asyncio.run(run(use_memory))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
