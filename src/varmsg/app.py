"""Application entry point for the varmsg service."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import text2art

from varmsg import settings
from varmsg.adapters.sinks import SinkDispatcher
from varmsg.adapters.sqlite_store import SQLiteVariableStore
from varmsg.core.definitions import DefinitionLoader
from varmsg.core.errors import StoreError
from varmsg.core.renderer import Renderer
from varmsg.core.scheduler import Scheduler
from varmsg.core.ticker import Ticker

NAME = "VARMSG"
FONT = "small"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    # stderr, because stdout carries messages for stdout outputs.
    print(text2art(NAME, font=FONT), file=sys.stderr)


def _configure_logging(verbose: bool = False) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False) and not verbose:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True) or verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/varmsg.log")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="varmsg",
        description="Generate JSON variable messages on a schedule.",
    )
    parser.add_argument("-v", dest="verbose", action="store_true", help="verbose output")
    parser.add_argument("-f", dest="config_file", metavar="file", help="configuration file for a single message")
    parser.add_argument("-d", dest="config_dir", metavar="dir", help="configuration directory with many configs")
    parser.add_argument(
        "-s",
        dest="store",
        metavar="path",
        default=None,
        help=f"variable store database (default: {settings.STORE_PATH})",
    )
    return parser


def _install_signal_handlers(ticker: Ticker, state: dict) -> None:
    def _handle(signum, frame) -> None:
        state["signal"] = signum
        ticker.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    store = SQLiteVariableStore(args.store or settings.STORE_PATH)
    try:
        store.open()
    except StoreError as exc:
        LOGGER.error("%s", exc)
        return 1

    dispatcher = SinkDispatcher()
    try:
        loader = DefinitionLoader(store, dispatcher)
        if args.config_dir:
            loader.load_directory(args.config_dir)
        if args.config_file:
            loader.load_file(args.config_file)

        registry = loader.registry
        if len(registry) == 0:
            LOGGER.error("At least one configuration must be specified")
            parser.print_usage(sys.stderr)
            return 1

        LOGGER.info("%s message definitions are loaded", len(registry))

        scheduler = Scheduler(registry, Renderer(store), dispatcher, store)
        ticker = Ticker(settings.TICK_SECONDS)
        state: dict = {}
        _install_signal_handlers(ticker, state)

        scheduler.run(ticker)
        if "signal" in state:
            LOGGER.warning("Abnormal termination of varmsg service (signal %s)", state["signal"])
            return 1
        return 0
    finally:
        dispatcher.close()
        store.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    _print_banner()
    _configure_logging(args.verbose)

    LOGGER.info("Starting varmsg")
    return _run(args, parser)


if __name__ == "__main__":
    sys.exit(main())
