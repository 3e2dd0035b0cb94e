"""CLI entry point for better-plugins-screen.

Reads a saved plugins page, applies settings discovery, link ordering and
(optionally) a filter term, and writes the transformed markup.
"""

import argparse
import sys
from pathlib import Path

from bs4 import BeautifulSoup
from loguru import logger
from PySide6.QtCore import QCoreApplication

from .screen import PluginsScreen
from .settings import JsonFileBackend, MemoryBackend, get_store_path, load_host_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="better-plugins-screen",
        description="Augment a WordPress plugins page with settings links and link ordering.",
    )
    parser.add_argument("page", type=Path, help="HTML file of the plugins page")
    parser.add_argument("--host-config", type=Path, help="YAML/JSON site configuration")
    parser.add_argument("--page-url", help="URL the page was served from")
    parser.add_argument("--output", "-o", type=Path, help="Write markup here instead of stdout")
    parser.add_argument("--filter", dest="term", help="Apply this filter term")
    parser.add_argument("--store", type=Path, help=f"Preferences file (default: {get_store_path()})")
    parser.add_argument("--no-store", action="store_true", help="Do not read or write preferences")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _configure_logging(debug: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for better-plugins-screen."""
    args = _build_parser().parse_args(argv)
    _configure_logging(args.debug)

    # Timers (debounce, notifications) need a Qt event dispatcher
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("better_plugins_screen")

    try:
        markup = args.page.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to read {args.page}: {e}")
        return 1

    host_config = load_host_config(args.host_config) if args.host_config else None
    backend = MemoryBackend() if args.no_store else JsonFileBackend(args.store)

    screen = PluginsScreen(
        BeautifulSoup(markup, "html.parser"),
        host_config=host_config,
        backend=backend,
        page_url=args.page_url,
    )
    if not args.debug and screen.config.get("debug.enabled"):
        _configure_logging(True)

    if not screen.start():
        logger.warning("No plugin table found; writing the page unchanged")

    if args.term is not None:
        visible = screen.filter.apply(args.term)
        logger.info(f"Filter '{args.term}' leaves {visible} plugins visible")

    output = screen.render()
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        logger.info(f"Wrote {args.output}")
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
