"""CLI/bootstrap helpers for the Kemono Discord browser."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable, Sequence
from typing import Any

from kemono_discord.action_messages import (
    build_actionable_error,
    build_empty_results_message,
    build_result_count_label,
)
from kemono_discord.config import clamp_page_size, get_config_dir, load_config
from kemono_discord.discord_api import DiscordApiError
from kemono_discord.models import PAGE_SIZE_LIMIT, TAB_NAMES, DiscordServer, UserConfig
from kemono_discord.paging import PageNavigator
from kemono_discord.services.interfaces import AppServices, build_default_app_services

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = get_config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _format_server_line(server: DiscordServer) -> str:
    return f"{server.id}\t{server.name}\t{server.updated.strftime('%Y-%m-%d')}"


def _print_server_page(servers: Sequence[DiscordServer], page_size: int, query: str = "") -> None:
    """Print the first page of *servers* followed by the page label."""
    navigator: PageNavigator[DiscordServer] = PageNavigator(page_size=page_size)
    navigator.set_items(servers)
    print(build_result_count_label(len(servers), query))
    for server in navigator.visible_items:
        print(_format_server_line(server))
    print(navigator.snapshot().label)


def _run_listing(
    args: argparse.Namespace,
    config: UserConfig,
    services: AppServices,
    page_size: int,
) -> int:
    """Handle --list-popular / --list-all / --find without starting the TUI."""
    discord = services.discord
    query = (args.find or "").strip()
    if args.find is not None:
        if not query:
            print(
                build_actionable_error(
                    "search servers",
                    why="the search keyword is empty",
                    next_step="pass a keyword, for example --find vtuber",
                ),
                file=sys.stderr,
            )
            return 1
        action = f'search servers for "{query}"'
        coro = discord.search_servers(
            client=None,
            query=query,
            base_url=config.search_api_url,
            timeout_seconds=config.request_timeout,
        )
    elif args.list_all:
        action = "load the Kemono server list"
        coro = discord.fetch_all_servers(
            client=None,
            base_url=config.kemono_api_url,
            timeout_seconds=config.request_timeout,
        )
    else:
        action = "load popular servers"
        coro = discord.fetch_popular_servers(
            client=None,
            base_url=config.search_api_url,
            timeout_seconds=config.request_timeout,
        )

    try:
        servers = asyncio.run(coro)
    except DiscordApiError as exc:
        print(
            build_actionable_error(
                action,
                why=exc.message,
                next_step="check your connection and run the command again",
            ),
            file=sys.stderr,
        )
        return 1

    if query and not servers:
        print(build_empty_results_message(query))
        return 0
    _print_server_page(servers, page_size, query)
    return 0


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    services_factory: Callable[[], AppServices] = build_default_app_services,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        description="Browse and search Kemono's Discord server catalog in a TUI"
    )
    parser.add_argument(
        "--tab",
        choices=TAB_NAMES,
        default=None,
        help="Tab to open at startup (default: last used tab)",
    )
    parser.add_argument(
        "--query",
        type=str,
        default=None,
        help="Search for this keyword at startup (opens the search tab)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Servers per page (1-{PAGE_SIZE_LIMIT}; default: config value)",
    )
    listing = parser.add_mutually_exclusive_group()
    listing.add_argument(
        "--list-popular",
        action="store_true",
        help="Print the first page of popular servers and exit",
    )
    listing.add_argument(
        "--list-all",
        action="store_true",
        help="Print the first page of every server Kemono has indexed and exit",
    )
    listing.add_argument(
        "--find",
        type=str,
        default=None,
        metavar="QUERY",
        help="Print the first page of servers matching QUERY and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/kemono-discord/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    args = parser.parse_args(argv)

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("kemono-discord starting, argv=%s", argv)

    config = load_config_fn()
    page_size = clamp_page_size(args.page_size if args.page_size is not None else config.page_size)
    config.page_size = page_size
    services = services_factory()

    if args.list_popular or args.list_all or args.find is not None:
        return _run_listing(args, config, services, page_size)

    if not validate_interactive_tty_fn():
        print(
            "Error: kemono-discord requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run kemono-discord directly in a terminal session", file=sys.stderr)
        print(
            "  - Use --list-popular, --list-all or --find QUERY for non-interactive output",
            file=sys.stderr,
        )
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if args.query is not None:
        initial_query = args.query.strip()
        initial_tab = args.tab or "search"
    else:
        # Restore the previous session
        initial_query = config.session.last_query
        initial_tab = args.tab or config.session.last_tab

    if app_factory is None:
        from kemono_discord.app import KemonoDiscordApp as _KemonoDiscordApp

        app_factory = _KemonoDiscordApp

    app = app_factory(
        config=config,
        services=services,
        initial_tab=initial_tab,
        initial_query=initial_query,
    )
    app.run()
    return 0


__all__ = [
    "_configure_color_mode",
    "_configure_logging",
    "_run_listing",
    "_validate_interactive_tty",
    "main",
]
