"""Tests for the command-line entry point."""

from __future__ import annotations

import logging
import logging.handlers
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from kemono_discord import cli
from kemono_discord.cli import main
from kemono_discord.discord_api import (
    KEMONO_UNAVAILABLE_MESSAGE,
    SEARCH_UNAVAILABLE_MESSAGE,
    DiscordApiError,
    SearchFailed,
)
from kemono_discord.models import SessionState, UserConfig
from kemono_discord.services.interfaces import AppServices


class FakeApp:
    instances: list[FakeApp] = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.ran = False
        FakeApp.instances.append(self)

    def run(self):
        self.ran = True


@pytest.fixture(autouse=True)
def _reset_fake_app():
    FakeApp.instances.clear()
    yield
    FakeApp.instances.clear()


@pytest.fixture
def fake_discord():
    discord = MagicMock()
    discord.search_servers = AsyncMock(return_value=[])
    discord.fetch_popular_servers = AsyncMock(return_value=[])
    discord.fetch_all_servers = AsyncMock(return_value=[])
    discord.fetch_server_channels = AsyncMock(return_value=[])
    return discord


def _run(argv, *, config=None, tty=True, discord=None):
    services = AppServices(discord=discord or MagicMock())
    return main(
        argv,
        load_config_fn=lambda: config or UserConfig(),
        configure_logging_fn=lambda _debug: None,
        configure_color_mode_fn=lambda _mode: None,
        validate_interactive_tty_fn=lambda: tty,
        services_factory=lambda: services,
        app_factory=FakeApp,
    )


class TestMain:
    def test_runs_app_with_session_tab(self) -> None:
        config = UserConfig(session=SessionState(last_tab="search", last_query="old"))
        assert _run([], config=config) == 0

        (app,) = FakeApp.instances
        assert app.ran
        assert app.kwargs["initial_tab"] == "search"
        assert app.kwargs["initial_query"] == "old"
        assert app.kwargs["config"] is config

    def test_query_opens_search_tab(self) -> None:
        assert _run(["--query", "  vtuber "]) == 0
        (app,) = FakeApp.instances
        assert app.kwargs["initial_tab"] == "search"
        assert app.kwargs["initial_query"] == "vtuber"

    def test_explicit_tab_wins(self) -> None:
        _run(["--tab", "servers", "--query", "art"])
        assert FakeApp.instances[0].kwargs["initial_tab"] == "servers"

    def test_page_size_is_clamped_into_config(self) -> None:
        config = UserConfig()
        _run(["--page-size", "0"], config=config)
        assert config.page_size == 1
        _run(["--page-size", "9999"], config=config)
        assert config.page_size == 200

    def test_rejects_unknown_tab(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run(["--tab", "posts"])
        assert exc_info.value.code == 2

    def test_list_and_find_are_mutually_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _run(["--list-popular", "--find", "x"])

    def test_requires_tty(self, capsys) -> None:
        assert _run([], tty=False) == 2
        captured = capsys.readouterr()
        assert "requires an interactive TTY" in captured.err
        assert "--list-popular" in captured.err
        assert FakeApp.instances == []

    def test_color_and_logging_hooks(self) -> None:
        calls = []
        main(
            ["--no-color", "--debug"],
            load_config_fn=UserConfig,
            configure_logging_fn=lambda debug: calls.append(("debug", debug)),
            configure_color_mode_fn=lambda mode: calls.append(("color", mode)),
            validate_interactive_tty_fn=lambda: True,
            services_factory=lambda: AppServices(discord=MagicMock()),
            app_factory=FakeApp,
        )
        assert ("color", "never") in calls
        assert ("debug", True) in calls


class TestListing:
    def test_list_popular_prints_first_page(self, capsys, fake_discord, make_servers) -> None:
        fake_discord.fetch_popular_servers.return_value = make_servers(45)

        assert _run(["--list-popular", "--page-size", "20"], tty=False, discord=fake_discord) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "45 servers"
        assert lines[1].startswith("s0\tServer s0\t")
        assert len(lines) == 1 + 20 + 1
        assert lines[-1] == "Page 1 of 3"
        assert fake_discord.fetch_popular_servers.await_args.kwargs["client"] is None
        assert FakeApp.instances == []

    def test_list_all_reads_kemono_server_list(self, capsys, fake_discord, make_servers) -> None:
        fake_discord.fetch_all_servers.return_value = make_servers(3, prefix="k")
        config = UserConfig(kemono_api_url="https://kemono.test/api/v1")

        assert _run(["--list-all"], config=config, tty=False, discord=fake_discord) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "3 servers"
        assert lines[1].startswith("k0\tServer k0\t")
        assert lines[-1] == "Page 1 of 1"
        kwargs = fake_discord.fetch_all_servers.await_args.kwargs
        assert kwargs["base_url"] == "https://kemono.test/api/v1"
        assert kwargs["client"] is None
        fake_discord.fetch_popular_servers.assert_not_called()

    def test_list_all_error_is_reported(self, capsys, fake_discord) -> None:
        fake_discord.fetch_all_servers.side_effect = DiscordApiError(KEMONO_UNAVAILABLE_MESSAGE)

        assert _run(["--list-all"], discord=fake_discord) == 1
        assert "Could not load the Kemono server list." in capsys.readouterr().err

    def test_find_prints_matches(self, capsys, fake_discord, make_servers) -> None:
        fake_discord.search_servers.return_value = make_servers(2)

        assert _run(["--find", " art "], discord=fake_discord) == 0

        out = capsys.readouterr().out
        assert '2 servers matching "art"' in out
        assert fake_discord.search_servers.await_args.kwargs["query"] == "art"

    def test_find_without_results(self, capsys, fake_discord) -> None:
        assert _run(["--find", "zzz"], discord=fake_discord) == 0
        assert 'No servers found for "zzz"' in capsys.readouterr().out

    def test_blank_find_is_an_error(self, capsys, fake_discord) -> None:
        assert _run(["--find", "   "], discord=fake_discord) == 1
        err = capsys.readouterr().err
        assert "Could not search servers." in err
        assert "Next step:" in err
        fake_discord.search_servers.assert_not_called()

    def test_service_error_is_reported(self, capsys, fake_discord) -> None:
        fake_discord.fetch_popular_servers.side_effect = SearchFailed(SEARCH_UNAVAILABLE_MESSAGE)

        assert _run(["--list-popular"], discord=fake_discord) == 1

        err = capsys.readouterr().err
        assert "Could not load popular servers." in err
        assert "temporarily unavailable" in err


class TestHelpers:
    def test_configure_color_mode(self, monkeypatch) -> None:
        monkeypatch.setenv("FORCE_COLOR", "1")
        monkeypatch.delenv("NO_COLOR", raising=False)

        cli._configure_color_mode("never")
        assert os.environ["NO_COLOR"] == "1"
        assert "FORCE_COLOR" not in os.environ

        cli._configure_color_mode("always")
        assert os.environ["FORCE_COLOR"] == "1"
        assert "NO_COLOR" not in os.environ

    def test_configure_logging_without_debug_disables_logging(self) -> None:
        try:
            cli._configure_logging(False)
            assert logging.root.manager.disable == logging.CRITICAL
        finally:
            logging.disable(logging.NOTSET)

    def test_configure_logging_debug_writes_rotating_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(cli, "get_config_dir", lambda: tmp_path)
        before = list(logging.root.handlers)
        level = logging.root.level
        try:
            cli._configure_logging(True)
            added = [h for h in logging.root.handlers if h not in before]
            assert len(added) == 1
            assert isinstance(added[0], logging.handlers.RotatingFileHandler)
            assert (tmp_path / "debug.log").exists()
        finally:
            for handler in logging.root.handlers[:]:
                if handler not in before:
                    logging.root.removeHandler(handler)
                    handler.close()
            logging.root.setLevel(level)
