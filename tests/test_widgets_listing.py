"""Tests for list renderers, copy builders and theme palettes."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from rich.markup import render as render_markup

from kemono_discord.action_messages import (
    build_actionable_error,
    build_empty_results_message,
    build_result_count_label,
    build_retry_hint,
)
from kemono_discord.models import CHANNEL_TYPE_CATEGORY
from kemono_discord.themes import (
    DEFAULT_THEME_NAME,
    THEME_COLORS,
    THEMES,
    TEXTUAL_THEMES,
    apply_theme_colors,
    resolve_theme_name,
)
from kemono_discord.widgets.listing import (
    escape_rich_text,
    format_post_count,
    format_relative_time,
    highlight_match,
    render_channel_option,
    render_server_option,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class TestFormatting:
    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(days=3, hours=2), "3d ago"),
            (timedelta(hours=5), "5h ago"),
            (timedelta(minutes=12), "12m ago"),
            (timedelta(seconds=30), "just now"),
        ],
    )
    def test_relative_time(self, delta, expected) -> None:
        assert format_relative_time(NOW - delta, NOW) == expected

    def test_relative_time_naive_datetime_is_utc(self) -> None:
        assert format_relative_time(datetime(2024, 3, 1, 10, 0), NOW) == "2h ago"

    def test_post_count(self) -> None:
        assert format_post_count(950) == "950"
        assert format_post_count(1234) == "1.2k"

    def test_highlight_escapes_and_marks_all_matches(self) -> None:
        marked = highlight_match("Art [club] art", "art", "#fff")
        assert marked.count("[bold #fff]") == 2
        assert "\\[club]" in marked

    def test_highlight_without_query_only_escapes(self) -> None:
        assert highlight_match("[x]", "", "#fff") == escape_rich_text("[x]")


class TestRenderers:
    def test_server_option_two_lines(self, make_server) -> None:
        server = make_server("42", "Anime [JP]", updated=NOW - timedelta(days=2))
        rendered = render_server_option(server, "anime", now=NOW)
        first, second = rendered.split("\n")
        assert THEME_COLORS["accent_alt"] in first
        assert render_markup(first).plain == "Anime [JP]"
        assert "42" in second
        assert "Updated 2d ago" in second

    def test_server_name_with_markup_like_tag_renders_literally(self, make_server) -> None:
        server = make_server("43", "Club [vip]", updated=NOW)
        first = render_server_option(server, now=NOW).split("\n")[0]
        assert render_markup(first).plain == "Club [vip]"

    def test_server_without_name_uses_id(self, make_server) -> None:
        rendered = render_server_option(make_server("77", ""), now=NOW)
        assert rendered.startswith("[bold]77[/]")

    def test_category_row(self, make_channel) -> None:
        category = make_channel("cat", "General", type=CHANNEL_TYPE_CATEGORY)
        rendered = render_channel_option(category)
        assert "[bold " in rendered
        assert "General" in rendered
        assert " # " not in rendered

    def test_channel_badges_and_indent(self, make_channel) -> None:
        rendered = render_channel_option(make_channel(name="lewd", is_nsfw=True, post_count=1500), 2)
        assert rendered.startswith("    ")
        assert "NSFW" in rendered
        assert "1.5k" in rendered

    def test_empty_channel_badge(self, make_channel) -> None:
        assert "Empty" in render_channel_option(make_channel(post_count=0))


class TestActionMessages:
    def test_actionable_error(self) -> None:
        text = build_actionable_error("load servers", why="timeout", next_step="retry later")
        assert text.splitlines() == [
            "Could not load servers.",
            "Why: timeout.",
            "Next step: retry later.",
        ]

    def test_result_count_label(self) -> None:
        assert build_result_count_label(1) == "1 server"
        assert build_result_count_label(3, "art") == '3 servers matching "art"'

    def test_empty_and_retry_messages(self) -> None:
        assert build_empty_results_message("x") == 'No servers found for "x". Try another keyword.'
        assert build_retry_hint("Search failed: 500") == "Search failed: 500. Press r to retry."


class TestThemes:
    def test_every_palette_has_textual_theme(self) -> None:
        assert set(TEXTUAL_THEMES) == set(THEMES)
        keys = set(THEMES[DEFAULT_THEME_NAME])
        assert all(set(palette) == keys for palette in THEMES.values())

    def test_apply_theme_colors_mutates_in_place(self) -> None:
        palette = THEME_COLORS
        assert apply_theme_colors("discord-dark") == "discord-dark"
        assert palette is THEME_COLORS
        assert THEME_COLORS == THEMES["discord-dark"]

    def test_unknown_theme_resolves_to_default(self) -> None:
        assert resolve_theme_name("nope") == DEFAULT_THEME_NAME
        assert apply_theme_colors("nope") == DEFAULT_THEME_NAME
