"""Rich-markup renderers for server and channel list entries."""

from __future__ import annotations

from datetime import UTC, datetime

from rich.markup import escape as escape_markup

from kemono_discord.models import DiscordChannel, DiscordServer
from kemono_discord.themes import THEME_COLORS


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def highlight_match(text: str, query: str, color: str) -> str:
    """Escape *text* and colour every case-insensitive occurrence of *query*."""
    if not query:
        return escape_rich_text(text)
    needle = query.lower()
    haystack = text.lower()
    parts: list[str] = []
    pos = 0
    while True:
        hit = haystack.find(needle, pos)
        if hit < 0:
            break
        parts.append(escape_rich_text(text[pos:hit]))
        parts.append(f"[bold {color}]{escape_rich_text(text[hit : hit + len(needle)])}[/]")
        pos = hit + len(needle)
    parts.append(escape_rich_text(text[pos:]))
    return "".join(parts)


def format_relative_time(moment: datetime, now: datetime | None = None) -> str:
    """Format *moment* as ``3d ago`` / ``5h ago`` / ``12m ago`` / ``just now``."""
    if now is None:
        now = datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    seconds = int((now - moment).total_seconds())
    if seconds >= 86400:
        return f"{seconds // 86400}d ago"
    if seconds >= 3600:
        return f"{seconds // 3600}h ago"
    if seconds >= 60:
        return f"{seconds // 60}m ago"
    return "just now"


def format_post_count(count: int) -> str:
    """Compact post count: ``950``, ``1.2k``."""
    if count >= 1000:
        return f"{count / 1000:.1f}k"
    return str(count)


def render_server_option(
    server: DiscordServer,
    query: str = "",
    now: datetime | None = None,
) -> str:
    """Render a server as two lines of Rich markup for an OptionList."""
    name = highlight_match(server.name or server.id, query, THEME_COLORS["accent_alt"])
    updated = format_relative_time(server.updated, now)
    muted = THEME_COLORS["muted"]
    return f"[bold]{name}[/]\n[{muted}]{escape_rich_text(server.id)}  Updated {updated}[/]"


def render_channel_option(channel: DiscordChannel, depth: int = 0) -> str:
    """Render one channel row; categories are shown as bold headers."""
    indent = "  " * depth
    name = escape_rich_text(channel.name)
    if channel.is_category:
        return f"{indent}{channel.display_emoji} [bold {THEME_COLORS['accent']}]{name}[/]"
    parts = [f"{indent}{channel.display_emoji} # {name}"]
    if channel.is_nsfw:
        parts.append(f"[{THEME_COLORS['pink']}]NSFW[/]")
    if channel.post_count <= 0:
        parts.append(f"[{THEME_COLORS['muted']}]Empty[/]")
    else:
        parts.append(f"[{THEME_COLORS['green']}]{format_post_count(channel.post_count)}[/]")
    return "  ".join(parts)


__all__ = [
    "escape_rich_text",
    "format_post_count",
    "format_relative_time",
    "highlight_match",
    "render_channel_option",
    "render_server_option",
]
