"""Kemono Discord catalog clients, response parsing, and search suggestions.

Two HTTP backends are involved:

- the community search index (``kemono-api.mbaharip.com``) serves popular
  servers and keyword search; timestamps there are epoch seconds;
- the Kemono API proper (``kemono.cr/api/v1``) serves the full server list and
  per-server channel trees; timestamps there are ISO 8601 and every request
  must carry ``Accept: text/css``.

All fetch functions accept an ``httpx.AsyncClient`` and raise
``DiscordApiError`` (or its ``SearchFailed`` subclass) with a message that is
safe to show to the user verbatim.
"""

from __future__ import annotations

__all__ = [
    # Constants
    "KEMONO_API_BASE",
    "SEARCH_API_BASE",
    "SEARCH_SUGGESTIONS",
    # Errors
    "DiscordApiError",
    "SearchFailed",
    "describe_http_error",
    # Fetch
    "fetch_popular_servers",
    "fetch_server_channels",
    "fetch_servers",
    "flatten_channel_tree",
    "get_search_suggestions",
    # Channel helpers
    "group_channels_by_parent",
    "lookup_channels",
    # Parsing
    "parse_channel",
    "parse_kemono_server",
    "parse_search_server",
    "post_channels",
    "search_servers",
]

import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx
from rapidfuzz import fuzz, process

from kemono_discord.models import CHANNEL_TYPE_FORUM, DiscordChannel, DiscordServer

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

SEARCH_API_BASE = "https://kemono-api.mbaharip.com"
KEMONO_API_BASE = "https://kemono.cr/api/v1"
REQUEST_TIMEOUT = 10  # seconds
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
# The Kemono Discord endpoints reject requests without this Accept header
KEMONO_HEADERS = {"Accept": "text/css", "User-Agent": USER_AGENT}
SEARCH_HEADERS = {"User-Agent": USER_AGENT}

SEARCH_UNAVAILABLE_MESSAGE = "Search service temporarily unavailable. Please try again later."
KEMONO_UNAVAILABLE_MESSAGE = "Kemono Discord is temporarily unavailable. Please try again later."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
INVALID_RESPONSE_MESSAGE = "Search failed: invalid response"

SEARCH_SUGGESTIONS = (
    "vtuber",
    "fanbox",
    "patreon",
    "onlyfans",
    "discord",
    "art",
    "anime",
    "manga",
    "cosplay",
    "gaming",
)
SUGGESTION_FUZZY_CUTOFF = 70

# ============================================================================
# Errors
# ============================================================================


class DiscordApiError(Exception):
    """A catalog request failed; ``message`` is meant for the user."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SearchFailed(DiscordApiError):
    """A search or popular-server request against the search index failed."""


def describe_http_error(status_code: int, *, unavailable_message: str) -> str:
    """Map a non-2xx status code to a user-facing message."""
    if status_code == 503:
        return unavailable_message
    return f"Search failed: {status_code}"


# ============================================================================
# Response Parsing
# ============================================================================


def _extract_list(data: Any, *keys: str) -> list[Any]:
    """Return *data* if it is a list, else the first list under one of *keys*."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def _epoch_to_datetime(value: Any) -> datetime:
    if isinstance(value, bool) or not isinstance(value, int | float):
        try:
            value = float(str(value))
        except ValueError:
            value = 0
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return datetime.fromtimestamp(0, tz=UTC)


def _iso_to_datetime(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.now(UTC)


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def parse_search_server(item: Any) -> DiscordServer | None:
    """Parse one search-index entry. Returns None for non-Discord or id-less entries."""
    if not isinstance(item, dict):
        return None
    if _as_str(item.get("service")).lower() != "discord":
        return None
    server_id = _as_str(item.get("id"))
    if not server_id:
        return None
    return DiscordServer(
        id=server_id,
        name=_as_str(item.get("name")),
        indexed=_epoch_to_datetime(item.get("indexed", 0)),
        updated=_epoch_to_datetime(item.get("updated", 0)),
    )


def parse_kemono_server(item: Any) -> DiscordServer | None:
    """Parse one Kemono API server entry (ISO timestamps)."""
    if not isinstance(item, dict):
        return None
    server_id = _as_str(item.get("id"))
    if not server_id:
        return None
    return DiscordServer(
        id=server_id,
        name=_as_str(item.get("name")),
        indexed=_iso_to_datetime(item.get("indexed")),
        updated=_iso_to_datetime(item.get("updated")),
    )


def parse_channel(item: Any, server_id: str = "") -> DiscordChannel | None:
    if not isinstance(item, dict):
        return None
    channel_id = _as_str(item.get("id"))
    if not channel_id:
        return None
    parent = item.get("parent_channel_id")
    emoji = item.get("icon_emoji")
    return DiscordChannel(
        id=channel_id,
        server_id=_as_str(item.get("server_id")) or server_id,
        name=_as_str(item.get("name")),
        parent_id=_as_str(parent) if parent is not None else None,
        is_nsfw=item.get("is_nsfw") is True,
        type=_as_int(item.get("type"), CHANNEL_TYPE_FORUM),
        position=_as_int(item.get("position"), 0),
        post_count=_as_int(item.get("post_count"), 0),
        emoji=_as_str(emoji) if emoji else None,
    )


def _parse_channels(items: list[Any], server_id: str) -> list[DiscordChannel]:
    channels = [c for c in (parse_channel(item, server_id) for item in items) if c is not None]
    channels.sort(key=lambda c: c.position)
    return channels


# ============================================================================
# Request plumbing
# ============================================================================


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str],
    timeout: float,
    unavailable_message: str,
    error_cls: type[DiscordApiError],
) -> Any:
    started = time.monotonic()
    try:
        response = await client.get(url, params=params, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        raise error_cls(NETWORK_ERROR_MESSAGE) from exc
    elapsed_ms = (time.monotonic() - started) * 1000
    logger.debug("GET %s -> %d (%.0f ms)", url, response.status_code, elapsed_ms)
    if not 200 <= response.status_code < 300:
        raise error_cls(
            describe_http_error(response.status_code, unavailable_message=unavailable_message),
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        logger.warning("Invalid JSON from %s", url, exc_info=True)
        raise error_cls(INVALID_RESPONSE_MESSAGE, status_code=response.status_code) from exc


# ============================================================================
# Search index (popular servers, keyword search)
# ============================================================================


async def _fetch_search_index(
    client: httpx.AsyncClient,
    params: dict[str, str] | None,
    base_url: str,
    timeout: float,
) -> list[DiscordServer]:
    data = await _get_json(
        client,
        f"{base_url.rstrip('/')}/kemono/discord",
        params=params,
        headers=SEARCH_HEADERS,
        timeout=timeout,
        unavailable_message=SEARCH_UNAVAILABLE_MESSAGE,
        error_cls=SearchFailed,
    )
    entries = _extract_list(data, "results", "data")
    servers = [s for s in (parse_search_server(item) for item in entries) if s is not None]
    logger.debug("Search index returned %d entries, %d Discord servers", len(entries), len(servers))
    return servers


async def search_servers(
    client: httpx.AsyncClient,
    query: str,
    *,
    base_url: str = SEARCH_API_BASE,
    timeout: float = REQUEST_TIMEOUT,
) -> list[DiscordServer]:
    """Search Discord servers by keyword. Blank queries return an empty list."""
    keyword = query.strip()
    if not keyword:
        return []
    return await _fetch_search_index(client, {"keyword": keyword}, base_url, timeout)


async def fetch_popular_servers(
    client: httpx.AsyncClient,
    *,
    base_url: str = SEARCH_API_BASE,
    timeout: float = REQUEST_TIMEOUT,
) -> list[DiscordServer]:
    """Fetch the popular Discord server list from the search index."""
    return await _fetch_search_index(client, None, base_url, timeout)


# ============================================================================
# Kemono API (server list, channel trees)
# ============================================================================


async def fetch_servers(
    client: httpx.AsyncClient,
    *,
    base_url: str = KEMONO_API_BASE,
    timeout: float = REQUEST_TIMEOUT,
) -> list[DiscordServer]:
    """Fetch every Discord server Kemono has indexed."""
    data = await _get_json(
        client,
        f"{base_url.rstrip('/')}/discord/server",
        headers=KEMONO_HEADERS,
        timeout=timeout,
        unavailable_message=KEMONO_UNAVAILABLE_MESSAGE,
        error_cls=DiscordApiError,
    )
    entries = _extract_list(data, "servers", "results")
    return [s for s in (parse_kemono_server(item) for item in entries) if s is not None]


async def lookup_channels(
    client: httpx.AsyncClient,
    server_id: str,
    *,
    base_url: str = KEMONO_API_BASE,
    timeout: float = REQUEST_TIMEOUT,
) -> list[DiscordChannel]:
    """Look up the channels of *server_id* through the channel lookup endpoint."""
    data = await _get_json(
        client,
        f"{base_url.rstrip('/')}/discord/channel/lookup/{server_id}",
        headers=KEMONO_HEADERS,
        timeout=timeout,
        unavailable_message=KEMONO_UNAVAILABLE_MESSAGE,
        error_cls=DiscordApiError,
    )
    return _parse_channels(_extract_list(data, "channels"), server_id)


async def fetch_server_channels(
    client: httpx.AsyncClient,
    server_id: str,
    *,
    base_url: str = KEMONO_API_BASE,
    timeout: float = REQUEST_TIMEOUT,
) -> list[DiscordChannel]:
    """Fetch the channel list of *server_id*, sorted by position.

    Uses the server endpoint first and falls back to the channel lookup
    endpoint when that yields no channels or fails with anything but 503.
    """
    try:
        data = await _get_json(
            client,
            f"{base_url.rstrip('/')}/discord/server/{server_id}",
            headers=KEMONO_HEADERS,
            timeout=timeout,
            unavailable_message=KEMONO_UNAVAILABLE_MESSAGE,
            error_cls=DiscordApiError,
        )
    except DiscordApiError as exc:
        if exc.status_code == 503:
            raise
        logger.info("Server endpoint failed for %s (%s), trying lookup", server_id, exc.message)
        return await lookup_channels(client, server_id, base_url=base_url, timeout=timeout)
    channels = _parse_channels(_extract_list(data, "channels"), server_id)
    if channels:
        return channels
    logger.debug("Server %s returned no channels, trying lookup", server_id)
    return await lookup_channels(client, server_id, base_url=base_url, timeout=timeout)


def group_channels_by_parent(
    channels: list[DiscordChannel],
) -> dict[str, list[DiscordChannel]]:
    """Group channels under their parent id; top-level channels go under ``"root"``.

    Each group is sorted by position.
    """
    groups: dict[str, list[DiscordChannel]] = {"root": []}
    for channel in channels:
        groups.setdefault(channel.parent_id or "root", []).append(channel)
    for members in groups.values():
        members.sort(key=lambda c: c.position)
    return groups


def flatten_channel_tree(
    channels: list[DiscordChannel],
    name_filter: str = "",
) -> list[tuple[DiscordChannel, int]]:
    """Flatten the channel hierarchy into ``(channel, depth)`` display rows.

    Root channels come first in position order, each followed by its
    children. Channels whose parent is missing are treated as roots. With
    *name_filter*, only channels whose name contains it are kept, flat.
    """
    needle = name_filter.strip().lower()
    if needle:
        matches = [c for c in channels if needle in c.name.lower()]
        return [(c, 0) for c in sorted(matches, key=lambda c: c.position)]

    groups = group_channels_by_parent(channels)
    known_ids = {c.id for c in channels}
    rows: list[tuple[DiscordChannel, int]] = []
    seen: set[str] = set()

    def _walk(parent_id: str, depth: int) -> None:
        for channel in groups.get(parent_id, []):
            if channel.id in seen:
                continue
            seen.add(channel.id)
            rows.append((channel, depth))
            _walk(channel.id, depth + 1)

    _walk("root", 0)
    for parent_id, members in groups.items():
        if parent_id == "root" or parent_id in known_ids:
            continue
        for channel in members:
            if channel.id not in seen:
                seen.add(channel.id)
                rows.append((channel, 0))
                _walk(channel.id, 1)
    return rows


def post_channels(channels: list[DiscordChannel]) -> list[DiscordChannel]:
    """Keep only channels that hold posts (text and forum channels)."""
    return [c for c in channels if c.is_post_channel]


# ============================================================================
# Suggestions
# ============================================================================


def get_search_suggestions(query: str, limit: int = len(SEARCH_SUGGESTIONS)) -> list[str]:
    """Return built-in keywords matching *query*.

    Substring matches come first in their natural order, followed by fuzzy
    matches ranked by score. A blank query returns every suggestion.
    """
    needle = query.strip().lower()
    if not needle:
        return list(SEARCH_SUGGESTIONS[:limit])
    substring = [s for s in SEARCH_SUGGESTIONS if needle in s]
    remaining = [s for s in SEARCH_SUGGESTIONS if s not in substring]
    fuzzy = process.extract(
        needle,
        remaining,
        scorer=fuzz.WRatio,
        score_cutoff=SUGGESTION_FUZZY_CUTOFF,
        limit=None,
    )
    return (substring + [match for match, _score, _idx in fuzzy])[:limit]
