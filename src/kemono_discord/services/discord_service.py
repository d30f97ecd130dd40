"""Catalog service helpers: popular servers, keyword search, channel lists."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from kemono_discord import discord_api as _api
from kemono_discord.models import DiscordChannel, DiscordServer

T = TypeVar("T")


async def _with_client(
    client: httpx.AsyncClient | None,
    call: Callable[[httpx.AsyncClient], Awaitable[T]],
) -> T:
    if client is not None:
        return await call(client)
    async with httpx.AsyncClient() as tmp_client:
        return await call(tmp_client)


async def search_servers(
    *,
    client: httpx.AsyncClient | None,
    query: str,
    base_url: str,
    timeout_seconds: int,
) -> list[DiscordServer]:
    """Search Discord servers through the search index."""
    return await _with_client(
        client,
        lambda c: _api.search_servers(c, query, base_url=base_url, timeout=timeout_seconds),
    )


async def fetch_popular_servers(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    timeout_seconds: int,
) -> list[DiscordServer]:
    """Fetch the popular server list from the search index."""
    return await _with_client(
        client,
        lambda c: _api.fetch_popular_servers(c, base_url=base_url, timeout=timeout_seconds),
    )


async def fetch_all_servers(
    *,
    client: httpx.AsyncClient | None,
    base_url: str,
    timeout_seconds: int,
) -> list[DiscordServer]:
    """Fetch every server Kemono has indexed from the Kemono API."""
    return await _with_client(
        client,
        lambda c: _api.fetch_servers(c, base_url=base_url, timeout=timeout_seconds),
    )


async def fetch_server_channels(
    *,
    client: httpx.AsyncClient | None,
    server_id: str,
    base_url: str,
    timeout_seconds: int,
) -> list[DiscordChannel]:
    """Fetch a server's channels from the Kemono API."""
    return await _with_client(
        client,
        lambda c: _api.fetch_server_channels(
            c, server_id, base_url=base_url, timeout=timeout_seconds
        ),
    )


__all__ = [
    "fetch_all_servers",
    "fetch_popular_servers",
    "fetch_server_channels",
    "search_servers",
]
