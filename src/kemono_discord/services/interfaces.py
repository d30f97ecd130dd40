"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from kemono_discord.models import DiscordChannel, DiscordServer
from kemono_discord.services import discord_service as _discord


@runtime_checkable
class DiscordSearchService(Protocol):
    """Interface for Kemono Discord catalog operations."""

    async def search_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        query: str,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        """Search servers by keyword; raises SearchFailed on failure."""
        ...

    async def fetch_popular_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        """Fetch popular servers; raises SearchFailed on failure."""
        ...

    async def fetch_all_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        """Fetch the full Kemono server list; raises DiscordApiError on failure."""
        ...

    async def fetch_server_channels(
        self,
        *,
        client: httpx.AsyncClient | None,
        server_id: str,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordChannel]:
        """Fetch the channel list of one server."""
        ...


class DefaultDiscordSearchService:
    """Default adapter that delegates to function-based catalog services."""

    async def search_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        query: str,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        return await _discord.search_servers(
            client=client,
            query=query,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    async def fetch_popular_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        return await _discord.fetch_popular_servers(
            client=client,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    async def fetch_all_servers(
        self,
        *,
        client: httpx.AsyncClient | None,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordServer]:
        return await _discord.fetch_all_servers(
            client=client,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    async def fetch_server_channels(
        self,
        *,
        client: httpx.AsyncClient | None,
        server_id: str,
        base_url: str,
        timeout_seconds: int,
    ) -> list[DiscordChannel]:
        return await _discord.fetch_server_channels(
            client=client,
            server_id=server_id,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    discord: DiscordSearchService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the function-based modules."""
    return AppServices(discord=DefaultDiscordSearchService())


__all__ = [
    "AppServices",
    "DefaultDiscordSearchService",
    "DiscordSearchService",
    "build_default_app_services",
]
