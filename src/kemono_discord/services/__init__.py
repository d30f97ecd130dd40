"""Service layer between the UI and the HTTP clients."""

from kemono_discord.services.discord_service import (
    fetch_popular_servers,
    fetch_server_channels,
    search_servers,
)

__all__ = [
    "fetch_popular_servers",
    "fetch_server_channels",
    "search_servers",
]
