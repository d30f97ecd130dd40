"""Kemono Discord browser: debounced search and incremental paging over Kemono's Discord catalog."""

from kemono_discord.cli import main
from kemono_discord.models import DiscordChannel, DiscordServer, UserConfig

__version__ = "0.1.0"

__all__ = [
    "DiscordChannel",
    "DiscordServer",
    "UserConfig",
    "__version__",
    "main",
]
