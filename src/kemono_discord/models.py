"""Data models and constants for the Kemono Discord browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Application identity, used for platformdirs config paths
CONFIG_APP_NAME = "kemono-discord"

# Tabs of the navigation shell, in display order
TAB_NAMES = ("servers", "search")

# Paging constants
DEFAULT_PAGE_SIZE = 20
PAGE_SIZE_LIMIT = 200

# Discord channel types as reported by Kemono
CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_CATEGORY = 4
CHANNEL_TYPE_FORUM = 11
CHANNEL_TYPE_THREAD = 12


@dataclass(slots=True, eq=False)
class DiscordServer:
    """A Discord server indexed by Kemono."""

    id: str
    name: str
    indexed: datetime
    updated: datetime

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DiscordServer):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(slots=True)
class DiscordChannel:
    """A channel (or category) inside an indexed Discord server."""

    id: str
    server_id: str
    name: str
    parent_id: str | None = None
    is_nsfw: bool = False
    type: int = CHANNEL_TYPE_FORUM
    position: int = 0
    post_count: int = 0
    emoji: str | None = None

    @property
    def is_category(self) -> bool:
        return self.type == CHANNEL_TYPE_CATEGORY

    @property
    def is_post_channel(self) -> bool:
        return self.type in (CHANNEL_TYPE_TEXT, CHANNEL_TYPE_FORUM)

    @property
    def is_thread(self) -> bool:
        return self.type == CHANNEL_TYPE_THREAD

    @property
    def display_emoji(self) -> str:
        if self.emoji:
            return self.emoji
        if self.is_category:
            return "\U0001f4c1"  # folder
        if self.is_thread:
            return "\U0001f4ac"  # speech balloon
        return "\U0001f4c4"  # page

    @property
    def can_open(self) -> bool:
        """Whether the channel holds posts worth opening."""
        return not self.is_category and self.post_count > 0


@dataclass(slots=True)
class SessionState:
    """State to restore on next run (active tab, last search)."""

    last_tab: str = "servers"
    last_query: str = ""

    def __post_init__(self) -> None:
        """Fall back to the first tab for unknown names."""
        if self.last_tab not in TAB_NAMES:
            self.last_tab = TAB_NAMES[0]


@dataclass(slots=True)
class UserConfig:
    """User preferences and session state."""

    search_debounce_ms: int = 500
    page_size: int = DEFAULT_PAGE_SIZE
    scroll_threshold: int = 5  # rows from the bottom of the list
    settle_delay_ms: int = 200
    request_timeout: int = 10  # seconds
    search_api_url: str = "https://kemono-api.mbaharip.com"
    kemono_api_url: str = "https://kemono.cr/api/v1"
    theme_name: str = "monokai"
    session: SessionState = field(default_factory=SessionState)
    version: int = 1
    config_defaulted: bool = False  # Runtime flag, never serialized
