"""Shared test fixtures for the Kemono Discord browser tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from kemono_discord.models import CHANNEL_TYPE_FORUM, DiscordChannel, DiscordServer
from kemono_discord.themes import DEFAULT_THEME_NAME, apply_theme_colors

# ── Manual clock ─────────────────────────────────────────────────────────────


class FakeHandle:
    """Cancellable handle returned by FakeScheduler.call_later."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic scheduler: callbacks run only when the clock is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in deadline order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = max(self.now, handle.due)
            handle.fired = True
            handle.callback()
        self.now = target


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


# ── Module-level dict isolation ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_theme_colors():
    """Restore THEME_COLORS after tests that switch themes."""
    yield
    apply_theme_colors(DEFAULT_THEME_NAME)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_server():
    """Factory fixture for DiscordServer instances with sensible defaults."""

    def _make(
        server_id: str = "1000",
        name: str = "Test Server",
        indexed: datetime | None = None,
        updated: datetime | None = None,
    ) -> DiscordServer:
        stamp = datetime(2024, 1, 15, tzinfo=UTC)
        return DiscordServer(
            id=server_id,
            name=name,
            indexed=indexed or stamp,
            updated=updated or stamp,
        )

    return _make


@pytest.fixture
def make_servers(make_server):
    """Build ``count`` servers with ids ``s0``, ``s1``, ..."""

    def _make(count: int, prefix: str = "s") -> list[DiscordServer]:
        return [make_server(f"{prefix}{i}", f"Server {prefix}{i}") for i in range(count)]

    return _make


@pytest.fixture
def make_channel():
    """Factory fixture for DiscordChannel instances with sensible defaults."""

    def _make(
        channel_id: str = "c1",
        name: str = "general",
        *,
        server_id: str = "1000",
        parent_id: str | None = None,
        type: int = CHANNEL_TYPE_FORUM,
        position: int = 0,
        post_count: int = 10,
        is_nsfw: bool = False,
        emoji: str | None = None,
    ) -> DiscordChannel:
        return DiscordChannel(
            id=channel_id,
            server_id=server_id,
            name=name,
            parent_id=parent_id,
            is_nsfw=is_nsfw,
            type=type,
            position=position,
            post_count=post_count,
            emoji=emoji,
        )

    return _make
