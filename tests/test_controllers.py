"""Tests for the screen controllers: search, popular servers and channels."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from kemono_discord.controllers import (
    ChannelListController,
    PopularServersController,
    ServerSearchController,
    normalize_lower,
)
from kemono_discord.discord_api import SearchFailed
from kemono_discord.models import CHANNEL_TYPE_CATEGORY


class TaskCollector:
    """Stands in for the task runner so tests decide when requests complete."""

    def __init__(self) -> None:
        self.coros = []

    def __call__(self, coro) -> None:
        self.coros.append(coro)

    async def run_next(self, index: int = 0) -> None:
        await self.coros.pop(index)

    async def run_all(self) -> None:
        while self.coros:
            await self.coros.pop(0)

    def close(self) -> None:
        for coro in self.coros:
            coro.close()
        self.coros.clear()


@pytest.fixture
def tasks():
    collector = TaskCollector()
    yield collector
    collector.close()


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


# ============================================================================
# ServerSearchController
# ============================================================================


class TestServerSearchController:
    def _controller(self, scheduler, search, tasks, **kwargs):
        return ServerSearchController(scheduler, search, run_task=tasks, page_size=20, **kwargs)

    async def test_commit_runs_search_and_pages_results(self, scheduler, tasks, make_servers):
        search = AsyncMock(return_value=make_servers(45))
        controller = self._controller(scheduler, search, tasks)
        states = []
        controller.subscribe(states.append)

        controller.text_changed("art")
        scheduler.advance(0.5)
        assert controller.snapshot().is_loading
        await tasks.run_all()

        search.assert_awaited_once_with("art")
        state = controller.snapshot()
        assert state.query == "art"
        assert not state.is_loading
        assert state.page.total_pages == 3
        assert len(controller.visible_results) == 20
        assert states[0].is_loading and not states[-1].is_loading

    async def test_typing_burst_searches_once(self, scheduler, tasks):
        search = AsyncMock(return_value=[])
        controller = self._controller(scheduler, search, tasks)

        controller.text_changed("a")
        scheduler.advance(0.1)
        controller.text_changed("ab")
        scheduler.advance(0.6)
        await tasks.run_all()

        search.assert_awaited_once_with("ab")

    async def test_stale_response_is_discarded(self, scheduler, tasks, make_servers):
        slow = make_servers(3, prefix="old")
        fresh = make_servers(2, prefix="new")
        search = AsyncMock(side_effect=lambda query: {"old": slow, "new": fresh}[query])
        controller = self._controller(scheduler, search, tasks)

        controller.submit("old")
        controller.submit("new")
        await tasks.run_next(1)  # newest finishes first
        await tasks.run_next(0)

        assert [s.id for s in controller.results] == ["new0", "new1"]
        assert controller.snapshot().query == "new"
        assert not controller.snapshot().is_loading

    async def test_error_is_surfaced_and_retry_reissues_query(self, scheduler, tasks, make_servers):
        search = AsyncMock(side_effect=[SearchFailed("Search failed: 500"), make_servers(1)])
        controller = self._controller(scheduler, search, tasks)

        controller.submit("anime")
        await tasks.run_all()
        state = controller.snapshot()
        assert state.error == "Search failed: 500"
        assert not state.has_results

        assert controller.retry() is True
        assert controller.snapshot().error is None
        await tasks.run_all()

        assert search.await_count == 2
        assert search.await_args_list[1].args == ("anime",)
        assert controller.snapshot().has_results

    def test_retry_without_query_is_noop(self, scheduler, tasks):
        controller = self._controller(scheduler, AsyncMock(), tasks)
        assert controller.retry() is False
        assert tasks.coros == []

    async def test_cleared_event_drops_results(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(5)), tasks)
        controller.submit("art")
        await tasks.run_all()

        controller.text_changed("  ")
        scheduler.advance(0.5)

        state = controller.snapshot()
        assert state.query == ""
        assert not state.has_results
        assert state.error is None

    async def test_clear_invalidates_in_flight_search(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(5)), tasks)
        controller.submit("art")
        controller.clear()
        await tasks.run_all()

        assert controller.results == []
        assert not controller.snapshot().is_loading
        assert controller.debouncer.snapshot().raw_input == ""

    async def test_normalizer_applies_before_search(self, scheduler, tasks):
        search = AsyncMock(return_value=[])
        controller = self._controller(scheduler, search, tasks, normalize=normalize_lower)
        controller.submit("  VTuber ")
        await tasks.run_all()
        search.assert_awaited_once_with("vtuber")

    async def test_dispose_stops_everything(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(3)), tasks)
        states = []
        controller.subscribe(states.append)

        controller.text_changed("art")
        controller.dispose()
        controller.dispose()
        scheduler.advance(1.0)

        assert tasks.coros == []
        assert states == []
        assert controller.disposed

    async def test_dispose_during_request_discards_result(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(3)), tasks)
        controller.submit("art")
        controller.dispose()
        await tasks.run_all()
        assert controller.results == []

    def test_suggestions_follow_raw_input(self, scheduler, tasks):
        controller = self._controller(scheduler, AsyncMock(), tasks)
        controller.text_changed("mang")
        assert controller.suggestions(limit=3)[0] == "manga"

    async def test_new_search_cancels_tracked_task(self, scheduler, make_servers):
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def search(query):
            calls.append(query)
            if query == "slow":
                started.set()
                await release.wait()
            return make_servers(1, prefix=query)

        controller = ServerSearchController(scheduler, search)
        controller.submit("slow")
        await asyncio.wait_for(started.wait(), timeout=1.0)
        controller.submit("fast")
        await _drain()

        assert calls == ["slow", "fast"]
        assert [s.id for s in controller.results] == ["fast0"]
        assert not controller.snapshot().is_loading
        assert not controller._background_tasks
        controller.dispose()


# ============================================================================
# PopularServersController
# ============================================================================


class TestPopularServersController:
    def _controller(self, scheduler, fetch, tasks):
        return PopularServersController(
            scheduler, fetch, run_task=tasks, page_size=20, threshold=5, settle_delay=0.2
        )

    async def test_load_then_scroll_reveals_pages(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(45)), tasks)
        controller.load()
        assert controller.snapshot().is_loading
        await tasks.run_all()

        assert controller.snapshot().window.visible_count == 20
        assert controller.on_scroll(10, 30) is False
        assert controller.on_scroll(25, 30) is True
        scheduler.advance(0.2)
        assert len(controller.visible_items) == 40
        assert controller.load_more() is True
        scheduler.advance(0.2)
        assert len(controller.visible_items) == 45
        assert controller.load_more() is False

    async def test_reload_resets_window(self, scheduler, tasks, make_servers):
        fetch = AsyncMock(side_effect=[make_servers(45), make_servers(45, prefix="x")])
        controller = self._controller(scheduler, fetch, tasks)
        controller.load()
        await tasks.run_all()
        controller.load_more()
        scheduler.advance(0.2)

        controller.load()
        await tasks.run_all()

        window = controller.snapshot().window
        assert window.visible_count == 20
        assert controller.visible_items[0].id == "x0"

    async def test_error_clears_list(self, scheduler, tasks, make_servers):
        fetch = AsyncMock(side_effect=[make_servers(5), SearchFailed("Network error.")])
        controller = self._controller(scheduler, fetch, tasks)
        controller.load()
        await tasks.run_all()
        controller.load()
        await tasks.run_all()

        state = controller.snapshot()
        assert state.error == "Network error."
        assert state.window.backing_length == 0
        assert not state.is_loading

    async def test_dispose_abandons_reveal_and_request(self, scheduler, tasks, make_servers):
        controller = self._controller(scheduler, AsyncMock(return_value=make_servers(45)), tasks)
        controller.load()
        await tasks.run_all()
        controller.load_more()
        controller.load()

        controller.dispose()
        scheduler.advance(1.0)
        await tasks.run_all()

        assert controller.snapshot().window.visible_count == 20
        controller.load()
        assert tasks.coros == []


# ============================================================================
# ChannelListController
# ============================================================================


class TestChannelListController:
    async def test_load_and_filter(self, scheduler, tasks, make_channel):
        channels = [
            make_channel("cat", "Art", type=CHANNEL_TYPE_CATEGORY),
            make_channel("a", "fan-art", parent_id="cat", position=1),
            make_channel("b", "general", position=2),
        ]
        controller = ChannelListController(
            scheduler, AsyncMock(return_value=channels), run_task=tasks
        )
        controller.load()
        await tasks.run_all()

        state = controller.snapshot()
        assert state.total == 3
        assert [(c.id, d) for c, d in state.rows] == [("cat", 0), ("a", 1), ("b", 0)]

        controller.filter_changed("ART")
        scheduler.advance(0.2)
        assert controller.name_filter == ""
        scheduler.advance(0.1)
        assert controller.name_filter == "art"
        assert [c.id for c, _ in controller.snapshot().rows] == ["cat", "a"]

        controller.filter_changed("")
        scheduler.advance(0.3)
        assert len(controller.snapshot().rows) == 3

    async def test_error_then_retry(self, scheduler, tasks, make_channel):
        fetch = AsyncMock(side_effect=[SearchFailed("Kemono is down."), [make_channel()]])
        controller = ChannelListController(scheduler, fetch, run_task=tasks)
        controller.load()
        await tasks.run_all()
        assert controller.snapshot().error == "Kemono is down."

        controller.load()
        await tasks.run_all()
        state = controller.snapshot()
        assert state.error is None
        assert state.total == 1

    def test_dispose_cancels_filter(self, scheduler, tasks):
        controller = ChannelListController(scheduler, AsyncMock(), run_task=tasks)
        controller.filter_changed("x")
        controller.dispose()
        scheduler.advance(1.0)
        assert controller.name_filter == ""
