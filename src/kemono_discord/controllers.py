"""Screen-level controllers composing the debouncer, the pagers and the catalog.

Controllers hold no widget references. The UI forwards input and scroll
events in and renders the snapshots the controllers publish.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from kemono_discord.debounce import (
    SEARCH_DEBOUNCE_DELAY,
    Commit,
    SearchDebouncer,
    SearchEvent,
)
from kemono_discord.discord_api import (
    DiscordApiError,
    flatten_channel_tree,
    get_search_suggestions,
)
from kemono_discord.models import DEFAULT_PAGE_SIZE, DiscordChannel, DiscordServer
from kemono_discord.paging import (
    DEFAULT_SCROLL_THRESHOLD,
    DEFAULT_SETTLE_DELAY,
    BackingList,
    IncrementalPager,
    PageNavigator,
    PageState,
    PagingWindow,
)
from kemono_discord.scheduling import ListenerSet, Scheduler

logger = logging.getLogger(__name__)

# Quiet interval for the channel-name filter
CHANNEL_FILTER_DEBOUNCE_DELAY = 0.3

SearchFn = Callable[[str], Awaitable[list[DiscordServer]]]
FetchFn = Callable[[], Awaitable[list[DiscordServer]]]
ChannelFetchFn = Callable[[], Awaitable[list[DiscordChannel]]]
TaskRunner = Callable[[Coroutine[Any, Any, None]], object]


def normalize_lower(query: str) -> str:
    """Query normalisation used by the server browser's inline search."""
    return query.strip().lower()


class _RequestController:
    """Request bookkeeping shared by the controllers.

    Every request gets an id; a completion whose id is no longer current is
    stale and must not touch state.
    """

    def __init__(self, run_task: TaskRunner | None) -> None:
        self._run_task = run_task or self._track_task
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._request_id = 0
        self._disposed = False
        self.is_loading = False
        self.error: str | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _next_request(self) -> int:
        self._request_id += 1
        return self._request_id

    def _is_current(self, request_id: int) -> bool:
        return not self._disposed and request_id == self._request_id

    def _launch(self, coro: Coroutine[Any, Any, None]) -> None:
        """Start *coro*, cancelling any request task still in flight."""
        self._cancel_tasks()
        self._run_task(coro)

    def _track_task(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    def _cancel_tasks(self) -> None:
        for task in list(self._background_tasks):
            task.cancel()
        self._background_tasks.clear()


# ============================================================================
# Search
# ============================================================================


@dataclass(frozen=True, slots=True)
class SearchViewState:
    """What a search pane renders."""

    query: str
    is_loading: bool
    error: str | None
    page: PageState

    @property
    def has_query(self) -> bool:
        return bool(self.query)

    @property
    def has_results(self) -> bool:
        return self.page.total_items > 0


class ServerSearchController(_RequestController):
    """Debounced server search with page-by-page results.

    Text changes go through a ``SearchDebouncer``. Each ``Commit`` starts a
    search through *run_task*; a ``Cleared`` event drops results, query and
    error. Only the newest request may update state.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        search: SearchFn,
        *,
        run_task: TaskRunner | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        quiet_interval: float = SEARCH_DEBOUNCE_DELAY,
        normalize: Callable[[str], str] = str.strip,
    ) -> None:
        super().__init__(run_task)
        self._search = search
        self._normalize = normalize
        self.query = ""
        self._listeners: ListenerSet[SearchViewState] = ListenerSet()
        self.navigator: PageNavigator[DiscordServer] = PageNavigator(page_size=page_size)
        self.navigator.subscribe(lambda _page: self._notify())
        self.debouncer = SearchDebouncer(
            scheduler, quiet_interval=quiet_interval, on_event=self._on_search_event
        )

    @property
    def results(self) -> list[DiscordServer]:
        return self.navigator.items

    @property
    def visible_results(self) -> list[DiscordServer]:
        return self.navigator.visible_items

    def snapshot(self) -> SearchViewState:
        return SearchViewState(
            query=self.query,
            is_loading=self.is_loading,
            error=self.error,
            page=self.navigator.snapshot(),
        )

    def subscribe(self, listener: Callable[[SearchViewState], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def text_changed(self, text: str) -> None:
        self.debouncer.on_text_changed(text)

    def submit(self, text: str) -> None:
        self.debouncer.on_submit(text)

    def retry(self) -> bool:
        """Re-run the last committed query. Returns False when there is none."""
        if self._disposed or not self.query:
            return False
        self._start_search(self.query)
        return True

    def clear(self) -> None:
        """Drop input, results and error without searching."""
        self.debouncer.reset()
        self._clear_results()

    def suggestions(self, limit: int = 10) -> list[str]:
        return get_search_suggestions(self.debouncer.snapshot().raw_input, limit)

    def dispose(self) -> None:
        """Cancel pending commits and in-flight searches. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self.debouncer.dispose()
        self._cancel_tasks()
        self._listeners.clear()

    def _on_search_event(self, event: SearchEvent) -> None:
        if isinstance(event, Commit):
            query = self._normalize(event.query)
            if query:
                self._start_search(query)
                return
        self._clear_results()

    def _start_search(self, query: str) -> None:
        request_id = self._next_request()
        self.query = query
        self.is_loading = True
        self.error = None
        self._notify()
        self._launch(self._execute_search(query, request_id))

    async def _execute_search(self, query: str, request_id: int) -> None:
        started = time.monotonic()
        try:
            results = await self._search(query)
        except DiscordApiError as exc:
            if not self._is_current(request_id):
                return
            logger.info("Search for %r failed: %s", query, exc.message)
            self.error = exc.message
            self.navigator.set_items([])
        else:
            if not self._is_current(request_id):
                logger.debug("Discarding stale results for %r", query)
                return
            logger.debug(
                "Search for %r returned %d servers in %.0f ms",
                query,
                len(results),
                (time.monotonic() - started) * 1000,
            )
            self.navigator.set_items(results)
        finally:
            if self._is_current(request_id):
                self.is_loading = False
                self._notify()

    def _clear_results(self) -> None:
        # Invalidate any in-flight request so it cannot repopulate the list
        self._next_request()
        self._cancel_tasks()
        self.query = ""
        self.error = None
        self.is_loading = False
        self.navigator.set_items([])
        self._notify()

    def _notify(self) -> None:
        if not self._disposed:
            self._listeners.notify(self.snapshot())


# ============================================================================
# Popular servers (infinite scroll)
# ============================================================================


@dataclass(frozen=True, slots=True)
class PopularViewState:
    """What the popular-server list renders."""

    is_loading: bool
    error: str | None
    window: PagingWindow


class PopularServersController(_RequestController):
    """Popular-server list revealed incrementally as the user scrolls."""

    def __init__(
        self,
        scheduler: Scheduler,
        fetch_popular: FetchFn,
        *,
        run_task: TaskRunner | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        threshold: float = DEFAULT_SCROLL_THRESHOLD,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        super().__init__(run_task)
        self._fetch_popular = fetch_popular
        self._listeners: ListenerSet[PopularViewState] = ListenerSet()
        self.backing: BackingList[DiscordServer] = BackingList()
        self.pager: IncrementalPager[DiscordServer] = IncrementalPager(
            scheduler, page_size=page_size, threshold=threshold, settle_delay=settle_delay
        )
        self.pager.subscribe(lambda _window: self._notify())

    @property
    def visible_items(self) -> list[DiscordServer]:
        return self.pager.visible_items

    def snapshot(self) -> PopularViewState:
        return PopularViewState(
            is_loading=self.is_loading,
            error=self.error,
            window=self.pager.snapshot(),
        )

    def subscribe(self, listener: Callable[[PopularViewState], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def load(self) -> None:
        """(Re)fetch the popular list; results replace the backing list."""
        if self._disposed:
            return
        request_id = self._next_request()
        self.is_loading = True
        self.error = None
        self._notify()
        self._launch(self._execute_load(request_id))

    def on_scroll(self, position: float, max_extent: float) -> bool:
        return self.pager.maybe_expand(position, max_extent)

    def load_more(self) -> bool:
        return self.pager.expand()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.pager.dispose()
        self._cancel_tasks()
        self._listeners.clear()

    async def _execute_load(self, request_id: int) -> None:
        started = time.monotonic()
        try:
            servers = await self._fetch_popular()
        except DiscordApiError as exc:
            if not self._is_current(request_id):
                return
            logger.info("Loading popular servers failed: %s", exc.message)
            self.error = exc.message
            self.backing.clear()
        else:
            if not self._is_current(request_id):
                return
            logger.debug(
                "Loaded %d popular servers in %.0f ms",
                len(servers),
                (time.monotonic() - started) * 1000,
            )
            self.backing.replace(servers)
        finally:
            if self._is_current(request_id):
                self.is_loading = False
                self.pager.sync(self.backing)
                self._notify()

    def _notify(self) -> None:
        if not self._disposed:
            self._listeners.notify(self.snapshot())


# ============================================================================
# Channel list
# ============================================================================


@dataclass(frozen=True, slots=True)
class ChannelViewState:
    """What the channel screen renders."""

    is_loading: bool
    error: str | None
    name_filter: str
    total: int
    rows: list[tuple[DiscordChannel, int]]


class ChannelListController(_RequestController):
    """Channel tree of one server with a debounced name filter."""

    def __init__(
        self,
        scheduler: Scheduler,
        fetch_channels: ChannelFetchFn,
        *,
        run_task: TaskRunner | None = None,
        quiet_interval: float = CHANNEL_FILTER_DEBOUNCE_DELAY,
    ) -> None:
        super().__init__(run_task)
        self._fetch_channels = fetch_channels
        self.channels: list[DiscordChannel] = []
        self.name_filter = ""
        self._listeners: ListenerSet[ChannelViewState] = ListenerSet()
        self.debouncer = SearchDebouncer(
            scheduler, quiet_interval=quiet_interval, on_event=self._on_filter_event
        )

    def snapshot(self) -> ChannelViewState:
        return ChannelViewState(
            is_loading=self.is_loading,
            error=self.error,
            name_filter=self.name_filter,
            total=len(self.channels),
            rows=flatten_channel_tree(self.channels, self.name_filter),
        )

    def subscribe(self, listener: Callable[[ChannelViewState], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def filter_changed(self, text: str) -> None:
        self.debouncer.on_text_changed(text)

    def load(self) -> None:
        if self._disposed:
            return
        request_id = self._next_request()
        self.is_loading = True
        self.error = None
        self._notify()
        self._launch(self._execute_load(request_id))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.debouncer.dispose()
        self._cancel_tasks()
        self._listeners.clear()

    def _on_filter_event(self, event: SearchEvent) -> None:
        self.name_filter = event.query.lower() if isinstance(event, Commit) else ""
        self._notify()

    async def _execute_load(self, request_id: int) -> None:
        try:
            channels = await self._fetch_channels()
        except DiscordApiError as exc:
            if not self._is_current(request_id):
                return
            logger.info("Loading channels failed: %s", exc.message)
            self.error = exc.message
            self.channels = []
        else:
            if not self._is_current(request_id):
                return
            logger.debug("Loaded %d channels", len(channels))
            self.channels = channels
        finally:
            if self._is_current(request_id):
                self.is_loading = False
                self._notify()

    def _notify(self) -> None:
        if not self._disposed:
            self._listeners.notify(self.snapshot())


__all__ = [
    "ChannelFetchFn",
    "ChannelListController",
    "ChannelViewState",
    "FetchFn",
    "PopularServersController",
    "PopularViewState",
    "SearchFn",
    "SearchViewState",
    "ServerSearchController",
    "TaskRunner",
    "normalize_lower",
]
