"""Incremental and windowed pagination over in-memory lists.

Two presentation modes share the page-size logic:

- ``IncrementalPager`` (infinite scroll) reveals a growing prefix of a
  ``BackingList`` in steps of ``page_size`` as the consumer nears the end.
- ``PageNavigator`` (windowed paging) shows one fixed-size page at a time.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from kemono_discord.models import DEFAULT_PAGE_SIZE
from kemono_discord.scheduling import ListenerSet, Scheduler, TaskHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Distance (in scroll units) from the bottom that triggers a reveal step
DEFAULT_SCROLL_THRESHOLD = 200.0
# Settle delay in seconds before a reveal step lands
DEFAULT_SETTLE_DELAY = 0.2


class BackingList(Generic[T]):
    """Append-only item list with an explicit replacement generation.

    ``replace()`` and ``clear()`` start a new generation; ``extend()`` grows
    the current one. Pagers compare generations instead of guessing from the
    first element.
    """

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: list[T] = list(items)
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def items(self) -> Sequence[T]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def replace(self, items: Iterable[T]) -> None:
        self._items = list(items)
        self._generation += 1

    def extend(self, items: Iterable[T]) -> None:
        self._items.extend(items)

    def clear(self) -> None:
        self._items = []
        self._generation += 1


@dataclass(frozen=True, slots=True)
class PagingWindow:
    """Snapshot of an IncrementalPager."""

    visible_count: int
    backing_length: int
    page_size: int
    is_expanding: bool
    generation: int

    @property
    def has_more(self) -> bool:
        return self.visible_count < self.backing_length


class IncrementalPager(Generic[T]):
    """Reveals a backing list in bounded increments (infinite scroll).

    At most one reveal step is in flight; requests arriving meanwhile are
    dropped, not queued.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        threshold: float = DEFAULT_SCROLL_THRESHOLD,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        self._scheduler = scheduler
        self._page_size = page_size
        self._threshold = threshold
        self._settle_delay = settle_delay
        self._backing: BackingList[T] = BackingList()
        self._generation = self._backing.generation
        self._visible_count = 0
        self._is_expanding = False
        self._reveal: TaskHandle | None = None
        self._alive = True
        self._listeners: ListenerSet[PagingWindow] = ListenerSet()

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def visible_count(self) -> int:
        return self._visible_count

    @property
    def is_expanding(self) -> bool:
        return self._is_expanding

    @property
    def visible_items(self) -> list[T]:
        return list(self._backing.items[: self._visible_count])

    def snapshot(self) -> PagingWindow:
        return PagingWindow(
            visible_count=self._visible_count,
            backing_length=len(self._backing),
            page_size=self._page_size,
            is_expanding=self._is_expanding,
            generation=self._generation,
        )

    def subscribe(self, listener: Callable[[PagingWindow], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def sync(self, backing: BackingList[T]) -> None:
        """Adopt the current snapshot of *backing*.

        A new list, a new generation or a shrink resets the window to the first
        page and abandons any in-flight reveal step. Growth within the same
        generation keeps the window as is.
        """
        if not self._alive:
            return
        replaced = (
            backing is not self._backing
            or backing.generation != self._generation
            or len(backing) < self._visible_count
        )
        self._backing = backing
        if replaced:
            self._cancel_reveal()
            self._generation = backing.generation
            self._visible_count = min(self._page_size, len(backing))
            self._is_expanding = False
            logger.debug(
                "Pager reset: generation=%d, visible=%d/%d",
                self._generation,
                self._visible_count,
                len(backing),
            )
        elif self._visible_count == 0 and len(backing) > 0:
            # Showing the first page is itself the step; drop one started early.
            self._cancel_reveal()
            self._is_expanding = False
            self._visible_count = min(self._page_size, len(backing))
        self._notify()

    def maybe_expand(self, scroll_position: float, max_scroll_extent: float) -> bool:
        """Start a reveal step if the consumer scrolled near the end."""
        if scroll_position < max_scroll_extent - self._threshold:
            return False
        return self.expand()

    def expand(self) -> bool:
        """Start a reveal step unless one is in flight or nothing is hidden."""
        if not self._alive or self._is_expanding:
            return False
        if self._visible_count >= len(self._backing):
            return False
        self._is_expanding = True
        generation = self._generation
        self._reveal = self._scheduler.call_later(
            self._settle_delay, lambda: self._finish_reveal(generation)
        )
        self._notify()
        return True

    def dispose(self) -> None:
        """Abandon any in-flight reveal step. Idempotent."""
        if not self._alive:
            return
        self._alive = False
        self._cancel_reveal()
        self._listeners.clear()

    def _finish_reveal(self, generation: int) -> None:
        # The owner may have been torn down, or the list replaced, meanwhile.
        if not self._alive or generation != self._generation or not self._is_expanding:
            return
        self._reveal = None
        before = self._visible_count
        self._visible_count = min(before + self._page_size, len(self._backing))
        self._is_expanding = False
        logger.debug(
            "Reveal step: %d -> %d of %d", before, self._visible_count, len(self._backing)
        )
        self._notify()

    def _cancel_reveal(self) -> None:
        reveal = self._reveal
        self._reveal = None
        if reveal is not None:
            reveal.cancel()

    def _notify(self) -> None:
        self._listeners.notify(self.snapshot())


@dataclass(frozen=True, slots=True)
class PageState:
    """Snapshot of a PageNavigator."""

    current_page: int
    total_pages: int
    total_items: int
    page_size: int

    @property
    def can_prev(self) -> bool:
        return self.current_page > 0

    @property
    def can_next(self) -> bool:
        return self.current_page < self.total_pages - 1

    @property
    def label(self) -> str:
        if self.total_pages == 0:
            return "No results"
        return f"Page {self.current_page + 1} of {self.total_pages}"


def total_pages(item_count: int, page_size: int) -> int:
    """Number of pages needed for *item_count* items."""
    return math.ceil(item_count / page_size) if item_count > 0 else 0


class PageNavigator(Generic[T]):
    """Page-by-page view over a result list (windowed paging)."""

    def __init__(self, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        self._page_size = page_size
        self._items: list[T] = []
        self._current_page = 0
        self._listeners: ListenerSet[PageState] = ListenerSet()

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def items(self) -> list[T]:
        return self._items

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return total_pages(len(self._items), self._page_size)

    @property
    def visible_items(self) -> list[T]:
        start = self._current_page * self._page_size
        return self._items[start : start + self._page_size]

    def snapshot(self) -> PageState:
        return PageState(
            current_page=self._current_page,
            total_pages=self.total_pages,
            total_items=len(self._items),
            page_size=self._page_size,
        )

    def subscribe(self, listener: Callable[[PageState], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def set_items(self, items: Iterable[T]) -> None:
        """Show a new result list starting from the first page."""
        self._items = list(items)
        self._current_page = 0
        self._notify()

    def next_page(self) -> bool:
        return self.go_to(self._current_page + 1)

    def prev_page(self) -> bool:
        return self.go_to(self._current_page - 1)

    def go_to(self, page: int) -> bool:
        """Move to *page*, clamped to the available data. Returns whether it moved."""
        last = max(0, self.total_pages - 1)
        target = min(max(0, page), last)
        if target == self._current_page:
            return False
        self._current_page = target
        self._notify()
        return True

    def _notify(self) -> None:
        self._listeners.notify(self.snapshot())


__all__ = [
    "DEFAULT_SCROLL_THRESHOLD",
    "DEFAULT_SETTLE_DELAY",
    "BackingList",
    "IncrementalPager",
    "PageNavigator",
    "PageState",
    "PagingWindow",
    "total_pages",
]
