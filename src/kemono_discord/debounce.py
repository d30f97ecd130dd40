"""Debounced search triggering.

``SearchDebouncer`` turns a stream of text-change notifications into commit
events: ``Commit(query)`` once the input has been quiet for the configured
interval, or ``Cleared()`` when the settled text is blank.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from kemono_discord.scheduling import ListenerSet, Scheduler, TaskHandle

logger = logging.getLogger(__name__)

# Quiet interval in seconds before typed text becomes a search
SEARCH_DEBOUNCE_DELAY = 0.5


@dataclass(frozen=True, slots=True)
class Commit:
    """A settled, non-empty search query."""

    query: str


@dataclass(frozen=True, slots=True)
class Cleared:
    """The input settled on blank text; consumers revert to their default view."""


SearchEvent = Commit | Cleared


@dataclass(frozen=True, slots=True)
class SearchState:
    """Snapshot of a debouncer."""

    raw_input: str = ""
    pending: bool = False
    committed_query: str | None = None


class SearchDebouncer:
    """Collapses rapid text changes into at most one commit per quiet period."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        quiet_interval: float = SEARCH_DEBOUNCE_DELAY,
        on_event: Callable[[SearchEvent], None] | None = None,
    ) -> None:
        if quiet_interval < 0:
            raise ValueError("quiet_interval must be >= 0")
        self._scheduler = scheduler
        self._quiet_interval = quiet_interval
        self._raw_input = ""
        self._committed_query: str | None = None
        self._timer: TaskHandle | None = None
        self._countdown = 0
        self._disposed = False
        self._listeners: ListenerSet[SearchEvent] = ListenerSet()
        if on_event is not None:
            self._listeners.add(on_event)

    @property
    def quiet_interval(self) -> float:
        return self._quiet_interval

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: Callable[[SearchEvent], None]) -> Callable[[], None]:
        """Register an event listener; returns the unsubscribe function."""
        return self._listeners.add(listener)

    def snapshot(self) -> SearchState:
        return SearchState(
            raw_input=self._raw_input,
            pending=self._timer is not None,
            committed_query=self._committed_query,
        )

    def on_text_changed(self, text: str) -> None:
        """Record new input and restart the quiet-interval countdown."""
        if self._disposed:
            return
        self._raw_input = text
        self._cancel_timer()
        self._timer = self._scheduler.call_later(self._quiet_interval, self._make_fire())

    def on_submit(self, text: str) -> None:
        """Commit *text* immediately, superseding any pending countdown.

        Blank submissions are ignored; a pending countdown still settles them.
        """
        if self._disposed:
            return
        query = text.strip()
        if not query:
            return
        self._raw_input = text
        self._cancel_timer()
        self._emit(Commit(query))

    def reset(self) -> None:
        """Forget raw and committed input without emitting anything."""
        self._cancel_timer()
        self._raw_input = ""
        self._committed_query = None

    def dispose(self) -> None:
        """Cancel any pending commit and stop emitting. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_timer()
        self._listeners.clear()

    def _make_fire(self) -> Callable[[], None]:
        # A superseded countdown that still fires must not commit newer input.
        self._countdown += 1
        countdown = self._countdown

        def _fire() -> None:
            if self._disposed or self._timer is None or countdown != self._countdown:
                return
            self._timer = None
            query = self._raw_input.strip()
            self._emit(Commit(query) if query else Cleared())

        return _fire

    def _cancel_timer(self) -> None:
        # Atomic swap: capture and clear before cancelling
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _emit(self, event: SearchEvent) -> None:
        if isinstance(event, Commit):
            self._committed_query = event.query
            logger.debug("Search committed: %r", event.query)
        else:
            self._committed_query = None
            logger.debug("Search cleared")
        self._listeners.notify(event)


__all__ = [
    "SEARCH_DEBOUNCE_DELAY",
    "Cleared",
    "Commit",
    "SearchDebouncer",
    "SearchEvent",
    "SearchState",
]
