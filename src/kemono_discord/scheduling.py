"""Cooperative scheduling primitives shared by the debouncer and the pagers.

Everything here runs on a single event loop. "Suspension" is always a
scheduled callback, never a blocking wait, so state objects can be driven by
the asyncio loop, by Textual timers, or by a manual clock in tests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Textual timers divide by their interval, so they cannot fire after 0 seconds.
MIN_TIMER_DELAY = 0.001


@runtime_checkable
class TaskHandle(Protocol):
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self) -> None:
        """Cancel the callback. Cancelling twice or after firing is a no-op."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Anything able to run a callback after a delay on the UI event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        """Run *callback* after *delay* seconds and return its handle."""
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


class _TimerHandle:
    """Adapts a Textual ``Timer`` to the TaskHandle protocol."""

    __slots__ = ("_timer",)

    def __init__(self, timer: Any) -> None:
        self._timer = timer

    def cancel(self) -> None:
        # Atomic swap: capture and clear before stopping
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.stop()


class TextualScheduler:
    """Scheduler backed by ``Widget.set_timer`` of a mounted Textual widget.

    Timers created this way are also stopped by Textual when the widget is
    removed, so a torn-down pane never receives a late callback.
    """

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        timer = self._widget.set_timer(max(delay, MIN_TIMER_DELAY), callback)
        return _TimerHandle(timer)


class _ScopedTask:
    """A handle owned by a TaskScope; detaches itself once done."""

    __slots__ = ("_scope", "_callback", "_inner", "_done")

    def __init__(self, scope: TaskScope, callback: Callable[[], None]) -> None:
        self._scope = scope
        self._callback = callback
        self._inner: TaskHandle | None = None
        self._done = False

    def _fire(self) -> None:
        if self._done:
            return
        self._done = True
        self._scope._detach(self)
        self._callback()

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        self._scope._detach(self)
        inner = self._inner
        self._inner = None
        if inner is not None:
            inner.cancel()

    @property
    def done(self) -> bool:
        return self._done


class TaskScope:
    """Owns every callback spawned on behalf of one screen.

    ``close()`` cancels all outstanding callbacks at once. Scheduling through a
    closed scope returns a handle that is already cancelled.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._tasks: set[_ScopedTask] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of callbacks scheduled but not yet fired or cancelled."""
        return len(self._tasks)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle:
        task = _ScopedTask(self, callback)
        if self._closed:
            task.cancel()
            return task
        self._tasks.add(task)
        task._inner = self._scheduler.call_later(delay, task._fire)
        return task

    def cancel_all(self) -> None:
        """Cancel outstanding callbacks but keep the scope usable."""
        for task in list(self._tasks):
            task.cancel()

    def close(self) -> None:
        """Cancel outstanding callbacks and refuse new ones. Idempotent."""
        if self._closed:
            return
        self._closed = True
        count = len(self._tasks)
        self.cancel_all()
        if count:
            logger.debug("Task scope closed, cancelled %d pending callback(s)", count)

    def _detach(self, task: _ScopedTask) -> None:
        self._tasks.discard(task)


class ListenerSet(Generic[T]):
    """Ordered set of listeners receiving state snapshots or events.

    Listener exceptions propagate to whoever triggered the notification.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register *listener* and return a function that unregisters it."""
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _remove

    def notify(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        self._listeners.clear()


__all__ = [
    "MIN_TIMER_DELAY",
    "AsyncioScheduler",
    "ListenerSet",
    "Scheduler",
    "TaskHandle",
    "TaskScope",
    "TextualScheduler",
]
