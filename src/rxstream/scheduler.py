"""Schedulers — deferred work for time-based operators.

A scheduler runs an action after a delay (milliseconds) and hands back a
Reference; cancelling it before the action runs prevents the action.

The process-wide default scheduler is the test seam: replace it with a
VirtualTimeScheduler to drive debounce/delay/timeout deterministically.

    with using_scheduler(VirtualTimeScheduler()) as clock:
        ...
        clock.advance(100)
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator

from rxstream.reference import Reference

logger = logging.getLogger("rxstream.scheduler")

Action = Callable[[], object]


class Scheduler(ABC):
    """Runs actions later."""

    @abstractmethod
    def schedule(self, action: Action, delay_ms: float = 0) -> Reference:
        """Run action after delay_ms. Returns a Reference that cancels it."""


class _Entry:
    """A pending action. Cancelling clears the action in place."""

    __slots__ = ("due", "seq", "action")

    def __init__(self, due: float, seq: int, action: Action) -> None:
        self.due = due
        self.seq = seq
        self.action: Action | None = action

    def __lt__(self, other: _Entry) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)

    def cancel(self) -> None:
        self.action = None


class TimeoutScheduler(Scheduler):
    """Wall-clock scheduler backed by a single daemon worker thread.

    Actions run one at a time, ordered by due time and then submission
    order. Pass dispatch (e.g. app.call_from_thread) to run due actions on
    the host's own loop instead of the worker thread.
    """

    def __init__(self, dispatch: Callable[[Action], object] | None = None) -> None:
        self._dispatch = dispatch
        self._heap: list[_Entry] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._worker: threading.Thread | None = None
        self._running = False

    def schedule(self, action: Action, delay_ms: float = 0) -> Reference:
        due = time.monotonic() + max(delay_ms or 0, 0) / 1000.0
        entry = _Entry(due, next(self._seq), action)
        with self._cond:
            heapq.heappush(self._heap, entry)
            self._ensure_worker()
            self._cond.notify()

        def _cancel() -> None:
            with self._cond:
                entry.cancel()

        return Reference(_cancel)

    @property
    def pending(self) -> int:
        with self._cond:
            return sum(1 for e in self._heap if e.action is not None)

    def shutdown(self) -> None:
        """Stop the worker. Pending actions are discarded."""
        with self._cond:
            self._running = False
            self._heap.clear()
            self._cond.notify_all()
        worker, self._worker = self._worker, None
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=1)

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._running = True
            self._worker = threading.Thread(
                target=self._loop, name="rxstream-timeout", daemon=True
            )
            self._worker.start()

    def _loop(self) -> None:
        while True:
            with self._cond:
                action = None
                while self._running and action is None:
                    while self._heap and self._heap[0].action is None:
                        heapq.heappop(self._heap)
                    if not self._heap:
                        self._cond.wait()
                        continue
                    wait = self._heap[0].due - time.monotonic()
                    if wait > 0:
                        self._cond.wait(wait)
                        continue
                    action = heapq.heappop(self._heap).action
                if not self._running:
                    return
            self._run(action)

    def _run(self, action: Action) -> None:
        try:
            if self._dispatch is not None:
                self._dispatch(action)
            else:
                action()
        except Exception:
            logger.exception("Scheduled action failed")


class ImmediateScheduler(Scheduler):
    """Runs every action synchronously, ignoring the delay."""

    def schedule(self, action: Action, delay_ms: float = 0) -> Reference:
        action()
        return Reference.empty()


class VirtualTimeScheduler(Scheduler):
    """Deterministic clock. Nothing runs until advance() or run() is called."""

    def __init__(self, start: float = 0) -> None:
        self.now = start
        self._heap: list[_Entry] = []
        self._seq = itertools.count()

    def schedule(self, action: Action, delay_ms: float = 0) -> Reference:
        entry = _Entry(self.now + max(delay_ms or 0, 0), next(self._seq), action)
        heapq.heappush(self._heap, entry)
        return Reference(entry.cancel)

    @property
    def pending(self) -> int:
        return sum(1 for e in self._heap if e.action is not None)

    def advance(self, ms: float = 0) -> None:
        """Move the clock forward, running everything that falls due."""
        target = self.now + ms
        while True:
            entry = self._pop_due(target)
            if entry is None:
                break
            self.now = entry.due
            entry.action()
        self.now = target

    def run(self) -> None:
        """Run until no actions remain."""
        while True:
            entry = self._pop_due(None)
            if entry is None:
                return
            self.now = max(self.now, entry.due)
            entry.action()

    def _pop_due(self, limit: float | None) -> _Entry | None:
        while self._heap:
            head = self._heap[0]
            if head.action is None:
                heapq.heappop(self._heap)
                continue
            if limit is not None and head.due > limit:
                return None
            return heapq.heappop(self._heap)
        return None


# ─── Process-wide default ────────────────────────────────────────────────────
_default: Scheduler | None = None


def get_default_scheduler() -> Scheduler:
    """The scheduler time-based operators use when none is passed."""
    global _default
    if _default is None:
        _default = TimeoutScheduler()
    return _default


def set_default_scheduler(scheduler: Scheduler | None) -> None:
    """Replace the default. None restores a fresh TimeoutScheduler on next use."""
    global _default
    _default = scheduler


@contextmanager
def using_scheduler(scheduler: Scheduler) -> Iterator[Scheduler]:
    """Temporarily install scheduler as the default."""
    global _default
    previous = _default
    _default = scheduler
    try:
        yield scheduler
    finally:
        _default = previous
