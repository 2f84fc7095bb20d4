"""watch() — an Observable whose producer runs in a managed daemon thread.

Each subscription starts its own thread running producer(observer, handle).
The producer pushes events into observer and should check handle.disposed
in long-running loops; cancelling the subscription flips it.

Pass dispatch (e.g. app.call_from_thread) to deliver events on the host's
thread instead of the producer's.
"""

from __future__ import annotations

import logging
from threading import Thread
from typing import Any, Callable

from rxstream.observable import Observable
from rxstream.observer import Observer
from rxstream.reference import Reference

logger = logging.getLogger("rxstream.watch")

Producer = Callable[[Observer, "WatchHandle"], Any]


class WatchHandle:
    """Per-subscription stop signal polled by a watch() producer.

    Cancelling the subscription's Reference sets it; from then on the
    producer's events are dropped.
    """

    __slots__ = ("_cancelled",)

    def __init__(self):
        self._cancelled = False

    @property
    def disposed(self) -> bool:
        return self._cancelled

    def dispose(self) -> None:
        self._cancelled = True


class _ThreadSink(Observer):
    """Observer handed to the producer: drops events once disposed, marshals if asked."""

    __slots__ = ("_target", "_handle", "_dispatch")

    def __init__(self, target: Observer, handle: WatchHandle, dispatch) -> None:
        super().__init__()
        self._target = target
        self._handle = handle
        self._dispatch = dispatch

    def _deliver(self, fn, *args) -> None:
        if self._handle.disposed:
            return
        if self._dispatch is None:
            fn(*args)
        else:
            self._dispatch(lambda: None if self._handle.disposed else fn(*args))

    def on_next(self, *values: Any) -> None:
        if not self.stopped:
            self._deliver(self._target.on_next, *values)

    def on_error(self, error: Any = None) -> None:
        if not self.stopped:
            self.stopped = True
            self._deliver(self._target.on_error, error)

    def on_completed(self) -> None:
        if not self.stopped:
            self.stopped = True
            self._deliver(self._target.on_completed)


def watch(producer: Producer, dispatch: Callable[[Callable[[], Any]], Any] | None = None) -> Observable:
    """Observable that runs producer in a daemon thread per subscription.

    A normal return from producer completes the stream; an exception
    becomes its error.

    Usage:
        def poll(observer, handle):
            while not handle.disposed:
                observer.on_next(read_sensor())
                time.sleep(1)

        ref = watch(poll).subscribe(print)
        ...
        ref.cancel()
    """

    def _subscribe(observer: Observer) -> Reference:
        handle = WatchHandle()
        sink = _ThreadSink(observer, handle, dispatch)

        def _run() -> None:
            try:
                producer(sink, handle)
            except Exception as e:
                logger.debug("watch producer %r failed", producer, exc_info=True)
                sink.on_error(e)
                return
            sink.on_completed()

        Thread(target=_run, daemon=True).start()
        return Reference(handle.dispose)

    return Observable.create(_subscribe)
