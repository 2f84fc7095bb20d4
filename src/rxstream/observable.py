"""Observable — a lazy, push-based producer of values.

An Observable wraps a single subscription function `(observer) -> Reference`.
Nothing happens until subscribe() runs it, and every subscription runs it
again with fresh state, so two subscribers never share operator state.

Operators live in mixin modules grouped by concern and are composed onto
Observable at the bottom of this module.

Usage:
    received = []
    ref = (
        Observable.from_range(1, 5)
        .map(lambda x: x * 2)
        .filter(lambda x: x > 4)
        .subscribe(received.append)
    )
    # received == [6, 8, 10]
    ref.cancel()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from rxstream._aggregate import AggregateOperators
from rxstream._combining import CombiningOperators
from rxstream._filtering import FilteringOperators
from rxstream._plumbing import OperatorState
from rxstream._recovery import RecoveryOperators
from rxstream._timing import TimingOperators
from rxstream._transform import TransformOperators
from rxstream.observer import Observer
from rxstream.reference import Reference
from rxstream.scheduler import Scheduler, get_default_scheduler

T = TypeVar("T")

SubscribeFn = Callable[[Observer], "Reference | None"]

dump_logger = logging.getLogger("rxstream.dump")


class Observable(
    TransformOperators,
    FilteringOperators,
    AggregateOperators,
    CombiningOperators,
    RecoveryOperators,
    TimingOperators,
    Generic[T],
):
    """A composable stream of values delivered to Observers."""

    __slots__ = ("_subscribe",)

    def __init__(self, subscribe_fn: SubscribeFn) -> None:
        self._subscribe = subscribe_fn

    @classmethod
    def create(cls, subscribe_fn: SubscribeFn) -> Observable:
        return Observable(subscribe_fn)

    @staticmethod
    def is_observable(thing: object) -> bool:
        return isinstance(thing, Observable)

    # --- Subscription ---

    def subscribe_with_observer(self, observer: Observer) -> Reference:
        """Run the subscription function against observer."""
        ref = self._subscribe(observer)
        return ref if ref is not None else Reference.empty()

    def subscribe_with_callbacks(
        self,
        on_next: Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> Reference:
        """Wrap the callbacks in an Observer and subscribe it."""
        return self.subscribe_with_observer(Observer(on_next, on_error, on_completed))

    def subscribe(
        self,
        on_next: Observer | Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> Reference:
        """Subscribe an Observer, or up to three callbacks."""
        if isinstance(on_next, Observer):
            return self.subscribe_with_observer(on_next)
        return self.subscribe_with_callbacks(on_next, on_error, on_completed)

    def dump(self, name: str | None = None, formatter: Callable[..., str] | None = None) -> Reference:
        """Subscribe and log every event to the rxstream.dump logger."""
        prefix = f"{name} " if name else ""
        fmt = formatter or (lambda *values: ", ".join(repr(v) for v in values))
        return self.subscribe_with_callbacks(
            lambda *values: dump_logger.info("%sonNext: %s", prefix, fmt(*values)),
            lambda e: dump_logger.info("%sonError: %s", prefix, e),
            lambda: dump_logger.info("%sonCompleted", prefix),
        )

    # --- Factories ---

    @classmethod
    def empty(cls) -> Observable:
        """Completes immediately without producing a value."""

        def _subscribe(observer: Observer) -> None:
            observer.on_completed()

        return Observable(_subscribe)

    @classmethod
    def never(cls) -> Observable:
        """Never produces anything."""
        return Observable(lambda _observer: None)

    @classmethod
    def throw(cls, message: Any, *args: Any) -> Observable:
        """Errors immediately. Extra args are %-interpolated into message."""
        if args:
            message = message % args

        def _subscribe(observer: Observer) -> None:
            observer.on_error(message)

        return Observable(_subscribe)

    @classmethod
    def of(cls, *values: Any) -> Observable:
        """Emits each argument in order, then completes."""

        def _subscribe(observer: Observer) -> None:
            for value in values:
                if observer.stopped:
                    return
                observer.on_next(value)
            observer.on_completed()

        return Observable(_subscribe)

    @classmethod
    def from_range(cls, initial: float, limit: float | None = None, step: float | None = None) -> Observable:
        """Emits a counted progression with inclusive bounds.

        from_range(3) is 1, 2, 3; from_range(2, 10, 4) is 2, 6, 10.
        """
        if limit is None and step is None:
            initial, limit = 1, initial
        step = 1 if step is None else step
        if step == 0:
            raise ValueError("from_range step must not be zero")

        def _subscribe(observer: Observer) -> None:
            i = initial
            while (i <= limit) if step > 0 else (i >= limit):
                if observer.stopped:
                    return
                observer.on_next(i)
                i += step
            observer.on_completed()

        return Observable(_subscribe)

    @classmethod
    def from_table(
        cls,
        table: Any,
        iterator: Callable[[Any], Iterable[tuple[Any, Any]]] | None = None,
        keys: bool = False,
    ) -> Observable:
        """Emits the values of a mapping or sequence, with keys if asked.

        iterator(table) must yield (key, value) pairs. By default mappings
        use items() and anything else is enumerated.
        """
        if iterator is None:
            iterator = _pairs

        def _subscribe(observer: Observer) -> None:
            for key, value in iterator(table):
                if observer.stopped:
                    return
                if keys:
                    observer.on_next(value, key)
                else:
                    observer.on_next(value)
            observer.on_completed()

        return Observable(_subscribe)

    @classmethod
    def from_generator(cls, generator: Iterator[Any], scheduler: Scheduler | None = None) -> Observable:
        """Pumps an already-created generator, one step per scheduler tick.

        The generator is shared: every subscriber pulls from the same one.
        """
        return Observable(lambda observer: _pump(lambda: generator, observer, scheduler))

    @classmethod
    def from_generator_function(
        cls, fn: Callable[[], Iterator[Any]], scheduler: Scheduler | None = None
    ) -> Observable:
        """Like from_generator, but calls fn() for a fresh generator per subscriber."""
        return Observable(lambda observer: _pump(fn, observer, scheduler))

    @classmethod
    def defer(cls, fn: Callable[[], Observable]) -> Observable:
        """Calls fn() at each subscription and subscribes to its result."""

        def _subscribe(observer: Observer) -> Reference | None:
            try:
                observable = fn()
            except Exception as e:
                observer.on_error(e)
                return None
            return observable.subscribe_with_observer(observer)

        return Observable(_subscribe)

    @classmethod
    def replicate(cls, value: Any, count: int | None = None) -> Observable:
        """Emits value count times, or forever when count is None."""

        def _subscribe(observer: Observer) -> None:
            remaining = count
            while remaining is None or remaining > 0:
                if observer.stopped:
                    return
                observer.on_next(value)
                if remaining is not None:
                    remaining -= 1
            observer.on_completed()

        return Observable(_subscribe)

    repeat = replicate

    def __repr__(self) -> str:
        return "Observable"


def _pairs(table: Any) -> Iterable[tuple[Any, Any]]:
    if isinstance(table, Mapping):
        return table.items()
    return enumerate(table)


def _pump(
    make: Callable[[], Iterator[Any]], observer: Observer, scheduler: Scheduler | None
) -> Reference:
    scheduler = scheduler or get_default_scheduler()
    state = OperatorState(observer)
    generator: list[Iterator[Any]] = []

    def step() -> None:
        state.forget("tick")
        if observer.stopped:
            state.done()
        if not state.active:
            return
        try:
            if not generator:
                generator.append(iter(make()))
            value = next(generator[0])
        except StopIteration:
            state.completed()
            return
        except Exception as e:
            state.error(e)
            return
        state.next(value)
        if state.active:
            state.hold("tick", scheduler.schedule(step, 0))

    state.hold("tick", scheduler.schedule(step, 0))
    return state.reference()
