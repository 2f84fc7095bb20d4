"""Transforming operators: map, scan, pluck, buffer and friends."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState, identity, noop

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer


class TransformOperators:
    __slots__ = ()

    def map(self, fn: Callable[..., Any] | None = None) -> Observable:
        """Transform each event's values through fn."""
        fn = fn or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_next(*values):
                if state.active:
                    state.attempt(lambda: observer.on_next(fn(*values)))

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def pluck(self, *keys: Any) -> Observable:
        """Extract keys (item, or attribute for str keys) recursively from each value."""
        if not keys:
            return self
        for key in keys:
            if not isinstance(key, (str, int)):
                return self.throw("pluck key must be a string")

        def _extract(value):
            for key in keys:
                value = _lookup(value, key)
            return value

        return self.map(_extract)

    def pack(self) -> Observable:
        """Emit each event's values as a single tuple."""
        return self.map(lambda *values: values)

    def unpack(self) -> Observable:
        """Spread each iterable value into a multi-value event."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_next(value=(), *_rest):
                if state.active:
                    state.attempt(lambda: observer.on_next(*value))

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def unwrap(self) -> Observable:
        """Split multi-value events into one event per value."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_next(*values):
                for value in values:
                    state.next(value)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def scan(self, accumulator: Callable[..., Any], seed: Any = None) -> Observable:
        """Emit the running accumulation after every value.

        Without a seed the first value becomes the accumulator's starting
        point without being passed through accumulator.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            acc = {"result": seed, "first": True}

            def _step(*values):
                if acc["first"] and seed is None:
                    acc["result"] = identity(*values)
                else:
                    acc["result"] = accumulator(acc["result"], *values)
                acc["first"] = False
                observer.on_next(acc["result"])

            def on_next(*values):
                if state.active:
                    state.attempt(_step, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def start_with(self, *values: Any) -> Observable:
        """Emit values as one event before the source's own events."""

        def _subscribe(observer: Observer):
            if values:
                observer.on_next(*values)
            return self.subscribe_with_observer(observer)

        return self.create(_subscribe)

    def tap(
        self,
        on_next: Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> Observable:
        """Run side effects for each event without altering the stream."""
        _on_next = on_next or noop
        _on_error = on_error or noop
        _on_completed = on_completed or noop

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def forward_next(*values):
                if state.active and state.attempt(_on_next, *values):
                    observer.on_next(*values)

            def forward_error(e):
                if state.active:
                    state.done()
                    try:
                        _on_error(e)
                    except Exception as tap_error:
                        observer.on_error(tap_error)
                        return
                    observer.on_error(e)

            def forward_completed():
                if state.active:
                    state.done()
                    try:
                        _on_completed()
                    except Exception as tap_error:
                        observer.on_error(tap_error)
                        return
                    observer.on_completed()

            state.subscribe("source", self, forward_next, forward_error, forward_completed)
            return state.reference()

        return self.create(_subscribe)

    def buffer(self, size: int) -> Observable:
        """Collect values and emit them size at a time as one multi-value event.

        A partial buffer is flushed before the source terminates.
        """
        if size < 1:
            raise ValueError("buffer size must be at least 1")

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            pending: list[Any] = []

            def emit():
                if pending:
                    values = tuple(pending)
                    pending.clear()
                    observer.on_next(*values)

            def on_next(*values):
                if state.active:
                    for value in values:
                        pending.append(value)
                        if len(pending) >= size:
                            emit()

            def on_error(e):
                if state.active:
                    emit()
                    state.error(e)

            def on_completed():
                if state.active:
                    emit()
                    state.completed()

            state.subscribe("source", self, on_next, on_error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    wrap = buffer


def _lookup(value: Any, key: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(key, int) and isinstance(value, (list, tuple)):
        return value[key] if -len(value) <= key < len(value) else None
    if isinstance(key, str):
        return getattr(value, key, None)
    return value[key]
