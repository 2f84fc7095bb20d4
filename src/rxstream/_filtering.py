"""Filtering operators: which events get through, and when the stream ends."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState, identity
from rxstream.collect import Queue

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer

Predicate = Callable[..., Any]


class FilteringOperators:
    __slots__ = ()

    def filter(self, predicate: Predicate | None = None) -> Observable:
        """Forward events whose values satisfy predicate."""
        predicate = predicate or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def _check(*values):
                if predicate(*values):
                    observer.on_next(*values)

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def reject(self, predicate: Predicate | None = None) -> Observable:
        """Forward events whose values do not satisfy predicate."""
        predicate = predicate or identity
        return self.filter(lambda *values: not predicate(*values))

    def compact(self) -> Observable:
        """Drop falsy values."""
        return self.filter(identity)

    def partition(self, predicate: Predicate | None = None) -> tuple[Observable, Observable]:
        """Split into (matching, non-matching) streams."""
        return self.filter(predicate), self.reject(predicate)

    def distinct(self) -> Observable:
        """Forward each value only the first time it is seen."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            seen_hashable: set[Any] = set()
            seen_other: list[Any] = []

            def _first_time(key):
                try:
                    if key in seen_hashable:
                        return False
                    seen_hashable.add(key)
                    return True
                except TypeError:
                    if key in seen_other:
                        return False
                    seen_other.append(key)
                    return True

            def on_next(*values):
                if state.active and _first_time(identity(*values)):
                    observer.on_next(*values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def distinct_until_changed(self, comparator: Callable[[Any, Any], Any] | None = None) -> Observable:
        """Drop events whose first value equals the previous event's first value."""
        comparator = comparator or operator.eq

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            last = {"first": True, "value": None}

            def _check(value=None, *rest):
                if last["first"] or not comparator(value, last["value"]):
                    last["first"] = False
                    last["value"] = value
                    observer.on_next(value, *rest)

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def element_at(self, index: int) -> Observable:
        """Emit only the index-th event (1-based), then complete."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            seen = [0]

            def on_next(*values):
                if state.active:
                    seen[0] += 1
                    if seen[0] == index:
                        observer.on_next(*values)
                        state.completed()

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def find(self, predicate: Predicate | None = None) -> Observable:
        """Emit the first event satisfying predicate, then complete."""
        predicate = predicate or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def _check(*values):
                if predicate(*values):
                    observer.on_next(*values)
                    state.completed()

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def first(self) -> Observable:
        """The first event. Errors if the source completes empty."""
        return self.take(1)

    def next(self) -> Observable:
        """At most the first event. Completes quietly if the source is empty."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_next(*values):
                if state.active:
                    state.done()
                    observer.on_next(*values)
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def last(self) -> Observable:
        """Only the final event, emitted when the source completes."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            latest: list[tuple] = []

            def on_next(*values):
                if state.active:
                    latest[:] = [values]

            def on_completed():
                if state.active:
                    state.done()
                    if latest:
                        observer.on_next(*latest[0])
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def skip(self, n: int = 1) -> Observable:
        """Drop the first n events."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            skipped = [0]

            def on_next(*values):
                if state.active:
                    if skipped[0] >= n:
                        observer.on_next(*values)
                    else:
                        skipped[0] += 1

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def skip_last(self, count: int) -> Observable:
        """Drop the final count events."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            pending: Queue[tuple] = Queue()

            def on_next(*values):
                if state.active:
                    pending.push_right(values)
                    while state.active and len(pending) > count:
                        observer.on_next(*pending.pop_left())

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def skip_until(self, other: Observable) -> Observable:
        """Drop events until other produces any event."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            triggered = [False]

            def trigger(*_args):
                triggered[0] = True
                state.release("other")

            def on_next(*values):
                if state.active and triggered[0]:
                    observer.on_next(*values)

            state.subscribe("other", other, trigger, trigger, trigger)
            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def skip_while(self, predicate: Predicate | None = None) -> Observable:
        """Drop events until predicate first returns falsy, then forward the rest."""
        predicate = predicate or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            skipping = [True]

            def _check(*values):
                if skipping[0]:
                    skipping[0] = bool(predicate(*values))
                if not skipping[0]:
                    observer.on_next(*values)

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def take(self, n: int = 1) -> Observable:
        """The first n events, then complete.

        Completing before n events arrive is an error, not a short stream.
        """

        def _subscribe(observer: Observer):
            if n <= 0:
                observer.on_completed()
                return None

            state = OperatorState(observer)
            taken = [0]

            def on_next(*values):
                if state.active and taken[0] < n:
                    taken[0] += 1
                    observer.on_next(*values)
                    if taken[0] >= n:
                        state.completed()

            def on_completed():
                if state.active:
                    if taken[0] < n:
                        state.error("Expected at least %d, got %d." % (n, taken[0]))
                    else:
                        state.completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def take_last(self, count: int) -> Observable:
        """The final count events, emitted when the source completes."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            pending: Queue[tuple] = Queue()

            def on_next(*values):
                if state.active:
                    pending.push_right(values)
                    if len(pending) > count:
                        pending.pop_left()

            def on_completed():
                if state.active:
                    state.done()
                    while pending:
                        observer.on_next(*pending.pop_left())
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def take_until(self, other: Observable) -> Observable:
        """Forward events until other produces any event, then complete."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def stop(*_args):
                state.completed()

            state.subscribe("other", other, stop, stop, stop)
            state.subscribe("source", self, state.next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def take_while(self, predicate: Predicate | None = None) -> Observable:
        """Forward events while predicate holds; complete at the first miss."""
        predicate = predicate or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def _check(*values):
                if predicate(*values):
                    observer.on_next(*values)
                else:
                    state.completed()

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def ignore_elements(self) -> Observable:
        """Only the terminal event."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            state.subscribe("source", self, None, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def default_if_empty(self, *values: Any) -> Observable:
        """Emit values as one event if the source completes without any."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            seen = [False]

            def on_next(*args):
                if state.active:
                    seen[0] = True
                    observer.on_next(*args)

            def on_completed():
                if state.active:
                    state.done()
                    if not seen[0]:
                        observer.on_next(*values)
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def switch_if_empty(self, alternate: Observable) -> Observable:
        """Switch to alternate if the source completes without any events."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            seen = [False]

            def on_next(*values):
                if state.active:
                    seen[0] = True
                    observer.on_next(*values)

            def on_completed():
                if not state.active:
                    return
                if seen[0]:
                    state.completed()
                else:
                    state.subscribe("source", alternate, state.next, state.error, state.completed)

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)
