"""Aggregating operators: fold the whole stream into a single value."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState, constant, identity

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer


class AggregateOperators:
    __slots__ = ()

    def reduce(self, accumulator: Callable[..., Any], seed: Any = None) -> Observable:
        """Fold every value with accumulator; emit the result on completion.

        Without a seed the first value becomes the starting result and is
        not passed through accumulator. An empty source with no seed
        completes without emitting.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            acc = {"result": seed, "has_result": seed is not None}

            def _step(*values):
                if not acc["has_result"]:
                    acc["result"] = identity(*values)
                    acc["has_result"] = True
                else:
                    acc["result"] = accumulator(acc["result"], *values)

            def on_next(*values):
                if state.active:
                    state.attempt(_step, *values)

            def on_completed():
                if state.active:
                    state.done()
                    if acc["has_result"]:
                        observer.on_next(acc["result"])
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def count(self, predicate: Callable[..., Any] | None = None) -> Observable:
        """Emit how many events satisfied predicate (all, by default)."""
        predicate = predicate or constant(True)

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            total = [0]

            def _check(*values):
                if predicate(*values):
                    total[0] += 1

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            def on_completed():
                if state.active:
                    state.done()
                    observer.on_next(total[0])
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def sum(self) -> Observable:
        return self.reduce(operator.add, 0)

    def min(self) -> Observable:
        return self.reduce(min)

    def max(self) -> Observable:
        return self.reduce(max)

    def average(self) -> Observable:
        """Emit the mean of all values; nothing for an empty source."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            totals = [0, 0]

            def _add(value):
                totals[0] = totals[0] + value
                totals[1] += 1

            def on_next(value=None, *_rest):
                if state.active:
                    state.attempt(_add, value)

            def on_completed():
                if state.active:
                    state.done()
                    if totals[1] > 0:
                        observer.on_next(totals[0] / totals[1])
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def all(self, predicate: Callable[..., Any] | None = None) -> Observable:
        """Emit True if every event satisfies predicate, False at the first miss."""
        predicate = predicate or identity

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def _check(*values):
                if not predicate(*values):
                    state.done()
                    observer.on_next(False)
                    observer.on_completed()

            def on_next(*values):
                if state.active:
                    state.attempt(_check, *values)

            def on_completed():
                if state.active:
                    state.done()
                    observer.on_next(True)
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def contains(self, value: Any) -> Observable:
        """Emit True as soon as any event carries value, else False on completion."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_next(*values):
                if not state.active:
                    return
                if (not values and value is None) or any(v == value for v in values):
                    state.done()
                    observer.on_next(True)
                    observer.on_completed()

            def on_completed():
                if state.active:
                    state.done()
                    observer.on_next(False)
                    observer.on_completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)
