"""Combining operators: several sources (or a stream of streams) into one.

Ordering across different sources is whatever order they emit in; only
per-source ordering is preserved.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState, sourcemethod
from rxstream.collect import Queue, SizedList

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer


class CombiningOperators:
    __slots__ = ()

    def flatten(self) -> Observable:
        """Subscribe to every Observable the source emits and merge their values.

        Completes once the source and every inner Observable have completed.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            ids = itertools.count()
            tracking = {"waiting": 0, "outer_done": False}

            def maybe_complete():
                if tracking["outer_done"] and tracking["waiting"] == 0:
                    state.completed()

            def on_next(inner):
                if not state.active:
                    return
                key = ("inner", next(ids))
                finished = [False]

                def inner_completed():
                    if state.active and not finished[0]:
                        finished[0] = True
                        state.forget(key)
                        tracking["waiting"] -= 1
                        maybe_complete()

                tracking["waiting"] += 1
                state.subscribe(key, inner, state.next, state.error, inner_completed)

            def on_completed():
                if state.active:
                    tracking["outer_done"] = True
                    state.forget("source")
                    maybe_complete()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def merge(self, *others: Observable) -> Observable:
        """Interleave this and others as values arrive."""
        return self.of(self, *others).flatten()

    def flat_map(self, fn: Callable[..., Observable] | None = None) -> Observable:
        """map() each event to an Observable, then flatten()."""
        return self.map(fn).flatten()

    def switch(self) -> Observable:
        """Mirror only the most recent Observable the source emitted.

        A new inner Observable cancels the previous one immediately.
        Completes when the source and the current inner have both completed.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            tracking = {"inner_live": False, "outer_done": False}

            def inner_completed():
                if state.active:
                    tracking["inner_live"] = False
                    state.forget("inner")
                    if tracking["outer_done"]:
                        state.completed()

            def on_next(inner):
                if state.active:
                    state.release("inner")
                    tracking["inner_live"] = True
                    state.subscribe("inner", inner, state.next, state.error, inner_completed)

            def on_completed():
                if state.active:
                    tracking["outer_done"] = True
                    if not tracking["inner_live"]:
                        state.completed()

            state.subscribe("source", self, on_next, state.error, on_completed)
            return state.reference()

        return self.create(_subscribe)

    def flat_map_latest(self, fn: Callable[..., Observable] | None = None) -> Observable:
        """map() each event to an Observable, then switch()."""
        return self.map(fn).switch()

    def concat(self, *others: Observable) -> Observable:
        """This stream's events, then each of others' in turn."""
        if not others:
            return self
        sources = (self,) + others

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            position = [0]

            def chain():
                if not state.active:
                    return
                position[0] += 1
                if position[0] >= len(sources):
                    state.completed()
                else:
                    state.subscribe("source", sources[position[0]], state.next, state.error, chain)

            state.subscribe("source", sources[0], state.next, state.error, chain)
            return state.reference()

        return self.create(_subscribe)

    def combine_latest(self, *others: Any, combinator: Callable[..., Any] | None = None) -> Observable:
        """Run combinator over the latest value of every source whenever one emits.

        Nothing is emitted until every source has produced a value. Without
        a combinator the latest values are emitted as one multi-value event.
        A trailing non-Observable callable is taken as the combinator.
        """
        sources = list(others)
        if combinator is None and sources and callable(sources[-1]) and not self.is_observable(sources[-1]):
            combinator = sources.pop()
        sources.insert(0, self)
        count = len(sources)

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            latest = SizedList(count)
            have = [False] * count
            completed = [False] * count

            def _emit():
                if combinator is None:
                    observer.on_next(*latest)
                else:
                    observer.on_next(combinator(*latest))

            def on_next(i):
                def _on_next(value=None, *_rest):
                    if state.active:
                        latest[i] = value
                        have[i] = True
                        if all(have):
                            state.attempt(_emit)

                return _on_next

            def on_completed(i):
                def _on_completed():
                    if state.active:
                        completed[i] = True
                        if all(completed):
                            state.completed()

                return _on_completed

            for i, source in enumerate(sources):
                state.subscribe(("source", i), source, on_next(i), state.error, on_completed(i))
            return state.reference()

        return self.create(_subscribe)

    def with_latest(self, *others: Observable) -> Observable:
        """Emit each value together with the latest value of every other source.

        Only the first value of each other source's events is kept; sources
        that have not emitted contribute None.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            latest = SizedList(len(others))

            def set_latest(i):
                def _set(value=None, *_rest):
                    latest[i] = value

                return _set

            def drop(i):
                def _drop(*_args):
                    state.release(("other", i))

                return _drop

            def on_next(value=None, *_rest):
                if state.active:
                    observer.on_next(value, *latest)

            for i, other in enumerate(others):
                state.subscribe(("other", i), other, set_latest(i), drop(i), drop(i))
            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def sample(self, sampler: Observable) -> Observable:
        """Emit the source's latest event each time sampler emits."""
        if not self.is_observable(sampler):
            raise TypeError("Expected an Observable")

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            latest: list[tuple] = []

            def set_latest(*values):
                if state.active:
                    latest[:] = [values]

            def on_sample(*_args):
                if state.active and latest:
                    observer.on_next(*latest[0])

            def source_completed():
                state.release("source")

            state.subscribe("source", self, set_latest, state.error, source_completed)
            state.subscribe("sampler", sampler, on_sample, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    @sourcemethod
    def zip(cls, *sources: Observable) -> Observable:
        """Pair events by index across sources into one multi-value event.

        Called on an instance, that instance is the first source.

        Stops as soon as a completed source has no buffered events left,
        so the shortest source decides the length.
        """
        count = len(sources)

        def _subscribe(observer: Observer):
            if count == 0:
                observer.on_completed()
                return None

            state = OperatorState(observer)
            queues = [Queue() for _ in range(count)]
            completed = [False] * count

            def exhausted():
                return any(completed[i] and not queues[i] for i in range(count))

            def on_next(i):
                def _on_next(*values):
                    if not state.active:
                        return
                    queues[i].push_right(values)
                    if all(queues):
                        payload: list[Any] = []
                        for queue in queues:
                            payload.extend(queue.pop_left())
                        observer.on_next(*payload)
                        if exhausted():
                            state.completed()

                return _on_next

            def on_completed(i):
                def _on_completed():
                    if state.active:
                        completed[i] = True
                        if exhausted():
                            state.completed()

                return _on_completed

            for i, source in enumerate(sources):
                state.subscribe(("source", i), source, on_next(i), state.error, on_completed(i))
            return state.reference()

        return cls.create(_subscribe)

    @sourcemethod
    def first_emitting(cls, *sources: Observable) -> Observable:
        """Mirror whichever source emits first; the others are cancelled.

        A terminal event from any source before a winner emerges ends the
        stream.
        """
        if not sources:
            return cls.never()
        if len(sources) == 1:
            return sources[0]

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            winner: list[int] = []

            def claim(i):
                if not winner:
                    winner.append(i)
                    for j in range(len(sources)):
                        if j != i:
                            state.release(("source", j))
                return winner[0] == i

            def on_next(i):
                def _on_next(*values):
                    if state.active and claim(i):
                        observer.on_next(*values)

                return _on_next

            def on_error(i):
                def _on_error(e):
                    if not winner or winner[0] == i:
                        state.error(e)

                return _on_error

            def on_completed(i):
                def _on_completed():
                    if not winner or winner[0] == i:
                        state.completed()

                return _on_completed

            for i, source in enumerate(sources):
                if winner and winner[0] != i:
                    break
                state.subscribe(("source", i), source, on_next(i), on_error(i), on_completed(i))
            return state.reference()

        return cls.create(_subscribe)
