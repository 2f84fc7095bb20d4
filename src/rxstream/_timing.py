"""Time-based operators. All timing goes through a Scheduler.

With no scheduler argument the process-wide default is looked up when the
subscription starts, so tests can install a VirtualTimeScheduler first.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState
from rxstream.scheduler import Scheduler, get_default_scheduler

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer


def _as_fn(value: float | Callable[[], float]) -> Callable[[], float]:
    return value if callable(value) else (lambda: value)


class TimingOperators:
    __slots__ = ()

    def debounce(self, ms: float = 0, scheduler: Scheduler | None = None) -> Observable:
        """Forward an event only after ms pass without a newer one of the same kind.

        on_next, on_error and on_completed each have their own timer.
        """

        def _subscribe(observer: Observer):
            clock = scheduler or get_default_scheduler()
            state = OperatorState(observer)
            forward = {
                "on_next": state.next,
                "on_error": state.error,
                "on_completed": state.completed,
            }

            def debounced(kind):
                def _schedule(*values):
                    if not state.active:
                        return

                    def fire():
                        state.forget(kind)
                        forward[kind](*values)

                    state.hold(kind, clock.schedule(fire, ms))

                return _schedule

            state.subscribe(
                "source", self, debounced("on_next"), debounced("on_error"), debounced("on_completed")
            )
            return state.reference()

        return self.create(_subscribe)

    def delay(self, ms: float | Callable[[], float], scheduler: Scheduler | None = None) -> Observable:
        """Shift every event, terminal ones included, later by ms (or ms())."""
        delay_fn = _as_fn(ms)

        def _subscribe(observer: Observer):
            clock = scheduler or get_default_scheduler()
            state = OperatorState(observer)
            ids = itertools.count()
            forward = {
                "on_next": state.next,
                "on_error": state.error,
                "on_completed": state.completed,
            }

            def delayed(kind):
                def _schedule(*values):
                    if not state.active:
                        return
                    key = ("timer", next(ids))

                    def fire():
                        state.forget(key)
                        forward[kind](*values)

                    state.hold(key, clock.schedule(fire, delay_fn()))

                return _schedule

            state.subscribe(
                "source", self, delayed("on_next"), delayed("on_error"), delayed("on_completed")
            )
            return state.reference()

        return self.create(_subscribe)

    def timeout(
        self,
        ms: float | Callable[[], float],
        next: Any = None,
        scheduler: Scheduler | None = None,
    ) -> Observable:
        """Error if ms pass without a value; the timer restarts on every value.

        next may be an error payload to send instead of the default message,
        or an Observable to switch to when the time runs out.
        """
        ms_fn = _as_fn(ms)
        fallback = next

        def _subscribe(observer: Observer):
            clock = scheduler or get_default_scheduler()
            state = OperatorState(observer)

            def timed_out(waited):
                state.forget("timer")
                if not state.active:
                    return
                if self.is_observable(fallback):
                    state.release("source")
                    state.subscribe("source", fallback, state.next, state.error, state.completed)
                else:
                    state.error(fallback if fallback is not None else "Timed out after %d ms." % waited)

            def arm():
                waited = ms_fn()
                state.hold("timer", clock.schedule(lambda: timed_out(waited), waited))

            def on_next(*values):
                if state.active:
                    arm()
                    observer.on_next(*values)

            arm()
            state.subscribe("source", self, on_next, state.error, state.completed)
            return state.reference()

        return self.create(_subscribe)
