"""Error-handling operators.

An error always ends the subscription it reaches. Recovery means starting
a new subscription in response: catch() switches to a replacement stream,
retry() resubscribes to the same one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from rxstream._plumbing import OperatorState
from rxstream.scheduler import Scheduler, get_default_scheduler

if TYPE_CHECKING:
    from rxstream.observable import Observable
    from rxstream.observer import Observer


class RecoveryOperators:
    __slots__ = ()

    def catch(self, handler: Observable | Callable[[Any], Observable | None] | None = None) -> Observable:
        """Replace an error with the Observable handler(error) returns.

        handler may also be an Observable. With no handler the error is
        swallowed and the stream completes. If handler returns None the
        original error goes through; if it raises, that exception does.
        """
        if handler is not None and self.is_observable(handler):
            replacement = handler

            def handler(_error):
                return replacement

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_error(e):
                if not state.active:
                    return
                if handler is None:
                    state.completed()
                    return
                try:
                    continuation = handler(e)
                except Exception as handler_error:
                    state.error(handler_error)
                    return
                if continuation is None:
                    state.error(e)
                    return
                state.release("source")
                state.subscribe("source", continuation, state.next, state.error, state.completed)

            state.subscribe("source", self, state.next, on_error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def retry(self, count: int | None = None) -> Observable:
        """Resubscribe after an error, up to count times (forever if None).

        When retries run out the last real error is forwarded.
        """

        def _subscribe(observer: Observer):
            state = OperatorState(observer)
            retries = [0]

            def on_error(e):
                if not state.active:
                    return
                if count is not None and retries[0] >= count:
                    state.error(e)
                    return
                retries[0] += 1
                state.release("source")
                state.subscribe("source", self, state.next, on_error, state.completed)

            state.subscribe("source", self, state.next, on_error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def retry_with_delay(
        self,
        count: int | None = None,
        delay: float | Callable[[], float] = 1000,
        scheduler: Scheduler | None = None,
    ) -> Observable:
        """Like retry(), but wait delay ms (or delay() ms) before each resubscribe."""
        delay_fn = delay if callable(delay) else (lambda: delay)

        def _subscribe(observer: Observer):
            clock = scheduler or get_default_scheduler()
            state = OperatorState(observer)
            retries = [0]

            def resubscribe():
                state.forget("timer")
                state.subscribe("source", self, state.next, on_error, state.completed)

            def on_error(e):
                if not state.active:
                    return
                if count is not None and retries[0] >= count:
                    state.error(e)
                    return
                retries[0] += 1
                state.release("source")
                state.hold("timer", clock.schedule(resubscribe, delay_fn()))

            state.subscribe("source", self, state.next, on_error, state.completed)
            return state.reference()

        return self.create(_subscribe)

    def finalize(self, handler: Callable[[], Any]) -> Observable:
        """Call handler when the source errors or completes, before forwarding it."""

        def _subscribe(observer: Observer):
            state = OperatorState(observer)

            def on_error(e):
                if state.active:
                    state.done()
                    try:
                        handler()
                    except Exception as handler_error:
                        observer.on_error(handler_error)
                        return
                    observer.on_error(e)

            def on_completed():
                if state.active:
                    state.done()
                    try:
                        handler()
                    except Exception as handler_error:
                        observer.on_error(handler_error)
                        return
                    observer.on_completed()

            state.subscribe("source", self, state.next, on_error, on_completed)
            return state.reference()

        return self.create(_subscribe)
