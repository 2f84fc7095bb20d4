"""Per-subscription operator state — the shared termination and cancel plumbing.

Every operator builds one OperatorState inside its subscribe function. The
state owns the `active` flag and every upstream Reference and timer the
subscription creates, keyed by name, and tears them all down in done().

Invariants:
- error()/completed() reach the downstream observer at most once.
- After done(), any Reference handed to the state is cancelled on arrival.
- A keyed subscription that was superseded while its own subscribe() call
  was still running (e.g. a synchronous error that triggered a resubscribe)
  is cancelled instead of overwriting the newer one.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Callable, Hashable

from rxstream.observer import Observer
from rxstream.reference import Reference

if TYPE_CHECKING:
    from rxstream.observable import Observable


def identity(*values: Any) -> Any:
    """Return the single value, or a tuple when given several."""
    if len(values) == 1:
        return values[0]
    return values if values else None


def constant(value: Any) -> Callable[..., Any]:
    return lambda *_args: value


def noop(*_args: Any) -> None:
    pass


class sourcemethod:
    """Classmethod over a list of sources that also works on an instance.

    Observable.zip(a, b) passes (a, b); a.zip(b) passes (a, b) too.
    """

    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn
        functools.update_wrapper(self, fn)

    def __get__(self, instance: Any, owner: type) -> Callable[..., Any]:
        if instance is None:
            return functools.partial(self.fn, owner)
        return functools.partial(self.fn, type(instance), instance)


class OperatorState:
    """Mutable state for one subscription of one operator."""

    __slots__ = ("observer", "active", "_refs", "_sinks")

    def __init__(self, observer: Observer) -> None:
        self.observer = observer
        self.active = True
        self._refs: dict[Hashable, Reference] = {}
        self._sinks: dict[Hashable, Observer] = {}

    # --- Ownership ---

    def hold(self, key: Hashable, ref: Reference | None) -> None:
        """Own ref under key, cancelling whatever was held there before."""
        previous = self._refs.pop(key, None)
        if previous is not None and previous is not ref:
            previous.cancel()
        if ref is None:
            return
        if self.active:
            self._refs[key] = ref
        else:
            ref.cancel()

    def release(self, key: Hashable) -> None:
        """Cancel and forget the subscription held under key."""
        sink = self._sinks.pop(key, None)
        if sink is not None:
            sink.stopped = True
        ref = self._refs.pop(key, None)
        if ref is not None:
            ref.cancel()

    def forget(self, key: Hashable) -> None:
        """Drop whatever is held under key without cancelling it.

        For subscriptions that already finished on their own.
        """
        self._sinks.pop(key, None)
        self._refs.pop(key, None)

    def holds(self, key: Hashable) -> bool:
        return key in self._refs

    def subscribe(
        self,
        key: Hashable,
        observable: Observable,
        on_next: Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> None:
        """Subscribe to observable and own the resulting Reference under key.

        The intermediate Observer is stopped on release or done(), so a
        synchronous source still looping inside subscribe() sees that it
        was cancelled before its Reference even exists.
        """
        if not self.active:
            return
        sink = Observer(on_next, on_error, on_completed)
        previous = self._sinks.get(key)
        if previous is not None:
            previous.stopped = True
        self._sinks[key] = sink
        ref = observable.subscribe_with_observer(sink)
        if self._sinks.get(key) is sink and not sink.stopped:
            self.hold(key, ref)
        else:
            if self._sinks.get(key) is sink:
                del self._sinks[key]
            ref.cancel()

    def done(self) -> None:
        """Deactivate and cancel everything owned. Safe to call repeatedly."""
        self.active = False
        for sink in self._sinks.values():
            sink.stopped = True
        self._sinks.clear()
        refs = list(self._refs.values())
        self._refs.clear()
        for ref in refs:
            ref.cancel()

    def reference(self) -> Reference:
        """The Reference handed back to the subscriber."""
        return Reference(self.done)

    # --- Forwarding ---

    def next(self, *values: Any) -> None:
        if self.active:
            self.observer.on_next(*values)

    def error(self, error: Any = None) -> None:
        if self.active:
            self.done()
            self.observer.on_error(error)

    def completed(self) -> None:
        if self.active:
            self.done()
            self.observer.on_completed()

    def attempt(self, fn: Callable[..., Any], *args: Any) -> bool:
        """Run fn; an exception becomes this subscription's error."""
        try:
            fn(*args)
        except Exception as e:
            self.error(e)
            return False
        return True
