"""Subject — an Observable that host code pushes into directly.

A Subject is both ends at once: producers call on_next/on_error/on_completed
(or emit) on it, and every current subscriber receives the event. It is the
bridge for event sources that are not Observables themselves: UI callbacks,
file watchers, socket handlers.

Termination is sticky: once errored or completed, later subscribers get the
terminal event immediately and nothing else is delivered.
"""

from __future__ import annotations

from typing import Any

from rxstream.observable import Observable
from rxstream.observer import Observer
from rxstream.reference import Reference

_COMPLETED = object()


class Subject(Observable):
    """Multicast push source."""

    __slots__ = ("_observers", "_terminal", "_disposed")

    def __init__(self) -> None:
        super().__init__(self._attach)
        self._observers: list[Observer] = []
        self._terminal: tuple | None = None  # (error,) or (_COMPLETED,)
        self._disposed = False

    @property
    def stopped(self) -> bool:
        return self._terminal is not None or self._disposed

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def _attach(self, observer: Observer) -> Reference:
        if self._terminal is not None:
            (event,) = self._terminal
            if event is _COMPLETED:
                observer.on_completed()
            else:
                observer.on_error(event)
            return Reference.empty()
        if self._disposed:
            return Reference.empty()

        self._observers.append(observer)

        def _detach() -> None:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass  # already removed

        return Reference(_detach)

    def on_next(self, *values: Any) -> None:
        """Push values to every current subscriber."""
        if self.stopped:
            return
        for observer in list(self._observers):
            observer.on_next(*values)

    emit = on_next

    def on_error(self, error: Any = None) -> None:
        if self.stopped:
            return
        self._terminal = (error,)
        observers, self._observers = self._observers, []
        for observer in observers:
            observer.on_error(error)

    def on_completed(self) -> None:
        if self.stopped:
            return
        self._terminal = (_COMPLETED,)
        observers, self._observers = self._observers, []
        for observer in observers:
            observer.on_completed()

    def as_observer(self) -> Observer:
        """An Observer feeding this subject, for subscribing it to another source."""
        return Observer(self.on_next, self.on_error, self.on_completed)

    def dispose(self) -> None:
        """Drop every subscriber without notifying them."""
        self._disposed = True
        self._observers.clear()

    def __repr__(self) -> str:
        state = "stopped" if self.stopped else "active"
        return f"Subject({len(self._observers)} observers, {state})"
