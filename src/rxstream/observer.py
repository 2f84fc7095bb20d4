"""Observer — a sink with three callbacks and a one-shot terminal state.

Once on_error or on_completed has been delivered the observer is stopped
and silently ignores anything else that reaches it.
"""

from __future__ import annotations

from typing import Any, Callable


def _noop(*_args: Any) -> None:
    pass


class Observer:
    """Receives values pushed by an Observable."""

    __slots__ = ("_on_next", "_on_error", "_on_completed", "stopped")

    def __init__(
        self,
        on_next: Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> None:
        self._on_next = on_next or _noop
        self._on_error = on_error or _noop
        self._on_completed = on_completed or _noop
        self.stopped = False

    @classmethod
    def create(
        cls,
        on_next: Callable[..., Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
        on_completed: Callable[[], Any] | None = None,
    ) -> Observer:
        return cls(on_next, on_error, on_completed)

    @staticmethod
    def is_observer(thing: object) -> bool:
        return isinstance(thing, Observer)

    def on_next(self, *values: Any) -> None:
        """Push values. Ignored after termination."""
        if not self.stopped:
            self._on_next(*values)

    def on_error(self, error: Any = None) -> None:
        """Terminate with an error. Only the first terminal call is delivered."""
        if not self.stopped:
            self.stopped = True
            self._on_error(error)

    def on_completed(self) -> None:
        """Terminate normally. Only the first terminal call is delivered."""
        if not self.stopped:
            self.stopped = True
            self._on_completed()

    def __repr__(self) -> str:
        state = "stopped" if self.stopped else "active"
        return f"Observer({state})"
