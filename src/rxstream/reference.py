"""Reference — the cancellation handle returned by every subscription.

Cancelling is idempotent: the wrapped closure runs at most once and is
dropped afterwards so it can release whatever it captured.
"""

from __future__ import annotations

from typing import Callable


class Reference:
    """Cancellation handle wrapping a single closure."""

    __slots__ = ("_cancel_fn", "_cancelled")

    def __init__(self, cancel_fn: Callable[[], None] | None = None) -> None:
        self._cancel_fn = cancel_fn
        self._cancelled = False

    @classmethod
    def create(cls, cancel_fn: Callable[[], None] | None = None) -> Reference:
        return cls(cancel_fn)

    @classmethod
    def empty(cls) -> Reference:
        """A reference with nothing to cancel."""
        return cls(None)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Run the cancel closure. Later calls do nothing."""
        if self._cancelled:
            return
        self._cancelled = True
        fn, self._cancel_fn = self._cancel_fn, None
        if fn is not None:
            fn()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"Reference({state})"
