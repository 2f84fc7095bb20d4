"""Textual integration for rxstream. Opt-in — requires textual.

AppScheduler runs time-based operators on the app's own event loop, and
subscribe() delivers a stream's events to widget code safely: skipped while
the app is paused or not running, NoMatches from widget queries swallowed,
off-thread events marshaled through call_from_thread.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from rxstream.reference import Reference
from rxstream.scheduler import Scheduler

# Apps whose on_next deliveries are currently held back, by id(app).
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Drop on_next events bound for app's subscribers inside the block.

    Terminal events still arrive.
    """
    paused = id(app)
    _paused_apps.add(paused)
    try:
        yield
    finally:
        _paused_apps.discard(paused)


def is_safe(app) -> bool:
    """True when subscribe() may hand app a value: running and not paused."""
    return app.is_running and id(app) not in _paused_apps


class AppScheduler(Scheduler):
    """Scheduler backed by app.set_timer. Call schedule() from the app's thread."""

    def __init__(self, app) -> None:
        self._app = app

    def schedule(self, action, delay_ms: float = 0) -> Reference:
        timer = self._app.set_timer(max(delay_ms or 0, 0) / 1000.0, action)
        return Reference(timer.stop)


def subscribe(app, observable, on_next, on_error=None, on_completed=None) -> Reference:
    """observable.subscribe() that safely bridges to Textual widgets.

    Terminal events are always delivered; only on_next is skipped while
    the app is not safe to query.
    """
    _main = threading.get_ident()

    def _guard(fn, skip_when_unsafe):
        def _guarded(*args):
            if fn is None or (skip_when_unsafe and not is_safe(app)):
                return
            if threading.get_ident() != _main:
                app.call_from_thread(_safe, *args)
            else:
                _safe(*args)

        def _safe(*args):
            try:
                fn(*args)
            except NoMatches:
                pass

        return _guarded

    return observable.subscribe_with_callbacks(
        _guard(on_next, True),
        _guard(on_error, False),
        _guard(on_completed, False),
    )
