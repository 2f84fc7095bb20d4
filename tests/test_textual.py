"""Tests for rxstream.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from rxstream import Observable, Subject
from rxstream import textual as stx


class _MockTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []
        self.timers = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)

    def set_timer(self, delay, callback):
        timer = _MockTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_timers(self):
        timers, self.timers = self.timers, []
        for timer in timers:
            if not timer.stopped:
                timer.callback()


class TestSubscribe:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        subject = Subject()
        effects = []
        stx.subscribe(app, subject, effects.append)
        subject.emit(2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        subject = Subject()
        effects = []
        stx.subscribe(app, subject, effects.append)
        with stx.pause(app):
            subject.emit(2)
        subject.emit(3)
        assert effects == [3]

    def test_fires_when_safe(self):
        app = _MockApp()
        effects = []
        stx.subscribe(app, Observable.of(1, 2), effects.append)
        assert effects == [1, 2]

    def test_terminal_events_delivered_while_paused(self):
        app = _MockApp()
        subject = Subject()
        done = []
        stx.subscribe(app, subject, lambda v: None, None, lambda: done.append(True))
        with stx.pause(app):
            subject.on_completed()
        assert done == [True]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        subject = Subject()

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        ref = stx.subscribe(app, subject, _raise_nomatch)
        subject.emit(2)  # should not raise
        ref.cancel()

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        subject = Subject()

        def _raise_value_error(v):
            raise ValueError("boom")

        stx.subscribe(app, subject, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            subject.emit(2)

    def test_cancel_stops_delivery(self):
        app = _MockApp()
        subject = Subject()
        effects = []
        ref = stx.subscribe(app, subject, effects.append)
        subject.emit(2)
        ref.cancel()
        subject.emit(3)
        assert effects == [2]

    def test_thread_marshal(self):
        """Events from a background thread use call_from_thread."""
        app = _MockApp()
        subject = Subject()
        effects = []
        stx.subscribe(app, subject, effects.append)

        t = threading.Thread(target=lambda: subject.emit(2))
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1


class TestAppScheduler:
    def test_schedules_through_set_timer(self):
        app = _MockApp()
        ran = []
        stx.AppScheduler(app).schedule(lambda: ran.append(True), 250)
        assert app.timers[0].delay == 0.25
        app.fire_timers()
        assert ran == [True]

    def test_cancel_stops_timer(self):
        app = _MockApp()
        ran = []
        ref = stx.AppScheduler(app).schedule(lambda: ran.append(True), 10)
        ref.cancel()
        app.fire_timers()
        assert ran == []

    def test_drives_debounce(self):
        app = _MockApp()
        subject = Subject()
        out = []
        subject.debounce(100, stx.AppScheduler(app)).subscribe(out.append)
        subject.emit(1)
        subject.emit(2)
        app.fire_timers()
        assert out == [2]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
