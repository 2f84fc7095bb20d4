"""Tests for Subject — push-based multicast source with operator chaining."""

from rxstream import Observable, Observer, Subject


class TestEmitSubscribe:
    """Core emit/subscribe behavior."""

    def test_subscribe_receives_emitted_values(self):
        subject = Subject()
        received = []
        subject.subscribe(received.append)
        subject.emit(1)
        subject.on_next(2)
        assert received == [1, 2]

    def test_multiple_subscribers(self):
        subject = Subject()
        a, b = [], []
        subject.subscribe(a.append)
        subject.subscribe(b.append)
        subject.emit("x")
        assert a == ["x"]
        assert b == ["x"]
        assert subject.observer_count == 2

    def test_multi_value_events(self, rec):
        subject = Subject()
        subject.subscribe(*rec.callbacks())
        subject.on_next(1, "a")
        assert rec.events == [("next", 1, "a")]

    def test_unsubscribe(self):
        subject = Subject()
        received = []
        ref = subject.subscribe(received.append)
        subject.emit(1)
        ref.cancel()
        subject.emit(2)
        assert received == [1]

    def test_unsubscribe_idempotent(self):
        subject = Subject()
        ref = subject.subscribe()
        ref.cancel()
        ref.cancel()  # should not raise
        assert subject.observer_count == 0

    def test_late_subscriber_misses_earlier_values(self):
        subject = Subject()
        subject.emit(1)
        received = []
        subject.subscribe(received.append)
        subject.emit(2)
        assert received == [2]


class TestTermination:
    def test_completion_reaches_everyone_once(self, rec):
        subject = Subject()
        subject.subscribe(*rec.callbacks())
        subject.on_completed()
        subject.on_completed()
        subject.emit(1)
        assert rec.events == [("completed",)]
        assert subject.stopped
        assert subject.observer_count == 0

    def test_late_subscriber_gets_terminal_event(self, rec):
        subject = Subject()
        subject.on_error("gone")
        subject.subscribe(*rec.callbacks())
        assert rec.events == [("error", "gone")]

    def test_late_subscriber_after_completion(self, rec):
        subject = Subject()
        subject.on_completed()
        subject.subscribe(*rec.callbacks())
        assert rec.events == [("completed",)]

    def test_dispose_drops_subscribers_silently(self, rec):
        subject = Subject()
        subject.subscribe(*rec.callbacks())
        subject.dispose()
        subject.emit(1)
        subject.on_completed()
        assert rec.events == []
        assert subject.stopped


class TestBridging:
    def test_as_observer_feeds_subject(self):
        subject = Subject()
        received = []
        subject.subscribe(received.append)
        Observable.of(1, 2).subscribe(subject.as_observer())
        assert received == [1, 2]
        assert subject.stopped

    def test_subscribing_an_observer(self):
        subject = Subject()
        received = []
        subject.subscribe(Observer(received.append))
        subject.emit("v")
        assert received == ["v"]

    def test_operators_return_plain_observables(self):
        subject = Subject()
        mapped = subject.map(lambda v: v * 2)
        assert type(mapped) is Observable
        received = []
        mapped.filter(lambda v: v > 2).subscribe(received.append)
        subject.emit(1)
        subject.emit(2)
        assert received == [4]

    def test_factories_on_subclass(self):
        out = []
        Subject.of(1).subscribe(out.append)
        assert out == [1]
