"""Tests for transforming operators."""

from types import SimpleNamespace

from rxstream import Observable, Subject


class TestMap:
    def test_transforms_values(self, rec):
        Observable.of(1, 2, 3).map(lambda x: x * 2).subscribe(*rec.callbacks())
        assert rec.values == [2, 4, 6]
        assert rec.completed

    def test_map_then_filter(self, rec):
        Observable.from_range(1, 5).map(lambda x: x * 2).filter(lambda x: x > 4).subscribe(*rec.callbacks())
        assert rec.events == [("next", 6), ("next", 8), ("next", 10), ("completed",)]

    def test_receives_all_values_of_an_event(self):
        out = []
        Observable.from_table(["a"], keys=True).map(lambda v, k: f"{k}:{v}").subscribe(out.append)
        assert out == ["0:a"]

    def test_exception_becomes_single_error_and_unsubscribes(self, rec):
        subject = Subject()

        def explode(x):
            if x == 2:
                raise ValueError("two")
            return x

        subject.map(explode).subscribe(*rec.callbacks())
        subject.on_next(1)
        subject.on_next(2)
        subject.on_next(3)
        subject.on_completed()
        assert rec.values == [1]
        assert len(rec.errors) == 1
        assert isinstance(rec.errors[0], ValueError)
        assert not rec.completed
        assert subject.observer_count == 0

    def test_cancel_detaches_from_source(self):
        subject = Subject()
        out = []
        ref = subject.map(lambda x: x).subscribe(out.append)
        subject.on_next(1)
        ref.cancel()
        ref.cancel()
        subject.on_next(2)
        assert out == [1]
        assert subject.observer_count == 0


class TestPluck:
    def test_mapping_keys(self):
        out = []
        Observable.of({"a": {"b": 1}}, {"a": {"b": 2}}).pluck("a", "b").subscribe(out.append)
        assert out == [1, 2]

    def test_attributes_and_indexes(self):
        out = []
        Observable.of(SimpleNamespace(items=["x", "y"])).pluck("items", 1).subscribe(out.append)
        assert out == ["y"]

    def test_missing_key_gives_none(self):
        out = []
        Observable.of({}).pluck("nope").subscribe(out.append)
        assert out == [None]

    def test_bad_key_type_errors(self, rec):
        Observable.of({}).pluck(1.5).subscribe(*rec.callbacks())
        assert rec.errors == ["pluck key must be a string"]

    def test_no_keys_is_identity(self):
        obs = Observable.of(1)
        assert obs.pluck() is obs


class TestPackUnpackUnwrap:
    def test_pack(self):
        out = []
        Observable.from_table(["a"], keys=True).pack().subscribe(out.append)
        assert out == [("a", 0)]

    def test_unpack(self, rec):
        Observable.of((1, 2)).unpack().subscribe(*rec.callbacks())
        assert rec.events[0] == ("next", 1, 2)

    def test_unwrap(self, rec):
        Observable.of((1, 2)).unpack().unwrap().subscribe(*rec.callbacks())
        assert rec.events == [("next", 1), ("next", 2), ("completed",)]


class TestScan:
    def test_emits_running_total(self):
        out = []
        Observable.of(1, 2, 3).scan(lambda a, b: a + b, 0).subscribe(out.append)
        assert out == [1, 3, 6]

    def test_without_seed_first_value_starts_accumulation(self):
        calls = []

        def add(a, b):
            calls.append((a, b))
            return a + b

        out = []
        Observable.of(1, 2, 3).scan(add).subscribe(out.append)
        assert out == [1, 3, 6]
        assert calls == [(1, 2), (3, 3)]

    def test_accumulator_error(self, rec):
        Observable.of(1, 2).scan(lambda a, b: 1 / 0, 0).subscribe(*rec.callbacks())
        assert isinstance(rec.errors[0], ZeroDivisionError)
        assert rec.values == []


class TestStartWith:
    def test_prepends_values_as_one_event(self, rec):
        Observable.of(3).start_with(1, 2).subscribe(*rec.callbacks())
        assert rec.events == [("next", 1, 2), ("next", 3), ("completed",)]


class TestTap:
    def test_side_effects_do_not_alter_stream(self):
        seen, out, done = [], [], []
        Observable.of(1, 2).tap(seen.append, None, lambda: done.append(True)).subscribe(out.append)
        assert seen == [1, 2]
        assert out == [1, 2]
        assert done == [True]

    def test_tap_error_handler_runs_before_forwarding(self, rec):
        seen = []
        Observable.throw("boom").tap(None, seen.append).subscribe(*rec.callbacks())
        assert seen == ["boom"]
        assert rec.errors == ["boom"]

    def test_failing_tap_becomes_error(self, rec):
        def bad(_x):
            raise RuntimeError("tap")

        Observable.of(1, 2).tap(bad).subscribe(*rec.callbacks())
        assert rec.values == []
        assert isinstance(rec.errors[0], RuntimeError)


class TestBuffer:
    def test_groups_values(self, rec):
        Observable.of(1, 2, 3, 4, 5).buffer(2).subscribe(*rec.callbacks())
        assert rec.events == [("next", 1, 2), ("next", 3, 4), ("next", 5), ("completed",)]

    def test_flushes_before_error(self, rec):
        subject = Subject()
        subject.wrap(3).subscribe(*rec.callbacks())
        subject.on_next(1)
        subject.on_error("boom")
        assert rec.events == [("next", 1), ("error", "boom")]

    def test_buffers_are_per_subscription(self):
        subject = Subject()
        buffered = subject.buffer(2)
        a, b = [], []
        buffered.subscribe(lambda *v: a.append(v))
        subject.on_next(1)
        buffered.subscribe(lambda *v: b.append(v))
        subject.on_next(2)
        subject.on_next(3)
        assert a == [(1, 2)]
        assert b == [(2, 3)]
