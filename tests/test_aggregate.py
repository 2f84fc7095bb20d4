"""Tests for aggregating operators."""

from rxstream import Observable, Subject


class TestReduce:
    def test_with_seed(self, rec):
        Observable.of(1, 2, 3, 4).reduce(lambda a, b: a + b, 0).subscribe(*rec.callbacks())
        assert rec.events == [("next", 10), ("completed",)]

    def test_without_seed(self):
        out = []
        Observable.of(1, 2, 3, 4).reduce(lambda a, b: a + b).subscribe(out.append)
        assert out == [10]

    def test_empty_with_seed_emits_seed(self):
        out = []
        Observable.empty().reduce(lambda a, b: a + b, 5).subscribe(out.append)
        assert out == [5]

    def test_empty_without_seed_emits_nothing(self, rec):
        Observable.empty().reduce(lambda a, b: a + b).subscribe(*rec.callbacks())
        assert rec.events == [("completed",)]

    def test_accumulator_error(self, rec):
        Observable.of(1, 2).reduce(lambda a, b: a / 0).subscribe(*rec.callbacks())
        assert isinstance(rec.errors[0], ZeroDivisionError)

    def test_emits_only_on_completion(self):
        subject = Subject()
        out = []
        subject.reduce(lambda a, b: a + b).subscribe(out.append)
        subject.on_next(1)
        subject.on_next(2)
        assert out == []
        subject.on_completed()
        assert out == [3]


class TestArithmetic:
    def test_count(self):
        out = []
        Observable.of("a", "b", "c").count().subscribe(out.append)
        assert out == [3]

    def test_count_with_predicate(self):
        out = []
        Observable.from_range(1, 10).count(lambda x: x > 7).subscribe(out.append)
        assert out == [3]

    def test_count_empty(self):
        out = []
        Observable.empty().count().subscribe(out.append)
        assert out == [0]

    def test_sum(self):
        out = []
        Observable.of(1, 2, 3).sum().subscribe(out.append)
        assert out == [6]

    def test_sum_empty_is_zero(self):
        out = []
        Observable.empty().sum().subscribe(out.append)
        assert out == [0]

    def test_min_max(self):
        low, high = [], []
        Observable.of(4, 1, 9).min().subscribe(low.append)
        Observable.of(4, 1, 9).max().subscribe(high.append)
        assert low == [1]
        assert high == [9]

    def test_average(self):
        out = []
        Observable.of(1, 2, 3, 4).average().subscribe(out.append)
        assert out == [2.5]

    def test_average_empty(self, rec):
        Observable.empty().average().subscribe(*rec.callbacks())
        assert rec.events == [("completed",)]


class TestPredicates:
    def test_all_true(self, rec):
        Observable.of(2, 4).all(lambda x: x % 2 == 0).subscribe(*rec.callbacks())
        assert rec.events == [("next", True), ("completed",)]

    def test_all_short_circuits(self):
        subject = Subject()
        out = []
        subject.all(lambda x: x > 0).subscribe(out.append)
        subject.on_next(1)
        subject.on_next(-1)
        assert out == [False]
        assert subject.observer_count == 0

    def test_all_empty_is_true(self):
        out = []
        Observable.empty().all().subscribe(out.append)
        assert out == [True]

    def test_contains(self, rec):
        Observable.of(1, 2, 3).contains(2).subscribe(*rec.callbacks())
        assert rec.events == [("next", True), ("completed",)]

    def test_contains_checks_every_value_of_an_event(self):
        out = []
        Observable.from_table(["a"], keys=True).contains(0).subscribe(out.append)
        assert out == [True]

    def test_contains_missing(self):
        out = []
        Observable.of(1, 2).contains(5).subscribe(out.append)
        assert out == [False]
