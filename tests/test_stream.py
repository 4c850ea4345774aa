#!/usr/bin/env python3
"""
Tests for the stream engine: leaves, combinators, laziness,
fold driving, and release of scoped resources on every ending.
"""

import itertools

import pytest

from terrapin import fold as folds
from terrapin.fold import Fold, stop
from terrapin.scoped import ScopedResource
from terrapin.stream import (
    Stream,
    choice,
    concat,
    effectful,
    empty,
    exhausted,
    from_iterable,
    once,
    perform,
    pure,
    run,
    sh,
    then,
    using,
)


def counter_source(tracker, limit=None):
    """effectful stream counting up, logging each production."""
    numbers = itertools.count(1)

    def action():
        n = next(numbers)
        if limit is not None and n > limit:
            return exhausted
        tracker.log(f'produce {n}')
        return n
    return effectful(action)


def tracked_resource(tracker, name='res'):
    def acquire():
        tracker.log(f'acquire {name}')
        return name, lambda: tracker.log(f'release {name}')
    return ScopedResource(acquire, name)


class TestLeaves:
    """Test the stream constructors."""

    def test_empty(self):
        assert empty().collect() == []

    def test_pure(self):
        assert pure('spam').collect() == ['spam']

    def test_once_runs_action_when_pulled(self, tracker):
        s = once(lambda: tracker.log('effect') or 42)
        assert tracker.events == []
        assert s.collect() == [42]
        assert tracker.events == ['effect']

    def test_perform_yields_nothing(self, tracker):
        s = perform(lambda: tracker.log('effect'))
        assert s.collect() == []
        assert tracker.events == ['effect']

    def test_effectful_until_exhausted(self, tracker):
        assert counter_source(tracker, limit=3).collect() == [1, 2, 3]

    def test_from_iterable_reruns(self):
        s = from_iterable(['a', 'b'])
        assert s.collect() == ['a', 'b']
        assert s.collect() == ['a', 'b']

    def test_source_must_be_callable(self):
        with pytest.raises(TypeError):
            Stream(['a', 'b'])


class TestCombinators:
    """Test sequencing, concatenation and choice."""

    def test_then_preserves_order(self):
        s = from_iterable([1, 2, 3]).then(
            lambda n: from_iterable([n] * n)
        )
        assert s.collect() == [1, 2, 2, 3, 3, 3]

    def test_then_function_form(self):
        s = then(pure(2), lambda n: from_iterable(range(n)))
        assert s.collect() == [0, 1]

    def test_then_interleaves_effects(self, tracker):
        def expand(n):
            return once(lambda: tracker.log(f'expand {n}') or n * 10)
        s = counter_source(tracker, limit=2).then(expand)
        assert s.collect() == [10, 20]
        assert tracker.events == [
            'produce 1', 'expand 1', 'produce 2', 'expand 2',
        ]

    def test_concat_in_order(self):
        s = concat(pure(1), empty(), from_iterable([2, 3]))
        assert s.collect() == [1, 2, 3]

    def test_plus_operator(self):
        assert (pure('a') + pure('b')).collect() == ['a', 'b']

    def test_choice_is_left_biased(self, tracker):
        left = from_iterable([1, 2]).map(lambda n: tracker.log(f'left {n}') or n)
        right = once(lambda: tracker.log('right') or 3)
        assert choice(left, right).collect() == [1, 2, 3]
        assert tracker.events == ['left 1', 'left 2', 'right']

    def test_map_filter(self):
        s = from_iterable(range(10)).filter(lambda n: n % 2).map(str)
        assert s.collect() == ['1', '3', '5', '7', '9']

    def test_drop(self):
        assert from_iterable(range(5)).drop(3).collect() == [3, 4]

    def test_no_caching_between_runs(self, tracker):
        s = counter_source(tracker, limit=2)
        s.collect()
        s.collect()
        assert tracker.count('produce 1') == 2


class TestLaziness:
    """Effects happen only when a value is needed."""

    def test_building_has_no_effect(self, tracker):
        s = counter_source(tracker).then(lambda n: pure(n)).map(str)
        assert tracker.events == []
        del s

    def test_take_on_infinite_source(self, tracker):
        s = counter_source(tracker).take(3)
        assert s.collect() == [1, 2, 3]
        assert tracker.events == ['produce 1', 'produce 2', 'produce 3']

    def test_take_zero_produces_nothing(self, tracker):
        assert counter_source(tracker).take(0).collect() == []
        assert tracker.events == []

    def test_step_sees_value_before_next_effect(self, tracker):
        def step(state, value):
            tracker.log(f'step {value}')
            return state
        run(counter_source(tracker, limit=2), Fold(lambda: None, step, lambda s: s))
        assert tracker.events == [
            'produce 1', 'step 1', 'produce 2', 'step 2',
        ]


class TestRun:
    """Test driving streams with folds."""

    def make_fold(self, tracker, limit=None):
        def step(n, _):
            n += 1
            return stop(n) if limit is not None and n >= limit else n

        def finish(n):
            tracker.log('finish')
            return n
        return Fold(lambda: 0, step, finish)

    def test_counting_fold_natural_end(self, tracker):
        n = run(counter_source(tracker, limit=5), self.make_fold(tracker))
        assert n == 5
        assert tracker.count('finish') == 1

    def test_counting_fold_early_stop(self, tracker):
        n = run(counter_source(tracker), self.make_fold(tracker, limit=4))
        assert n == 4
        assert tracker.count('finish') == 1
        assert tracker.count('produce 5') == 0

    def test_finish_skipped_on_error(self, tracker):
        def broken():
            yield 1
            raise RuntimeError('boom')
        with pytest.raises(RuntimeError):
            run(Stream(broken), self.make_fold(tracker))
        assert tracker.count('finish') == 0

    def test_initial_stop_skips_source(self, tracker):
        assert counter_source(tracker).run(folds.take(0)) == []
        assert tracker.events == []

    def test_stock_folds(self):
        s = from_iterable(['a', 'b', 'c'])
        assert s.run(folds.collect()) == ['a', 'b', 'c']
        assert s.run(folds.count()) == 3
        assert s.run(folds.first()) == 'a'
        assert s.run(folds.last()) == 'c'
        assert s.run(folds.take(2)) == ['a', 'b']
        assert s.run(folds.text()) == 'a\nb\nc\n'
        assert s.run(folds.reduce(lambda acc, v: acc + v, '')) == 'abc'
        assert s.run(folds.drain()) is None

    def test_first_default(self):
        assert empty().first('none') == 'none'

    def test_sh_runs_effects(self, tracker):
        sh(counter_source(tracker, limit=2))
        assert tracker.events == ['produce 1', 'produce 2']

    def test_iteration(self):
        assert list(from_iterable([1, 2])) == [1, 2]


class TestRelease:
    """Resources acquired by a stream are released on every ending."""

    def using_values(self, tracker, values):
        return using(tracked_resource(tracker)).then(
            lambda _: from_iterable(values)
        )

    def test_release_on_exhaustion(self, tracker):
        assert self.using_values(tracker, [1, 2]).collect() == [1, 2]
        assert tracker.events == ['acquire res', 'release res']

    def test_release_before_finish_on_early_stop(self, tracker):
        def finish(values):
            tracker.log('finish')
            return values
        fold = Fold(list, lambda vs, v: stop(vs + [v]), finish)
        s = using(tracked_resource(tracker)).then(lambda _: counter_source(tracker))
        assert s.run(fold) == [1]
        assert tracker.events == [
            'acquire res', 'produce 1', 'release res', 'finish',
        ]

    def test_release_on_take(self, tracker):
        s = self.using_values(tracker, itertools.count()).take(2)
        assert s.collect() == [0, 1]
        assert tracker.count('release res') == 1

    def test_release_on_error_in_step(self, tracker):
        def step(state, value):
            raise ValueError('bad value')
        with pytest.raises(ValueError):
            self.using_values(tracker, [1]).run(Fold(list, step, list))
        assert tracker.events == ['acquire res', 'release res']

    def test_release_on_error_in_producer(self, tracker):
        def broken(_):
            raise OSError('gone')
        with pytest.raises(OSError):
            using(tracked_resource(tracker)).then(broken).collect()
        assert tracker.count('release res') == 1

    def test_nested_resources_release_inner_first(self, tracker):
        s = using(tracked_resource(tracker, 'outer')).then(
            lambda _: using(tracked_resource(tracker, 'inner'))
        ).then(lambda _: counter_source(tracker))
        assert s.take(1).collect() == [1]
        assert tracker.events == [
            'acquire outer', 'acquire inner', 'produce 1',
            'release inner', 'release outer',
        ]

    def test_abandon_enclosing_composition(self, tracker):
        inner = self.using_values(tracker, itertools.count())
        s = concat(inner.filter(lambda n: n > 2), pure('never'))
        assert s.take(1).collect() == [3]
        assert tracker.count('release res') == 1

    def test_each_run_acquires_afresh(self, tracker):
        s = self.using_values(tracker, [1])
        s.collect()
        s.collect()
        assert tracker.count('acquire res') == 2
        assert tracker.count('release res') == 2
