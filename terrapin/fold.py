#! /usr/bin/env python3

"""Folds: the consumer side of a stream run.

A ``Fold`` describes how to consume a stream:
``initial()`` builds fresh state for each run,
``step(state, value)`` is called once per value,
``finish(state)`` turns the final state into the result.

``step`` (or ``initial``) may return ``stop(state)`` to stop pulling early.
The stream then releases what it holds and ``finish`` gets *state*.
"""

import typing as T


# typedef
TV = T.TypeVar('TV')
SV = T.TypeVar('SV')
RV = T.TypeVar('RV')


class Reduced(T.NamedTuple):
    """Final state, returned by a step that wants no more values."""
    state: T.Any


def stop(state: SV) -> Reduced:
    return Reduced(state)


class Fold(T.NamedTuple):
    initial: T.Callable[[], T.Any]
    step: T.Callable[[T.Any, T.Any], T.Any]
    finish: T.Callable[[T.Any], T.Any]



# stock folds

def _identity(state):
    return state


def reduce(func: T.Callable[[SV, TV], SV], initial: SV) -> Fold:
    """Left fold with *func* starting from *initial*."""
    return Fold(lambda: initial, func, _identity)


def collect() -> Fold:
    """Gather every value into a list."""
    def step(values, value):
        values.append(value)
        return values
    return Fold(list, step, _identity)


def count() -> Fold:
    return Fold(lambda: 0, lambda n, _: n + 1, _identity)


def drain() -> Fold:
    """Consume everything for side effects and return ``None``."""
    return Fold(lambda: None, lambda state, _: state, _identity)


def first(default: T.Any = None) -> Fold:
    """Return the first value, or *default*; stops after one value."""
    return Fold(lambda: default, lambda _, value: stop(value), _identity)


def last(default: T.Any = None) -> Fold:
    return Fold(lambda: default, lambda _, value: value, _identity)


def take(n: int) -> Fold:
    """Gather the first *n* values; stops as soon as it has them."""
    def initial():
        return stop([]) if n <= 0 else []

    def step(values, value):
        values.append(value)
        return stop(values) if len(values) >= n else values
    return Fold(initial, step, _identity)


def text(newline: str = '\n') -> Fold:
    """Join string values into one text, *newline* after each."""
    return Fold(
        list,
        lambda parts, value: parts.append(value + newline) or parts,
        ''.join,
    )
