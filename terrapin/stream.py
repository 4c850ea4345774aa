#! /usr/bin/env python3

"""Lazy, effectful, re-runnable streams.

A ``Stream`` wraps a source: a callable that returns a fresh generator every
time the stream is run. Nothing is produced and no effect happens until a
consumer pulls, and each pull performs only the effects needed for the next
value.

Streams are run against a ``Fold`` (see ``terrapin.fold``).
``run`` always closes the source generator before calling ``finish``,
whether the source ran dry or the fold stopped early. Closing unwinds every
``with`` block the suspended generators are in, which is how resources
acquired through ``using`` are released on early stop.

.. code:: python
    >>> s = pure(1) + from_iterable([2, 3])
    >>> s.then(lambda n: from_iterable([n] * n)).collect()
    [1, 2, 2, 3, 3, 3]
"""

import contextlib
import typing as T

from terrapin import fold as folds
from terrapin.fold import Fold, Reduced
from terrapin.scoped import ScopedResource


# typedef
TV = T.TypeVar('TV')
UV = T.TypeVar('UV')
Source = T.Callable[[], T.Iterator[TV]]


class _Exhausted(object):
    """Sentinel returned by an ``effectful`` action at end of input."""

    def __repr__(self) -> str:
        return 'exhausted'

exhausted = _Exhausted()


@contextlib.contextmanager
def _opened(stream: 'Stream') -> T.Iterator[T.Iterator]:
    """Start a run of *stream*, closing its iterator on the way out.

    Plain iterators such as ``iter(list)`` have no ``close`` and hold nothing.
    """
    values = stream._source()
    try:
        yield values
    finally:
        close = getattr(values, 'close', None)
        if close is not None:
            close()


class Stream(T.Generic[TV]):
    """A lazy, possibly infinite, ordered sequence of effectful values.

    :source:
        Zero-argument callable returning a new iterator for each run.
        Generators are preferred, since closing them releases whatever
        they hold.
    """

    def __init__(self, source: Source) -> None:
        if not callable(source):
            raise TypeError('source must be a callable returning an iterator')
        self._source = source

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._source!r})'

    def __iter__(self) -> T.Iterator[TV]:
        """Iterate a fresh run.

        Resources are released when the iterator is exhausted or closed;
        prefer ``run`` when the loop may stop early.
        """
        return self._source()

    def __add__(self, other: 'Stream[TV]') -> 'Stream[TV]':
        if not isinstance(other, Stream):
            return NotImplemented
        return concat(self, other)

    # Running

    def run(self, fold: Fold) -> T.Any:
        """Drive the stream with *fold* and return ``fold.finish(state)``.

        ``finish`` runs exactly once, after exhaustion or after the fold
        returned ``stop``; the source is closed before it runs.
        Errors from the source or from ``step`` propagate after the source
        is closed, and ``finish`` is skipped.
        """
        state = fold.initial()
        if isinstance(state, Reduced):
            return fold.finish(state.state)
        with _opened(self) as values:
            for value in values:
                state = fold.step(state, value)
                if isinstance(state, Reduced):
                    state = state.state
                    break
        return fold.finish(state)

    def collect(self) -> T.List[TV]:
        return self.run(folds.collect())

    def count(self) -> int:
        return self.run(folds.count())

    def first(self, default: T.Any = None) -> T.Optional[TV]:
        return self.run(folds.first(default))

    # Combinators

    def then(self, func: T.Callable[[TV], 'Stream[UV]']) -> 'Stream[UV]':
        return then(self, func)

    def map(self, func: T.Callable[[TV], UV]) -> 'Stream[UV]':
        """Apply *func* to each value as it is pulled."""
        def source():
            with _opened(self) as values:
                for value in values:
                    yield func(value)
        return Stream(source)

    def filter(self, predicate: T.Callable[[TV], bool]) -> 'Stream[TV]':
        def source():
            with _opened(self) as values:
                for value in values:
                    if predicate(value):
                        yield value
        return Stream(source)

    def take(self, n: int) -> 'Stream[TV]':
        """Stop after the *n*-th value without producing the next one."""
        def source():
            if n <= 0:
                return
            with _opened(self) as values:
                for idx, value in enumerate(values, 1):
                    yield value
                    if idx >= n:
                        return
        return Stream(source)

    def drop(self, n: int) -> 'Stream[TV]':
        """Skip the first *n* values."""
        def source():
            with _opened(self) as values:
                for idx, value in enumerate(values):
                    if idx >= n:
                        yield value
        return Stream(source)



# Leaves

def empty() -> Stream:
    return Stream(lambda: iter(()))


def pure(value: TV) -> Stream[TV]:
    """Yield *value* once, with no effect."""
    def source():
        yield value
    return Stream(source)


def once(action: T.Callable[[], TV]) -> Stream[TV]:
    """Run *action* when pulled and yield its result once."""
    def source():
        yield action()
    return Stream(source)


def perform(action: T.Callable[[], T.Any]) -> Stream:
    """Run *action* when reached, yielding nothing."""
    def source():
        action()
        return
        yield
    return Stream(source)


def effectful(action: T.Callable[[], T.Any]) -> Stream:
    """Call *action* once per pulled value until it returns ``exhausted``.

    The action may never return ``exhausted``, making the stream infinite;
    such streams are only safe with a fold or an operator that stops.
    """
    def source():
        while True:
            value = action()
            if value is exhausted:
                return
            yield value
    return Stream(source)


def from_iterable(iterable: T.Iterable[TV]) -> Stream[TV]:
    """Stream over *iterable*, calling ``iter`` afresh on every run."""
    return Stream(lambda: iter(iterable))


def using(resource: ScopedResource[TV]) -> Stream[TV]:
    """Acquire *resource*, yield its value once, release on exit.

    The resource stays held while everything bound after it with ``then``
    runs, and is released when that composition is exhausted, fails, or is
    abandoned by its consumer.
    """
    def source():
        with resource.scope() as value:
            yield value
    return Stream(source)



# Combinators

def then(stream: Stream[TV], func: T.Callable[[TV], Stream[UV]]) -> Stream[UV]:
    """For each value of *stream*, splice in the values of ``func(value)``.

    Order is preserved: all of ``func(a)`` precedes the value after *a*.
    *func* is only called when its input value is pulled.
    """
    def source():
        with _opened(stream) as values:
            for value in values:
                with _opened(func(value)) as inner:
                    yield from inner
    return Stream(source)


def concat(*streams: Stream[TV]) -> Stream[TV]:
    """Run each stream to completion, in order."""
    def source():
        for stream in streams:
            with _opened(stream) as values:
                yield from values
    return Stream(source)


def choice(left: Stream[TV], right: Stream[TV]) -> Stream[TV]:
    """Left-biased alternative: all of *left*, then all of *right*.

    Nothing is raced; *right* starts only after *left* is exhausted.
    """
    return concat(left, right)


def run(stream: Stream[TV], fold: Fold) -> T.Any:
    return stream.run(fold)

feed = run


def sh(stream: Stream) -> None:
    """Run *stream* only for its effects."""
    stream.run(folds.drain())
