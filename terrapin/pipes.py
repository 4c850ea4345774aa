#! /usr/bin/env python3

"""This module implements common stream operations through pipe.

Every operator takes a ``Stream`` on the left of ``|`` and returns a new
``Stream``, so the result stays lazy and keeps its release guarantees.

.. code:: python
    >>> from terrapin.stream import from_iterable
    >>> (from_iterable(['ham', 'jam', 'spam', 'eggs']) | grep('.a')).collect()
    ['ham', 'jam', 'spam']
"""

import typing as T

from pathlib import Path

from pipe import Pipe

from terrapin.matcher import GlobMatcher, Matcher, as_matcher
from terrapin.stream import Stream, from_iterable


# typedef
PatternLike = T.Union[str, T.Pattern, Matcher]


def _text(item: T.Union[str, Path]) -> str:
    return str(item) if isinstance(item, Path) else item


@Pipe
def grep(
    stream: Stream[T.Union[str, Path]],
    pattern: PatternLike,
    invert: bool = False,
    only_matching: bool = False,
) -> Stream[T.Union[str, Path]]:
    """Keep items having at least one match anywhere in them.

    The pre-initialized inverted version ``notgrep`` is also provided.

    :pattern:
        A ``Matcher``, or a regular expression.
    :invert:
        If ``True``, items that do *not* match pass through instead.
        Default is ``False``.
    :only_matching:
        Like ``--only-matching`` option of ``grep``, yield the text of
        each match instead of the whole item.
        Ignored when *invert* is set.
    """
    matcher = as_matcher(pattern)

    def matching(item):
        text = _text(item)
        found = matcher.attempt_matches(text)
        if invert:
            return [] if found else [item]
        if only_matching:
            return [text[m.start:m.end] for m in found]
        return [item] if found else []
    return stream.then(lambda item: from_iterable(matching(item)))

notgrep = grep(invert=True)


@Pipe
def sed(
    stream: Stream[T.Union[str, Path]], pattern: PatternLike
) -> Stream[T.Union[str, Path]]:
    """Rewrite every match of *pattern* in each item.

    Unmatched text passes through unchanged, as do items without a match.
    ``Path`` items come out as ``Path``.
    """
    matcher = as_matcher(pattern)

    def rewrite(item):
        replaced = matcher.rewrite(_text(item))
        return Path(replaced) if isinstance(item, Path) else replaced
    return stream.map(rewrite)


@Pipe
def like(
    stream: Stream[T.Union[str, Path]], pattern: str, invert: bool = False
) -> Stream[T.Union[str, Path]]:
    """Filter strings [not] matching the unix glob pattern given.

    .. code:: python
        >>> (from_iterable(['ham', 'jam', 'spam', 'eggs']) | like('*s')).collect()
        ['eggs']

    The pre-initialized inverted version ``notlike`` is also provided.
    """
    matcher = GlobMatcher(pattern)
    return stream.filter(lambda item: matcher.matches(_text(item)) != invert)

notlike = like(invert=True)


@Pipe
def select(stream: Stream, func: T.Callable[[T.Any], T.Any]) -> Stream:
    return stream.map(func)


@Pipe
def where(stream: Stream, predicate: T.Callable[[T.Any], bool]) -> Stream:
    return stream.filter(predicate)


@Pipe
def head(stream: Stream, n: int) -> Stream:
    """Stop after *n* items; upstream is released without producing more."""
    return stream.take(n)


@Pipe
def skip(stream: Stream, n: int) -> Stream:
    return stream.drop(n)
