#! /usr/bin/env python3

"""Text matchers consumed by grep, sed and find.

A matcher turns a text into an ordered list of candidate matches.
An empty list means no match; it is never an error.
Rewriting substitutes each non-overlapping candidate with its replacement
and passes unmatched spans through literally.

The pattern languages themselves are the standard library's:
``re`` for ``RegexMatcher`` and ``fnmatch`` for ``GlobMatcher``.
"""

import abc
import fnmatch
import re
import typing as T


class Match(T.NamedTuple):
    start: int
    end: int
    replacement: str


class Matcher(abc.ABC):

    @abc.abstractmethod
    def attempt_matches(self, text: str) -> T.List[Match]:
        """Return candidate matches in *text*, ordered by position."""

    def matches(self, text: str) -> bool:
        return bool(self.attempt_matches(text))

    def rewrite(self, text: str) -> str:
        """Replace every match, leaving the rest of *text* as is.

        Candidates overlapping an earlier accepted one are skipped.
        """
        parts = []
        cursor = 0
        for match in self.attempt_matches(text):
            if match.start < cursor:
                continue
            parts.append(text[cursor:match.start])
            parts.append(match.replacement)
            cursor = match.end
        parts.append(text[cursor:])
        return ''.join(parts)


class RegexMatcher(Matcher):
    """Matcher over a regular expression.

    :pattern:
        Compiled or not, searched with ``re.finditer``.
    :replacement:
        Template for ``Match.expand`` (backreferences such as ``\\1`` or
        ``\\g<name>`` are allowed), or a callable taking the ``re.Match``.
        Default is ``None``, which replaces a match with itself.
    :flags:
        Regular expression flags such as ``re.IGNORECASE``.
    """
    pattern: T.Pattern

    def __init__(
        self,
        pattern: T.Union[str, T.Pattern],
        replacement: T.Union[str, T.Callable[[T.Match], str], None] = None,
        flags: int = 0,
    ) -> None:
        self.pattern = re.compile(pattern, flags=flags)
        self.replacement = replacement

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.pattern.pattern!r})'

    def _replace(self, match: T.Match) -> str:
        if self.replacement is None:
            return match.group(0)
        if callable(self.replacement):
            return self.replacement(match)
        return match.expand(self.replacement)

    def attempt_matches(self, text: str) -> T.List[Match]:
        return [
            Match(m.start(), m.end(), self._replace(m))
            for m in self.pattern.finditer(text)
        ]


class LiteralMatcher(Matcher):
    """Matcher over every occurrence of a fixed string."""

    def __init__(self, literal: str, replacement: T.Optional[str] = None):
        if not literal:
            raise ValueError('literal must not be empty')
        self.literal = literal
        self.replacement = literal if replacement is None else replacement

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.literal!r})'

    def attempt_matches(self, text: str) -> T.List[Match]:
        found = []
        start = text.find(self.literal)
        while start != -1:
            end = start + len(self.literal)
            found.append(Match(start, end, self.replacement))
            start = text.find(self.literal, end)
        return found


class GlobMatcher(Matcher):
    """Unix glob match over the whole text, via ``fnmatch``."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.pattern!r})'

    def attempt_matches(self, text: str) -> T.List[Match]:
        if fnmatch.fnmatch(text, self.pattern):
            return [Match(0, len(text), text)]
        return []


def as_matcher(pattern: T.Union[str, T.Pattern, Matcher]) -> Matcher:
    """Accept a ``Matcher`` as is, compile anything else as a regex."""
    if isinstance(pattern, Matcher):
        return pattern
    return RegexMatcher(pattern)
