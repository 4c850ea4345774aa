#! /usr/bin/env python3

"""Directory listing as streams: ls, ls_tree and find.

Entries come in the order the OS returns them; nothing is sorted.
The directory handle behind every listing is a scoped resource, closed
whether the listing is exhausted, fails, or is abandoned midway.
"""

import logging
import os
import typing as T

from pathlib import Path

from ..matcher import Matcher, as_matcher
from ..scoped import ScopedResource
from ..stream import Stream, pure
from .core import is_readable, testdir, to_text


logger = logging.getLogger(__name__)

# typedef
pathstr = T.NewType('pathstr', T.Union[str, Path])


_SPECIAL = frozenset((os.curdir, os.pardir))


def dir_handle(path: pathstr) -> ScopedResource[T.Iterator[os.DirEntry]]:
    """Open directory iterator on *path*, closed on release."""
    def acquire():
        handle = os.scandir(path)
        return handle, handle.close
    return ScopedResource(acquire, f'dir {path}')


def ls(path: pathstr) -> Stream[Path]:
    """List immediate children of *path*, excluding ``.`` and ``..``.

    Each child is *path* joined with the entry name.
    An existing directory that cannot be read lists as empty;
    a missing path raises ``FileNotFoundError`` when the stream is run.
    """
    base = Path(path)

    def source():
        if os.path.exists(base) and not is_readable(base):
            logger.debug('skipping unreadable directory %s', base)
            return
        with dir_handle(base).scope() as handle:
            for entry in handle:
                if entry.name not in _SPECIAL:
                    yield base / entry.name
    return Stream(source)


def ls_tree(path: pathstr) -> Stream[Path]:
    """Every descendant of *path*, depth-first pre-order.

    A directory is yielded before its own descendants,
    and those come before its next sibling.
    """
    def visit(child: Path) -> Stream[Path]:
        if testdir(child):
            return pure(child) + ls_tree(child)
        return pure(child)
    return ls(path).then(visit)


def find(pattern: T.Union[str, T.Pattern, Matcher], root: pathstr) -> Stream[Path]:
    """Descendants of *root* whose path text matches *pattern* anywhere.

    Paths that cannot be represented as text are left out silently.
    """
    matcher = as_matcher(pattern)

    def found(path: Path) -> bool:
        text = to_text(path)
        return text is not None and matcher.matches(text)
    return ls_tree(root).filter(found)
