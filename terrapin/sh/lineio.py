#! /usr/bin/env python3

"""Line-oriented text streams over standard streams, handles and files.

Input streams yield lines without their trailing newline.
Output operators are pipes that write each line and pass it along,
like ``tee``:

.. code:: python
    >>> sh(file_in('menu.txt') | grep('spam') | file_out('spam.txt'))
"""

import sys
import typing as T

from pathlib import Path

from pipe import Pipe

from ..config import config
from ..scoped import append_handle, read_handle, write_handle
from ..stream import Stream, concat, effectful, exhausted, using


# typedef
pathstr = T.NewType('pathstr', T.Union[str, Path])



# input

def _readline(handle: T.TextIO) -> T.Union[str, object]:
    line = handle.readline()
    if not line:
        return exhausted
    if line.endswith('\n'):
        line = line[:-1]
    return line


def handle_in(handle: T.TextIO) -> Stream[str]:
    """Read lines from an already open *handle*, which is left open."""
    return effectful(lambda: _readline(handle))


def stdin() -> Stream[str]:
    """Read lines from ``sys.stdin``, looked up when the stream runs."""
    return Stream(lambda: iter(handle_in(sys.stdin)))


def file_in(path: pathstr) -> Stream[str]:
    """Read lines from the file at *path*, closed when the stream ends."""
    return using(read_handle(path)).then(handle_in)


def yes() -> Stream[str]:
    """Endless ``'y'``."""
    return effectful(lambda: 'y')


def cat(*streams: Stream[str]) -> Stream[str]:
    """Combine the output of multiple streams, in order."""
    return concat(*streams)



# output

def _writer(handle: T.TextIO) -> T.Callable[[str], str]:
    def write(line):
        handle.write(str(line))
        handle.write(config.newline)
        return line
    return write


@Pipe
def handle_out(stream: Stream[str], handle: T.TextIO) -> Stream[str]:
    """Tee lines to an already open *handle*, which is left open."""
    return stream.map(_writer(handle))


@Pipe
def stdout(stream: Stream[str]) -> Stream[str]:
    return Stream(lambda: iter(stream | handle_out(sys.stdout)))


@Pipe
def stderr(stream: Stream[str]) -> Stream[str]:
    return Stream(lambda: iter(stream | handle_out(sys.stderr)))


def _tee_file(stream: Stream[str], resource) -> Stream[str]:
    return using(resource).then(lambda handle: stream | handle_out(handle))


@Pipe
def file_out(stream: Stream[str], path: pathstr) -> Stream[str]:
    """Tee lines to *path*, truncating it when the stream starts."""
    return _tee_file(stream, write_handle(path))


@Pipe
def file_append(stream: Stream[str], path: pathstr) -> Stream[str]:
    """Tee lines to the end of *path*."""
    return _tee_file(stream, append_handle(path))
