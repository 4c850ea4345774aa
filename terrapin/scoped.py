#! /usr/bin/env python3

"""Scoped resources: acquired values paired with a release action.

A ``ScopedResource`` is a recipe, not an acquired handle.
Every ``acquire()`` (or ``with resource.scope()``) acquires afresh,
so the same recipe can be used by a stream that is run many times.

.. code:: python
    >>> with temp_dir(prefix='work').scope() as path:
    ...     (path / 'spam').touch()
    >>> path.exists()
    False
"""

import contextlib
import logging
import os
import shutil
import tempfile
import threading
import typing as T

from pathlib import Path

from terrapin.config import config
from terrapin.errors import ReleaseError
from terrapin.task import Task


logger = logging.getLogger(__name__)

# typedef
pathstr = T.NewType('pathstr', T.Union[str, Path])
TV = T.TypeVar('TV')
RV = T.TypeVar('RV')


class Release(object):
    """Release action that may run at most once."""

    def __init__(self, action: T.Callable[[], T.Any], label: str = '') -> None:
        self._action = action
        self._label = label
        self._lock = threading.Lock()
        self._released = False

    def __repr__(self) -> str:
        state = 'released' if self._released else 'held'
        return f'{type(self).__name__}({self._label!r}, {state})'

    @property
    def released(self) -> bool:
        return self._released

    def __call__(self) -> None:
        with self._lock:
            if self._released:
                raise ReleaseError(f'{self._label or "resource"} released twice')
            self._released = True
        logger.debug('releasing %s', self._label or self._action)
        self._action()


class ScopedResource(T.Generic[TV]):
    """Acquisition recipe yielding a value and its release action.

    :acquire:
        Callable returning ``(value, release_action)``.
        *release_action* is wrapped so that it can only run once.
    :label:
        Short description used in logs and errors.
    """

    def __init__(
        self,
        acquire: T.Callable[[], T.Tuple[TV, T.Callable[[], T.Any]]],
        label: str = '',
    ) -> None:
        self._acquire = acquire
        self.label = label

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.label!r})'

    def acquire(self) -> T.Tuple[TV, Release]:
        value, action = self._acquire()
        logger.debug('acquired %s', self.label or value)
        return value, Release(action, self.label)

    @contextlib.contextmanager
    def scope(self) -> T.Iterator[TV]:
        """Context manager holding the resource for the ``with`` body.

        Release fires when the body finishes, raises, or,
        for a generator suspended inside the body, when it is closed.
        """
        value, release = self.acquire()
        try:
            yield value
        finally:
            release()


def with_scope(resource: ScopedResource[TV], body: T.Callable[[TV], RV]) -> RV:
    """Run ``body(value)`` while *resource* is held."""
    with resource.scope() as value:
        return body(value)



# temporary files

def temp_dir(
    parent: T.Optional[pathstr] = None, prefix: str = 'terrapin'
) -> ScopedResource[Path]:
    """Temporary directory under *parent*, deleted recursively on release."""
    def acquire():
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
        return path, lambda: shutil.rmtree(path, ignore_errors=True)
    return ScopedResource(acquire, f'tempdir {prefix}')


def temp_file(
    parent: T.Optional[pathstr] = None, prefix: str = 'terrapin'
) -> ScopedResource[T.Tuple[Path, T.TextIO]]:
    """Temporary file opened for writing, closed and deleted on release."""
    def acquire():
        fd, name = tempfile.mkstemp(prefix=prefix, dir=parent)
        path = Path(name)
        try:
            handle = os.fdopen(
                fd, 'w+', encoding=config.encoding, errors=config.errors,
                newline='\n',
            )
        except BaseException:
            os.close(fd)
            path.unlink()
            raise

        def release():
            try:
                handle.close()
            finally:
                with contextlib.suppress(FileNotFoundError):
                    path.unlink()
        return (path, handle), release
    return ScopedResource(acquire, f'tempfile {prefix}')



# file handles

def _handle(path: pathstr, mode: str) -> ScopedResource[T.TextIO]:
    def acquire():
        handle = open(
            path, mode, encoding=config.encoding, errors=config.errors,
            newline='\n',
        )
        return handle, handle.close
    return ScopedResource(acquire, f'{path} ({mode})')


def read_handle(path: pathstr) -> ScopedResource[T.TextIO]:
    return _handle(path, 'r')


def write_handle(path: pathstr) -> ScopedResource[T.TextIO]:
    return _handle(path, 'w')


def append_handle(path: pathstr) -> ScopedResource[T.TextIO]:
    return _handle(path, 'a')



# background tasks

def fork(
    target: T.Callable[[threading.Event], TV], name: T.Optional[str] = None
) -> ScopedResource[Task[TV]]:
    """Start *target* as a ``Task``; release cancels it and awaits the ack."""
    def acquire():
        task = Task(target, name=name).start()
        return task, task.cancel
    return ScopedResource(acquire, f'task {name or target}')
