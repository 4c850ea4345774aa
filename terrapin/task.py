#! /usr/bin/env python3

"""Background task handles with explicit join and acknowledged cancel.

A ``Task`` runs one callable in a daemon thread.
The callable receives a ``threading.Event`` that is set once cancellation is
requested; checking it is the callable's responsibility.

.. code:: python
    >>> def count(cancelled):
    ...     n = 0
    ...     while not cancelled.is_set() and n < 3:
    ...         n += 1
    ...     return n
    >>> task = Task(count).start()
    >>> task.join()
    3
"""

import logging
import threading
import typing as T

from terrapin.errors import TaskCancelled


logger = logging.getLogger(__name__)

TV = T.TypeVar('TV')


class Task(T.Generic[TV]):
    """Handle to a callable running in a background thread.

    :target:
        Called as ``target(cancelled)`` where *cancelled* is a
        ``threading.Event``.
    :name:
        Thread name, mostly useful in logs.
    """
    cancelled: threading.Event

    def __init__(
        self,
        target: T.Callable[[threading.Event], TV],
        name: T.Optional[str] = None,
    ) -> None:
        self._target = target
        self._result: T.Optional[TV] = None
        self._error: T.Optional[BaseException] = None
        self._finished = threading.Event()
        self.cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=name, daemon=True
        )

    def __repr__(self) -> str:
        if self.cancelled.is_set():
            state = 'cancelled'
        elif self._finished.is_set():
            state = 'finished'
        elif self._thread.ident is None:
            state = 'pending'
        else:
            state = 'running'
        return f'{type(self).__name__}({self._thread.name!r}, {state})'

    def _run(self) -> None:
        try:
            self._result = self._target(self.cancelled)
        except BaseException as why:
            self._error = why
            logger.debug('task %s failed: %r', self._thread.name, why)
        finally:
            self._finished.set()

    def start(self) -> 'Task[TV]':
        self._thread.start()
        logger.debug('task %s started', self._thread.name)
        return self

    def done(self) -> bool:
        """Return whether the callable has returned or raised."""
        return self._finished.is_set()

    @property
    def error(self) -> T.Optional[BaseException]:
        """Exception raised by the finished callable, if it was kept."""
        return self._error

    def wait(self, timeout: T.Optional[float] = None) -> bool:
        """Block until the task finishes or *timeout* expires.

        Return whether the task finished. Never raises the task's error.
        """
        return self._finished.wait(timeout)

    def join(self) -> TV:
        """Wait for the task and return its result.

        The task's exception, if any, is re-raised here.
        Joining a cancelled task raises ``TaskCancelled``.
        """
        self._finished.wait()
        self._thread.join()
        if self.cancelled.is_set():
            raise TaskCancelled(self._thread.name)
        if self._error is not None:
            raise self._error
        return self._result

    def request_cancel(self) -> None:
        """Ask the task to stop, without waiting."""
        if not self._finished.is_set():
            self.cancelled.set()

    def cancel(self, timeout: T.Optional[float] = None) -> bool:
        """Request cancellation and wait for acknowledgment.

        The acknowledgment is the task's callable returning (or raising).
        A task that already finished is left as is, so its result stays
        joinable. The result or error of a cancelled task is discarded.

        Return whether the task acknowledged within *timeout*.
        """
        self.request_cancel()
        if not self._finished.wait(timeout):
            logger.debug('task %s did not acknowledge cancel', self._thread.name)
            return False
        self._thread.join()
        if self.cancelled.is_set():
            self._result = None
            self._error = None
            logger.debug('task %s cancelled', self._thread.name)
        return True
