#! /usr/bin/env python3

"""Run shell commands fed from streams.

``system`` runs a command with its output going to ours and returns the exit
status. ``stream`` runs a command and yields its output lines.
In both, a background feeder task writes the input stream to the command's
standard input, one line per value, and closes it at the end of the input.

.. code:: python
    >>> system('sort', from_iterable(['spam', 'eggs']))
    eggs
    spam
    0
    >>> stream('tr a-z A-Z', ['spam']).collect()
    ['SPAM']

A non-zero exit status is returned as data, not raised.
An error raised by the input stream is re-raised to the caller once the
command has been waited for.
"""

import atexit
import enum
import io
import logging
import os
import re
import shutil
import subprocess as sp
import threading
import typing as T

from tabulate import tabulate

from ..config import config
from ..errors import SpawnError
from ..fold import Fold, stop
from ..scoped import ScopedResource, with_scope
from ..stream import Stream, empty, from_iterable, perform, using
from ..task import Task
from .lineio import handle_in


logger = logging.getLogger(__name__)

# typedef
Input = T.Union[Stream[str], T.Iterable[str], None]


def _as_stream(input: Input) -> Stream[str]:
    if input is None:
        return empty()
    if isinstance(input, Stream):
        return input
    return from_iterable(input)


class PipeState(enum.Enum):
    SPAWNING = 'spawning'
    RUNNING = 'running'
    DRAINING = 'draining'
    JOINED = 'joined'
    DONE = 'done'
    FAILED = 'failed'


class ProcessPipe(object):
    """A child process, its pipes, and the task feeding its stdin.

    stdin is always a pipe written only by the feeder task.
    stdout is a pipe read only by the consumer when *capture* is set,
    and inherited otherwise. stderr is always inherited.
    Both pipes are text split on ``'\\n'`` only; a ``'\\r'`` is data.

    Use through ``process_pipe``, which ties ``close`` to a scope.
    """
    command: str
    state: PipeState
    proc: T.Optional[sp.Popen]
    stdin: T.Optional[io.TextIOWrapper]
    stdout: T.Optional[io.TextIOWrapper]
    feeder: T.Optional[Task]

    def __init__(self, command: str, input: Stream[str], capture: bool) -> None:
        self.command = command
        self.input = input
        self.capture = capture
        self.state = PipeState.SPAWNING
        self.proc = None
        self.stdin = None
        self.stdout = None
        self.feeder = None

    def __repr__(self) -> str:
        pid = self.proc.pid if self.proc is not None else '-'
        return (
            f'{type(self).__name__}({self.command!r}, pid={pid}, '
            f'{self.state.value})'
        )

    @property
    def pid(self) -> T.Optional[int]:
        return None if self.proc is None else self.proc.pid

    def spawn(self) -> 'ProcessPipe':
        try:
            self.proc = sp.Popen(
                self.command,
                shell=True,
                executable=config.shell_executable,
                stdin=sp.PIPE,
                stdout=sp.PIPE if self.capture else None,
            )
        except OSError as why:
            self.state = PipeState.FAILED
            raise SpawnError(f'cannot spawn {self.command!r}: {why}') from why
        self.stdin = _text_pipe(self.proc.stdin)
        if self.proc.stdout is not None:
            self.stdout = _text_pipe(self.proc.stdout)
        self.state = PipeState.RUNNING
        logger.debug('spawned %r as pid %d', self.command, self.proc.pid)
        procmon.register(self)
        self.feeder = Task(self._feed, name=f'feeder-{self.proc.pid}').start()
        return self

    def _feed(self, cancelled: threading.Event) -> None:
        pipe = self.stdin

        def step(_, line):
            if cancelled.is_set():
                return stop(None)
            pipe.write(str(line))
            pipe.write(config.newline)
            pipe.flush()
            return None

        try:
            self.input.run(Fold(lambda: None, step, lambda _: None))
        except BrokenPipeError:
            logger.debug('pid %d stopped reading its input', self.proc.pid)
        finally:
            try:
                pipe.close()
            except BrokenPipeError:
                pass

    def lines(self) -> Stream[str]:
        """Lines of the child's stdout, until end of stream."""
        if self.stdout is None:
            raise ValueError(f'{self!r} does not capture output')
        return handle_in(self.stdout)

    def join(self) -> int:
        """Wait for the feeder, then the child, and return the exit status.

        A feeder error is raised after the child has been waited for.
        """
        self.state = PipeState.DRAINING
        error = None
        try:
            self.feeder.join()
        except Exception as why:
            error = why
        self.state = PipeState.JOINED
        returncode = self.proc.wait()
        self._done()
        logger.debug('pid %d exited with %d', self.proc.pid, returncode)
        if error is not None:
            raise error
        return returncode

    def close(self) -> None:
        """Release the pipe, cancelling the feeder if still running.

        The stdout read end is closed first, so that a child blocked on
        writing sees a broken pipe. The feeder and the child each get
        ``config.cancel_grace`` seconds; a child still running after that
        is terminated.
        An input error nobody joined anymore is logged, not raised.
        """
        if self.state is PipeState.DONE:
            return
        logger.debug('abandoning %r', self)
        self.feeder.request_cancel()
        if self.stdout is not None:
            self.stdout.close()
        acknowledged = self.feeder.wait(config.cancel_grace)
        try:
            self.proc.wait(timeout=config.cancel_grace if acknowledged else 0)
        except sp.TimeoutExpired:
            logger.warning(
                'terminating pid %d after %.1fs', self.proc.pid,
                config.cancel_grace,
            )
            self.proc.terminate()
        self.feeder.cancel()
        if self.feeder.error is not None:
            logger.warning(
                'input of pid %d failed: %r', self.proc.pid, self.feeder.error
            )
        self.proc.wait()
        self._done()

    def _done(self) -> None:
        if self.stdout is not None:
            self.stdout.close()
        self.state = PipeState.DONE
        procmon.unregister(self)


def _text_pipe(raw: T.BinaryIO) -> io.TextIOWrapper:
    return io.TextIOWrapper(
        raw, encoding=config.encoding, errors=config.errors, newline='\n'
    )


def process_pipe(
    command: str, input: Input = None, capture: bool = False
) -> ScopedResource[ProcessPipe]:
    """Spawned ``ProcessPipe`` whose release is ``ProcessPipe.close``."""
    def acquire():
        pipe = ProcessPipe(command, _as_stream(input), capture).spawn()
        return pipe, pipe.close
    return ScopedResource(acquire, f'process {command!r}')


def system(command: str, input: Input = None) -> int:
    """Run *command*, feeding it *input*, and return its exit status.

    The command inherits our stdout and stderr.
    """
    return with_scope(process_pipe(command, input), ProcessPipe.join)


def stream(command: str, input: Input = None) -> Stream[str]:
    """Stream the stdout lines of *command*, feeding it *input*.

    The command inherits our stderr. stdout is read to its end before the
    feeder is joined and the child reaped; only then does the stream end.
    The command is spawned anew each time the stream is run.
    """
    return using(process_pipe(command, input, capture=True)).then(
        lambda pipe: pipe.lines() + perform(pipe.join)
    )



# process monitor

def _get_args_col(cols: int, fixed: int) -> int:
    term = shutil.get_terminal_size().columns
    # format "pretty": borders and whitespace padding
    # like: | spam | eggs |
    available = term - fixed - (cols + 1) - cols*2
    return max(0, available)


def _program_name(command: str, width: int = 16) -> str:
    """First word of *command* without its directory, cut to *width*."""
    name = os.path.basename(command.split(' ', 1)[0])
    if len(name) <= width:
        return name
    return name[:width - 3] + '...'


class ProcessMonitor(object):
    """Keeps track of live process pipes.

    Pipes register on spawn and unregister when done.
    Children still registered are terminated upon interpreter exit.
    """
    _pipes: T.Dict[int, ProcessPipe]

    def __init__(self) -> None:
        atexit.register(self.purge)
        self._pipes = {}

    def register(self, pipe: ProcessPipe) -> None:
        self._pipes[pipe.pid] = pipe

    def unregister(self, pipe: ProcessPipe) -> None:
        self._pipes.pop(pipe.pid, None)

    def active(self) -> T.List[ProcessPipe]:
        """Registered pipes, in spawn order."""
        return list(self._pipes.values())

    def _list(self, pipes: T.Mapping[int, ProcessPipe]) -> str:
        names = [_program_name(pipe.command) for pipe in pipes.values()]
        name_col = max((len(name) for name in names), default=4)
        args_col = _get_args_col(4, name_col + 7 + 8)

        headers = ['name', 'pid', 'state']
        colwidths = [name_col, 7, 8]
        if args_col >= 16:
            headers.append('command')
            colwidths.append(args_col)

        data = []
        for name, (pid, pipe) in zip(names, pipes.items()):
            # command: don't include if terminal is extremely narrow.
            row = [name, str(pid), pipe.state.value]
            if args_col >= 16:
                row.append(pipe.command)
            data.append(row)

        return tabulate(
            data,
            headers=headers,
            numalign=None,
            disable_numparse=True,
            tablefmt='pretty',
            maxcolwidths=colwidths if data else None,
        )

    def list(self) -> str:
        """Table of all live pipes."""
        return self._list(self._pipes)
    ls = list

    def pgrep(self, pattern: str, flags: int = 0) -> str:
        """Table of live pipes whose command matches *pattern*."""
        pipes = {
            pid: pipe for pid, pipe in self._pipes.items()
            if re.search(pattern, pipe.command, flags=flags)
        }
        return self._list(pipes)

    def purge(self) -> None:
        """Terminate every registered child."""
        for pipe in list(self._pipes.values()):
            if pipe.proc is not None and pipe.proc.poll() is None:
                logger.debug('purging pid %d', pipe.pid)
                pipe.proc.terminate()


procmon = ProcessMonitor()
