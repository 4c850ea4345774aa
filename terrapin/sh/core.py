#! /usr/bin/env python3

"""Filesystem passthroughs and the path helpers the streams rely on.

These are thin wrappers over ``os``, ``shutil`` and ``pathlib``;
errors are the underlying ``OSError`` and are not caught here.

The working directory is process-wide state.
``cd``, ``pushd`` and ``popd`` change it without any locking,
so threads that change it race each other and must serialize themselves.
"""

import datetime
import os
import shutil
import typing as T

from pathlib import Path

from ..config import config
from ..scoped import ScopedResource, temp_dir, temp_file


# typedef
pathstr = T.NewType('pathstr', T.Union[str, Path])


_DIRSTACK = []



# expandpath

def expandpath(path: pathstr) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(path)))


def to_text(path: pathstr) -> T.Optional[str]:
    """Return *path* as text, or ``None`` if it is not valid text.

    Undecodable bytes in file names survive as surrogate escapes;
    such names do not encode back and count as non-text.
    """
    text = os.fspath(path)
    if isinstance(text, bytes):
        try:
            return text.decode(config.encoding)
        except UnicodeDecodeError:
            return None
    try:
        text.encode(config.encoding)
    except UnicodeEncodeError:
        return None
    return text



# cd

def cd(path: pathstr) -> Path:
    """Change the working directory and return the resulting one."""
    dst = expandpath(path).resolve()
    os.chdir(dst)
    return dst


def pwd() -> Path:
    return Path(os.getcwd())


def home() -> Path:
    return Path.home()


def realpath(path: pathstr) -> Path:
    return expandpath(path).resolve(strict=True)


def pushd(path: pathstr) -> Path:
    """Push to directory and return resulting cwd."""
    cwd = pwd()
    dst = cd(path)
    _DIRSTACK.append(cwd)
    return dst


def popd() -> Path:
    """Pop from directory stack and return resulting cwd.

    Raises ``IndexError`` if the stack is empty.
    """
    dst = _DIRSTACK[-1]
    os.chdir(dst)
    del _DIRSTACK[-1]
    return dst



# tests

def testfile(path: pathstr) -> bool:
    return os.path.isfile(path)


def testdir(path: pathstr) -> bool:
    return os.path.isdir(path)


def is_readable(path: pathstr) -> bool:
    return os.access(path, os.R_OK)


def open_file(path: pathstr, mode: str = 'r') -> T.TextIO:
    return open(
        path, mode, encoding=config.encoding, errors=config.errors,
        newline='\n',
    )



# file operations

def mv(src: pathstr, dst: pathstr) -> None:
    shutil.move(os.fspath(src), os.fspath(dst))


def cp(src: pathstr, dst: pathstr) -> None:
    shutil.copy2(src, dst)


def rm(path: pathstr) -> None:
    os.remove(path)


def mkdir(path: pathstr) -> None:
    os.mkdir(path)


def mktree(path: pathstr) -> None:
    """Create a directory with its parents, like ``mkdir -p``."""
    os.makedirs(path, exist_ok=True)


def rmdir(path: pathstr) -> None:
    os.rmdir(path)


def rmtree(path: pathstr) -> None:
    shutil.rmtree(path)


def du(path: pathstr) -> int:
    """Size of *path* in bytes."""
    return os.path.getsize(path)


def touch(path: pathstr) -> None:
    """Update access and modification times, creating the file if needed."""
    Path(path).touch()


def date() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def date_file(path: pathstr) -> datetime.datetime:
    """Time *path* was last modified."""
    return datetime.datetime.fromtimestamp(
        os.path.getmtime(path), tz=datetime.timezone.utc
    )



# temporary files

def mktempdir(parent: pathstr, prefix: str) -> ScopedResource[Path]:
    """Temporary directory under *parent*, removed when its scope ends."""
    return temp_dir(parent, prefix)


def mktemp(
    parent: pathstr, prefix: str
) -> ScopedResource[T.Tuple[Path, T.TextIO]]:
    """Temporary file under *parent* with an open handle, removed on exit."""
    return temp_file(parent, prefix)
