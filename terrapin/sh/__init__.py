#! /usr/bin/env python3

"""This package provides shell-like functionalities over lazy streams.

Only ``system`` and ``stream`` start a process;
everything else is done in Python.

.. code:: python
    >>> from terrapin.sh import *
    >>> cd('/usr')
    >>> sh(find(r'Browser\\.py$', 'lib') | head(3) | stdout)
    >>> ls_tree('lib').count()
    33354
"""

import os
import sys

from pathlib import Path

from ..fold import Fold, stop
from ..matcher import GlobMatcher, LiteralMatcher, Matcher, RegexMatcher
from ..pipes import (
    grep,
    head,
    like,
    notgrep,
    notlike,
    sed,
    select,
    skip,
    where,
)
from ..scoped import (
    ScopedResource,
    append_handle,
    fork,
    read_handle,
    with_scope,
    write_handle,
)
from ..stream import (
    Stream,
    concat,
    empty,
    feed,
    from_iterable,
    once,
    pure,
    run,
    sh,
    using,
)
from . import core
from . import dirs
from . import lineio
from . import subp
from .core import (
    cd,
    cp,
    date,
    date_file,
    du,
    home,
    mkdir,
    mktemp,
    mktempdir,
    mktree,
    mv,
    popd,
    pushd,
    pwd,
    realpath,
    rm,
    rmdir,
    rmtree,
    testdir,
    testfile,
    touch,
)
from .dirs import find, ls, ls_tree
from .lineio import (
    cat,
    file_append,
    file_in,
    file_out,
    handle_in,
    handle_out,
    stderr,
    stdin,
    stdout,
    yes,
)
from .subp import procmon, stream, system


__all__ = [
    # Auto imports for convenience.
    'os',
    'sys',

    # pathlib
    'Path',

    # streams
    'Stream',
    'Fold',
    'stop',
    'concat',
    'empty',
    'feed',
    'from_iterable',
    'once',
    'pure',
    'run',
    'sh',
    'using',

    # scoped resources
    'ScopedResource',
    'append_handle',
    'fork',
    'read_handle',
    'with_scope',
    'write_handle',

    # matchers
    'GlobMatcher',
    'LiteralMatcher',
    'Matcher',
    'RegexMatcher',

    # terrapin.pipes
    'grep',
    'head',
    'like',
    'notgrep',
    'notlike',
    'sed',
    'select',
    'skip',
    'where',

    # core
    'cd',
    'cp',
    'date',
    'date_file',
    'du',
    'home',
    'mkdir',
    'mktemp',
    'mktempdir',
    'mktree',
    'mv',
    'popd',
    'pushd',
    'pwd',
    'realpath',
    'rm',
    'rmdir',
    'rmtree',
    'testdir',
    'testfile',
    'touch',

    # dirs
    'find',
    'ls',
    'ls_tree',

    # lineio
    'cat',
    'file_append',
    'file_in',
    'file_out',
    'handle_in',
    'handle_out',
    'stderr',
    'stdin',
    'stdout',
    'yes',

    # subp
    'procmon',
    'stream',
    'system',
]
