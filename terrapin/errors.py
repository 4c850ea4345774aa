#! /usr/bin/env python3

"""Exceptions raised by terrapin.

Filesystem passthroughs raise the underlying ``OSError`` unchanged;
the classes here cover failures that belong to terrapin itself.
"""


class TerrapinError(Exception):
    """Base class of terrapin errors."""


class SpawnError(TerrapinError):
    """A child process could not be created."""


class ReleaseError(TerrapinError):
    """A release action was invoked more than once."""


class TaskCancelled(TerrapinError):
    """Result requested from a task that was cancelled."""
