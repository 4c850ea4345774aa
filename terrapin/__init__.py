#! /usr/bin/env python3

"""Lazy, resource-safe streams of file and process operations.

The shell-flavoured helpers live in ``terrapin.sh``.
"""

__version__ = '0.1.0'
