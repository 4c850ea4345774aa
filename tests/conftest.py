#!/usr/bin/env python3
"""Shared fixtures for the terrapin test suite."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from terrapin.config import TerrapinConfig


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from default configuration."""
    TerrapinConfig.reset()
    yield TerrapinConfig.get_instance()
    TerrapinConfig.reset()


@pytest.fixture
def tree(tmp_path):
    """A small directory tree.

    root/
        a.txt
        docs/
            notes.txt
            deep/
                inner.txt
        src/
            main.py
        empty/
    """
    root = tmp_path / 'root'
    (root / 'docs' / 'deep').mkdir(parents=True)
    (root / 'src').mkdir()
    (root / 'empty').mkdir()
    (root / 'a.txt').write_text('alpha\n')
    (root / 'docs' / 'notes.txt').write_text('line 1\nline 2\n')
    (root / 'docs' / 'deep' / 'inner.txt').write_text('inner\n')
    (root / 'src' / 'main.py').write_text('print("spam")\n')
    return root


class Tracker:
    """Records acquisitions, releases and other events in order."""

    def __init__(self):
        self.events = []

    def log(self, event):
        self.events.append(event)

    def count(self, event):
        return self.events.count(event)


@pytest.fixture
def tracker():
    return Tracker()
