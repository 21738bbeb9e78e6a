"""
Shared fixtures for the NetCtl test suite.

Run: python3 -m pytest tests/ -v
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from netctl.storage import MemoryBackend, SessionRepository
from netctl.store import NetStore


class FixedClock:
    """Deterministic clock; call advance() to move time forward"""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 5, 18, 30, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def repository(backend):
    return SessionRepository(backend)


@pytest.fixture
def store(repository, clock):
    return NetStore(repository, clock=clock)


@pytest.fixture
def net_commands(backend, clock):
    """commands.net configured on in-memory storage, torn down afterwards"""
    from commands import net
    net.configure(backend=backend, clock=clock, strict_tokens=False)
    yield net
    net._store = None
