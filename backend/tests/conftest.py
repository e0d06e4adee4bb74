"""
Shared fixtures: a fresh in-memory gateway and a frozen reference clock per test
"""
from datetime import datetime, timedelta

import pytest
import pytz

from habit_tracker.core import dependencies
from habit_tracker.core.config import settings
from habit_tracker.services.storage import InMemoryGateway
from habit_tracker.utils import timezone as clock_module

FROZEN_NOW = datetime(2024, 3, 15, 9, 30, tzinfo=pytz.UTC)


class FrozenClock:
    """Mutable stand-in for the wall clock"""

    def __init__(self, now: datetime):
        self.now = now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def clock(monkeypatch):
    frozen = FrozenClock(FROZEN_NOW)

    class _FrozenDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            return frozen.now.astimezone(tz) if tz else frozen.now.replace(tzinfo=None)

    monkeypatch.setattr(clock_module, "datetime", _FrozenDatetime)
    monkeypatch.setattr(settings, "DAY_TIMEZONE", "UTC")
    return frozen


@pytest.fixture(autouse=True)
def gateway(monkeypatch):
    monkeypatch.setattr(settings, "CASCADE_DELETE_COMPLETIONS", False)
    store = InMemoryGateway()
    dependencies.set_gateway(store)
    yield store
    dependencies.set_gateway(None)


@pytest.fixture
def use_gateway():
    """Install a custom gateway for the current test"""
    def _install(store):
        dependencies.set_gateway(store)
        return store
    return _install
