# tests/conftest.py
import random
from datetime import datetime, timedelta, timezone

import pytest

from solar_os import create_app, get_store
from solar_os.extensions import db
from solar_os.persistence import MemoryStateSlot, StateRepository
from solar_os.store import DomainStore

START = datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=START):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **delta):
        self.current = self.current + timedelta(**delta)
        return self.current


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def slot():
    return MemoryStateSlot()


def make_store(slot, clock, *, seed=True, audit=None):
    repository = StateRepository(slot, "solar_os_data", seed_on_empty=seed, now=clock)
    return DomainStore(repository, now=clock, rng=random.Random(7), audit=audit)


@pytest.fixture
def store(slot, clock):
    """Store over canonical seed data."""
    return make_store(slot, clock)


@pytest.fixture
def empty_store(slot, clock):
    """Store without illustrative records (the fixed production line is still present)."""
    return make_store(slot, clock, seed=False)


@pytest.fixture
def app():
    app = create_app("solar_os.config.TestConfig")
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def app_store(app):
    return get_store(app)
