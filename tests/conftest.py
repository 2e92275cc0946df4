"""Shared pytest fixtures for ChronoStack tests."""

import os
import sys
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from chronostack.actions import TimerActions
from chronostack.database.db import configure_engine, init_db
from chronostack.database.store import TimerStore
from chronostack.timer.registry import TimerRegistry
from chronostack.timer.scheduler import TickScheduler

from helpers import FakeClock


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def registry(qapp):
    return TimerRegistry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(registry, clock):
    """Scheduler on a fake clock; tests call ``tick()`` by hand."""
    return TickScheduler(registry, clock=clock)


@pytest.fixture
def store():
    return TimerStore()


@pytest.fixture
def actions(registry, store):
    """Action API wired to the registry and the in-memory store."""
    return TimerActions(registry, store)
