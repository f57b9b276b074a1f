"""Shared fixtures."""

from datetime import date, datetime

import pytest

from echoday.collection import TaskCollection

from .fakes import InMemoryTaskStore


@pytest.fixture
def today():
    return date(2025, 3, 10)


@pytest.fixture
def now():
    return datetime(2025, 3, 10, 8, 0)


@pytest.fixture
def store():
    return InMemoryTaskStore()


@pytest.fixture
def collection(store):
    return TaskCollection(store, "u1")
