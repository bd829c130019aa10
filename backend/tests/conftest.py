"""Pytest configuration and shared fixtures."""

import logging

import pytest

from store_audit.schemas.audit import Department
from tests.helpers.factories import FakeStore, make_department

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """setup_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def store() -> FakeStore:
    """In-memory store that accepts every call."""
    return FakeStore()


@pytest.fixture
def departments() -> list[Department]:
    """Existing catalog: Bakery with two questions, an empty Deli."""
    return [
        make_department("Bakery", ["Is the oven clean?", "Are the proofers labelled?"]),
        make_department("Deli"),
    ]
