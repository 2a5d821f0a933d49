"""Pytest configuration and shared fixtures."""

import pytest
from hypothesis import settings

# Registry property tests spin up an event loop per example.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")


@pytest.fixture
def anyio_backend():
    return "asyncio"
