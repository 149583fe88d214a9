"""Shared fixtures for the test suite."""

from unittest.mock import AsyncMock

import pytest

from src.config import reset_config
from src.transport.provider import reset_transport
from tests.fakes import make_transport


@pytest.fixture
def transport() -> AsyncMock:
    """Fake transport failing every input starting with 'err'."""
    return make_transport()


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset the default transport and configuration around each test."""
    reset_transport()
    reset_config()
    yield
    reset_transport()
    reset_config()
