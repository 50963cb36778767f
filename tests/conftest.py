"""Shared fixtures for the token sentinel tests."""

import pytest

from token_sentinel.config import SentinelConfig
from token_sentinel.storage import InMemoryTokenStore
from token_sentinel.utils.telemetry import telemetry

from factories import make_risky_token, make_safe_token


@pytest.fixture
def config():
    return SentinelConfig(batch_delay=0.0)


@pytest.fixture
def store():
    return InMemoryTokenStore()


@pytest.fixture
def safe_token():
    return make_safe_token()


@pytest.fixture
def risky_token():
    return make_risky_token()


@pytest.fixture(autouse=True)
def reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()
