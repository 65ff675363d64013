from types import SimpleNamespace

import pytest
from fakes import FakeClientFactory, RecordingSleep, env_providers

from khilonjiya.api.deps import limiter
from khilonjiya.core.config import Settings
from khilonjiya.db.client import SupabaseService


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def factory():
    return FakeClientFactory()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_service(settings, sleep):
    """Build a SupabaseService wired to fakes; credentials come from a dict."""

    def _make(factory=None, providers=None):
        return SupabaseService(
            settings=settings,
            providers=env_providers() if providers is None else providers,
            client_factory=factory or FakeClientFactory(),
            sleep=sleep,
        )

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def fake_user():
    return SimpleNamespace(
        id="user-123",
        email="buyer@khilonjiya.com",
        phone=None,
        user_metadata={"full_name": "Test Buyer"},
    )


@pytest.fixture
def fake_session(fake_user):
    return SimpleNamespace(
        access_token="access-token",
        refresh_token="refresh-token",
        expires_in=3600,
        user=fake_user,
    )
