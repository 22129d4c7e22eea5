"""
Pytest fixtures for SecurePay Portal tests.

Provides:
- Test settings (fixed signing secret, cheap bcrypt, no scheduler)
- A fresh in-memory store and rate limiter per test
- A TestClient bound to a freshly built application
- Helpers to register and log in users
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.rate_limiter import RateLimiter
from securepay.config import Settings
from securepay.infrastructure.stores.factory import build_memory_store
from securepay.main import create_app

STRONG_PASSWORD = "Str0ng!Pass"
STAFF_EMAIL = "staff@securepay.io"
STAFF_PASSWORD = "P@ssw0rd!"

VALID_PAYMENT = {
    "recipient_name": "John Smith",
    "recipient_account": "GB29NWBK60161331926819",
    "recipient_bank": "NatWest Bank",
    "recipient_country": "United Kingdom",
    "swift_code": "NWBKGB2L",
    "amount": 1500,
    "currency": "GBP",
    "purpose": "Invoice 42, consulting",
}


class FakeClock:
    """Manually advanced clock; works for monotonic floats and datetimes."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "",
        "JWT_SECRET": "test-signing-secret",
        "PASSWORD_BCRYPT_ROUNDS": 4,
        "SESSION_REAPER_INTERVAL_MINUTES": 0,
        "ENVIRONMENT": "test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def store(settings, hasher):
    """In-memory store with the bootstrap staff account."""
    return build_memory_store(settings, hasher)


@pytest.fixture
def monotonic_clock():
    return FakeClock(1000.0)


@pytest.fixture
def utc_clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def rate_limiter(monotonic_clock):
    return RateLimiter(clock=monotonic_clock)


@pytest.fixture
def app(settings, store, rate_limiter):
    return create_app(settings=settings, store=store, rate_limiter=rate_limiter)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user through the API."""
    def _register(email: str = "alice@example.com", password: str = STRONG_PASSWORD):
        return client.post("/api/auth/register", json={"email": email, "password": password})
    return _register


@pytest.fixture
def login(client):
    """Log in through the API and return the response data."""
    def _login(email: str = "alice@example.com", password: str = STRONG_PASSWORD):
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["data"]
    return _login


@pytest.fixture
def user_token(register, login):
    """Session token for a freshly registered regular user."""
    register()
    return login()["token"]


@pytest.fixture
def staff_token(login):
    return login(STAFF_EMAIL, STAFF_PASSWORD)["token"]
