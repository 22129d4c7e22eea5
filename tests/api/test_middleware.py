"""Tests for the HTTP plumbing: health, headers, body limits and error envelopes."""
from fastapi.testclient import TestClient

from securepay.main import create_app
from tests.conftest import make_settings


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "SecurePay Portal API is running",
            "data": {"status": "healthy", "store": "memory"},
        }


class TestSecurityHeaders:

    def test_hardening_headers(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert response.headers["Cache-Control"].startswith("no-store")
        assert "Strict-Transport-Security" not in response.headers

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "0f8fad5bd9cb469fa16570867728950e"})
        assert response.headers["X-Request-ID"] == "0f8fad5bd9cb469fa16570867728950e"

    def test_request_id_generated(self, client):
        assert client.get("/api/health").headers.get("X-Request-ID")

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/auth/login",
            headers={"Origin": "https://portal.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


class TestBodyLimit:

    def test_oversized_body_rejected(self, client):
        padding = "x" * 11 * 1024
        response = client.post(
            "/api/auth/register",
            json={"email": "alice@example.com", "password": padding},
        )
        assert response.status_code == 413
        assert response.json() == {"success": False, "error": "Request body too large"}


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestProduction:
    """Tests for production-only transport security."""

    def _client(self, store, rate_limiter):
        app = create_app(
            settings=make_settings(ENVIRONMENT="production"),
            store=store,
            rate_limiter=rate_limiter,
        )
        return TestClient(app)

    def test_http_redirected_to_https(self, store, rate_limiter):
        with self._client(store, rate_limiter) as client:
            response = client.get(
                "/api/health",
                headers={"X-Forwarded-Proto": "http"},
                follow_redirects=False,
            )
        assert response.status_code == 301
        assert response.headers["location"].startswith("https://")

    def test_hsts_on_https(self, store, rate_limiter):
        with self._client(store, rate_limiter) as client:
            response = client.get("/api/health", headers={"X-Forwarded-Proto": "https"})
        assert response.status_code == 200
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]
