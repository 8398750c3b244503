"""
HTTP tests for the generation and usage endpoints.
"""

from unittest.mock import MagicMock

import pytest

from app.errors import StoreError
from app.main import create_app
from app.quota import InMemoryUsageStore, UsageRecord

KEY = "daily-usage"


@pytest.fixture()
def store():
    return InMemoryUsageStore()


@pytest.fixture()
def client(make_config_manager, store, mock_provider, clock):
    """Create a test client with an in-memory counter and a mocked backend."""
    app = create_app(
        config_manager=make_config_manager(),
        usage_store=store,
        llm_provider=mock_provider,
        clock=clock,
    )
    app.config.update(TESTING=True)
    return app.test_client()


def client_with_store(make_config_manager, store, provider, clock, **quota):
    app = create_app(
        config_manager=make_config_manager(quota=quota),
        usage_store=store,
        llm_provider=provider,
        clock=clock,
    )
    app.config.update(TESTING=True)
    return app.test_client()


class TestGenerateEndpoint:
    """Test POST /api/generate-analogy."""

    def test_success_injects_usage(self, client):
        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["analogy"].startswith("**Summary:**")
        assert data["usage"] == {"current": 1, "limit": 1000, "remaining": 999}

    def test_success_then_usage(self, client):
        client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        response = client.get("/api/get-usage")

        assert response.status_code == 200
        assert response.get_json() == {
            "usage": {"current": 1, "limit": 1000, "remaining": 999, "resetDate": "2025-11-11"}
        }

    def test_quota_exhausted_returns_429(self, client, store, mock_provider):
        store.save(KEY, UsageRecord(date="2025-11-11", count=1000))

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 429
        data = response.get_json()
        assert data["usage"] == {"current": 1000, "limit": 1000, "resetDate": "2025-11-11"}
        assert "1000" in data["error"]
        mock_provider.generate.assert_not_called()

    def test_stale_day_is_allowed(self, client, store):
        store.save(KEY, UsageRecord(date="2025-11-10", count=999))

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 200
        assert response.get_json()["usage"]["current"] == 1

    def test_empty_concept_returns_400_without_store_access(self, make_config_manager, mock_provider, clock):
        store = MagicMock()
        client = client_with_store(make_config_manager, store, mock_provider, clock)

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": ""})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Both concepts are required"}
        store.load.assert_not_called()
        store.save.assert_not_called()

    @pytest.mark.parametrize("body", [
        {},
        {"concept1": "bridge"},
        {"concept1": "   ", "concept2": "metaphor"},
        {"concept1": 7, "concept2": "metaphor"},
    ])
    def test_invalid_concepts(self, client, body):
        response = client.post("/api/generate-analogy", json=body)
        assert response.status_code == 400

    def test_non_json_body(self, client):
        response = client.post("/api/generate-analogy", data="concept1=bridge", content_type="text/plain")

        assert response.status_code == 400
        assert response.get_json() == {"error": "Request body must be a JSON object"}

    def test_json_array_body(self, client):
        response = client.post("/api/generate-analogy", json=["bridge", "metaphor"])
        assert response.status_code == 400

    @pytest.mark.parametrize("method", ["get", "put", "delete", "patch"])
    def test_wrong_method_returns_405(self, client, method):
        response = getattr(client, method)("/api/generate-analogy")

        assert response.status_code == 405
        assert response.get_json() == {"error": "Method not allowed"}

    def test_missing_credentials_returns_500(self, client, store, mock_provider):
        mock_provider.has_credentials.return_value = False

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 500
        assert response.get_json() == {"error": "API key not configured"}
        assert store.load(KEY) is None

    def test_backend_failure_returns_502_and_keeps_usage(self, client, store, mock_provider):
        store.save(KEY, UsageRecord(date="2025-11-11", count=10))
        mock_provider.generate.side_effect = RuntimeError("Resource has been exhausted")

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 502
        assert response.get_json() == {"error": "Resource has been exhausted"}
        assert client.get("/api/get-usage").get_json()["usage"]["current"] == 10

    def test_store_failure_returns_500(self, make_config_manager, mock_provider, clock):
        store = MagicMock()
        store.load.side_effect = StoreError("Failed to read usage data")
        client = client_with_store(make_config_manager, store, mock_provider, clock)

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 500
        assert "error" in response.get_json()
        mock_provider.generate.assert_not_called()

    def test_store_failure_open_policy_allows(self, make_config_manager, mock_provider, clock):
        store = MagicMock()
        store.load.side_effect = StoreError("Failed to read usage data")
        client = client_with_store(
            make_config_manager, store, mock_provider, clock, store_failure_policy="open"
        )

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 200
        assert response.get_json()["usage"]["current"] == 1

    def test_unexpected_error_returns_500(self, client, mock_provider):
        mock_provider.has_credentials.side_effect = KeyError("boom")

        response = client.post("/api/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"})

        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    def test_configured_limit(self, make_config_manager, store, mock_provider, clock):
        client = client_with_store(make_config_manager, store, mock_provider, clock, daily_limit=2)

        statuses = [
            client.post("/api/generate-analogy", json={"concept1": "a", "concept2": "b"}).status_code
            for _ in range(3)
        ]

        assert statuses == [200, 200, 429]

    def test_legacy_path(self, client):
        response = client.post(
            "/.netlify/functions/generate-analogy", json={"concept1": "bridge", "concept2": "metaphor"}
        )
        assert response.status_code == 200

        data = response.get_json()
        assert data["candidates"][0]["content"]["parts"][0]["text"] == data["analogy"]
        assert data["usage"]["current"] == 1


class TestUsageEndpoint:
    """Test GET /api/get-usage."""

    def test_fresh_usage(self, client):
        response = client.get("/api/get-usage")

        assert response.status_code == 200
        assert response.get_json()["usage"] == {
            "current": 0,
            "limit": 1000,
            "remaining": 1000,
            "resetDate": "2025-11-11",
        }

    def test_usage_is_read_only(self, client, store):
        for _ in range(3):
            client.get("/api/get-usage")
        assert store.load(KEY) is None

    def test_post_returns_405(self, client):
        response = client.post("/api/get-usage")

        assert response.status_code == 405
        assert response.get_json() == {"error": "Method not allowed"}

    def test_store_failure_returns_500(self, make_config_manager, mock_provider, clock):
        store = MagicMock()
        store.load.side_effect = StoreError("Failed to read usage data")
        client = client_with_store(make_config_manager, store, mock_provider, clock)

        response = client.get("/api/get-usage")

        assert response.status_code == 500
        assert response.get_json() == {"error": "Failed to fetch usage data"}

    def test_legacy_path(self, client):
        assert client.get("/.netlify/functions/get-usage").status_code == 200


class TestMiscRoutes:
    """Test health and unknown routes."""

    def test_health(self, client):
        response = client.get("/actuator/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "UP", "service": "analogy-generator"}

    def test_unknown_route(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
