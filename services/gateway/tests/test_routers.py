"""Tests for the device and notification HTTP endpoints."""

import pytest
import structlog
from fastapi.testclient import TestClient

from pushgw.dependencies import get_dispatch, get_registry
from pushgw.exceptions import ProviderError
from pushgw.main import create_app
from pushgw.services.push_provider import UNREGISTERED, SendOutcome


@pytest.fixture
def app(settings, registry, dispatch):
    app = create_app(settings)
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_dispatch] = lambda: dispatch
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestHealth:
    def test_health(self, client, settings):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "service": settings.app_name}

    def test_request_id_header(self, client):
        response = client.get("/health")
        assert "X-Request-ID" in response.headers


class TestRegister:
    def test_register(self, client, registry):
        response = client.post(
            "/devices/register",
            json={"userId": "user_123", "token": "fcm_token_here", "platform": "ios"},
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert registry.tokens_of("user_123") == {"fcm_token_here"}
        assert registry.metadata_of("fcm_token_here").platform == "ios"

    def test_register_default_platform(self, client, registry):
        client.post("/devices/register", json={"userId": "user_123", "token": "tok"})
        assert registry.metadata_of("tok").platform == "android"

    @pytest.mark.parametrize("body", [{"userId": "user_123"}, {"token": "tok"}, {"userId": "", "token": "tok"}])
    def test_missing_fields_rejected(self, client, registry, body):
        response = client.post("/devices/register", json=body)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "userId and token are required"}
        assert registry.stats().tokens == 0


class TestUpdateToken:
    def test_old_token_replaced(self, client, registry):
        registry.upsert("user_123", "old_fcm_token")
        response = client.put(
            "/devices/token",
            json={"userId": "user_123", "token": "new_fcm_token", "oldToken": "old_fcm_token"},
        )
        assert response.status_code == 200
        assert registry.tokens_of("user_123") == {"new_fcm_token"}
        assert registry.metadata_of("old_fcm_token") is None

    def test_same_old_token_kept(self, client, registry):
        client.put("/devices/token", json={"userId": "user_123", "token": "tok", "oldToken": "tok"})
        assert registry.tokens_of("user_123") == {"tok"}

    def test_without_old_token(self, client, registry):
        registry.upsert("user_123", "tok-a")
        client.put("/devices/token", json={"userId": "user_123", "token": "tok-b"})
        assert registry.tokens_of("user_123") == {"tok-a", "tok-b"}

    def test_missing_fields_rejected(self, client):
        response = client.put("/devices/token", json={"token": "tok"})
        assert response.status_code == 400


class TestUnregister:
    def test_unregister(self, client, registry):
        registry.upsert("user_123", "tok")
        response = client.request("DELETE", "/devices/unregister", json={"userId": "user_123", "token": "tok"})
        assert response.status_code == 200
        assert registry.tokens_of("user_123") == frozenset()

    def test_missing_fields_rejected(self, client):
        response = client.request("DELETE", "/devices/unregister", json={"userId": "user_123"})
        assert response.status_code == 400


class TestSendNotification:
    def test_send_to_user(self, client, registry, mock_provider):
        registry.upsert("user_123", "t1")
        registry.upsert("user_123", "t2")
        mock_provider.send_multicast.side_effect = lambda tokens, data, options: [
            SendOutcome(success=False, error_code=UNREGISTERED) if t == "t1" else SendOutcome(success=True)
            for t in tokens
        ]

        response = client.post(
            "/notifications/send",
            json={"userId": "user_123", "data": {"type": "chat", "count": 3}},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "successCount": 1, "failureCount": 1}
        assert registry.tokens_of("user_123") == {"t2"}
        assert mock_provider.send_multicast.call_args.args[1] == {"type": "chat", "count": "3"}

    def test_android_options_forwarded(self, client, registry, mock_provider):
        registry.upsert("user_123", "t1")
        client.post(
            "/notifications/send",
            json={"userId": "user_123", "data": {"type": "chat"}, "android": {"priority": "normal"}},
        )
        assert mock_provider.send_multicast.call_args.args[2] == {"priority": "normal"}

    def test_unknown_user_404(self, client, mock_provider):
        response = client.post("/notifications/send", json={"userId": "unknown_user", "data": {"a": "b"}})
        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "No tokens for this user"}
        mock_provider.send_multicast.assert_not_called()

    def test_missing_data_rejected(self, client):
        response = client.post("/notifications/send", json={"userId": "user_123"})
        assert response.status_code == 400
        assert response.json()["error"] == "userId and data are required"

    def test_provider_error_500(self, client, registry, mock_provider):
        registry.upsert("user_123", "t1")
        mock_provider.send_multicast.side_effect = ProviderError("Auth error from APNS or Web Push Service")

        response = client.post("/notifications/send", json={"userId": "user_123", "data": {"a": "b"}})

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Auth error from APNS or Web Push Service"}


class TestSendToToken:
    def test_returns_message_id(self, client):
        response = client.post("/notifications/sendToToken", json={"token": "tok", "data": {"type": "ping"}})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "messageId": "msg-42"}

    def test_missing_token_rejected(self, client):
        response = client.post("/notifications/sendToToken", json={"data": {"type": "ping"}})
        assert response.status_code == 400
        assert response.json()["error"] == "token and data are required"

    def test_provider_error_500(self, client, mock_provider):
        mock_provider.send_single.side_effect = ProviderError("Requested entity was not found.", code=UNREGISTERED)
        response = client.post("/notifications/sendToToken", json={"token": "tok", "data": {"type": "ping"}})
        assert response.status_code == 500
        assert response.json()["ok"] is False


class TestEmptyAndroidOptions:
    def test_empty_android_object_forwarded(self, client, registry, mock_provider):
        registry.upsert("user_123", "t1")
        client.post("/notifications/send", json={"userId": "user_123", "data": {"a": "b"}, "android": {}})
        assert mock_provider.send_multicast.call_args.args[2] == {}


class TestRequestContext:
    def test_registry_events_carry_request_id(self, client, registry):
        seen = []
        registry.subscribe(lambda event: seen.append(structlog.contextvars.get_contextvars()))

        response = client.post("/devices/register", json={"userId": "user_123", "token": "tok"})

        assert len(seen) == 1
        assert seen[0]["request_id"] == response.headers["X-Request-ID"]
        assert seen[0]["area"] == "devices"

