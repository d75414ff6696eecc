"""Tests for the session-routing HTTP client and the response interceptor."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from secure_session.client import SecureClient, SessionInterceptor
from secure_session.exceptions import ConnectionError_
from secure_session.models import RequestConf, RequestConfig
from secure_session.navigation import HistoryNavigator
from secure_session.registry import SessionRegistry
from secure_session.session import Session


BASE = "http://example.com:9001"


def _recording_transport(status_code: int = 200, json: object = None):
    """MockTransport answering every request with one response, recording requests."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=json if json is not None else {})

    return httpx.MockTransport(handler), seen


# ---------------------------------------------------------------------------
# Interceptor
# ---------------------------------------------------------------------------


class TestSessionInterceptor:
    def test_notifies_registered_session(self) -> None:
        registry = SessionRegistry()
        session = MagicMock()
        registry.register("someSession", session)
        response = httpx.Response(200, json={"actions": ["hop", "hop", "hop"]})

        out = SessionInterceptor(registry).on_response(
            RequestConf(url=f"{BASE}/bunnies", routing_key="someSession"), response
        )
        assert out is response
        session.handle_http_response.assert_called_once_with(response)

    def test_notifies_on_negative_responses(self) -> None:
        registry = SessionRegistry()
        session = MagicMock()
        registry.register("someSession", session)
        response = httpx.Response(401, json={"reason": "You took the blue pill"})
        SessionInterceptor(registry).on_response(
            RequestConf(url=f"{BASE}/matrix", routing_key="someSession"), response
        )
        session.handle_http_response.assert_called_once_with(response)

    def test_passes_through_without_routing_key(self) -> None:
        registry = SessionRegistry()
        session = MagicMock()
        registry.register("someSession", session)
        response = httpx.Response(401)
        out = SessionInterceptor(registry).on_response(RequestConf(url=f"{BASE}/theclub"), response)
        assert out is response
        session.handle_http_response.assert_not_called()

    def test_passes_through_unknown_key(self) -> None:
        response = httpx.Response(401)
        out = SessionInterceptor(SessionRegistry()).on_response(
            RequestConf(routing_key="gone"), response
        )
        assert out is response


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_client(self) -> None:
        client = SecureClient()
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None


class TestSend:
    def test_decorates_and_routes(self, scripted_auth) -> None:
        transport, seen = _recording_transport(200, {"name": "whatsit"})
        registry = SessionRegistry()
        nav = HistoryNavigator("/things")
        session = Session(scripted_auth, nav, registry=registry)
        session.login({"user": "alice", "pass": "swordfish"})

        with SecureClient(registry, base_url=BASE, transport=transport) as client:
            response = client.get("/thing", session=session)

        assert response.status_code == 200
        assert seen[0].headers["Authorization"] == "foo"
        assert seen[0].headers["Accept"] == "application/json"
        assert str(seen[0].url) == f"{BASE}/thing"
        assert scripted_auth.checked == [response]

    def test_auth_failure_logs_session_out(self, scripted_auth) -> None:
        transport, _ = _recording_transport(401)
        registry = SessionRegistry()
        nav = HistoryNavigator("/things/3")
        session = Session(scripted_auth, nav, registry=registry)
        session.login({"user": "alice", "pass": "swordfish"})
        nav.set_path("/things/3")
        scripted_auth.auth_failure = True

        with SecureClient(registry, transport=transport) as client:
            response = client.get(f"{BASE}/things/3", session=session)

        assert response.status_code == 401
        assert session.logged_in() is False
        assert session.pre_failure_path == "/things/3"
        assert nav.get_path() == "/login"

    def test_logged_out_request_has_no_credentials(self, scripted_auth) -> None:
        transport, seen = _recording_transport()
        registry = SessionRegistry()
        session = Session(scripted_auth, HistoryNavigator(), registry=registry)
        with SecureClient(registry, transport=transport) as client:
            client.get(f"{BASE}/open", session=session)
        assert "Authorization" not in seen[0].headers

    def test_sends_prebuilt_conf(self) -> None:
        transport, seen = _recording_transport()
        conf = RequestConf(
            method="POST",
            url=f"{BASE}/thing",
            params={"volume": 11},
            headers={"X-Custom": "1"},
            json_body={"a": 1},
        )
        with SecureClient(transport=transport) as client:
            client.send(conf)
        assert seen[0].method == "POST"
        assert seen[0].url.params["volume"] == "11"
        assert seen[0].headers["X-Custom"] == "1"
        assert json.loads(seen[0].read()) == {"a": 1}

    def test_form_data(self) -> None:
        transport, seen = _recording_transport()
        with SecureClient(transport=transport) as client:
            client.post(f"{BASE}/form", data={"a": "1"})
        assert seen[0].headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_without_registry_nothing_is_intercepted(self, scripted_auth) -> None:
        transport, _ = _recording_transport(401)
        session = Session(scripted_auth, HistoryNavigator())
        session.login({"user": "alice", "pass": "swordfish"})
        scripted_auth.auth_failure = True
        with SecureClient(transport=transport) as client:
            client.get(f"{BASE}/x", session=session)
        assert session.logged_in() is True


class TestRetry:
    def test_retries_get_on_5xx(self) -> None:
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(503 if calls["n"] < 3 else 200, json={})

        config = RequestConfig(max_retries=3)
        with patch("secure_session.client.sync_client.time.sleep") as mock_sleep:
            with SecureClient(
                request_config=config, transport=httpx.MockTransport(handler)
            ) as client:
                response = client.get(f"{BASE}/flaky")
        assert response.status_code == 200
        assert calls["n"] == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    def test_does_not_retry_post(self) -> None:
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(503)

        with SecureClient(
            request_config=RequestConfig(max_retries=3), transport=httpx.MockTransport(handler)
        ) as client:
            response = client.post(f"{BASE}/things", json_body={})
        assert response.status_code == 503
        assert calls["n"] == 1

    def test_network_error_raises_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with patch("secure_session.client.sync_client.time.sleep"):
            with SecureClient(
                request_config=RequestConfig(max_retries=1),
                transport=httpx.MockTransport(handler),
            ) as client:
                with pytest.raises(ConnectionError_, match="after 2 attempts"):
                    client.get(f"{BASE}/down")

