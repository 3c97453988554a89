"""Tests for the shared HTTP client."""

import pytest
import requests
import responses

from noticeboard_sync.errors import AuthFailure, RemoteError, TransportFailure
from noticeboard_sync.sync.http_client import ApiClient, unwrap_envelope

BASE = "http://school.test"


class TestUnwrapEnvelope:
    """Tests for unwrap_envelope()."""

    def test_unwraps_standard_envelope(self):
        body = {"type": "Success", "success": True, "message": "ok", "data": {"a": 1}}
        assert unwrap_envelope(body) == {"a": 1}

    def test_bare_payload_unchanged(self):
        body = {"success": [], "failed": [], "summary": {}}
        assert unwrap_envelope(body) == body

    def test_non_dict_unchanged(self):
        assert unwrap_envelope([1, 2]) == [1, 2]


class TestApiClient:
    """Tests for ApiClient."""

    def setup_method(self):
        self.client = ApiClient(BASE + "/", timeout=7)

    def teardown_method(self):
        self.client.close()

    def test_strips_trailing_slash(self):
        assert self.client.server_url == BASE

    def test_headers_with_token(self):
        headers = self.client._get_headers("abc")
        assert headers["Authorization"] == "Bearer abc"
        assert headers["Accept"] == "application/json"

    def test_headers_without_token(self):
        assert "Authorization" not in self.client._get_headers(None)

    @responses.activate
    def test_request_returns_json(self):
        responses.add(responses.GET, f"{BASE}/api/health", json={"status": "ok"}, status=200)

        assert self.client.request("GET", "/api/health") == {"status": "ok"}

    @responses.activate
    def test_request_empty_body(self):
        responses.add(responses.GET, f"{BASE}/api/health", body="", status=204)

        assert self.client.request("GET", "api/health") == {}

    @responses.activate
    def test_request_sends_json_and_bearer(self):
        responses.add(responses.POST, f"{BASE}/api/notices/sync-local", json={}, status=200)

        self.client.request("POST", "api/notices/sync-local", data={"notices": []}, token="tok")

        sent = responses.calls[0].request
        assert sent.headers["Authorization"] == "Bearer tok"
        assert sent.body == b'{"notices": []}'

    @responses.activate
    def test_401_raises_auth_failure(self):
        responses.add(
            responses.GET, f"{BASE}/api/health", json={"message": "Token has expired"}, status=401
        )

        with pytest.raises(AuthFailure, match="Token has expired"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_403_raises_auth_failure(self):
        responses.add(responses.GET, f"{BASE}/api/health", status=403)

        with pytest.raises(AuthFailure, match="Not authorized"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_500_raises_transport_failure(self):
        responses.add(responses.GET, f"{BASE}/api/health", status=503)

        with pytest.raises(TransportFailure, match="Server error: 503"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_connection_error_raises_transport_failure(self):
        responses.add(
            responses.GET,
            f"{BASE}/api/health",
            body=requests.exceptions.ConnectionError("Connection refused"),
        )

        with pytest.raises(TransportFailure, match="Cannot connect"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_timeout_raises_transport_failure(self):
        responses.add(
            responses.GET,
            f"{BASE}/api/health",
            body=requests.exceptions.ReadTimeout("slow"),
        )

        with pytest.raises(TransportFailure, match="timed out"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_client_error_carries_details(self):
        body = {"success": False, "message": "No notices found to sync"}
        responses.add(responses.POST, f"{BASE}/api/notices/sync-local", json=body, status=404)

        with pytest.raises(RemoteError) as exc_info:
            self.client.request("POST", "api/notices/sync-local", data={"notices": []})

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == body
        assert "No notices found to sync" in str(exc_info.value)

    @responses.activate
    def test_invalid_json_raises_remote_error(self):
        responses.add(responses.GET, f"{BASE}/api/health", body="not json", status=200)

        with pytest.raises(RemoteError, match="Invalid JSON"):
            self.client.request("GET", "api/health")

    @responses.activate
    def test_undecoded_request_ignores_body(self):
        responses.add(responses.GET, f"{BASE}/api/health", body="OK", status=200)

        assert self.client.request("GET", "api/health", decode=False) == {}

    @responses.activate
    def test_undecoded_request_still_classifies_status(self):
        responses.add(responses.GET, f"{BASE}/api/health", body="Unauthorized", status=401)

        with pytest.raises(AuthFailure):
            self.client.request("GET", "api/health", decode=False)

    def test_timeout_is_passed_to_session(self):
        session = requests.Session()
        client = ApiClient(BASE, timeout=7, session=session)
        with pytest.MonkeyPatch.context() as mp:
            captured = {}

            def fake_request(method, url, **kwargs):
                captured.update(kwargs)
                response = requests.Response()
                response.status_code = 200
                response._content = b"{}"
                return response

            mp.setattr(session, "request", fake_request)
            client.request("GET", "api/health", timeout=2.5)
            assert captured["timeout"] == 2.5
            client.request("GET", "api/health")
            assert captured["timeout"] == 7
        session.close()
