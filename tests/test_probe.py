"""Tests for the connectivity probe."""

import pytest
import requests
import responses
from responses import matchers

from noticeboard_sync.errors import TransportFailure
from noticeboard_sync.sync.http_client import ApiClient
from noticeboard_sync.sync.probe import ConnectivityProbe, ProbeStatus

BASE = "http://school.test"
HEALTH_URL = f"{BASE}/api/health"


class TestConnectivityProbe:
    """Tests for ConnectivityProbe."""

    def setup_method(self):
        self.client = ApiClient(BASE)
        self.probe = ConnectivityProbe(self.client, timeout=5)

    def teardown_method(self):
        self.client.close()

    @responses.activate
    def test_online(self):
        responses.add(
            responses.GET,
            HEALTH_URL,
            json={"status": "ok"},
            status=200,
            match=[matchers.header_matcher({"Authorization": "Bearer tok"})],
        )

        outcome = self.probe.probe("tok")

        assert outcome.status is ProbeStatus.ONLINE
        assert outcome.is_online is True
        assert outcome.cause is None

    @responses.activate
    def test_plain_text_health_body_is_online(self):
        """Only the status code matters; the health body need not be JSON."""
        responses.add(
            responses.GET, HEALTH_URL, body="OK", status=200, content_type="text/plain"
        )

        outcome = self.probe.probe("tok")

        assert outcome.status is ProbeStatus.ONLINE
        assert outcome.cause is None

    @responses.activate
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_expired(self, status):
        responses.add(responses.GET, HEALTH_URL, status=status)

        outcome = self.probe.probe("tok")

        assert outcome.status is ProbeStatus.AUTH_EXPIRED
        assert outcome.is_online is False

    @responses.activate
    def test_connection_refused_is_unreachable(self):
        responses.add(
            responses.GET, HEALTH_URL, body=requests.exceptions.ConnectionError("refused")
        )

        outcome = self.probe.probe("tok")

        assert outcome.status is ProbeStatus.UNREACHABLE
        assert isinstance(outcome.cause, TransportFailure)

    @responses.activate
    def test_timeout_is_unreachable(self):
        responses.add(
            responses.GET, HEALTH_URL, body=requests.exceptions.ConnectTimeout("slow")
        )

        assert self.probe.probe("tok").status is ProbeStatus.UNREACHABLE

    @responses.activate
    @pytest.mark.parametrize("status", [404, 500, 502])
    def test_non_auth_error_is_unreachable(self, status):
        responses.add(responses.GET, HEALTH_URL, status=status)

        assert self.probe.probe("tok").status is ProbeStatus.UNREACHABLE

    @responses.activate
    def test_probe_without_token_sends_no_header(self):
        responses.add(responses.GET, HEALTH_URL, status=401)

        outcome = self.probe.probe(None)

        assert "Authorization" not in responses.calls[0].request.headers
        assert outcome.status is ProbeStatus.AUTH_EXPIRED

    @pytest.mark.parametrize("timeout", [0, -1, None])
    def test_timeout_is_mandatory(self, timeout):
        with pytest.raises(ValueError):
            ConnectivityProbe(self.client, timeout=timeout)
