"""Tests for the API readiness probe"""

from dataclasses import replace

import httpx
import pytest

from nodeboot.api.client import APIError, Client
from nodeboot.bootstrap.readiness import ReadinessProber, normalize_health_url, probe_target
from nodeboot.errors import ReadinessError


def transport_for(statuses, seen=None):
    """MockTransport answering with the given status codes in turn"""
    statuses = list(statuses)

    def handler(request):
        if seen is not None:
            seen.append(request)
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        if isinstance(status, Exception):
            raise status
        return httpx.Response(status, text="ok" if status == 200 else "not ready")

    return httpx.MockTransport(handler)


class TestNormalizeHealthUrl:
    @pytest.mark.parametrize(
        "target,expected",
        [
            ("1.1.1.1", "https://1.1.1.1:6443/healthz"),
            ("1.1.1.1:6443", "https://1.1.1.1:6443/healthz"),
            ("https://1.1.1.1:6443", "https://1.1.1.1:6443/healthz"),
            ("https://1.1.1.1:6443/", "https://1.1.1.1:6443/healthz"),
            ("https://1.1.1.1:6443/healthz", "https://1.1.1.1:6443/healthz"),
            ("http://lb.example.com", "https://lb.example.com:6443/healthz"),
            ("lb.example.com:8443", "https://lb.example.com:8443/healthz"),
        ],
    )
    def test_normalize(self, target, expected):
        assert normalize_health_url(target) == expected

    def test_rejects_empty_target(self):
        with pytest.raises(ReadinessError):
            normalize_health_url("")


class TestProbeTarget:
    def test_agent_uses_join_url(self, agent_config):
        assert probe_target(agent_config) == "1.1.1.1:6443"

    def test_joining_server_uses_load_balancer(self, server_config):
        assert probe_target(replace(server_config, is_init=False)) == "1.1.1.1"

    def test_initial_server_uses_local_api(self, server_config):
        assert probe_target(server_config) == "127.0.0.1"


class TestWaitForApi:
    def test_healthy_immediately(self, fake_sleep, sleeps):
        seen = []
        prober = ReadinessProber(fake_sleep, transport=transport_for([200], seen))

        prober.wait_for_api("1.1.1.1")

        assert sleeps == []
        assert str(seen[0].url) == "https://1.1.1.1:6443/healthz"
        assert seen[0].method == "GET"

    def test_only_200_is_healthy(self, fake_sleep, sleeps):
        prober = ReadinessProber(fake_sleep, transport=transport_for([503, 401, 500, 200]))

        prober.wait_for_api("1.1.1.1")

        assert sleeps == [5, 5, 5]

    def test_connection_errors_are_retried(self, fake_sleep, sleeps):
        refused = httpx.ConnectError("connection refused")
        prober = ReadinessProber(fake_sleep, transport=transport_for([refused, refused, 200]))

        prober.wait_for_api("https://1.1.1.1:6443")

        assert sleeps == [5, 5]

    def test_gives_up_after_ceiling(self, fake_sleep, sleeps):
        seen = []
        prober = ReadinessProber(fake_sleep, transport=transport_for([503], seen))

        with pytest.raises(ReadinessError, match="never became ready"):
            prober.wait_for_api("1.1.1.1")

        assert len(seen) == 60
        assert len(sleeps) == 59
        assert set(sleeps) == {5}


class TestClient:
    def test_healthz_status(self):
        client = Client("https://10.0.0.1:6443", transport=transport_for([200]))
        assert client.healthz() == 200

    def test_defaults_relax_verification(self):
        client = Client("https://10.0.0.1:6443/")
        assert client.verify is False
        assert client.timeout == 2.0
        assert client.base_url == "https://10.0.0.1:6443"

    def test_transport_error_wrapped(self):
        client = Client("https://10.0.0.1:6443", transport=transport_for([httpx.ReadTimeout("slow")]))
        with pytest.raises(APIError):
            client.healthz()
