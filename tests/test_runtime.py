"""
Unit tests for the injected runtime capabilities.
"""

from datetime import datetime, timezone

import httpx

from core.runtime import (
    HttpConnectivityProbe,
    StaticConnectivityProbe,
    to_millis,
    utc_now,
    uuid_id_generator,
)


class TestConnectivityProbes:
    """Test online/offline detection."""

    def test_static_probe(self):
        probe = StaticConnectivityProbe(online=False)
        assert probe.is_online() is False
        probe.set_online(True)
        assert probe.is_online() is True

    def test_http_probe_online(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"status": "ok"})

        probe = HttpConnectivityProbe("http://remote.test", transport=httpx.MockTransport(handler))

        assert probe.is_online() is True
        assert paths == ["/health"]

    def test_http_probe_unhealthy(self):
        probe = HttpConnectivityProbe(
            "http://remote.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        assert probe.is_online() is False

    def test_http_probe_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("no route to host", request=request)

        probe = HttpConnectivityProbe("http://remote.test", transport=httpx.MockTransport(handler))
        assert probe.is_online() is False


class TestClockAndIds:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None

    def test_to_millis(self):
        moment = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert to_millis(moment) == 1767225600000

    def test_uuid_ids_are_unique(self):
        assert len({uuid_id_generator() for _ in range(100)}) == 100
