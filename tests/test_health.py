"""Tests for HealthVerifier using httpx.MockTransport (no sockets)."""

import json

import httpx
import pytest

from prdev.config import Settings
from prdev.health import (
    HealthVerifier,
    api_endpoints,
    classify,
    format_body,
    service_endpoints,
)

EXPECTED_URLS = [
    "http://localhost:8081/healthz",
    "http://localhost:8082/healthz",
    "http://localhost:3000",
    "http://localhost:8082/proxy/default/core/v2/namespaces",
    "http://localhost:8082/proxy/default/core/v2/policies",
    "http://localhost:8082/api/config/default/layout",
]


def _transport(status_code: int = 200, body: str = "{}") -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=body)
    return httpx.MockTransport(handler)


def _refusing_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)
    return httpx.MockTransport(handler)


def test_six_fixed_endpoints(settings):
    urls = [e.url for e in service_endpoints(settings) + api_endpoints(settings)]
    assert urls == EXPECTED_URLS


@pytest.mark.parametrize("status_code, passed", [
    (200, True),
    (404, True),
    (201, False),
    (301, False),
    (500, False),
    (503, False),
])
def test_classify(status_code, passed):
    assert classify(status_code, [200, 404]) is passed


class TestVerify:

    @pytest.mark.parametrize("status_code", [200, 404])
    async def test_reachable_statuses_pass_everywhere(self, settings, console, status_code):
        verifier = HealthVerifier(settings, console, transport=_transport(status_code))
        results = await verifier.verify(show_samples=False)

        assert [r.endpoint.url for r in results] == EXPECTED_URLS
        assert all(r.passed for r in results)
        assert all(r.status_code == status_code for r in results)

    @pytest.mark.parametrize("status_code", [500, 502, 401])
    async def test_error_statuses_fail_everywhere(self, settings, console, status_code):
        verifier = HealthVerifier(settings, console, transport=_transport(status_code))
        results = await verifier.verify(show_samples=False)

        assert len(results) == 6
        assert not any(r.passed for r in results)
        assert results[0].detail == f"HTTP {status_code}"

    async def test_connection_refused_fails(self, settings, console):
        verifier = HealthVerifier(settings, console, transport=_refusing_transport())
        results = await verifier.verify(show_samples=False)

        assert len(results) == 6
        assert not any(r.passed for r in results)
        assert all(r.status_code is None for r in results)
        assert "Connection refused" in results[0].detail

    async def test_mixed_results_are_per_endpoint(self, settings, console, output):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.port == 8081:
                return httpx.Response(500)
            return httpx.Response(200, text="ok")

        verifier = HealthVerifier(settings, console, transport=httpx.MockTransport(handler))
        results = await verifier.verify(show_samples=False)

        assert [r.passed for r in results] == [False, True, True, True, True, True]
        text = output.getvalue()
        assert "Testing Policy Reporter Core health... ✗" in text
        assert "Testing UI Backend health... ✓" in text
        assert "Testing Layout API... ✓" in text

    async def test_accepted_statuses_are_configurable(self, console):
        settings = Settings(_env_file=None, health_accepted_statuses=[200])
        verifier = HealthVerifier(settings, console, transport=_transport(404))
        results = await verifier.verify(show_samples=False)
        assert not any(r.passed for r in results)


class TestSamples:

    async def test_json_is_pretty_printed(self, settings, console, output):
        body = json.dumps(["default", "kube-system"])
        verifier = HealthVerifier(settings, console, transport=_transport(200, body))
        await verifier.print_samples()

        text = output.getvalue()
        assert "Namespaces:" in text
        assert "Policies:" in text
        assert '  "kube-system"' in text

    async def test_unreachable_sample_does_not_raise(self, settings, console, output):
        verifier = HealthVerifier(settings, console, transport=_refusing_transport())
        await verifier.print_samples()
        assert "Connection refused" in output.getvalue()


def test_format_body_passes_through_non_json():
    assert format_body("<html>nuxt</html>") == "<html>nuxt</html>"
    assert format_body('{"a":1}') == '{\n  "a": 1\n}'
