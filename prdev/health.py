"""Verify phase: one GET per endpoint, reported as ✓ or ✗.

A check passes when the status code is in the accepted set (200 and 404 by
default: the service is reachable even if the route has no data yet).
Transport errors fail the check. Nothing is retried.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import httpx

from prdev.config import Settings
from prdev.console import Color, Console

logger = logging.getLogger(__name__)


@dataclass
class Endpoint:
    description: str
    url: str


@dataclass
class HealthCheckResult:
    endpoint: Endpoint
    passed: bool
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def detail(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}"
        return self.error or 'no response'


def service_endpoints(settings: Settings) -> List[Endpoint]:
    core = f"http://localhost:{settings.core_port}"
    backend = f"http://localhost:{settings.ui_backend_port}"
    return [
        Endpoint("Policy Reporter Core health", f"{core}/healthz"),
        Endpoint("UI Backend health", f"{backend}/healthz"),
        Endpoint("Frontend", f"http://localhost:{settings.ui_frontend_port}"),
    ]


def api_endpoints(settings: Settings) -> List[Endpoint]:
    backend = f"http://localhost:{settings.ui_backend_port}"
    cluster = settings.proxy_cluster
    return [
        Endpoint("Namespaces API", f"{backend}/proxy/{cluster}/core/v2/namespaces"),
        Endpoint("Policies API", f"{backend}/proxy/{cluster}/core/v2/policies"),
        Endpoint("Layout API", f"{backend}/api/config/{cluster}/layout"),
    ]


def classify(status_code: int, accepted: Iterable[int]) -> bool:
    return status_code in set(accepted)


def format_body(body: str) -> str:
    """Pretty-print JSON bodies; anything else is returned unchanged."""
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return body


class HealthVerifier:
    """Runs the endpoint checks against the local stack."""

    def __init__(
        self,
        settings: Settings,
        console: Console,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.console = console
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.health_request_timeout,
            transport=self.transport,
        )

    async def check(self, client: httpx.AsyncClient, endpoint: Endpoint) -> HealthCheckResult:
        try:
            response = await client.get(endpoint.url)
        except httpx.HTTPError as e:
            logger.debug("GET %s failed: %r", endpoint.url, e)
            return HealthCheckResult(endpoint, passed=False, error=str(e) or type(e).__name__)
        passed = classify(response.status_code, self.settings.health_accepted_statuses)
        return HealthCheckResult(endpoint, passed=passed, status_code=response.status_code)

    async def check_endpoints(self, endpoints: List[Endpoint]) -> List[HealthCheckResult]:
        results = []
        async with self._client() as client:
            for endpoint in endpoints:
                result = await self.check(client, endpoint)
                self._report(result)
                results.append(result)
        return results

    def _report(self, result: HealthCheckResult):
        if result.passed:
            mark = self.console.colorize('✓', Color.GREEN)
        else:
            mark = self.console.colorize('✗', Color.RED)
        self.console.line(f"Testing {result.endpoint.description}... {mark}")
        logger.debug("%s -> %s", result.endpoint.url, result.detail)

    async def fetch_sample(self, client: httpx.AsyncClient, endpoint: Endpoint) -> Tuple[bool, str]:
        try:
            response = await client.get(endpoint.url)
        except httpx.HTTPError as e:
            return False, str(e) or type(e).__name__
        return True, format_body(response.text)

    async def print_samples(self):
        """Show what the namespaces and policies APIs currently return."""
        self.console.line("📊 Sample API responses:")
        samples = [e for e in api_endpoints(self.settings) if e.description != "Layout API"]
        async with self._client() as client:
            for endpoint in samples:
                ok, body = await self.fetch_sample(client, endpoint)
                title = endpoint.description.replace(' API', '')
                self.console.line('')
                self.console.line(self.console.colorize(f"{title}:", Color.BLUE))
                self.console.line(body if ok else self.console.colorize(body, Color.GRAY))
        self.console.line('')

    async def verify(self, show_samples: bool = True) -> List[HealthCheckResult]:
        """Check all six endpoints and optionally print sample responses."""
        self.console.line("🧪 Testing Policy Reporter UI Development Environment")
        self.console.line('')
        results = await self.check_endpoints(service_endpoints(self.settings))

        self.console.line('')
        self.console.line("🔍 Testing API endpoints:")
        results.extend(await self.check_endpoints(api_endpoints(self.settings)))
        self.console.line('')

        if show_samples:
            await self.print_samples()
        return results
