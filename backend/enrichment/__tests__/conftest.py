"""
Shared fixtures for enrichment tests.

All HTTP goes through httpx.MockTransport and DNS through a fake resolver,
so no test touches the network.
"""
import httpx
import pytest

from enrichment.context import EnrichmentContext

PUBLIC_IP = "93.184.216.34"


async def public_resolver(host: str) -> list[str]:
    return [PUBLIC_IP]


def not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


class RecordingHandler:
    """MockTransport handler that records requests and dispatches on host."""

    def __init__(self, routes: dict = None, default=not_found):
        self.routes = routes or {}
        self.default = default
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.host, self.default)
        return route(request)

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


def make_context(handler=None, **overrides) -> EnrichmentContext:
    """EnrichmentContext with no keys, no limiters and a mocked client."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler or not_found))
    values = dict(client=client, limiters={}, resolve_host=public_resolver)
    values.update(overrides)
    return EnrichmentContext(**values)


def image_response(content_type: str = "image/jpeg"):
    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": content_type}, content=b"\xff\xd8img")
    return respond


@pytest.fixture
def make_ctx():
    return make_context


@pytest.fixture
def recording_handler():
    return RecordingHandler


@pytest.fixture
def image():
    return image_response
