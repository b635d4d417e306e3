"""Shared fixtures: settings and a scripted Strapi origin."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from gateway.services.client import OriginClient
from gateway.services.query import parse_params
from gateway.settings import Settings

Handler = Callable[[str, dict[str, Any]], Any]


class OriginStub:
    """Records origin requests and answers them from a handler.

    The handler receives the collection name and the parsed query and
    returns either an ``httpx.Response`` or a JSON-able body (sent as 200).
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        collection = request.url.path.removeprefix("/api/")
        params = parse_params(request.url.query.decode())
        answer = self.handler(collection, params)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def params(self, index: int) -> dict[str, Any]:
        return parse_params(self.requests[index].url.query.decode())

    def collections(self) -> list[str]:
        return [r.url.path.removeprefix("/api/") for r in self.requests]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        strapi_url="https://cms.test",
        strapi_token="test-token",
        revalidate_secret="s3cret",
        cache_default_tag="strapi",
        default_revalidate_seconds=60,
        site_url="https://site.test",
        media_version=None,
    )


@pytest.fixture
async def make_origin(settings: Settings):
    """Build an (OriginClient, OriginStub) pair around a handler."""
    clients: list[OriginClient] = []
    http_clients: list[httpx.AsyncClient] = []

    def factory(handler: Handler, custom_settings: Settings | None = None):
        stub = OriginStub(handler)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        client = OriginClient(custom_settings or settings, http_client=http_client)
        clients.append(client)
        http_clients.append(http_client)
        return client, stub

    yield factory

    for client in clients:
        await client.close()
    for http_client in http_clients:
        await http_client.aclose()
