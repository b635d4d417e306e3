"""Tests for the FastAPI routes."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from gateway.api.server import create_app


def origin(path, params):
    if path == "destinations":
        return {"data": [{"name": "Zanzibar", "slug": "zanzibar", "description": "Isles"}]}
    if path == "articles":
        return {"data": [{"title": "Zanzibar guide", "slug": "zanzibar-guide"}]}
    if path == "cities" and params.get("fields"):
        return {"data": [{"slug": "arusha", "updatedAt": "2026-01-01T00:00:00.000Z"}]}
    if path == "rental-vehicles" and params.get("status") == "draft":
        return {"data": [{"name": "Hilux", "slug": "hilux"}]}
    return {"data": []}


@pytest.fixture
async def api(make_origin, settings):
    client, stub = make_origin(origin)
    app = create_app(settings, client)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        http.origin = stub
        yield http


async def test_revalidate_with_header_secret(api):
    response = await api.post(
        "/api/revalidate",
        json={"tags": ["tours"], "paths": ["/tours"]},
        headers={"x-revalidate-secret": "s3cret"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["revalidated"] is True
    assert body["tags"] == ["strapi", "tours"]
    assert body["paths"] == ["/tours"]
    assert "timestamp" in body


async def test_revalidate_with_query_secret_and_empty_body(api):
    response = await api.post("/api/revalidate?secret=s3cret")

    assert response.status_code == 200
    assert response.json()["tags"] == ["strapi"]


async def test_revalidate_rejects_wrong_secret(api):
    response = await api.post("/api/revalidate", json={"secret": "nope"})

    assert response.status_code == 401
    assert response.json() == {"revalidated": False, "error": "Invalid revalidation secret."}


async def test_revalidate_rejects_when_no_secret_configured(make_origin, settings):
    unconfigured = settings.model_copy(update={"revalidate_secret": ""})
    client, _ = make_origin(origin, unconfigured)
    app = create_app(unconfigured, client)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        response = await http.post("/api/revalidate?secret=", json={"secret": ""})

    assert response.status_code == 401
    assert response.json()["revalidated"] is False


async def test_revalidate_drops_cached_content(api):
    await api.get("/api/search", params={"q": "zan"})
    await api.post("/api/revalidate", headers={"x-revalidate-secret": "s3cret"})
    await api.get("/api/search", params={"q": "zan"})

    assert len(api.origin.requests) == 6


async def test_search_short_query_returns_empty(api):
    response = await api.get("/api/search", params={"q": "z"})

    assert response.json() == {"results": []}
    assert api.origin.requests == []


async def test_search_returns_uniform_results(api):
    response = await api.get("/api/search", params={"q": "za"})

    assert response.status_code == 200
    assert response.json()["results"] == [
        {"type": "destination", "title": "Zanzibar", "slug": "/tanzania/zanzibar", "description": "Isles"},
        {"type": "guide", "title": "Zanzibar guide", "slug": "/guides/zanzibar-guide", "description": "Travel Guide"},
    ]


async def test_homepage_route(api):
    response = await api.get("/api/homepage")

    assert response.status_code == 200
    assert set(response.json()) == {"destinations", "tours", "articles", "transfers"}


async def test_rentals_route_survives_origin_outage(make_origin, settings):
    client, _ = make_origin(lambda path, params: httpx.Response(503))
    app = create_app(settings, client)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        response = await http.get("/api/rentals")

    assert response.status_code == 200
    assert response.json() == {"transfers": [], "vehicles": []}


async def test_vehicle_route_uses_draft_fallback(api):
    response = await api.get("/api/rentals/vehicles/hilux")

    assert response.status_code == 200
    assert response.json()["name"] == "Hilux"


async def test_transfer_route_not_found(api):
    response = await api.get("/api/rentals/transfers/nowhere")

    assert response.status_code == 404


async def test_sitemap_xml(api):
    response = await api.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "<loc>https://site.test/tanzania/arusha</loc>" in response.text
    assert "<loc>https://site.test/about</loc>" in response.text


async def test_health(api):
    response = await api.get("/health")

    body = response.json()
    assert body["status"] == "ok"
    assert body["authenticated"] is True
