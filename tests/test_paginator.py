"""Tests for exhaustive collection paging."""

import httpx
import pytest

from gateway.services.errors import ErrorKind
from gateway.services.paginator import PaginatedCollector


def paged(sizes):
    """Serve one page per request with the given page sizes."""
    pages = iter(sizes)

    def handler(path, params):
        size = next(pages)
        if isinstance(size, httpx.Response):
            return size
        start = int(params["pagination"]["start"])
        return {"data": [{"slug": f"{path}-{start + i}", "updatedAt": "2026-01-01"} for i in range(size)]}

    return handler


async def test_short_last_page_stops_collection(make_origin):
    client, origin = make_origin(paged([100, 100, 37]))

    result = await PaginatedCollector(client, page_size=100).collect("tours")

    assert len(origin.requests) == 3
    assert result.requests == 3
    assert len(result.items) == 237
    assert result.items[0]["slug"] == "tours-0"
    assert result.items[-1]["slug"] == "tours-236"
    assert not result.failed


async def test_full_pages_end_with_an_empty_page(make_origin):
    client, origin = make_origin(paged([100, 100, 100, 0]))

    result = await PaginatedCollector(client, page_size=100).collect("tours")

    assert len(origin.requests) == 4
    assert len(result.items) == 300


async def test_offsets_and_minimal_fields_are_requested(make_origin):
    client, origin = make_origin(paged([100, 5]))

    await PaginatedCollector(client, page_size=100).collect("cities")

    assert origin.params(0) == {
        "fields": ["slug", "updatedAt"],
        "pagination": {"start": "0", "limit": "100"},
    }
    assert origin.params(1)["pagination"] == {"start": "100", "limit": "100"}


async def test_failure_degrades_collection_to_empty(make_origin):
    client, _ = make_origin(paged([100, httpx.Response(502)]))

    result = await PaginatedCollector(client, page_size=100).collect("tours")

    assert result.failed
    assert result.items == []
    assert result.requests == 2


async def test_collect_many_isolates_failing_collection(make_origin):
    def handler(path, params):
        if path == "rental-vehicles":
            return httpx.Response(404)
        return {"data": [{"slug": f"{path}-1", "updatedAt": "2026-01-01"}]}

    client, _ = make_origin(handler)

    results = await PaginatedCollector(client).collect_many(["cities", "rental-vehicles", "tours"])

    assert list(results) == ["cities", "rental-vehicles", "tours"]
    assert results["rental-vehicles"].failed
    assert results["rental-vehicles"].items == []
    assert results["cities"].items == [{"slug": "cities-1", "updatedAt": "2026-01-01"}]
    assert results["rental-vehicles"].kind is ErrorKind.PARTIAL_FAILURE
    assert results["cities"].kind is None
    assert len(results["tours"].items) == 1


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        PaginatedCollector(client=None, page_size=0)
