"""Tests for aggregated multi-collection search."""

import httpx
import pytest

from gateway.services.errors import ErrorKind
from gateway.services.search import AggregatedSearch, SearchResult, SearchTarget

TARGETS = (
    SearchTarget(
        type="destination",
        path="destinations",
        field="name",
        slug_prefix="/tanzania",
        describe=lambda item: item.get("description", ""),
    ),
    SearchTarget(
        type="guide",
        path="articles",
        field="title",
        slug_prefix="/guides",
        describe=lambda item: "Travel Guide",
    ),
)


def collections(answers):
    def handler(path, params):
        answer = answers[path]
        return answer if isinstance(answer, httpx.Response) else {"data": answer}

    return handler


@pytest.mark.parametrize("query", [None, "", "z", " z "])
async def test_short_query_issues_no_request(make_origin, query):
    client, origin = make_origin(collections({}))

    assert await AggregatedSearch(client, TARGETS).search(query) == []
    assert origin.requests == []


async def test_results_are_merged_in_target_order(make_origin):
    client, origin = make_origin(
        collections(
            {
                "destinations": [{"name": "Zanzibar", "slug": "zanzibar", "description": "Spice island"}],
                "articles": [{"title": "Zanzibar on a budget", "slug": "zanzibar-budget"}],
            }
        )
    )

    results = await AggregatedSearch(client, TARGETS).search("za")

    assert results == [
        SearchResult(type="destination", title="Zanzibar", slug="/tanzania/zanzibar", description="Spice island"),
        SearchResult(type="guide", title="Zanzibar on a budget", slug="/guides/zanzibar-budget", description="Travel Guide"),
    ]
    assert len(origin.requests) == 2


async def test_each_collection_is_filtered_on_its_text_field(make_origin):
    client, origin = make_origin(collections({"destinations": [], "articles": []}))

    await AggregatedSearch(client, TARGETS).search("stone")

    filters = {
        r.url.path: origin.params(i)["filters"] for i, r in enumerate(origin.requests)
    }
    assert filters["/api/destinations"] == {"name": {"$containsi": "stone"}}
    assert filters["/api/articles"] == {"title": {"$containsi": "stone"}}


async def test_failing_collection_does_not_fail_search(make_origin):
    client, _ = make_origin(
        collections(
            {
                "destinations": httpx.Response(500),
                "articles": [{"title": "Safari packing list", "slug": "packing"}],
            }
        )
    )

    results = await AggregatedSearch(client, TARGETS).search("sa")

    assert [r.type for r in results] == ["guide"]


async def test_default_targets_cover_destinations_tours_and_guides(make_origin):
    client, origin = make_origin(
        collections(
            {
                "destinations": [{"name": "Arusha", "slug": "arusha", "description": "<p>Gateway</p>"}],
                "tours": [{"name": "Arusha day trip", "slug": "arusha-day", "duration": "1 day"}],
                "articles": [],
            }
        )
    )

    results = await AggregatedSearch(client).search("arusha")

    assert [(r.type, r.slug, r.description) for r in results] == [
        ("destination", "/tanzania/arusha", "Gateway"),
        ("tour", "/tours/arusha-day", "1 day"),
    ]


async def test_failed_collections_are_reported_as_partial_failure(make_origin):
    client, _ = make_origin(
        collections(
            {
                "destinations": httpx.Response(503),
                "articles": [{"title": "Stone Town walk", "slug": "stone-town"}],
            }
        )
    )

    outcome = await AggregatedSearch(client, TARGETS).search_collections("stone")

    assert outcome.failed == ("destinations",)
    assert outcome.kind is ErrorKind.PARTIAL_FAILURE
    assert [r.slug for r in outcome.results] == ["/guides/stone-town"]


async def test_complete_search_has_no_failure_kind(make_origin):
    client, _ = make_origin(collections({"destinations": [], "articles": []}))

    outcome = await AggregatedSearch(client, TARGETS).search_collections("stone")

    assert outcome.failed == ()
    assert outcome.kind is None
