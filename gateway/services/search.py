"""
Aggregated search across content collections.
"""

import asyncio
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel

from gateway.services.cache_tags import FetchOptions
from gateway.services.client import OriginClient
from gateway.services.errors import ErrorKind

MIN_QUERY_LENGTH = 2


class SearchResult(BaseModel):
    type: str
    title: str
    slug: str
    description: str = ""


def strip_html(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return re.sub(r"<[^>]*>", "", value).strip()


def truncate(text: str, limit: int = 160) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


@dataclass(frozen=True)
class SearchTarget:
    """One searchable collection and how its entries map to results."""

    type: str
    path: str
    field: str
    slug_prefix: str
    describe: Callable[[dict[str, Any]], str]

    def to_result(self, item: dict[str, Any]) -> SearchResult:
        return SearchResult(
            type=self.type,
            title=str(item.get(self.field) or ""),
            slug=f"{self.slug_prefix}/{item.get('slug', '')}",
            description=self.describe(item),
        )


@dataclass(frozen=True)
class SearchOutcome:
    """Merged results plus the collections that could not be searched."""

    results: list[SearchResult]
    failed: tuple[str, ...] = ()

    @property
    def kind(self) -> ErrorKind | None:
        return ErrorKind.PARTIAL_FAILURE if self.failed else None


DEFAULT_TARGETS: tuple[SearchTarget, ...] = (
    SearchTarget(
        type="destination",
        path="destinations",
        field="name",
        slug_prefix="/tanzania",
        describe=lambda item: truncate(strip_html(item.get("description"))),
    ),
    SearchTarget(
        type="tour",
        path="tours",
        field="name",
        slug_prefix="/tours",
        describe=lambda item: str(item.get("duration") or "Tour"),
    ),
    SearchTarget(
        type="guide",
        path="articles",
        field="title",
        slug_prefix="/guides",
        describe=lambda item: "Travel Guide",
    ),
)


class AggregatedSearch:
    """
    Fans a free-text query out to every target collection.

    Results are concatenated in target order, neither ranked nor
    deduplicated. A failing collection contributes nothing and is logged;
    the others still return.
    """

    def __init__(
        self,
        client: OriginClient,
        targets: Sequence[SearchTarget] = DEFAULT_TARGETS,
        limit_per_collection: int = 10,
    ):
        self.client = client
        self.targets = tuple(targets)
        self.limit_per_collection = limit_per_collection

    async def _search_target(
        self, target: SearchTarget, query: str
    ) -> list[SearchResult] | None:
        envelope = await self.client.fetch(
            target.path,
            {
                "filters": {target.field: {"$containsi": query}},
                "pagination": {"limit": self.limit_per_collection},
            },
            FetchOptions(tags=(target.path,)),
        )
        if envelope.is_unavailable:
            logger.warning(f"Search in {target.path} failed: {envelope.error}")
            return None
        return [target.to_result(item) for item in envelope.items if isinstance(item, dict)]

    async def search_collections(self, query: str | None) -> SearchOutcome:
        """Search every target; failed collections are listed, not raised."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return SearchOutcome(results=[])

        groups = await asyncio.gather(
            *(self._search_target(target, query) for target in self.targets)
        )
        results = [result for group in groups if group for result in group]
        failed = tuple(t.path for t, group in zip(self.targets, groups) if group is None)
        if failed:
            logger.warning(f"Search '{query}' degraded ({ErrorKind.PARTIAL_FAILURE.value}): {failed}")
        logger.debug(f"Search '{query}' matched {len(results)} entries")
        return SearchOutcome(results=results, failed=failed)

    async def search(self, query: str | None) -> list[SearchResult]:
        return (await self.search_collections(query)).results
