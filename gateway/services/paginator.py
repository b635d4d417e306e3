"""
Paginated collector - pages through a whole collection (sitemap use).
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from gateway.services.cache_tags import FetchOptions
from gateway.services.client import OriginClient
from gateway.services.errors import ErrorKind

SITEMAP_FIELDS = ("slug", "updatedAt")


@dataclass
class CollectionResult:
    """All entries of one collection, or an empty list if it failed."""

    path: str
    items: list[dict[str, Any]] = field(default_factory=list)
    requests: int = 0
    failed: bool = False
    error: str | None = None

    @property
    def kind(self) -> ErrorKind | None:
        return ErrorKind.PARTIAL_FAILURE if self.failed else None


class PaginatedCollector:
    """
    Exhaustively pages a collection with offset pagination.

    Stops on the first page shorter than ``page_size`` (including an empty
    page), so a collection of N entries costs at most ``N // page_size + 1``
    requests.
    """

    def __init__(
        self,
        client: OriginClient,
        page_size: int = 100,
        fields: Iterable[str] = SITEMAP_FIELDS,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size
        self.fields = list(fields)

    async def collect(self, path: str) -> CollectionResult:
        result = CollectionResult(path=path)
        offset = 0

        while True:
            params = {
                "fields": self.fields,
                "pagination": {"start": offset, "limit": self.page_size},
            }
            envelope = await self.client.fetch(
                path, params, FetchOptions(tags=(path.strip("/"),))
            )
            result.requests += 1

            if envelope.is_unavailable:
                logger.warning(
                    f"Collecting {path} failed at offset {offset}: {envelope.error}"
                )
                return CollectionResult(
                    path=path,
                    requests=result.requests,
                    failed=True,
                    error=envelope.error,
                )

            page = envelope.items
            result.items.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.debug(
            f"Collected {len(result.items)} entries from {path} in {result.requests} requests"
        )
        return result

    async def collect_many(self, paths: Iterable[str]) -> dict[str, CollectionResult]:
        """Collect several collections concurrently; each fails on its own."""
        paths = list(paths)
        results = await asyncio.gather(*(self.collect(p) for p in paths))
        return dict(zip(paths, results))
