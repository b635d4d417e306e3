"""
Draft fallback resolution.

Content editors expect a freshly created entry to show up before it is
published, while visitors on the normal path only ever see published
content. Lookups for such collections go through PUBLISHED_THEN_DRAFT:
the draft query is only issued when the published query finds nothing.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from loguru import logger

from gateway.services.cache_tags import FetchOptions
from gateway.services.client import ContentEnvelope, OriginClient


class RetrievalStrategy(str, Enum):
    PUBLISHED_ONLY = "published_only"
    PUBLISHED_THEN_DRAFT = "published_then_draft"


# Collections whose entries may exist only as drafts while being set up.
DEFAULT_STRATEGIES: dict[str, RetrievalStrategy] = {
    "transfer-routes": RetrievalStrategy.PUBLISHED_THEN_DRAFT,
    "rental-vehicles": RetrievalStrategy.PUBLISHED_THEN_DRAFT,
}


class DraftFallbackResolver:
    """Runs published-only or published-then-draft lookups."""

    def __init__(
        self,
        client: OriginClient,
        strategies: Mapping[str, RetrievalStrategy] | None = None,
    ):
        self.client = client
        self.strategies = dict(DEFAULT_STRATEGIES if strategies is None else strategies)

    def strategy_for(self, path: str) -> RetrievalStrategy:
        return self.strategies.get(path.strip("/"), RetrievalStrategy.PUBLISHED_ONLY)

    async def find_many(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        strategy: RetrievalStrategy | None = None,
        tags: tuple[str, ...] = (),
    ) -> ContentEnvelope:
        """Listing lookup; returns the first non-empty envelope."""
        strategy = strategy or self.strategy_for(path)
        options = FetchOptions(bypass=True, tags=tags)

        published = await self.client.fetch(
            path, {**(params or {}), "status": "published"}, options
        )
        if published.items or strategy is RetrievalStrategy.PUBLISHED_ONLY:
            return published

        logger.debug(f"No published entries for {path}, retrying with drafts")
        draft = await self.client.fetch(path, {**(params or {}), "status": "draft"}, options)
        if draft.items:
            logger.info(f"Resolved {path} from draft entries")
            return draft

        # Prefer a confirmed-empty answer over an unavailable one.
        return published if draft.is_unavailable and not published.is_unavailable else draft

    async def find_by_slug(
        self,
        path: str,
        slug: str,
        params: Mapping[str, Any] | None = None,
        strategy: RetrievalStrategy | None = None,
        tags: tuple[str, ...] = (),
    ) -> Any | None:
        """Single-entity lookup by slug; returns the entity or ``None``."""
        params = dict(params or {})
        caller_filters = params.pop("filters", None)
        # The slug condition is merged into, never replaced by, caller filters.
        filters = dict(caller_filters) if isinstance(caller_filters, Mapping) else {}
        filters["slug"] = {"$eq": slug}
        query = {"filters": filters, **params, "pagination": {"limit": 1}}
        envelope = await self.find_many(path, query, strategy=strategy, tags=tags)
        return envelope.first
