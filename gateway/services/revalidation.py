"""
Publish-webhook revalidation.

Invalidation is lazy: dropping a tag or path only guarantees the next read
under it goes to the origin.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel

from gateway.services.cache_tags import dedupe_strings
from gateway.services.errors import InvalidSecretError


class Invalidator(Protocol):
    async def revalidate_tag(self, tag: str) -> int: ...

    async def revalidate_path(self, path: str) -> int: ...


class RevalidationRequest(BaseModel):
    secret: str
    tags: list[str]
    paths: list[str]


class RevalidationResult(BaseModel):
    revalidated: bool = True
    tags: list[str]
    paths: list[str]
    timestamp: str


def resolve_secret(
    query_secret: str | None,
    header_secret: str | None,
    body_secret: Any,
) -> str:
    """Query parameter wins over header, header over body field."""
    payload_secret = body_secret.strip() if isinstance(body_secret, str) else ""
    return query_secret or header_secret or payload_secret


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return dedupe_strings(value)


class RevalidationService:
    def __init__(self, secret: str, default_tag: str, invalidator: Invalidator):
        self._secret = secret
        self._default_tag = default_tag
        self._invalidator = invalidator

    def parse(
        self,
        body: Mapping[str, Any] | None,
        query_secret: str | None = None,
        header_secret: str | None = None,
    ) -> RevalidationRequest:
        """Validate the secret and normalise tags/paths.

        Raises:
            InvalidSecretError: no secret configured, or the supplied one differs
        """
        body = body if isinstance(body, Mapping) else {}
        provided = resolve_secret(query_secret, header_secret, body.get("secret"))

        if not self._secret or provided != self._secret:
            raise InvalidSecretError()

        return RevalidationRequest(
            secret=provided,
            tags=dedupe_strings([self._default_tag, *_string_list(body.get("tags"))]),
            paths=_string_list(body.get("paths")),
        )

    async def revalidate(
        self,
        body: Mapping[str, Any] | None,
        query_secret: str | None = None,
        header_secret: str | None = None,
    ) -> RevalidationResult:
        request = self.parse(body, query_secret, header_secret)

        for tag in request.tags:
            await self._invalidator.revalidate_tag(tag)
        for path in request.paths:
            await self._invalidator.revalidate_path(path)

        logger.info(f"Revalidated tags={request.tags} paths={request.paths}")
        return RevalidationResult(
            tags=request.tags,
            paths=request.paths,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )
