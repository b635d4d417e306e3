"""
OriginClient - async reader for the Strapi content API.

Combines:
- Query composition and bearer auth injection
- CacheManager for tag-aware response caching
- RequestDeduplicator for concurrent identical reads

Every outcome is normalised into a ContentEnvelope; transport and status
failures never propagate past ``fetch``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import httpx
from loguru import logger

from gateway.services.cache import CacheManager
from gateway.services.cache_tags import CacheTagCoordinator, FetchOptions
from gateway.services.deduplicator import RequestDeduplicator
from gateway.services.errors import (
    BackendUnavailableError,
    ErrorKind,
    RequestTimeoutError,
)
from gateway.services.query import build_url
from gateway.settings import Settings


@dataclass
class ContentEnvelope:
    """Uniform result of an origin read: ``{data, error?}``.

    ``data is None`` means the origin was unavailable; ``data == []`` is a
    confirmed empty result. The two render alike but are not the same state.
    """

    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    stale: bool = False

    @classmethod
    def unavailable(cls, error: str) -> "ContentEnvelope":
        return cls(data=None, error=error, error_kind=ErrorKind.BACKEND_UNAVAILABLE)

    @property
    def kind(self) -> ErrorKind | None:
        if self.data is None:
            return self.error_kind or ErrorKind.BACKEND_UNAVAILABLE
        if self.data == []:
            return ErrorKind.EMPTY_RESULT
        return None

    @property
    def is_unavailable(self) -> bool:
        return self.data is None

    @property
    def is_empty(self) -> bool:
        return self.data == []

    @property
    def items(self) -> list[Any]:
        """Data as a list; single-type payloads become a one-item list."""
        if self.data is None:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]

    @property
    def first(self) -> Any | None:
        items = self.items
        return items[0] if items else None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"data": self.data}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class OriginClient:
    """
    Reader for ``{base}/api/{collection}`` with caching and auth.

    Usage:
        client = OriginClient(settings)

        envelope = await client.fetch(
            "tours",
            {"filters": {"slug": {"$eq": "safari"}}, "populate": ["heroImage"]},
            FetchOptions(tags=("tours",)),
        )
        if envelope.is_unavailable:
            ...
    """

    SERVICE_ID = "strapi"

    def __init__(
        self,
        settings: Settings,
        cache: CacheManager | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings
        self._cache = cache or CacheManager(
            max_size=settings.cache_max_size,
            debug=settings.cache_debug,
        )
        self._coordinator = CacheTagCoordinator(
            default_tag=settings.cache_default_tag,
            default_revalidate_seconds=settings.default_revalidate_seconds,
        )
        self._deduplicator = RequestDeduplicator(debug=settings.cache_debug)
        self._http_client = http_client
        self._owns_http_client = http_client is None

        if not settings.strapi_token:
            logger.debug("STRAPI_API_TOKEN not set, origin reads are unauthenticated")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> CacheManager:
        return self._cache

    @property
    def coordinator(self) -> CacheTagCoordinator:
        return self._coordinator

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.strapi_timeout),
                follow_redirects=True,
            )
        return self._http_client

    def _build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.strapi_token:
            headers["Authorization"] = f"Bearer {self._settings.strapi_token}"
        return headers

    async def fetch(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        options: FetchOptions | None = None,
    ) -> ContentEnvelope:
        """
        Read a collection or single type from the origin.

        Args:
            path: Collection path, e.g. ``"tours"`` or ``"/tours"``
            params: Nested filters/populate/sort/pagination mapping
            options: Freshness options (TTL, tags, bypass, page path)

        Returns:
            ContentEnvelope; ``data`` is None when the origin is unavailable
        """
        options = options or FetchOptions()
        directive = self._coordinator.for_options(options)
        url = build_url(self._settings.strapi_url, path, params)
        cache_key = self._cache.generate_key(url)

        stale_body: dict[str, Any] | None = None
        if directive.cacheable:
            cached = await self._cache.get(cache_key)
            if cached and not cached.is_stale:
                return self._to_envelope(cached.data)
            stale_body = cached.data if cached else None

        try:
            if directive.bypass:
                body = await self._execute_request(url)
            else:
                body = await self._deduplicator.dedupe(
                    cache_key, lambda: self._execute_request(url)
                )
        except BackendUnavailableError as e:
            if stale_body is not None:
                logger.warning(f"Origin read {path} failed, serving stale data: {e}")
                envelope = self._to_envelope(stale_body)
                envelope.stale = True
                return envelope

            logger.error(f"Origin read {path} failed: {e}")
            return ContentEnvelope.unavailable(str(e))

        envelope = self._to_envelope(body)
        if envelope.is_unavailable:
            logger.warning(f"Origin read {path} returned no data: {envelope.error}")
            return envelope

        if envelope.is_empty:
            logger.debug(f"Origin read {path} returned an empty result")

        if directive.cacheable:
            await self._cache.set(
                cache_key,
                body,
                ttl=timedelta(seconds=directive.revalidate_seconds or 0),
                tags=directive.tags,
                paths=(options.page_path,) if options.page_path else (),
            )

        return envelope

    def _to_envelope(self, body: Any) -> ContentEnvelope:
        if not isinstance(body, dict):
            return ContentEnvelope.unavailable("Malformed origin response")

        error = body.get("error")
        if isinstance(error, dict):
            error = error.get("message") or error.get("name")

        return ContentEnvelope(
            data=body.get("data"),
            error=str(error) if error else None,
            error_kind=ErrorKind.BACKEND_UNAVAILABLE if body.get("data") is None else None,
            meta=body.get("meta") or {},
        )

    async def _execute_request(self, url: str) -> Any:
        """Execute the HTTP GET; raises BackendUnavailableError on any failure."""
        client = self._get_http_client()
        timeout = self._settings.strapi_timeout

        try:
            response = await client.get(url, headers=self._build_headers())
            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            raise RequestTimeoutError(self.SERVICE_ID, timeout) from e

        except httpx.HTTPStatusError as e:
            raise BackendUnavailableError(
                f"HTTP {e.response.status_code} {e.response.reason_phrase}".strip(),
                service_id=self.SERVICE_ID,
                status_code=e.response.status_code,
            ) from e

        except httpx.RequestError as e:
            raise BackendUnavailableError(
                f"{type(e).__name__}: {e}", service_id=self.SERVICE_ID
            ) from e

        except ValueError as e:
            raise BackendUnavailableError(
                f"Invalid JSON from origin: {e}", service_id=self.SERVICE_ID
            ) from e

    async def revalidate_tag(self, tag: str) -> int:
        return await self._cache.revalidate_tag(tag)

    async def revalidate_path(self, path: str) -> int:
        return await self._cache.revalidate_path(path)

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        await self._deduplicator.cancel_all()
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
        self._http_client = None
        logger.debug("OriginClient closed")

    async def __aenter__(self) -> "OriginClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def get_health_status(self) -> dict[str, Any]:
        return {
            "origin": self._settings.strapi_url,
            "authenticated": bool(self._settings.strapi_token),
            "cache": self._cache.get_stats().to_dict(),
            "deduplicator": self._deduplicator.get_stats().to_dict(),
        }
