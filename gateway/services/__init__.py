"""
Content gateway services - every read from the Strapi origin goes through here.

Provides:
- OriginClient / ContentEnvelope: never-raising origin reads
- CacheTagCoordinator / CacheManager: TTL and tag/path invalidation
- DraftFallbackResolver: published-then-draft lookups
- PaginatedCollector: exhaustive collection paging
- AggregatedSearch: multi-collection search
"""

from gateway.services.errors import (
    BackendUnavailableError,
    ErrorKind,
    GatewayError,
    InvalidSecretError,
    RequestTimeoutError,
)
from gateway.services.cache import CacheManager, CacheEntry, CacheResult
from gateway.services.cache_tags import CacheDirective, CacheTagCoordinator, FetchOptions
from gateway.services.client import ContentEnvelope, OriginClient
from gateway.services.drafts import DraftFallbackResolver, RetrievalStrategy
from gateway.services.media import MediaResolver, resolve_media_url
from gateway.services.paginator import CollectionResult, PaginatedCollector
from gateway.services.search import AggregatedSearch, SearchOutcome, SearchResult, SearchTarget

__all__ = [
    # Errors
    "GatewayError",
    "BackendUnavailableError",
    "RequestTimeoutError",
    "InvalidSecretError",
    "ErrorKind",
    # Cache
    "CacheManager",
    "CacheEntry",
    "CacheResult",
    "CacheDirective",
    "CacheTagCoordinator",
    "FetchOptions",
    # Client
    "OriginClient",
    "ContentEnvelope",
    # Retrieval
    "DraftFallbackResolver",
    "RetrievalStrategy",
    "PaginatedCollector",
    "CollectionResult",
    "AggregatedSearch",
    "SearchResult",
    "SearchOutcome",
    "SearchTarget",
    # Media
    "MediaResolver",
    "resolve_media_url",
]
