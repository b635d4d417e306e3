"""
Cache tag coordinator - turns per-read freshness options into a directive.

Time-based staleness (``revalidate_seconds``) and event-based invalidation
(tags) are kept separate so a publish webhook can refresh a content type
regardless of its standing TTL.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FetchOptions:
    """Caller-supplied freshness options for a single origin read."""

    revalidate_seconds: int | None = None
    tags: tuple[str, ...] = ()
    bypass: bool = False
    page_path: str | None = None  # route the read renders, for path invalidation


@dataclass(frozen=True)
class CacheDirective:
    """Effective freshness directive for a single origin read."""

    tags: tuple[str, ...] = field(default_factory=tuple)
    revalidate_seconds: int | None = None
    bypass: bool = False

    @property
    def cacheable(self) -> bool:
        return not self.bypass and self.revalidate_seconds is not None


def dedupe_strings(values: Iterable[object]) -> list[str]:
    """Trim, drop empties and non-strings, keep first occurrence order."""
    seen: dict[str, None] = {}
    for value in values:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


class CacheTagCoordinator:
    """
    Computes the cache directive for origin reads.

    Usage:
        coordinator = CacheTagCoordinator(default_tag="strapi")
        directive = coordinator.directive(tags=["tours"])
        # CacheDirective(tags=("strapi", "tours"), revalidate_seconds=60, ...)
    """

    def __init__(self, default_tag: str = "strapi", default_revalidate_seconds: int = 60):
        self._default_tag = default_tag
        self._default_revalidate_seconds = default_revalidate_seconds

    @property
    def default_tag(self) -> str:
        return self._default_tag

    def directive(
        self,
        revalidate_seconds: int | None = None,
        tags: Iterable[str] | None = None,
        bypass: bool = False,
    ) -> CacheDirective:
        caller_tags = dedupe_strings(tags or ())

        if bypass:
            # Untagged bypass reads opt out of tag bookkeeping entirely.
            effective = (
                tuple(dedupe_strings([self._default_tag, *caller_tags]))
                if caller_tags
                else ()
            )
            return CacheDirective(tags=effective, revalidate_seconds=None, bypass=True)

        if (
            isinstance(revalidate_seconds, int)
            and not isinstance(revalidate_seconds, bool)
            and revalidate_seconds >= 0
        ):
            ttl = revalidate_seconds
        else:
            ttl = self._default_revalidate_seconds

        return CacheDirective(
            tags=tuple(dedupe_strings([self._default_tag, *caller_tags])),
            revalidate_seconds=ttl,
            bypass=False,
        )

    def for_options(self, options: FetchOptions | None) -> CacheDirective:
        options = options or FetchOptions()
        return self.directive(
            revalidate_seconds=options.revalidate_seconds,
            tags=options.tags,
            bypass=options.bypass,
        )
