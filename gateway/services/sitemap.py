"""
Sitemap generation from static routes plus exhaustively collected entities.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal
from xml.etree import ElementTree

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from gateway.services.paginator import PaginatedCollector

ChangeFrequency = Literal[
    "always", "hourly", "daily", "weekly", "monthly", "yearly", "never"
]

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


class SitemapEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    last_modified: str = Field(alias="lastModified")
    change_frequency: ChangeFrequency = Field(default="weekly", alias="changeFrequency")
    priority: float = 0.8


@dataclass(frozen=True)
class DynamicRoute:
    """A collection whose entries each get a sitemap URL."""

    path: str
    url_prefix: str
    priority: float
    change_frequency: ChangeFrequency = "weekly"


STATIC_ROUTES: tuple[str, ...] = (
    "",
    "/about",
    "/contact",
    "/tours",
    "/tanzania",
    "/hotels",
    "/guides",
    "/rentals",
    "/privacy",
    "/terms",
)

DYNAMIC_ROUTES: tuple[DynamicRoute, ...] = (
    DynamicRoute(path="cities", url_prefix="/tanzania", priority=0.8),
    DynamicRoute(path="tours", url_prefix="/tours", priority=0.7),
    DynamicRoute(path="transfer-routes", url_prefix="/rentals/transfers", priority=0.6),
    DynamicRoute(path="rental-vehicles", url_prefix="/rentals/vehicles", priority=0.6),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SitemapBuilder:
    def __init__(
        self,
        collector: PaginatedCollector,
        site_url: str,
        static_routes: Sequence[str] = STATIC_ROUTES,
        dynamic_routes: Sequence[DynamicRoute] = DYNAMIC_ROUTES,
    ):
        self.collector = collector
        self.site_url = site_url.rstrip("/")
        self.static_routes = tuple(static_routes)
        self.dynamic_routes = tuple(dynamic_routes)

    async def build(self) -> list[SitemapEntry]:
        """Static routes first, then one block per dynamic route, in order."""
        generated_at = _now_iso()
        entries = [
            SitemapEntry(
                url=f"{self.site_url}{route}",
                last_modified=generated_at,
                change_frequency="weekly",
                priority=1.0 if route == "" else 0.8,
            )
            for route in self.static_routes
        ]

        collected = await self.collector.collect_many(r.path for r in self.dynamic_routes)
        for route in self.dynamic_routes:
            result = collected[route.path]
            if result.failed:
                logger.warning(
                    f"Sitemap block for {route.path} is empty ({result.kind.value}): {result.error}"
                )
            for item in result.items:
                slug = item.get("slug")
                if not slug:
                    continue
                entries.append(
                    SitemapEntry(
                        url=f"{self.site_url}{route.url_prefix}/{slug}",
                        last_modified=item.get("updatedAt") or generated_at,
                        change_frequency=route.change_frequency,
                        priority=route.priority,
                    )
                )

        logger.info(f"Built sitemap with {len(entries)} entries")
        return entries


def render_sitemap_xml(entries: Sequence[SitemapEntry]) -> str:
    urlset = ElementTree.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        node = ElementTree.SubElement(urlset, "url")
        ElementTree.SubElement(node, "loc").text = entry.url
        ElementTree.SubElement(node, "lastmod").text = entry.last_modified
        ElementTree.SubElement(node, "changefreq").text = entry.change_frequency
        ElementTree.SubElement(node, "priority").text = f"{entry.priority:.1f}"
    body = ElementTree.tostring(urlset, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
