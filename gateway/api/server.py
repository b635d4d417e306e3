"""FastAPI server for the content gateway routes and publish webhook."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, Query, Request, Response
from loguru import logger

from gateway.exceptions import NotFoundError, UpstreamError, register_exception_handlers
from gateway.services.client import OriginClient
from gateway.services.content import ContentService
from gateway.services.paginator import PaginatedCollector
from gateway.services.revalidation import RevalidationService
from gateway.services.search import AggregatedSearch
from gateway.services.sitemap import SitemapBuilder, render_sitemap_xml
from gateway.settings import Settings


class GatewayServer:
    """HTTP server exposing revalidation, search, loaders and the sitemap."""

    def __init__(self, settings: Settings, client: OriginClient | None = None):
        self.settings = settings
        self.client = client or OriginClient(settings)
        self.content = ContentService(self.client)
        self.search_service = AggregatedSearch(self.client)
        self.sitemap = SitemapBuilder(
            PaginatedCollector(self.client, page_size=settings.sitemap_page_size),
            site_url=settings.site_url,
        )
        self.revalidation = RevalidationService(
            secret=settings.revalidate_secret,
            default_tag=settings.cache_default_tag,
            invalidator=self.client,
        )

        self.app = FastAPI(title="Content Gateway", lifespan=self._lifespan)
        register_exception_handlers(self.app)

        # Register routes
        self.app.post("/api/revalidate")(self.handle_revalidate)
        self.app.get("/api/search")(self.handle_search)
        self.app.get("/api/homepage")(self.handle_homepage)
        self.app.get("/api/rentals")(self.handle_rentals)
        self.app.get("/api/rentals/transfers/{slug}")(self.handle_transfer)
        self.app.get("/api/rentals/vehicles/{slug}")(self.handle_vehicle)
        self.app.get("/sitemap.xml")(self.handle_sitemap)
        self.app.get("/health")(self.health_check)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        logger.info(f"Content gateway reading from {self.settings.strapi_url}")
        yield
        await self.client.close()

    async def handle_revalidate(
        self,
        request: Request,
        secret: Optional[str] = Query(None),
        x_revalidate_secret: Optional[str] = Header(None),
    ):
        """Handle a publish webhook from the CMS.

        Args:
            request: FastAPI request object
            secret: Secret passed as query parameter
            x_revalidate_secret: Secret passed as header

        Returns:
            ``{revalidated, tags, paths, timestamp}``
        """
        try:
            body = await request.json()
        except ValueError:
            # Empty or non-JSON body; the secret may still come from query/header.
            body = {}

        result = await self.revalidation.revalidate(
            body if isinstance(body, dict) else {},
            query_secret=secret,
            header_secret=x_revalidate_secret,
        )
        return result.model_dump()

    async def handle_search(self, q: Optional[str] = Query(None)):
        try:
            results = await self.search_service.search(q)
        except Exception as e:
            logger.error(f"Search API error: {e}")
            raise UpstreamError("Failed to fetch results") from e
        return {"results": [r.model_dump() for r in results]}

    async def handle_homepage(self):
        data = await self.content.get_homepage()
        return data.model_dump(by_alias=True)

    async def handle_rentals(self):
        data = await self.content.get_rentals()
        return data.model_dump(by_alias=True)

    async def handle_transfer(self, slug: str):
        transfer = await self.content.get_transfer_by_slug(slug)
        if transfer is None:
            raise NotFoundError(f"Transfer route '{slug}' not found")
        return transfer.model_dump(by_alias=True)

    async def handle_vehicle(self, slug: str):
        vehicle = await self.content.get_vehicle_by_slug(slug)
        if vehicle is None:
            raise NotFoundError(f"Rental vehicle '{slug}' not found")
        return vehicle.model_dump(by_alias=True)

    async def handle_sitemap(self):
        entries = await self.sitemap.build()
        return Response(content=render_sitemap_xml(entries), media_type="application/xml")

    async def health_check(self):
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "content-gateway",
            **self.client.get_health_status(),
        }


def create_app(settings: Settings | None = None, client: OriginClient | None = None) -> FastAPI:
    """Create the gateway FastAPI app.

    Args:
        settings: Gateway settings (defaults to the process settings)
        client: Origin client to share (built from settings when omitted)

    Returns:
        FastAPI app
    """
    if settings is None:
        from gateway.settings import global_settings

        settings = global_settings
    server = GatewayServer(settings, client)
    return server.app
