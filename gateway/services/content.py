"""
Page content loaders for the travel site.

Each loader issues its reads together, waits for all of them, and maps the
origin entities onto the flat models the pages render. An unavailable
collection renders as an empty list; the other collections are unaffected.
"""

import asyncio
from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from gateway.services.cache_tags import FetchOptions
from gateway.services.client import ContentEnvelope, OriginClient
from gateway.services.drafts import DraftFallbackResolver
from gateway.services.media import MediaResolver
from gateway.services.search import strip_html


class Destination(BaseModel):
    name: str
    slug: str
    tagline: str = ""
    image: str | None = None


class Tour(BaseModel):
    title: str
    slug: str
    duration: str = ""
    price: float = 0
    image: str | None = None
    category: str = ""


class Article(BaseModel):
    title: str
    slug: str
    category: str = ""
    author: str = ""
    date: str = ""
    image: str | None = None


class Transfer(BaseModel):
    name: str
    slug: str
    pickup_location: str = Field(default="", serialization_alias="pickupLocation")
    dropoff_location: str = Field(default="", serialization_alias="dropoffLocation")
    duration: str = ""
    price: float = 0


class TransferRoute(Transfer):
    description: str = ""
    distance: str = ""
    price_return: float = Field(default=0, serialization_alias="priceReturn")
    vehicle_type: str = Field(default="", serialization_alias="vehicleType")
    image: str | None = None
    featured: bool = False


class RentalVehicle(BaseModel):
    name: str
    slug: str
    description: str = ""
    category: str = "sedan"
    transmission: str = "manual"
    seats: int = 4
    price_per_day: float = Field(default=0, serialization_alias="pricePerDay")
    price_per_week: float = Field(default=0, serialization_alias="pricePerWeek")
    features: list[str] = Field(default_factory=list)
    image: str | None = None
    featured: bool = False
    available: bool = True


class HomePageData(BaseModel):
    destinations: list[Destination] = Field(default_factory=list)
    tours: list[Tour] = Field(default_factory=list)
    articles: list[Article] = Field(default_factory=list)
    transfers: list[Transfer] = Field(default_factory=list)


class RentalsData(BaseModel):
    transfers: list[TransferRoute] = Field(default_factory=list)
    vehicles: list[RentalVehicle] = Field(default_factory=list)


def _text(item: dict[str, Any], key: str, default: str = "") -> str:
    value = item.get(key)
    return value if isinstance(value, str) else default


def _number(value: Any, default: float = 0) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default


def _date_label(value: Any) -> str:
    if not isinstance(value, str) or not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return ""
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def _feature_list(value: Any) -> list[str]:
    if isinstance(value, list):
        items = [str(item).strip() for item in value]
    elif isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    else:
        items = []
    return [item for item in items if item]


def _records(envelope: ContentEnvelope, label: str) -> list[dict[str, Any]]:
    if envelope.is_unavailable:
        logger.warning(f"{label} unavailable: {envelope.error}")
    return [item for item in envelope.items if isinstance(item, dict)]


class ContentService:
    """Loaders behind the homepage and rentals views."""

    def __init__(
        self,
        client: OriginClient,
        media: MediaResolver | None = None,
        resolver: DraftFallbackResolver | None = None,
    ):
        self.client = client
        self.media = media or MediaResolver(
            client.settings.strapi_url, client.settings.media_version
        )
        self.resolver = resolver or DraftFallbackResolver(client)

    # Mapping

    def to_destination(self, item: dict[str, Any]) -> Destination:
        description = strip_html(item.get("description"))
        tagline = f"{description[:100]}..." if len(description) > 100 else description
        return Destination(
            name=_text(item, "name"),
            slug=_text(item, "slug"),
            tagline=tagline,
            image=self.media.from_field(item.get("heroImage")),
        )

    def to_tour(self, item: dict[str, Any]) -> Tour:
        return Tour(
            title=_text(item, "name"),
            slug=_text(item, "slug"),
            duration=_text(item, "duration"),
            price=_number(item.get("priceAdult")),
            image=self.media.from_field(item.get("heroImage")),
            category=_text(item, "category"),
        )

    def to_article(self, item: dict[str, Any]) -> Article:
        author = item.get("author")
        return Article(
            title=_text(item, "title"),
            slug=_text(item, "slug"),
            category=_text(item, "category").replace("-", " ", 1),
            author=_text(author, "name") if isinstance(author, dict) else "",
            date=_date_label(item.get("publishedAt")),
            image=self.media.from_field(item.get("heroImage")),
        )

    def to_transfer(self, item: dict[str, Any]) -> Transfer:
        return Transfer(
            name=_text(item, "name"),
            slug=_text(item, "slug"),
            pickup_location=_text(item, "pickupLocation"),
            dropoff_location=_text(item, "dropoffLocation"),
            duration=_text(item, "duration"),
            price=_number(item.get("price")),
        )

    def to_transfer_route(self, item: dict[str, Any]) -> TransferRoute:
        return TransferRoute(
            **self.to_transfer(item).model_dump(),
            description=_text(item, "description"),
            distance=_text(item, "distance"),
            price_return=_number(item.get("priceReturn")),
            vehicle_type=_text(item, "vehicleType"),
            image=self.media.from_field(item.get("heroImage")),
            featured=item.get("featured") is True,
        )

    def to_vehicle(self, item: dict[str, Any]) -> RentalVehicle:
        return RentalVehicle(
            name=_text(item, "name"),
            slug=_text(item, "slug"),
            description=_text(item, "description"),
            category=_text(item, "category", "sedan"),
            transmission=_text(item, "transmission", "manual"),
            seats=int(_number(item.get("seats"), 4) or 4),
            price_per_day=_number(item.get("pricePerDay")),
            price_per_week=_number(item.get("pricePerWeek")),
            features=_feature_list(item.get("features")),
            image=self.media.from_field(item.get("heroImage")),
            featured=item.get("featured") is True,
            available=item.get("available") is not False,
        )

    # Loaders

    async def get_homepage(self) -> HomePageData:
        def options(tag: str) -> FetchOptions:
            return FetchOptions(tags=(tag,), page_path="/")

        transfers, articles, destinations, tours = await asyncio.gather(
            self.client.fetch(
                "transfer-routes",
                {
                    "populate": ["heroImage"],
                    "pagination": {"limit": 4},
                    "sort": ["featured:desc", "order:asc"],
                },
                options("transfer-routes"),
            ),
            self.client.fetch(
                "articles",
                {
                    "populate": ["heroImage", "author"],
                    "pagination": {"limit": 6},
                    "sort": ["publishedAt:desc"],
                },
                options("articles"),
            ),
            self.client.fetch(
                "destinations",
                {"populate": ["heroImage"], "pagination": {"limit": 6}},
                options("destinations"),
            ),
            self.client.fetch(
                "tours",
                {"populate": ["heroImage", "city"], "pagination": {"limit": 8}},
                options("tours"),
            ),
        )

        return HomePageData(
            destinations=[self.to_destination(d) for d in _records(destinations, "Destinations")],
            tours=[self.to_tour(t) for t in _records(tours, "Tours")],
            articles=[self.to_article(a) for a in _records(articles, "Articles")],
            transfers=[self.to_transfer(t) for t in _records(transfers, "Transfers")],
        )

    async def get_rentals(self) -> RentalsData:
        transfers, vehicles = await asyncio.gather(
            self.client.fetch(
                "transfer-routes",
                {
                    "populate": ["heroImage"],
                    "pagination": {"limit": 50},
                    "sort": ["order:asc", "featured:desc"],
                },
                FetchOptions(tags=("transfer-routes",), page_path="/rentals"),
            ),
            self.client.fetch(
                "rental-vehicles",
                {
                    "populate": ["heroImage"],
                    "pagination": {"limit": 50},
                    "sort": ["featured:desc", "pricePerDay:asc"],
                },
                FetchOptions(tags=("rental-vehicles",), page_path="/rentals"),
            ),
        )

        return RentalsData(
            transfers=[self.to_transfer_route(t) for t in _records(transfers, "Transfers")],
            vehicles=[self.to_vehicle(v) for v in _records(vehicles, "Vehicles")],
        )

    async def get_transfer_by_slug(self, slug: str) -> TransferRoute | None:
        item = await self.resolver.find_by_slug(
            "transfer-routes", slug, {"populate": ["heroImage"]}, tags=("transfer-routes",)
        )
        return self.to_transfer_route(item) if isinstance(item, dict) else None

    async def get_vehicle_by_slug(self, slug: str) -> RentalVehicle | None:
        item = await self.resolver.find_by_slug(
            "rental-vehicles", slug, {"populate": ["heroImage"]}, tags=("rental-vehicles",)
        )
        return self.to_vehicle(item) if isinstance(item, dict) else None
