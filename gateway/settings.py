import os
import re
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

DEFAULT_STRAPI_PRODUCTION_URL = "https://cms-production-219a.up.railway.app"
DEFAULT_STRAPI_DEVELOPMENT_URL = "http://127.0.0.1:1337"

_HTTP_URL = re.compile(r"^https?://")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app_env: str = Field(default="development", alias="APP_ENV")

    # Strapi origin
    strapi_url: str = Field(default=DEFAULT_STRAPI_DEVELOPMENT_URL, alias="STRAPI_API_URL")
    strapi_token: str = Field(default="", alias="STRAPI_API_TOKEN")
    strapi_timeout: float = Field(default=10.0, alias="STRAPI_TIMEOUT")

    # Cache / revalidation
    revalidate_secret: str = Field(default="", alias="REVALIDATE_SECRET")
    cache_default_tag: str = Field(default="strapi", alias="CACHE_DEFAULT_TAG")
    default_revalidate_seconds: int = Field(
        default=60, ge=0, alias="DEFAULT_REVALIDATE_SECONDS"
    )
    cache_max_size: int = Field(default=500, alias="CACHE_MAX_SIZE")
    cache_debug: bool = Field(default=False, alias="CACHE_DEBUG")

    # Media
    media_version: str | None = Field(default=None, alias="MEDIA_VERSION")

    # Public site
    site_url: str = Field(default="https://rushzanzibar.com", alias="SITE_URL")
    sitemap_page_size: int = Field(default=100, gt=0, alias="SITEMAP_PAGE_SIZE")

    # HTTP server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")


def resolve_strapi_url(env: Mapping[str, str]) -> str:
    """Pick the first configured origin URL that is an http(s) URL."""
    candidates = (
        env.get("STRAPI_API_URL", ""),
        env.get("STRAPI_URL", ""),
        env.get("NEXT_PUBLIC_STRAPI_API_URL", ""),
    )
    for candidate in candidates:
        candidate = candidate.strip()
        if _HTTP_URL.match(candidate):
            return candidate.rstrip("/")

    if env.get("APP_ENV", "development") == "production":
        return DEFAULT_STRAPI_PRODUCTION_URL
    return DEFAULT_STRAPI_DEVELOPMENT_URL


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build settings from an environment mapping (defaults to os.environ)."""
    env = dict(os.environ if env is None else env)
    values: dict[str, object] = {
        name: env[name]
        for name in (
            "APP_ENV",
            "STRAPI_API_TOKEN",
            "STRAPI_TIMEOUT",
            "REVALIDATE_SECRET",
            "CACHE_DEFAULT_TAG",
            "DEFAULT_REVALIDATE_SECONDS",
            "CACHE_MAX_SIZE",
            "CACHE_DEBUG",
            "MEDIA_VERSION",
            "SITE_URL",
            "SITEMAP_PAGE_SIZE",
            "HOST",
            "PORT",
        )
        if env.get(name) not in (None, "")
    }
    values["STRAPI_API_URL"] = resolve_strapi_url(env)
    if "STRAPI_API_TOKEN" in values:
        values["STRAPI_API_TOKEN"] = str(values["STRAPI_API_TOKEN"]).strip()
    return Settings(**values)


global_settings = load_settings()
