"""
Media URL resolution for Strapi uploads.
"""

_ABSOLUTE_PREFIXES = ("http://", "https://", "//")


def append_version(url: str, version: str | None) -> str:
    """Append ``v=<version>`` as a cache-busting query parameter."""
    if not version:
        return url

    url, hash_mark, fragment = url.partition("#")
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}v={version}{hash_mark}{fragment}"


def resolve_media_url(
    url: str | None,
    base_url: str,
    version: str | None = None,
) -> str | None:
    """
    Resolve an upload path to a fetchable URL.

    ``/uploads/a.jpg`` with base ``https://cms.x`` becomes
    ``https://cms.x/uploads/a.jpg``; absolute and protocol-relative URLs are
    returned unchanged (apart from the version token).
    """
    if not url or not url.strip():
        return None

    url = url.strip()
    if not url.startswith(_ABSOLUTE_PREFIXES):
        url = f"{base_url.rstrip('/')}/{url.lstrip('/')}"

    return append_version(url, version)


class MediaResolver:
    """Media resolution bound to the configured origin and version token."""

    def __init__(self, base_url: str, version: str | None = None):
        self.base_url = base_url
        self.version = version

    def __call__(self, url: str | None) -> str | None:
        return resolve_media_url(url, self.base_url, self.version)

    def from_field(self, media: object) -> str | None:
        """Resolve a populated media relation (``{"url": ...}``) or ``None``."""
        if isinstance(media, dict):
            url = media.get("url")
            return self(url) if isinstance(url, str) else None
        return None
