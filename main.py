"""
Content gateway entry point.
Serves the revalidation webhook, search, page loaders and sitemap.
"""

import uvicorn
from loguru import logger

from gateway.api import create_app
from gateway.settings import global_settings

app = create_app(global_settings)


def main() -> None:
    """Run the gateway server."""
    logger.info(
        f"Starting content gateway on {global_settings.host}:{global_settings.port}"
    )
    if not global_settings.revalidate_secret:
        logger.warning("REVALIDATE_SECRET not set, revalidation requests will be rejected")

    uvicorn.run(app, host=global_settings.host, port=global_settings.port)


if __name__ == "__main__":
    main()
