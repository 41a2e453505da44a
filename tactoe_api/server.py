"""
Run the backend under uvicorn: ``python -m tactoe_api.server``.
"""

from __future__ import annotations

import logging

import uvicorn

from tactoe_api.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting server at http://localhost:%s", settings.port)
    uvicorn.run(
        "tactoe_api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
