"""
Runs the PapayaFresh API with uvicorn: `python -m papayafresh`.
"""

from __future__ import annotations

import logging

import uvicorn

from papayafresh.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "Starting %s on %s:%d (dashboard: %s/dashboard/stats)",
        settings.server_name,
        settings.host,
        settings.port,
        settings.api_prefix,
    )
    uvicorn.run(
        "papayafresh.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
