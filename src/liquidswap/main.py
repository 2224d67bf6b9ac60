"""Main entry point - runs the API server."""

import logging

import uvicorn

from liquidswap.api.app import create_app
from liquidswap.config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    settings = get_settings()

    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("Starting Liquid Nation swap backend...")
    logger.info(f"Environment: {settings.environment}")
    if settings.mock_mode:
        logger.warning("MOCK_MODE enabled - proofs are simulated, prover is never called")
    else:
        logger.info(f"Prover endpoint: {settings.charms_prove_api_url}")

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
