"""Factory for creating the Charms prover client from settings.

This is the only place where prover configuration is read. The client
itself never looks at the environment.
"""

import logging
from typing import Optional

import httpx

from liquidswap.charms.client import CharmsProverClient
from liquidswap.charms.models import ClientMode
from liquidswap.charms.retry import RetryPolicy
from liquidswap.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_retry_policy(settings: Optional[Settings] = None) -> RetryPolicy:
    """Create the retry policy configured for prover calls."""
    settings = settings or get_settings()
    return RetryPolicy(
        max_attempts=settings.prove_max_attempts,
        initial_backoff=settings.prove_initial_backoff_seconds,
    )


def create_prover_client(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CharmsProverClient:
    """Create a prover client.

    Mock mode is the default so that development never hits the real
    prover by accident. Set MOCK_MODE=false to call it.

    Args:
        settings: Settings to use (cached process settings if omitted)
        http_client: Shared HTTP client to reuse

    Returns:
        Configured CharmsProverClient
    """
    settings = settings or get_settings()
    mode = ClientMode.from_flag(settings.mock_mode)

    if mode is ClientMode.LIVE and not settings.charms_prove_api_url:
        raise ValueError("CHARMS_PROVE_API_URL must be set when MOCK_MODE is false")

    client = CharmsProverClient(
        api_url=settings.charms_prove_api_url,
        mode=mode,
        timeout=settings.prove_timeout_seconds,
        retry_policy=create_retry_policy(settings),
        http_client=http_client,
    )
    logger.info(f"Created {client!r}")
    return client
