"""Shared Temporal client for the API process."""

import asyncio
from typing import Optional

from temporalio.client import Client as TemporalClient

from curation.core.config import settings
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)

_client: Optional[TemporalClient] = None
_connect_lock = asyncio.Lock()


async def get_temporal_client() -> TemporalClient:
    """FastAPI dependency; connects on first use and reuses the connection."""
    global _client
    if _client is None:
        async with _connect_lock:
            if _client is None:
                LOGGER.info(f"Connecting to Temporal at {settings.temporal_target}")
                _client = await TemporalClient.connect(
                    settings.temporal_target,
                    namespace=settings.temporal_namespace,
                )
    return _client


def close_temporal_client() -> None:
    """Forget the shared client so the next request reconnects."""
    global _client
    _client = None
