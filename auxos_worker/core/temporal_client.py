"""Shared Temporal client for code that starts extraction workflows.

The worker process connects on its own (with retries) in
``auxos_worker.temporal.worker``; this module serves the trigger side.
"""

import asyncio
from typing import Optional

from temporalio.client import Client as TemporalClient

from auxos_worker.core.config import TemporalSettings, settings
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TemporalClientManager:
    """Lazily connects once and hands out the same client afterwards."""

    def __init__(self, temporal_settings: Optional[TemporalSettings] = None):
        self._settings = temporal_settings or settings.temporal
        self._client: Optional[TemporalClient] = None
        self._lock: Optional[asyncio.Lock] = None

    async def get_client(self) -> TemporalClient:
        """Get or create the Temporal client.

        Concurrent first callers share one connection attempt.
        """
        if self._client is not None:
            return self._client

        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._client is None:
                LOGGER.info(
                    f"Connecting Temporal client to {self._settings.target_host}",
                    extra={"namespace": self._settings.namespace},
                )
                self._client = await TemporalClient.connect(
                    self._settings.target_host,
                    namespace=self._settings.namespace,
                )
        return self._client

    def reset(self) -> None:
        """Drop the cached client so the next call reconnects."""
        self._client = None


_temporal_manager = TemporalClientManager()


async def get_temporal_client() -> TemporalClient:
    """Get the process-wide Temporal client."""
    return await _temporal_manager.get_client()
