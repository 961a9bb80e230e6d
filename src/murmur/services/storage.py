"""Object-storage client used to delete uploaded media.

Uploads happen elsewhere; this service only removes files that are no longer
referenced, e.g. after a message is deleted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

import httpx

from murmur.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the storage service rejects or fails a request."""


@dataclass(frozen=True)
class StorageConfig:
    """Connection settings for the storage service."""

    enabled: bool
    base_url: str | None
    public_url: str | None
    api_token: str | None
    timeout_seconds: float


def load_storage_config() -> StorageConfig:
    """Build configuration object from global settings."""

    return StorageConfig(
        enabled=settings.storage_configured,
        base_url=settings.storage_base_url,
        public_url=settings.storage_public_url,
        api_token=settings.storage_api_token,
        timeout_seconds=float(settings.storage_http_timeout_seconds),
    )


class StorageClient:
    """HTTP client wrapper for the object-storage delete API."""

    def __init__(
        self,
        config: StorageConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_storage_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.base_url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                headers = {}
                if self.config.api_token:
                    headers["Authorization"] = f"Bearer {self.config.api_token}"
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url or "",
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    headers=headers,
                    transport=self._transport,
                )
        return self._client

    def object_key(self, file_ref: str) -> str:
        """Return the storage key for a stored file URL or bare key."""
        prefix = (self.config.public_url or "").rstrip("/")
        if prefix and file_ref.startswith(f"{prefix}/"):
            return file_ref[len(prefix) + 1 :]
        return file_ref.lstrip("/")

    async def delete_file(self, file_ref: str) -> None:
        """Delete a stored file.

        Raises:
            StorageError: If the storage service fails the request.
        """
        key = self.object_key(file_ref)
        if not self.enabled:
            logger.info("Storage disabled; skipping delete of %s", key)
            return

        client = await self._ensure_client()
        try:
            response = await client.delete(f"/objects/{key}")
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.debug("Stored file %s was already gone", key)
            return
        if response.status_code >= httpx.codes.BAD_REQUEST:
            raise StorageError(f"Storage responded with {response.status_code}")

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


async def delete_media_quietly(storage: StorageClient, file_refs: Iterable[str]) -> int:
    """Best-effort deletion of ``file_refs``; failures are logged, never raised.

    Returns the number of files deleted without error.
    """
    deleted = 0
    for file_ref in file_refs:
        try:
            await storage.delete_file(file_ref)
        except (StorageError, OSError) as exc:
            logger.warning("Failed to delete stored file %s: %s", file_ref, exc)
            continue
        deleted += 1
    return deleted


class _StorageClientSingleton:
    """Singleton wrapper for StorageClient."""

    _instance: StorageClient | None = None

    @classmethod
    def get_instance(cls) -> StorageClient:
        """Get or create the singleton StorageClient instance."""
        if cls._instance is None:
            cls._instance = StorageClient()
        return cls._instance


def get_storage_client() -> StorageClient:
    """Return a singleton storage client instance."""
    return _StorageClientSingleton.get_instance()
