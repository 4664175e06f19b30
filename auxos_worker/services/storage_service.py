"""Storage service for downloading uploaded documents from Supabase storage."""

import httpx

from auxos_worker.core.config import StorageSettings
from auxos_worker.core.exceptions import ObjectFetchError, ObjectNotFoundError
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Read-only access to the document bucket."""

    def __init__(self, storage_settings: StorageSettings):
        self.url = storage_settings.url.rstrip("/")
        self.bucket = storage_settings.bucket
        self.timeout = storage_settings.timeout_seconds
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {storage_settings.service_key}",
            "apikey": storage_settings.service_key,
        }

    async def download(self, key: str) -> bytes:
        """Download the full object stored under ``key``.

        Args:
            key: Storage key of the uploaded file within the bucket.

        Returns:
            The raw object bytes.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            ObjectFetchError: If the download fails for any other reason.
        """
        download_url = f"{self.base_api_url}/object/{self.bucket}/{key.lstrip('/')}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    download_url,
                    headers=self.headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.warning(
                f"Error downloading object from storage: {e}",
                extra={"bucket": self.bucket, "key": key},
            )
            raise ObjectFetchError(f"Failed to download file {key}: {e}", original_error=e)

        if response.status_code == 404:
            raise ObjectNotFoundError(f"File not found in storage: {key}")

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from storage: {response.text}",
                extra={"bucket": self.bucket, "key": key, "status_code": response.status_code},
            )
            raise ObjectFetchError(
                f"Failed to download file {key}: status {response.status_code}"
            )

        content = response.content
        LOGGER.info(
            f"Downloaded {len(content)} bytes",
            extra={"bucket": self.bucket, "key": key},
        )
        return content
