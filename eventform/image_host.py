"""
Image host client.

Uploads event images to the external image host and deletes them again.
The host resizes uploads to a maximum dimension and expires them after a
requested number of seconds. Every upload answers with a public URL and a
delete handle; only the delete handle can remove the image.
"""

import logging
from typing import Optional

import httpx

from eventform.api_client import (
    API_BASE_PATH,
    DEFAULT_TIMEOUT,
    USER_AGENT,
    ApiError,
    response_detail,
)
from eventform.models import ImageResource

logger = logging.getLogger("eventform.image_host")

IMAGE_PATH = f"{API_BASE_PATH}/image"


# ============================================================================
# Exceptions
# ============================================================================


class ImageHostError(ApiError):
    """Base exception for image host failures."""

    pass


class UploadError(ImageHostError):
    """Raised when the host rejects an upload or cannot be reached."""

    pass


class DeleteError(ImageHostError):
    """Raised when the host rejects a delete or cannot be reached."""

    pass


# ============================================================================
# ImageHostClient Class
# ============================================================================


class ImageHostClient:
    """
    HTTP client for the image host.

    Attributes:
        server_url: Base URL of the host
    """

    def __init__(
        self,
        server_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        if not server_url:
            raise ValueError("server_url is required")

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._server_url = server_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._server_url,
            headers=headers,
            timeout=timeout,
        )

    @property
    def server_url(self) -> str:
        return self._server_url

    async def upload(
        self,
        data: bytes,
        max_dimension: int,
        expiration_seconds: int,
        filename: str = "image",
    ) -> ImageResource:
        """
        Upload an image.

        Args:
            data: Raw image bytes
            max_dimension: Largest width/height the host should keep
            expiration_seconds: Lifetime requested from the host
            filename: File name sent with the multipart body

        Returns:
            ImageResource with public URL and delete handle

        Raises:
            UploadError: If the host rejects the file or is unreachable
        """
        try:
            response = await self._client.post(
                IMAGE_PATH,
                files={"file": (filename, data)},
                data={"size": str(max_dimension), "expiration": str(expiration_seconds)},
            )
        except httpx.ConnectError as e:
            raise UploadError(f"Failed to connect to image host: {e}")
        except httpx.TimeoutException as e:
            raise UploadError(f"Image upload timed out: {e}")
        except httpx.HTTPError as e:
            raise UploadError(f"Image upload failed: {e}")

        if response.status_code not in (200, 201):
            raise UploadError(
                response_detail(
                    response, f"Image upload failed with status {response.status_code}"
                ),
                status_code=response.status_code,
            )

        try:
            body = response.json()
            resource = ImageResource(public_url=body["image"], delete_handle=body["delete"])
        except (KeyError, TypeError, ValueError):
            raise UploadError(
                "Image host returned an incomplete response",
                status_code=response.status_code,
            )

        logger.info(f"Uploaded image ({len(data)} bytes): {resource.public_url}")
        return resource

    async def delete(self, delete_handle: str) -> None:
        """
        Delete a previously uploaded image.

        Raises:
            DeleteError: If the host rejects the delete or is unreachable
        """
        try:
            response = await self._client.delete(IMAGE_PATH, params={"url": delete_handle})
        except httpx.ConnectError as e:
            raise DeleteError(f"Failed to connect to image host: {e}")
        except httpx.TimeoutException as e:
            raise DeleteError(f"Image delete timed out: {e}")
        except httpx.HTTPError as e:
            raise DeleteError(f"Image delete failed: {e}")

        if response.status_code not in (200, 204):
            raise DeleteError(
                response_detail(
                    response, f"Image delete failed with status {response.status_code}"
                ),
                status_code=response.status_code,
            )
        logger.info("Deleted hosted image")

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ImageHostClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
