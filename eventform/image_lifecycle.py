"""
Lifecycle of the hosted event image.

A form session owns at most one hosted image at a time. Replacing the
image deletes the previous one; removing it deletes the current one.
Every discarded image gets exactly one delete call, and only images this
manager uploaded itself are ever deleted.

Uploads and discards are not serialized against each other. Whichever
finishes last decides the live image, so callers must keep the image
controls disabled while is_uploading is true.
"""

import logging
from typing import Optional, Protocol

from eventform.api_client import ApiError
from eventform.image_host import DeleteError, UploadError
from eventform.models import ImageResource, UploadConstraints
from eventform.notifications import Notifier, error_message

logger = logging.getLogger("eventform.image_lifecycle")


class ImageHost(Protocol):
    async def upload(
        self, data: bytes, max_dimension: int, expiration_seconds: int
    ) -> ImageResource:
        ...

    async def delete(self, delete_handle: str) -> None:
        ...


class ImageLifecycleManager:
    """
    Tracks the single live image of a form session.

    Attributes:
        resource: The live (public_url, delete_handle) pair, if any
        public_url: URL to display; may be an adopted image not owned here
        is_uploading: True while an upload call is in flight
    """

    def __init__(
        self,
        host: ImageHost,
        constraints: Optional[UploadConstraints] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._host = host
        self._constraints = constraints or UploadConstraints()
        self._notifier = notifier
        self._resource: Optional[ImageResource] = None
        self._adopted_url = ""
        self._uploads_in_flight = 0

    @property
    def resource(self) -> Optional[ImageResource]:
        return self._resource

    @property
    def public_url(self) -> str:
        if self._resource is not None:
            return self._resource.public_url
        return self._adopted_url

    @property
    def can_delete(self) -> bool:
        return self._resource is not None

    @property
    def is_uploading(self) -> bool:
        return self._uploads_in_flight > 0

    def adopt_existing(self, public_url: str) -> None:
        """
        Show an image this session did not upload.

        Without a delete handle the image is never deleted by this manager.
        """
        if self._resource is not None:
            raise RuntimeError("Cannot adopt an image while one is owned")
        self._adopted_url = public_url or ""

    async def upload(
        self, data: bytes, constraints: Optional[UploadConstraints] = None
    ) -> ImageResource:
        """
        Upload a new image and make it the live one.

        The previously live image, if any, is deleted once the new upload
        succeeded. A failed upload leaves the live image untouched.

        Args:
            data: Raw image bytes
            constraints: Overrides the manager's size/expiration constraints

        Returns:
            The new live ImageResource

        Raises:
            UploadError: If there is nothing to upload or the host fails in
                any way
        """
        if not data:
            raise UploadError("No image data to upload")

        constraints = constraints or self._constraints
        self._uploads_in_flight += 1
        try:
            resource = await self._host.upload(
                data, constraints.max_dimension, constraints.expiration_seconds
            )
        except UploadError:
            raise
        except ApiError as e:
            raise UploadError(str(e), status_code=e.status_code) from e
        except Exception as e:
            raise UploadError(f"Image upload failed: {e}") from e
        finally:
            self._uploads_in_flight -= 1

        previous = self._resource
        self._resource = resource
        self._adopted_url = ""

        if previous is not None and previous.delete_handle != resource.delete_handle:
            await self._release_replaced(previous)
        return resource

    async def discard(self) -> None:
        """
        Delete the live image and forget it.

        The local reference is cleared even when the delete fails; the
        remote image is then orphaned until the host expires it.

        Raises:
            DeleteError: After clearing, if the host delete failed
        """
        resource = self._resource
        if resource is None:
            return
        self._resource = None

        try:
            await self._host.delete(resource.delete_handle)
        except Exception as e:
            logger.warning(f"Orphaned hosted image {resource.public_url}: {e}")
            if isinstance(e, DeleteError):
                raise
            raise DeleteError(
                str(e) or "Image delete failed",
                status_code=getattr(e, "status_code", None),
            ) from e

    async def _release_replaced(self, previous: ImageResource) -> None:
        try:
            await self._host.delete(previous.delete_handle)
        except Exception as e:
            logger.warning(f"Orphaned replaced image {previous.public_url}: {e}")
            if self._notifier is not None:
                self._notifier.error(error_message(e), getattr(e, "status_code", None))
