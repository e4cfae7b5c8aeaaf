"""Product image hosting on Cloudinary."""

import asyncio

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog

from storefront.domain.exceptions import ExternalServiceError
from storefront.infrastructure.config import settings

logger = structlog.get_logger()


class CloudinaryImageStore:
    """Uploads images and returns their public HTTPS URL."""

    def __init__(self, folder: str | None = None) -> None:
        self.folder = folder or settings.cloudinary_folder
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )

    async def upload(self, source: str | bytes, filename: str | None = None) -> str:
        """Upload one image.

        Args:
            source: Data URI, remote URL or raw image bytes.
            filename: Original file name, for logging.

        Returns:
            Secure URL of the hosted image.

        Raises:
            ExternalServiceError: If the upload fails.
        """
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                source,
                folder=self.folder,
                resource_type="image",
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Image upload failed", filename=filename, error=str(e))
            raise ExternalServiceError("images", "Image upload failed") from e

        logger.info("Image uploaded", filename=filename, url=result["secure_url"])
        return result["secure_url"]


def get_image_store() -> CloudinaryImageStore:
    """Get the image store."""
    return CloudinaryImageStore()
