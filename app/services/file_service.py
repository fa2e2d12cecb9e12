"""Service for validating, normalizing and storing uploaded images."""
import asyncio
import secrets
import time
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import InvalidImageError, ValidationError
from app.core.logging import get_logger
from app.core.utils.image import IMAGE_SIGNATURES, has_valid_signature, normalize_image

logger = get_logger(__name__)


class IngestedImage(BaseModel):
    """Normalized image ready for recognition."""
    content: bytes
    path: Optional[str] = None


class FileService:
    """Service for handling image uploads.

    Uploads are checked (type, size, magic number), normalized to a bounded
    JPEG and written under the upload directory. Ephemeral uploads are only
    checked.
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        max_dimension: Optional[int] = None,
        jpeg_quality: Optional[int] = None,
    ) -> None:
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
        self.max_dimension = max_dimension or settings.MAX_IMAGE_DIMENSION
        self.jpeg_quality = jpeg_quality or settings.JPEG_QUALITY

    def validate(self, image_bytes: bytes, content_type: Optional[str]) -> None:
        """Reject empty, oversized, unsupported or mislabeled uploads.

        Raises:
            ValidationError: If no usable file was provided or it is too large
            InvalidImageError: If the type or signature is wrong
        """
        if not image_bytes:
            raise ValidationError("No image file provided")
        if len(image_bytes) > self.max_bytes:
            raise ValidationError(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
            )
        if content_type not in IMAGE_SIGNATURES:
            raise InvalidImageError(
                "Invalid file type. Only JPEG, PNG, and WebP images are allowed."
            )
        if not has_valid_signature(image_bytes, content_type):
            logger.warning("File signature mismatch", content_type=content_type)
            raise InvalidImageError("Invalid image file signature")

    async def ingest(
        self,
        image_bytes: bytes,
        content_type: Optional[str],
        persist: bool = True,
    ) -> IngestedImage:
        """Validate an upload and, when persisting, normalize and save it.

        Ephemeral uploads (live frames) are only validated. They keep their
        original dimensions so detected boxes stay in frame coordinates.

        Args:
            image_bytes: Raw upload
            content_type: Declared MIME type
            persist: Normalize and write the image under the upload dir

        Returns:
            IngestedImage with the bytes to analyse and, when persisted, its path
        """
        self.validate(image_bytes, content_type)
        if not persist:
            return IngestedImage(content=image_bytes)

        try:
            normalized = await asyncio.to_thread(
                normalize_image, image_bytes, self.max_dimension, self.jpeg_quality
            )
        except ValueError as e:
            logger.error("Image processing error", error=str(e))
            raise InvalidImageError(f"Failed to process image: {e}")

        path = await asyncio.to_thread(self._save, normalized)
        logger.debug("Stored upload", path=path, size=len(normalized))
        return IngestedImage(content=normalized, path=path)

    def _save(self, content: bytes) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"face_{int(time.time() * 1000)}_{secrets.token_hex(6)}.jpg"
        path = self.upload_dir / filename
        path.write_bytes(content)
        return str(path)

    async def discard(self, path: Optional[str]) -> None:
        """Remove a stored upload; missing files are ignored."""
        if not path:
            return
        try:
            await asyncio.to_thread(Path(path).unlink, True)
        except OSError as e:
            logger.warning("Failed to remove upload", path=path, error=str(e))
