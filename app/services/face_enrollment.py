"""Face enrollment service: duplicate check, persistence and cache invalidation."""
import json
from typing import Optional, Tuple

from app.core.config import settings
from app.core.exceptions import DuplicateFaceError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.domain.entities.face import EnrolledFace
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from app.domain.interfaces.storage.face_store import FaceStore
from app.infrastructure.cache.result_cache import ResultCache
from app.services.similarity import best_match

logger = get_logger(__name__)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50


class FaceEnrollmentService:
    """Service for enrolling and removing faces.

    Enrollment rejects faces that are already known (similarity at or above
    the duplicate threshold, stricter than recognition) and, once the new
    record is stored, drops every cached "not recognized" outcome since any of
    those images may now match the new identity.

    The duplicate check and the insert are not atomic: two concurrent
    enrollments of the same face can both pass the check.
    """

    def __init__(
        self,
        extractor: DescriptorExtractor,
        store: FaceStore,
        cache: ResultCache,
        duplicate_threshold: Optional[float] = None,
    ) -> None:
        """Initialize the enrollment service.

        Args:
            extractor: Descriptor extractor for enrollment images
            store: Persistent store of enrolled faces
            cache: Result cache to invalidate after enrollment
            duplicate_threshold: Similarity at which a face counts as enrolled
        """
        self.extractor = extractor
        self.store = store
        self.cache = cache
        self.duplicate_threshold = (
            settings.DUPLICATE_THRESHOLD if duplicate_threshold is None else duplicate_threshold
        )

    @staticmethod
    def validate_name(name: Optional[str]) -> str:
        """Strip and length-check a person name.

        Raises:
            ValidationError: If the name is empty or not 3-50 characters
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Name field cannot be empty", details={"field": "name"})
        if not MIN_NAME_LENGTH <= len(cleaned) <= MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters",
                details={"field": "name"}
            )
        return cleaned

    async def enroll(
        self,
        name: str,
        image_bytes: bytes,
        image_path: str,
    ) -> Tuple[EnrolledFace, float]:
        """Enroll a new face.

        Args:
            name: Person name (3-50 characters)
            image_bytes: Normalized enrollment image
            image_path: Where the image is stored

        Returns:
            Tuple of the created record and the detection confidence

        Raises:
            ValidationError: If the name is invalid
            NoFaceDetectedError, MultipleFacesError, FaceTooSmallError,
            InvalidImageError: If the image fails extraction
            DuplicateFaceError: If the face is already enrolled
            StoreError: If the store cannot be read or written
        """
        name = self.validate_name(name)
        face = await self.extractor.extract(image_bytes)

        existing = await self.store.list_faces()
        match = best_match(
            face.embedding,
            ((record.id, record.descriptor) for record in existing),
            self.duplicate_threshold,
        )
        if match.matched:
            duplicate = next(record for record in existing if record.id == match.face_id)
            logger.warning(
                "Duplicate enrollment rejected",
                existing_id=duplicate.id,
                existing_name=duplicate.name,
                similarity=round(match.confidence, 4)
            )
            raise DuplicateFaceError(
                "Face already exists in database",
                details={
                    "id": duplicate.id,
                    "name": duplicate.name,
                    "similarity": match.confidence,
                }
            )

        record = await self.store.add_face(name, json.dumps(face.descriptor), image_path)
        invalidated = await self.cache.invalidate_unmatched()

        logger.info(
            "Face enrolled",
            face_id=record.id,
            name=record.name,
            confidence=round(face.confidence, 4),
            invalidated_cache_entries=invalidated
        )
        return record, face.confidence

    async def delete(self, face_id: int) -> int:
        """Hard delete an enrolled face.

        Raises:
            NotFoundError: If the id is unknown
        """
        face = await self.store.get_face(face_id)
        if face is None:
            raise NotFoundError("Face not found", details={"id": face_id})

        if not await self.store.delete_face(face_id):
            raise NotFoundError("Face not found", details={"id": face_id})

        logger.info("Face deleted", face_id=face_id, name=face.name)
        return face_id
