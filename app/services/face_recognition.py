"""Recognition orchestrator: cache lookup, extraction, matching, logging, cache write."""
from typing import Optional

from app.core.config import settings
from app.core.exceptions import NoEnrolledFacesError, StoreError
from app.core.logging import get_logger
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from app.domain.interfaces.storage.face_store import FaceStore
from app.domain.value_objects.recognition import RecognitionOutcome, RecognizedPerson
from app.infrastructure.cache.result_cache import ResultCache
from app.services.similarity import best_match

logger = get_logger(__name__)


class FaceRecognitionService:
    """Service recognizing a face against every enrolled face.

    This service:
    1. Serves repeat submissions of identical images from the result cache
    2. Extracts the query descriptor through the extractor
    3. Scans all enrolled descriptors for the best match
    4. Logs successful recognitions and caches the outcome

    Inputs with a stored path are cacheable and logged; ephemeral buffers
    (live frames) skip the cache and the recognition log entirely.

    Example:
        ```python
        service = FaceRecognitionService(extractor, store, cache)
        outcome = await service.recognize(image_bytes, image_path="uploads/face_1.jpg")
        ```
    """

    def __init__(
        self,
        extractor: DescriptorExtractor,
        store: FaceStore,
        cache: ResultCache,
        threshold: Optional[float] = None,
    ) -> None:
        """Initialize the recognition service.

        Args:
            extractor: Descriptor extractor for query images
            store: Persistent store holding enrolled faces and logs
            cache: Result cache keyed by image content
            threshold: Recognition similarity threshold (defaults to settings)
        """
        self.extractor = extractor
        self.store = store
        self.cache = cache
        self.threshold = settings.RECOGNITION_THRESHOLD if threshold is None else threshold

    async def recognize(
        self,
        image_bytes: bytes,
        image_path: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> RecognitionOutcome:
        """Recognize the single face in an image.

        Args:
            image_bytes: Normalized image content
            image_path: Stored location of the image; None for ephemeral buffers
            threshold: Per-call override of the recognition threshold

        Returns:
            RecognitionOutcome with ``source`` set to ``cache`` or ``live``

        Raises:
            NoFaceDetectedError, MultipleFacesError, FaceTooSmallError,
            InvalidImageError: If the image fails extraction
            NoEnrolledFacesError: If nothing is enrolled yet
            DescriptorComparisonError: If a stored descriptor is unusable
            StoreError: If enrolled faces cannot be read
        """
        threshold = self.threshold if threshold is None else threshold
        cacheable = image_path is not None

        cache_key = None
        if cacheable:
            cache_key = self.cache.key_for(image_bytes)
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.info("Recognition served from cache", cache_key=cache_key)
                return RecognitionOutcome.model_validate({**cached, "source": "cache"})

        face = await self.extractor.extract(image_bytes)

        enrolled = await self.store.list_faces()
        if not enrolled:
            raise NoEnrolledFacesError(
                "No faces found in database. Please enroll some faces first."
            )

        match = best_match(
            face.embedding,
            ((record.id, record.descriptor) for record in enrolled),
            threshold,
        )

        if match.matched:
            matched_face = next(record for record in enrolled if record.id == match.face_id)
            if cacheable:
                await self._log_recognition(match.face_id, match.confidence, image_path)
            outcome = RecognitionOutcome(
                message="Face recognized successfully",
                recognized=True,
                person=RecognizedPerson(
                    id=matched_face.id,
                    name=matched_face.name,
                    confidence=match.confidence,
                    similarity=match.confidence,
                    box=face.bounding_box,
                ),
                confidence=match.confidence,
                image_path=image_path,
            )
            logger.info(
                "Face recognized",
                face_id=matched_face.id,
                name=matched_face.name,
                confidence=round(match.confidence, 4),
                candidates=len(enrolled)
            )
        else:
            outcome = RecognitionOutcome(
                message="Face not recognized",
                recognized=False,
                confidence=match.confidence,
                image_path=image_path,
            )
            logger.info(
                "No match found",
                closest_face_id=match.best_face_id,
                confidence=round(match.confidence, 4),
                threshold=threshold,
                candidates=len(enrolled)
            )

        if cacheable:
            stored = await self.cache.set(cache_key, outcome.cache_payload())
            if stored and not outcome.recognized:
                await self.cache.track_unmatched(cache_key)

        return outcome

    async def _log_recognition(
        self,
        face_id: int,
        confidence: float,
        image_path: Optional[str],
    ) -> None:
        try:
            await self.store.log_recognition(face_id, confidence, image_path)
        except StoreError as e:
            logger.warning("Failed to write recognition log", face_id=face_id, error=str(e))
