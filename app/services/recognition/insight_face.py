"""
InsightFace-based implementation of the descriptor extractor.

Key Features:
    - Single-face enforcement (no face / multiple faces are errors)
    - Minimum face size check in pixels
    - L2-normalized 512-d descriptors, so euclidean distances fall in [0, 2]
    - Lazy model loading; a failed load surfaces as ModelLoadError (HTTP 503)

Example:
    ```python
    extractor = InsightFaceDescriptorExtractor()
    await extractor.load()

    with open("image.jpg", "rb") as f:
        face = await extractor.extract(f.read())
    ```

Note:
    This implementation uses CPU inference by default. Inference runs in a
    worker thread so the event loop keeps serving other requests.
"""
import asyncio
from typing import Any, List, Optional

import cv2
import numpy as np
from insightface.app import FaceAnalysis
from insightface.app.common import Face as InsightFace

from app.core.config import settings
from app.core.exceptions import (
    FaceTooSmallError,
    InvalidImageError,
    ModelLoadError,
    MultipleFacesError,
    NoFaceDetectedError,
)
from app.core.logging import get_logger
from app.domain.entities.face import BoundingBox, Face
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor

logger = get_logger(__name__)


class InsightFaceDescriptorExtractor(DescriptorExtractor):
    """
    InsightFace-based descriptor extractor.

    Attributes:
        model: InsightFace model instance for face analysis, None until loaded
        min_face_size: Minimum width and height of an accepted face box
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        min_face_size: Optional[int] = None,
    ) -> None:
        self.model_name = model_name or settings.MODEL_PATH
        self.min_face_size = min_face_size or settings.MIN_FACE_SIZE
        self.model: Optional[FaceAnalysis] = None
        self._load_lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self.model is not None

    def _load_model(self) -> FaceAnalysis:
        model = FaceAnalysis(
            name=self.model_name,
            root=settings.MODEL_CACHE_DIR,
            providers=['CPUExecutionProvider']
        )
        # Detection size affects accuracy significantly
        model.prepare(ctx_id=0, det_size=(settings.DETECTION_SIZE, settings.DETECTION_SIZE))
        return model

    async def load(self) -> None:
        """Load the model once. Raises ModelLoadError on failure."""
        async with self._load_lock:
            if self.model is not None:
                return
            logger.info("Loading InsightFace model", model=self.model_name)
            try:
                self.model = await asyncio.to_thread(self._load_model)
            except Exception as e:
                logger.error("Failed to load InsightFace model", error=str(e), exc_info=True)
                raise ModelLoadError(f"Face recognition model not loaded: {e}")
            logger.info("InsightFace model loaded", model=self.model_name)

    async def close(self) -> None:
        """Release model resources."""
        logger.debug("Cleaning up InsightFace extractor resources")
        self.model = None

    async def __aenter__(self) -> "InsightFaceDescriptorExtractor":
        await self.load()
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        if exc_type:
            logger.error(
                "Error occurred during context exit",
                error=str(exc_val),
                exc_info=True
            )
        await self.close()

    @staticmethod
    def _decode(image_bytes: bytes) -> np.ndarray:
        nparr = np.frombuffer(image_bytes, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is None:
            raise InvalidImageError("Failed to decode image")
        return img

    def _convert_to_face(self, face_data: InsightFace) -> Face:
        """Convert an InsightFace detection to the domain Face (pixel box)."""
        x1, y1, x2, y2 = [float(v) for v in face_data.bbox]
        embedding = face_data.normed_embedding
        if embedding is None:
            embedding = face_data.embedding
        return Face(
            bounding_box=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
            confidence=float(face_data.det_score),
            embedding=np.asarray(embedding, dtype=np.float64),
        )

    async def detect(self, image_bytes: bytes) -> List[Face]:
        """Detect every face in an image, with descriptors."""
        await self.load()
        img = self._decode(image_bytes)
        try:
            faces = await asyncio.to_thread(self.model.get, img)
        except Exception as e:
            logger.error(
                "Face processing failed",
                error=str(e),
                image_shape=img.shape,
                exc_info=True
            )
            raise InvalidImageError(f"Face detection failed: {e}")

        logger.debug("Face detection results", faces_found=len(faces), image_shape=img.shape)
        return [self._convert_to_face(face) for face in faces]

    async def extract(self, image_bytes: bytes) -> Face:
        faces = await self.detect(image_bytes)

        if not faces:
            raise NoFaceDetectedError("No faces detected in the image")
        if len(faces) > 1:
            raise MultipleFacesError(
                "Multiple faces detected. Please upload an image with only one face",
                details={"faces": len(faces)}
            )

        face = faces[0]
        box = face.bounding_box
        if box.width < self.min_face_size or box.height < self.min_face_size:
            raise FaceTooSmallError(
                "Face is too small. Please upload a higher resolution image",
                details={"width": box.width, "height": box.height}
            )
        return face
