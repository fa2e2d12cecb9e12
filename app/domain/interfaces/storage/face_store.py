"""Persistent store interface for enrolled faces and recognition logs."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import EnrolledFace, RecognitionLogEntry
from ...value_objects.recognition import RecognitionStats


class FaceStore(ABC):
    """Interface for durable face records and recognition logs."""

    @abstractmethod
    async def list_faces(self) -> List[EnrolledFace]:
        """
        Return every enrolled face, newest first.

        This is the full descriptor set the matcher scans; it is fetched fresh
        on every request.

        Raises:
            StoreError: If the read fails
        """
        pass

    @abstractmethod
    async def get_face(self, face_id: int) -> Optional[EnrolledFace]:
        """Return one face, or None if the id is unknown."""
        pass

    @abstractmethod
    async def add_face(self, name: str, descriptor: str, image_path: str) -> EnrolledFace:
        """
        Persist a new face.

        Args:
            name: Person name
            descriptor: JSON-serialized descriptor
            image_path: Path of the stored enrollment image

        Returns:
            The created record with its assigned id
        """
        pass

    @abstractmethod
    async def delete_face(self, face_id: int) -> bool:
        """Hard delete a face. Returns False if the id is unknown."""
        pass

    @abstractmethod
    async def log_recognition(
        self,
        face_id: int,
        confidence: float,
        image_path: Optional[str],
    ) -> int:
        """Record a successful recognition and return the log id."""
        pass

    @abstractmethod
    async def recent_logs(self, limit: int = 10) -> List[RecognitionLogEntry]:
        """Most recent recognition logs joined with person names."""
        pass

    @abstractmethod
    async def stats(self) -> RecognitionStats:
        """Aggregate figures over faces and logs."""
        pass
