"""Database repositories for face recognition service."""
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import FaceRecord, RecognitionLog


class FaceRepository:
    """Repository for enrolled face operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def create(self, name: str, descriptor: str, image_path: str) -> FaceRecord:
        """Create a new face record.

        Args:
            name: Person name
            descriptor: JSON-serialized face descriptor
            image_path: Path of the normalized enrollment image

        Returns:
            FaceRecord: Created face record with its id assigned
        """
        face = FaceRecord(name=name, descriptor=descriptor, image_path=image_path)
        self._session.add(face)
        await self._session.flush()
        await self._session.refresh(face)
        return face

    async def get_all(self) -> List[FaceRecord]:
        """Get every face, newest first."""
        stmt = select(FaceRecord).order_by(FaceRecord.created_at.desc(), FaceRecord.id.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, face_id: int) -> Optional[FaceRecord]:
        """Get a face by id, or None."""
        return await self._session.get(FaceRecord, face_id)

    async def count(self) -> int:
        """Number of enrolled faces."""
        result = await self._session.execute(select(func.count(FaceRecord.id)))
        return result.scalar() or 0

    async def delete(self, face_id: int) -> bool:
        """Hard delete a face.

        Returns:
            bool: True if a row was deleted
        """
        result = await self._session.execute(
            delete(FaceRecord).where(FaceRecord.id == face_id)
        )
        return result.rowcount > 0


class RecognitionLogRepository:
    """Repository for recognition log operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def create(
        self,
        face_id: int,
        confidence: float,
        image_path: Optional[str]
    ) -> RecognitionLog:
        """Record a successful recognition."""
        log = RecognitionLog(face_id=face_id, confidence=confidence, image_path=image_path)
        self._session.add(log)
        await self._session.flush()
        return log

    async def get_recent(self, limit: int = 10) -> List[Tuple[RecognitionLog, Optional[str]]]:
        """Most recent logs with the recognized person's name (None once deleted)."""
        stmt = (
            select(RecognitionLog, FaceRecord.name)
            .outerjoin(FaceRecord, RecognitionLog.face_id == FaceRecord.id)
            .order_by(RecognitionLog.created_at.desc(), RecognitionLog.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def aggregate(self) -> Tuple[int, float]:
        """Distinct recognized faces and average log confidence."""
        stmt = select(
            func.count(func.distinct(RecognitionLog.face_id)),
            func.avg(RecognitionLog.confidence),
        )
        result = await self._session.execute(stmt)
        unique_faces, average = result.one()
        return unique_faces or 0, float(average or 0.0)
