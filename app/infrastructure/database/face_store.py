"""SQLAlchemy implementation of the face store."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import StoreError
from app.core.logging import get_logger
from app.domain.entities.face import EnrolledFace, RecognitionLogEntry
from app.domain.interfaces.storage.face_store import FaceStore
from app.domain.value_objects.recognition import RecognitionStats
from app.infrastructure.database.models import FaceRecord
from app.infrastructure.database.session import get_db_session
from app.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


def _to_entity(record: FaceRecord) -> EnrolledFace:
    return EnrolledFace(
        id=record.id,
        name=record.name,
        descriptor=record.descriptor,
        image_path=record.image_path,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class SQLAlchemyFaceStore(FaceStore):
    """Face store backed by SQLAlchemy; every call runs in its own unit of work."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions on the service engine
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _uow(self, operation: str) -> AsyncGenerator[UnitOfWork, None]:
        try:
            async with get_db_session(self._session_factory) as session:
                async with UnitOfWork(session) as uow:
                    yield uow
        except SQLAlchemyError as e:
            logger.error("Face store operation failed", operation=operation, error=str(e))
            raise StoreError(f"Face store {operation} failed: {e}")

    async def list_faces(self) -> List[EnrolledFace]:
        async with self._uow("list_faces") as uow:
            records = await uow.faces.get_all()
            return [_to_entity(record) for record in records]

    async def get_face(self, face_id: int) -> Optional[EnrolledFace]:
        async with self._uow("get_face") as uow:
            record = await uow.faces.get_by_id(face_id)
            return _to_entity(record) if record else None

    async def add_face(self, name: str, descriptor: str, image_path: str) -> EnrolledFace:
        async with self._uow("add_face") as uow:
            record = await uow.faces.create(name, descriptor, image_path)
            face = _to_entity(record)
        logger.info("Stored face record", face_id=face.id, name=name)
        return face

    async def delete_face(self, face_id: int) -> bool:
        async with self._uow("delete_face") as uow:
            deleted = await uow.faces.delete(face_id)
        if deleted:
            logger.info("Deleted face record", face_id=face_id)
        return deleted

    async def log_recognition(
        self,
        face_id: int,
        confidence: float,
        image_path: Optional[str],
    ) -> int:
        async with self._uow("log_recognition") as uow:
            log = await uow.logs.create(face_id, confidence, image_path)
            return log.id

    async def recent_logs(self, limit: int = 10) -> List[RecognitionLogEntry]:
        async with self._uow("recent_logs") as uow:
            rows = await uow.logs.get_recent(limit)
            return [
                RecognitionLogEntry(
                    id=log.id,
                    face_id=log.face_id,
                    person_name=name,
                    confidence=log.confidence,
                    image_path=log.image_path,
                    created_at=log.created_at,
                )
                for log, name in rows
            ]

    async def stats(self) -> RecognitionStats:
        async with self._uow("stats") as uow:
            total = await uow.faces.count()
            unique_faces, average = await uow.logs.aggregate()
        return RecognitionStats(
            total_faces=total,
            unique_faces_recognized=unique_faces,
            average_confidence=average,
        )
