"""Service container for dependency injection."""
from typing import Optional

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings, settings
from app.core.logging import get_logger
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from app.domain.interfaces.storage.face_store import FaceStore
from app.infrastructure.cache.result_cache import ResultCache
from app.infrastructure.database.face_store import SQLAlchemyFaceStore
from app.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_models,
)
from app.services.face_enrollment import FaceEnrollmentService
from app.services.face_recognition import FaceRecognitionService
from app.services.file_service import FileService
from app.services.recognition.insight_face import InsightFaceDescriptorExtractor

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    It ensures proper initialization order and provides a single source of truth for service instances.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        recognition = container.face_recognition_service
        enrollment = container.face_enrollment_service

        await container.cleanup()
        ```
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        """Initialize empty container."""
        self.config = config or settings

        # Infrastructure
        self.engine: Optional[AsyncEngine] = None
        self.face_store: Optional[FaceStore] = None
        self.result_cache: Optional[ResultCache] = None
        self.extractor: Optional[DescriptorExtractor] = None
        self.file_service: Optional[FileService] = None

        # Domain services
        self.face_recognition_service: Optional[FaceRecognitionService] = None
        self.face_enrollment_service: Optional[FaceEnrollmentService] = None

    @property
    def initialized(self) -> bool:
        return self.face_recognition_service is not None

    async def initialize(self) -> None:
        """Initialize all services in the correct order."""
        if self.initialized:
            return

        self.engine = create_engine(self.config.DATABASE_URL)
        await init_models(self.engine)
        self.face_store = SQLAlchemyFaceStore(create_session_factory(self.engine))

        self.result_cache = ResultCache(
            Redis.from_url(
                self.config.REDIS_URL,
                decode_responses=True,
                socket_timeout=self.config.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=self.config.REDIS_SOCKET_TIMEOUT,
            ),
            ttl_seconds=self.config.CACHE_TTL_SECONDS,
        )
        if not await self.result_cache.ping():
            logger.warning("Redis unavailable, recognition will run without cache",
                           redis_url=self.config.REDIS_URL)

        extractor = InsightFaceDescriptorExtractor()
        try:
            await extractor.load()
        except Exception as e:
            # Requests report 503 until the model loads on a later attempt
            logger.error("Descriptor extractor not ready", error=str(e))
        self.extractor = extractor
        self.file_service = FileService()

        self.face_recognition_service = FaceRecognitionService(
            extractor=self.extractor,
            store=self.face_store,
            cache=self.result_cache,
            threshold=self.config.RECOGNITION_THRESHOLD,
        )
        self.face_enrollment_service = FaceEnrollmentService(
            extractor=self.extractor,
            store=self.face_store,
            cache=self.result_cache,
            duplicate_threshold=self.config.DUPLICATE_THRESHOLD,
        )

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.face_enrollment_service = None
        self.face_recognition_service = None
        self.file_service = None

        if isinstance(self.extractor, InsightFaceDescriptorExtractor):
            await self.extractor.close()
        self.extractor = None

        if self.result_cache:
            await self.result_cache.close()
            self.result_cache = None

        self.face_store = None
        if self.engine:
            await self.engine.dispose()
            self.engine = None
