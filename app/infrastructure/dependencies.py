"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends, Request

from app.core.container import ServiceContainer
from app.core.exceptions import ServiceNotInitializedError
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from app.domain.interfaces.storage.face_store import FaceStore
from app.services.face_enrollment import FaceEnrollmentService
from app.services.face_recognition import FaceRecognitionService
from app.services.file_service import FileService


async def get_container(request: Request) -> ServiceContainer:
    """Dependency provider for the container owned by the running application."""
    container = getattr(request.app.state, "container", None)
    if container is None or not container.initialized:
        raise ServiceNotInitializedError("Service container not initialized")
    return container


async def get_face_recognition_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceRecognitionService, None]:
    """Provide the recognition orchestrator."""
    yield container.face_recognition_service


async def get_face_enrollment_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceEnrollmentService, None]:
    """Provide the enrollment service."""
    yield container.face_enrollment_service


async def get_file_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FileService, None]:
    """Provide the upload ingestion service."""
    yield container.file_service


async def get_face_store(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceStore, None]:
    """Provide the persistent face store."""
    yield container.face_store


async def get_extractor(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[DescriptorExtractor, None]:
    """Provide the descriptor extractor."""
    yield container.extractor
