"""Face enrollment and recognition API endpoints."""
from typing import List, NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from app.api.models.face import (
    DashboardResponse,
    DeleteFaceResponse,
    DuplicateFaceResponse,
    EnrollResponse,
    ExistingFace,
    FaceResponse,
    HealthResponse,
    LiveRecognitionResponse,
    RecognitionLogResponse,
    RecognitionResponse,
    StatsResponse,
)
from app.core.exceptions import (
    DuplicateFaceError,
    FaceRecognitionError,
    FaceTooSmallError,
    InvalidImageError,
    MultipleFacesError,
    NoFaceDetectedError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from app.core.logging import get_logger
from app.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from app.domain.interfaces.storage.face_store import FaceStore
from app.infrastructure.dependencies import (
    get_extractor,
    get_face_enrollment_service,
    get_face_recognition_service,
    get_face_store,
    get_file_service,
)
from app.services.face_enrollment import FaceEnrollmentService
from app.services.face_recognition import FaceRecognitionService
from app.services.file_service import FileService

logger = get_logger(__name__)
router = APIRouter(
    responses={
        400: {"description": "Invalid request"},
        500: {"description": "Internal server error"},
        503: {"description": "Face recognition model not loaded"}
    }
)

RECENT_LOGS_LIMIT = 10

BAD_REQUEST_ERRORS = (
    ValidationError,
    InvalidImageError,
    NoFaceDetectedError,
    MultipleFacesError,
    FaceTooSmallError,
)


def _raise_http_error(error: FaceRecognitionError) -> NoReturn:
    """Translate a domain error into the matching HTTP status."""
    if isinstance(error, BAD_REQUEST_ERRORS):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, ServiceUnavailableError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error.message)
    logger.error("Request failed", error=error.message, error_type=type(error).__name__)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


@router.post(
    "/enroll",
    response_model=EnrollResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a face",
    description="Stores a named face so later images of the same person are recognized.",
    responses={
        409: {
            "description": "Face already enrolled",
            "model": DuplicateFaceResponse,
        },
    },
)
async def enroll_face(
    name: str = Form(..., description="Person name (3-50 characters)"),
    image: UploadFile = File(..., description="JPEG, PNG or WebP image with one face"),
    service: FaceEnrollmentService = Depends(get_face_enrollment_service),
    files: FileService = Depends(get_file_service),
):
    """Enroll a new face.

    The upload is normalized and stored first; if enrollment fails for any
    reason the stored image is removed again.
    """
    image_path = None
    try:
        name = service.validate_name(name)
        ingested = await files.ingest(await image.read(), image.content_type)
        image_path = ingested.path

        record, confidence = await service.enroll(name, ingested.content, image_path)
        return EnrollResponse(
            id=record.id,
            name=record.name,
            image_path=record.image_path,
            confidence=confidence,
        )

    except DuplicateFaceError as e:
        await files.discard(image_path)
        body = DuplicateFaceResponse(error=e.message, existing_face=ExistingFace(**e.details))
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=body.model_dump(by_alias=True),
        )
    except FaceRecognitionError as e:
        await files.discard(image_path)
        logger.warning("Enrollment rejected", error=e.message, error_type=type(e).__name__)
        _raise_http_error(e)
    except Exception as e:
        await files.discard(image_path)
        logger.error("Unexpected error during enrollment", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while enrolling the face"
        )


@router.post(
    "/recognize",
    response_model=RecognitionResponse,
    summary="Recognize a face",
    description="Matches the face in an uploaded image against every enrolled face.",
    responses={404: {"description": "No enrolled faces"}},
)
async def recognize_face(
    image: UploadFile = File(..., description="JPEG, PNG or WebP image with one face"),
    service: FaceRecognitionService = Depends(get_face_recognition_service),
    files: FileService = Depends(get_file_service),
) -> RecognitionResponse:
    """Recognize an uploaded image; identical images are served from cache."""
    image_path = None
    try:
        ingested = await files.ingest(await image.read(), image.content_type)
        image_path = ingested.path

        outcome = await service.recognize(ingested.content, image_path=image_path)
        if outcome.source == "cache" and outcome.image_path != image_path:
            # Cached outcomes point at the image stored on first submission
            await files.discard(image_path)
        return RecognitionResponse.from_outcome(outcome)

    except FaceRecognitionError as e:
        await files.discard(image_path)
        logger.warning("Recognition failed", error=e.message, error_type=type(e).__name__)
        _raise_http_error(e)
    except Exception as e:
        await files.discard(image_path)
        logger.error("Unexpected error during recognition", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while recognizing the face"
        )


@router.post(
    "/recognize-live",
    response_model=LiveRecognitionResponse,
    summary="Recognize a live frame",
    description="Recognizes a camera frame. Frames are not stored, cached or logged.",
)
async def recognize_live(
    image: UploadFile = File(..., description="JPEG frame"),
    service: FaceRecognitionService = Depends(get_face_recognition_service),
    files: FileService = Depends(get_file_service),
) -> LiveRecognitionResponse:
    """Recognize an ephemeral frame buffer."""
    try:
        ingested = await files.ingest(await image.read(), image.content_type, persist=False)
        outcome = await service.recognize(ingested.content)
        return LiveRecognitionResponse.from_outcome(outcome)

    except FaceRecognitionError as e:
        logger.debug("Live recognition failed", error=e.message, error_type=type(e).__name__)
        _raise_http_error(e)
    except Exception as e:
        logger.error("Unexpected error during live recognition", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while recognizing the frame"
        )


@router.delete(
    "/faces/{face_id}",
    response_model=DeleteFaceResponse,
    summary="Delete an enrolled face",
    responses={404: {"description": "Face not found"}},
)
async def delete_face(
    face_id: int,
    service: FaceEnrollmentService = Depends(get_face_enrollment_service),
) -> DeleteFaceResponse:
    """Hard delete a face; its recognition logs are kept without the reference."""
    try:
        return DeleteFaceResponse(id=await service.delete(face_id))
    except FaceRecognitionError as e:
        _raise_http_error(e)
    except Exception as e:
        logger.error("Unexpected error deleting face", face_id=face_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete face"
        )


@router.get("/faces", response_model=List[FaceResponse], summary="List enrolled faces")
async def list_faces(store: FaceStore = Depends(get_face_store)) -> List[FaceResponse]:
    try:
        return [FaceResponse.from_entity(face) for face in await store.list_faces()]
    except FaceRecognitionError as e:
        _raise_http_error(e)


@router.get(
    "/faces/{face_id}",
    response_model=FaceResponse,
    summary="Get an enrolled face",
    responses={404: {"description": "Face not found"}},
)
async def get_face(face_id: int, store: FaceStore = Depends(get_face_store)) -> FaceResponse:
    try:
        face = await store.get_face(face_id)
    except FaceRecognitionError as e:
        _raise_http_error(e)
    if face is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Face not found")
    return FaceResponse.from_entity(face)


@router.get("/stats", response_model=StatsResponse, summary="Recognition statistics")
async def get_stats(store: FaceStore = Depends(get_face_store)) -> StatsResponse:
    try:
        return StatsResponse.from_stats(await store.stats())
    except FaceRecognitionError as e:
        _raise_http_error(e)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard data",
    description="Statistics, enrolled faces and the most recent recognitions.",
)
async def get_dashboard(store: FaceStore = Depends(get_face_store)) -> DashboardResponse:
    try:
        stats = await store.stats()
        faces = await store.list_faces()
        logs = await store.recent_logs(RECENT_LOGS_LIMIT)
    except FaceRecognitionError as e:
        _raise_http_error(e)
    return DashboardResponse(
        stats=StatsResponse.from_stats(stats),
        faces=[FaceResponse.from_entity(face) for face in faces],
        recent_logs=[RecognitionLogResponse.from_entity(entry) for entry in logs],
    )


@router.get("/health", response_model=HealthResponse, summary="Recognition service health")
async def face_health(
    extractor: DescriptorExtractor = Depends(get_extractor),
) -> HealthResponse:
    return HealthResponse(status="healthy", model_loaded=extractor.ready)
