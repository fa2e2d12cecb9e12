"""API specific face models."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.entities.face import BoundingBox, EnrolledFace, RecognitionLogEntry
from app.domain.value_objects.recognition import RecognitionOutcome, RecognitionStats


class ApiModel(BaseModel):
    """Base model serializing field names in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnrollResponse(ApiModel):
    """Response model for the /enroll endpoint."""
    id: int = Field(..., description="Identifier of the enrolled face")
    name: str = Field(..., description="Name of the enrolled person")
    image_path: str = Field(..., description="Stored path of the normalized image")
    confidence: float = Field(..., description="Detection confidence of the enrolled face")


class ExistingFace(ApiModel):
    """Already enrolled face an enrollment collided with."""
    id: int
    name: str
    similarity: float


class DuplicateFaceResponse(ApiModel):
    """409 body for a duplicate enrollment."""
    error: str
    existing_face: ExistingFace


class RecognizedPersonResponse(ApiModel):
    """Identity part of a positive recognition."""
    id: int
    name: str
    confidence: float
    similarity: float
    box: Optional[BoundingBox] = None


class LiveRecognitionResponse(ApiModel):
    """Response model for the /recognize-live endpoint."""
    message: str
    recognized: bool
    person: Optional[RecognizedPersonResponse] = None
    confidence: float = Field(..., description="Highest similarity among enrolled faces")
    source: Literal["cache", "live"]

    @classmethod
    def from_outcome(cls, outcome: RecognitionOutcome) -> "LiveRecognitionResponse":
        return cls.model_validate(outcome.model_dump(exclude={"image_path"}))


class RecognitionResponse(LiveRecognitionResponse):
    """Response model for the /recognize endpoint."""
    image_path: Optional[str] = Field(None, description="Stored path of the submitted image")

    @classmethod
    def from_outcome(cls, outcome: RecognitionOutcome) -> "RecognitionResponse":
        return cls.model_validate(outcome.model_dump())


class DeleteFaceResponse(ApiModel):
    """Response model for face deletion."""
    id: int


class FaceResponse(ApiModel):
    """Enrolled face without its descriptor."""
    id: int
    name: str
    image_path: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, face: EnrolledFace) -> "FaceResponse":
        return cls.model_validate(face.model_dump(exclude={"descriptor"}))


class RecognitionLogResponse(ApiModel):
    """A recognition log row."""
    id: int
    face_id: Optional[int] = None
    person_name: Optional[str] = None
    confidence: float
    image_path: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, entry: RecognitionLogEntry) -> "RecognitionLogResponse":
        return cls.model_validate(entry.model_dump())


class StatsResponse(ApiModel):
    """Aggregate recognition statistics."""
    total_faces: int
    unique_faces_recognized: int
    average_confidence: float

    @classmethod
    def from_stats(cls, stats: RecognitionStats) -> "StatsResponse":
        return cls.model_validate(stats.model_dump())


class DashboardResponse(ApiModel):
    """Stats, enrolled faces and the most recent recognitions."""
    stats: StatsResponse
    faces: List[FaceResponse]
    recent_logs: List[RecognitionLogResponse]


class HealthResponse(ApiModel):
    """Service health with extractor readiness."""
    status: str
    model_loaded: bool
