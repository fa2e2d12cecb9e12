"""Face recognition value objects."""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.domain.entities.face import BoundingBox


class MatchResult(BaseModel):
    """Result of comparing two descriptors."""
    distance: float = Field(..., description="Euclidean distance between the descriptors")
    similarity: float = Field(..., description="1 - distance, not clamped")
    is_match: bool = Field(..., description="Whether similarity reaches the threshold")
    threshold: float = Field(..., description="Threshold used for the decision")


class BestMatch(BaseModel):
    """Best candidate of a linear scan over enrolled descriptors."""
    face_id: Optional[int] = Field(None, description="Matched face id, None when below threshold")
    best_face_id: Optional[int] = Field(None, description="Owner of the highest similarity seen")
    confidence: float = Field(0.0, description="Highest similarity seen, even below threshold")

    @property
    def matched(self) -> bool:
        return self.face_id is not None


class RecognizedPerson(BaseModel):
    """Identity part of a positive recognition outcome."""
    id: int
    name: str
    confidence: float
    similarity: float
    box: Optional[BoundingBox] = None


class RecognitionOutcome(BaseModel):
    """Payload produced once per recognition request (and cached by image hash)."""
    message: str
    recognized: bool
    person: Optional[RecognizedPerson] = None
    confidence: float = 0.0
    image_path: Optional[str] = None
    source: Literal["cache", "live"] = "live"

    def cache_payload(self) -> dict:
        """JSON-ready payload as stored in the result cache (no provenance)."""
        return self.model_dump(mode="json", exclude={"source"})


class RecognitionStats(BaseModel):
    """Aggregate figures over enrolled faces and recognition logs."""
    total_faces: int = 0
    unique_faces_recognized: int = 0
    average_confidence: float = 0.0
