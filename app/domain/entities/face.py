"""Core face domain entities."""
from datetime import datetime
from typing import List, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoundingBox(BaseModel):
    """Face bounding box in pixel coordinates of the analysed image."""
    x: float = Field(..., description="Left coordinate of the bounding box")
    y: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class Face(BaseModel):
    """Face detection result with its descriptor."""
    confidence: float = Field(..., description="Confidence score of the detection")
    bounding_box: BoundingBox = Field(..., description="Bounding box coordinates")
    embedding: Optional[np.ndarray] = Field(None, description="Face descriptor vector")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator('embedding')
    @classmethod
    def validate_embedding(cls, v: Optional[Union[np.ndarray, list]]) -> Optional[np.ndarray]:
        """Validate and convert embedding to numpy array if needed."""
        if v is None:
            return None
        if isinstance(v, list):
            return np.array(v, dtype=np.float64)
        return v

    @property
    def descriptor(self) -> List[float]:
        """Descriptor as a plain list of floats, the form it is stored in."""
        if self.embedding is None:
            return []
        return [float(value) for value in self.embedding]


class EnrolledFace(BaseModel):
    """A face enrolled in the persistent store."""
    id: int = Field(..., description="Store-assigned identifier")
    name: str = Field(..., description="Name of the enrolled person")
    descriptor: str = Field(..., description="Serialized (JSON) face descriptor")
    image_path: str = Field(..., description="Path of the normalized enrollment image")
    created_at: Optional[datetime] = Field(None, description="When the face was enrolled")
    updated_at: Optional[datetime] = Field(None, description="Last modification timestamp")


class RecognitionLogEntry(BaseModel):
    """Recognition log row joined with the recognized person's name."""
    id: int
    face_id: Optional[int] = None
    person_name: Optional[str] = None
    confidence: float
    image_path: Optional[str] = None
    created_at: Optional[datetime] = None
