"""Domain entities package."""
from .face import BoundingBox, EnrolledFace, Face, RecognitionLogEntry

__all__ = ["BoundingBox", "EnrolledFace", "Face", "RecognitionLogEntry"]
