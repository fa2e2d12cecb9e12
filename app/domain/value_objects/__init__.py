"""Value objects package."""
from .recognition import (
    BestMatch,
    MatchResult,
    RecognitionOutcome,
    RecognitionStats,
    RecognizedPerson,
)

__all__ = [
    "BestMatch",
    "MatchResult",
    "RecognitionOutcome",
    "RecognitionStats",
    "RecognizedPerson",
]
