"""Custom exceptions for face recognition service."""
from typing import Optional


class FaceRecognitionError(Exception):
    """Base exception for face recognition operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face recognition error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(FaceRecognitionError):
    """Raised when request input has the wrong shape (name length, missing file...)."""
    pass


class InvalidImageError(FaceRecognitionError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class NoFaceDetectedError(FaceRecognitionError):
    """Raised when no face is detected in the image."""
    pass


class MultipleFacesError(FaceRecognitionError):
    """Raised when multiple faces are found in an image that expects only one face."""
    pass


class FaceTooSmallError(FaceRecognitionError):
    """Raised when the detected face is below the minimum size."""
    pass


class DuplicateFaceError(FaceRecognitionError):
    """Raised when an enrollment matches an already enrolled face.

    ``details`` carries ``id``, ``name`` and ``similarity`` of the existing face.
    """
    pass


class NotFoundError(FaceRecognitionError):
    """Raised when a requested face record does not exist."""
    pass


class NoEnrolledFacesError(NotFoundError):
    """Raised when recognition is attempted against an empty store."""
    pass


class ServiceUnavailableError(FaceRecognitionError):
    """Raised when a required collaborator is not ready."""
    pass


class ModelLoadError(ServiceUnavailableError):
    """Raised when the face recognition model fails to load."""
    pass


class ServiceNotInitializedError(ServiceUnavailableError):
    """Raised when the service container has not been initialized."""
    pass


class DescriptorComparisonError(FaceRecognitionError):
    """Raised when two descriptors cannot be compared."""
    pass


class StoreError(FaceRecognitionError):
    """Raised when the persistent face store fails."""
    pass
