"""Face descriptor extraction interface."""
from abc import ABC, abstractmethod

from ...entities.face import Face


class DescriptorExtractor(ABC):
    """Interface for turning an image into exactly one face descriptor."""

    @property
    @abstractmethod
    def ready(self) -> bool:
        """Whether the underlying model is loaded and usable."""
        pass

    @abstractmethod
    async def extract(self, image_bytes: bytes) -> Face:
        """
        Detect the single face in an image and extract its descriptor.

        Args:
            image_bytes: Raw (normalized) image data

        Returns:
            Face carrying detection confidence, pixel bounding box and embedding

        Raises:
            InvalidImageError: If the image cannot be decoded
            NoFaceDetectedError: If no face is found
            MultipleFacesError: If more than one face is found
            FaceTooSmallError: If the face box is below the minimum size
            ModelLoadError: If the model is not available
        """
        pass
