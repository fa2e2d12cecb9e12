"""Service interfaces package."""
from .recognition import DescriptorExtractor
from .storage import FaceStore

__all__ = ["DescriptorExtractor", "FaceStore"]
