from .face_recognition import DescriptorExtractor

__all__ = ["DescriptorExtractor"]
