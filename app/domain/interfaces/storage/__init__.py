from .face_store import FaceStore

__all__ = ["FaceStore"]
