"""Recognition result cache."""
from .result_cache import ResultCache, content_hash

__all__ = ["ResultCache", "content_hash"]
