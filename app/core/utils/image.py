"""
Image processing utility functions.
"""
from typing import Dict, Tuple

import cv2
import numpy as np

# Leading bytes of each accepted upload type
IMAGE_SIGNATURES: Dict[str, bytes] = {
    "image/jpeg": b"\xff\xd8\xff",
    "image/jpg": b"\xff\xd8\xff",
    "image/png": b"\x89PNG",
    "image/webp": b"RIFF",
}


def bytes_to_numpy_array(image_bytes: bytes, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    """Convert image bytes to a numpy array.

    ``IMREAD_COLOR`` applies the EXIF orientation, so the result is upright.

    Args:
        image_bytes: Raw image bytes
        flags: OpenCV imread flags (default: COLOR)

    Returns:
        numpy.ndarray: Image as a numpy array

    Raises:
        ValueError: If the image cannot be decoded
    """
    np_array = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(np_array, flags)

    if img is None:
        raise ValueError("Failed to decode image bytes")

    return img


def has_valid_signature(image_bytes: bytes, content_type: str) -> bool:
    """Check the file's magic number against its declared content type."""
    expected = IMAGE_SIGNATURES.get(content_type)
    if expected is None:
        return False
    if not image_bytes.startswith(expected):
        return False
    if content_type == "image/webp":
        return image_bytes[8:12] == b"WEBP"
    return True


def fit_inside(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Size that fits inside a ``max_dimension`` square without enlarging."""
    scale = min(1.0, max_dimension / width, max_dimension / height)
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))


def normalize_image(image_bytes: bytes, max_dimension: int, jpeg_quality: int) -> bytes:
    """Decode, shrink to fit ``max_dimension`` and re-encode as JPEG.

    Re-encoding also strips all metadata from the upload.

    Raises:
        ValueError: If the image cannot be decoded or encoded
    """
    img = bytes_to_numpy_array(image_bytes)
    height, width = img.shape[:2]
    new_width, new_height = fit_inside(width, height, max_dimension)
    if (new_width, new_height) != (width, height):
        img = cv2.resize(img, (new_width, new_height), interpolation=cv2.INTER_AREA)

    ok, encoded = cv2.imencode(".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), jpeg_quality])
    if not ok:
        raise ValueError("Failed to encode image as JPEG")
    return encoded.tobytes()
