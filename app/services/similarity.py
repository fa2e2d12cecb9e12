"""Descriptor comparison and best-match selection.

Similarity is ``1 - euclidean_distance`` and is not clamped, so
very dissimilar descriptors produce negative similarities.

Matching is a full linear scan over every enrolled descriptor on each request
(O(N * D)). There is no index; this bounds how many faces the service can hold
before recognition latency becomes noticeable.
"""
import json
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from app.core.exceptions import DescriptorComparisonError
from app.domain.value_objects.recognition import BestMatch, MatchResult

DescriptorLike = Union[np.ndarray, Sequence[float], str]


def parse_descriptor(raw: DescriptorLike) -> np.ndarray:
    """Convert a stored or freshly extracted descriptor to a 1-D float array.

    Args:
        raw: JSON string (storage form), sequence of floats or numpy array

    Returns:
        np.ndarray: 1-D float64 array

    Raises:
        DescriptorComparisonError: If the value cannot be parsed
    """
    try:
        if isinstance(raw, str):
            raw = json.loads(raw)
        vector = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise DescriptorComparisonError(f"Failed to parse descriptor: {e}")

    if vector.ndim != 1 or vector.size == 0:
        raise DescriptorComparisonError(
            "Descriptor must be a non-empty flat sequence",
            details={"shape": list(vector.shape)}
        )
    return vector


def compare(a: DescriptorLike, b: DescriptorLike, threshold: float) -> MatchResult:
    """Compare two descriptors.

    Args:
        a: First descriptor
        b: Second descriptor
        threshold: Minimum similarity for ``is_match``

    Returns:
        MatchResult with distance, similarity and the match decision

    Raises:
        DescriptorComparisonError: If a descriptor is malformed or lengths differ
    """
    vec_a = parse_descriptor(a)
    vec_b = parse_descriptor(b)
    if vec_a.shape != vec_b.shape:
        raise DescriptorComparisonError(
            "Descriptors have different lengths",
            details={"left": int(vec_a.size), "right": int(vec_b.size)}
        )

    distance = float(np.linalg.norm(vec_a - vec_b))
    similarity = 1.0 - distance
    return MatchResult(
        distance=distance,
        similarity=similarity,
        is_match=similarity >= threshold,
        threshold=threshold,
    )


def best_match(
    query: DescriptorLike,
    candidates: Iterable[Tuple[int, DescriptorLike]],
    threshold: float,
) -> BestMatch:
    """Find the most similar candidate to ``query``.

    Every candidate is compared; the highest similarity wins and ties keep the
    first candidate that reached it. The winner is only reported as a match if
    its similarity reaches ``threshold``, but ``confidence`` always carries the
    best similarity seen so that near misses stay observable.

    Args:
        query: Descriptor being recognized
        candidates: (face id, descriptor) pairs in store order
        threshold: Minimum similarity for a match

    Returns:
        BestMatch; an empty candidate set yields no match and confidence 0
    """
    query_vector = parse_descriptor(query)

    best_id = None
    best_similarity = None
    for face_id, descriptor in candidates:
        result = compare(query_vector, descriptor, threshold)
        if best_similarity is None or result.similarity > best_similarity:
            best_similarity = result.similarity
            best_id = face_id

    if best_similarity is None:
        return BestMatch(face_id=None, best_face_id=None, confidence=0.0)

    return BestMatch(
        face_id=best_id if best_similarity >= threshold else None,
        best_face_id=best_id,
        confidence=best_similarity,
    )
