"""Vector helpers shared by the embedding clients and the vector store engines.

Pure functions only; no numpy so any storage engine can reuse them.
"""

import math
import numbers
import struct
from typing import Any, Iterable, Sequence, TypeVar

T = TypeVar("T")

# little-endian IEEE-754 single precision
_FLOAT32 = "<%df"


def is_valid_embedding(value: Any) -> bool:
    """Return True if value is a non-empty sequence of finite real numbers."""
    if not isinstance(value, (list, tuple)) or not value:
        return False
    for component in value:
        if isinstance(component, bool) or not isinstance(component, numbers.Real):
            return False
        if not math.isfinite(component):
            return False
    return True


def normalize_vector(vector: Sequence[float]) -> list[float]:
    """Scale a vector to unit Euclidean length. A zero vector is returned unchanged."""
    norm = math.sqrt(sum(x * x for x in vector))
    if norm == 0.0:
        return [float(x) for x in vector]
    return [x / norm for x in vector]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns NaN when the dimensions differ or either vector has zero length;
    callers are expected not to build such queries.
    """
    if len(a) != len(b):
        return math.nan
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0.0:
        return math.nan
    return dot / denominator


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Iterable[tuple[T, Sequence[float]]],
    top_k: int,
) -> list[tuple[T, float]]:
    """Brute-force ranking of (item, vector) pairs against a query vector.

    Sorted by descending score. Equal scores keep their input order and NaN
    scores rank after every finite score.

    Args:
        query_vector: The query embedding.
        candidates: (item, embedding) pairs in scan order.
        top_k: Maximum number of results.

    Returns:
        list[tuple[T, float]]: At most top_k (item, score) pairs.
    """
    if top_k <= 0:
        return []
    scored = [(item, cosine_similarity(query_vector, vector)) for item, vector in candidates]
    # sorted() is stable, so ties stay in scan order
    scored = sorted(scored, key=lambda pair: (math.isnan(pair[1]), -pair[1] if not math.isnan(pair[1]) else 0.0))
    return scored[:top_k]


def pack_float32(vector: Sequence[float]) -> bytes:
    """Serialise a vector to a little-endian float32 blob."""
    return struct.pack(_FLOAT32 % len(vector), *vector)


def unpack_float32(blob: bytes) -> list[float]:
    """Deserialise a little-endian float32 blob written by pack_float32()."""
    return list(struct.unpack(_FLOAT32 % (len(blob) // 4), blob))
