"""Text normalization and vector similarity helpers."""

import hashlib
import re
from typing import Optional, Sequence

import numpy as np

from issue_intel.errors import DimensionMismatchError

DESCRIPTION_CHARS = 500

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")  # Unicode \w: accented letters survive


def normalize_text(text: str) -> str:
    """Lowercase, collapse whitespace, strip punctuation."""
    collapsed = _WHITESPACE.sub(" ", text.lower().strip())
    return _PUNCTUATION.sub("", collapsed)


def build_search_text(title: str, description: Optional[str] = None) -> str:
    """Title plus the first 500 characters of the description."""
    if not description:
        return title
    return f"{title}\n\n{description[:DESCRIPTION_CHARS]}"


def hash_content(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero magnitude. Vectors of different
    length raise DimensionMismatchError.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vectors must have same length ({len(a)} != {len(b)})")

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    magnitude = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if magnitude == 0.0:
        return 0.0

    similarity = float(np.dot(va, vb)) / magnitude
    return max(-1.0, min(1.0, similarity))


def jaccard_similarity(left: str, right: str) -> float:
    """Word-set Jaccard similarity of two lower-cased, trimmed strings."""
    left_words = set(left.lower().strip().split())
    right_words = set(right.lower().strip().split())
    union = left_words | right_words
    if not union:
        return 0.0
    return len(left_words & right_words) / len(union)
