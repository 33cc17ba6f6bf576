"""Duplicate detection - exact title and semantic (embedding) matching."""

from issue_intel.duplicates.cache import EmbeddingCache, InMemoryEmbeddingCache, RedisEmbeddingCache
from issue_intel.duplicates.detector import DuplicateDetector
from issue_intel.duplicates.models import (
    DuplicateCandidate,
    DuplicateSearchResult,
    DuplicateVerdict,
    EmbeddingCacheEntry,
    IssueForDuplication,
    MatchType,
    NewIssueText,
)
from issue_intel.duplicates.similarity import cosine_similarity, normalize_text

__all__ = [
    "EmbeddingCache",
    "InMemoryEmbeddingCache",
    "RedisEmbeddingCache",
    "DuplicateDetector",
    "DuplicateCandidate",
    "DuplicateSearchResult",
    "DuplicateVerdict",
    "EmbeddingCacheEntry",
    "IssueForDuplication",
    "MatchType",
    "NewIssueText",
    "cosine_similarity",
    "normalize_text",
]
