"""Data models for duplicate detection."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class MatchType(str, Enum):
    """How a candidate matched."""
    EXACT_TITLE = "exact_title"  # Normalized titles are identical
    SIMILAR_CONTENT = "similar_content"  # Cosine > 0.9
    RELATED_TOPIC = "related_topic"  # Cosine >= threshold


class IssueForDuplication(BaseModel):
    """An existing issue to compare against."""
    id: str
    title: str
    description: Optional[str] = None
    type: str = "TASK"
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    issue_key: Optional[str] = None


class NewIssueText(BaseModel):
    """Text of the issue being checked."""
    title: str
    description: Optional[str] = None


class DuplicateCandidate(BaseModel):
    """A possible duplicate with its similarity (0-1)."""
    issue: IssueForDuplication
    similarity_score: float
    match_type: MatchType
    explanation: Optional[str] = None


class DuplicateSearchResult(BaseModel):
    """Result of a duplicate search."""
    candidates: List[DuplicateCandidate] = []
    searched_count: int = 0
    processing_time_ms: float = 0.0


class DuplicateVerdict(BaseModel):
    """Yes/no duplicate answer with the closest match."""
    is_duplicate: bool
    confidence: float
    most_similar: Optional[DuplicateCandidate] = None


class EmbeddingCacheEntry(BaseModel):
    """Cached embedding; valid while `content_hash` matches the issue text."""
    embedding: List[float]
    content_hash: str
    created_at: datetime
