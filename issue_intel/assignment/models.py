"""Data models for assignment suggestions and workload analysis."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class Availability(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    AWAY = "away"


class TeamMember(BaseModel):
    """A teammate who can take an issue."""
    id: str
    name: str
    email: Optional[str] = None
    expertise: Optional[List[str]] = None  # e.g. ["frontend", "react"]
    current_workload: Optional[int] = None  # In-progress issues; None = unknown
    recently_assigned: Optional[List[str]] = None  # Recent issue types/labels
    availability: Optional[Availability] = None


class IssueForAssignment(BaseModel):
    """The issue being assigned."""
    title: str
    description: Optional[str] = None
    type: str
    priority: str
    labels: List[str] = []
    project_name: Optional[str] = None


class AssignmentSuggestion(BaseModel):
    """A scored assignee candidate."""
    user_id: str
    user_name: str
    score: float  # 0-1
    reasons: List[str] = []
    confidence: float  # 0-1


class AssignmentResult(BaseModel):
    suggestions: List[AssignmentSuggestion] = []
    reasoning: str


class AssignedIssue(BaseModel):
    """Minimal view of an issue already assigned to someone."""
    assignee_id: str
    status: str
    priority: str


class WorkloadAnalysis(BaseModel):
    """Per-member workload counts."""
    user_id: str
    user_name: str
    total_assigned: int = 0
    in_progress: int = 0
    blocked: int = 0
    capacity_score: float = 1.0  # 0-1, higher = more capacity


class WorkloadBalance(BaseModel):
    is_balanced: bool
    imbalance_score: float  # Coefficient of variation of in-progress counts
    recommendation: Optional[str] = None
