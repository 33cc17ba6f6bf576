"""Data models for issue triage."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class IssueType(str, Enum):
    """Issue types triage can suggest."""
    BUG = "BUG"  # Defect, something broken
    TASK = "TASK"  # Specific work item
    STORY = "STORY"  # User-facing feature
    EPIC = "EPIC"  # Large feature spanning stories
    SUBTASK = "SUBTASK"  # Small part of a larger task
    MILESTONE = "MILESTONE"  # Release or major checkpoint


class PriorityLevel(str, Enum):
    """Priority levels, lowest to highest."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


FIBONACCI_POINTS = (1, 2, 3, 5, 8, 13, 21)

# Types that get a story point estimate
ESTIMABLE_TYPES = ("STORY", "TASK", "BUG", "SUBTASK")


class ProjectContext(BaseModel):
    """Project the issue belongs to."""
    name: str = ""
    description: Optional[str] = None
    existing_labels: List[str] = []


class WorkspaceContext(BaseModel):
    """Workspace-wide hints."""
    recent_issue_types: List[str] = []
    common_labels: List[str] = []


class TriageInput(BaseModel):
    """Issue text to triage plus optional context."""
    title: str
    description: Optional[str] = None
    project_context: Optional[ProjectContext] = None
    workspace_context: Optional[WorkspaceContext] = None

    def label_vocabulary(self) -> List[str]:
        """Project labels followed by workspace common labels."""
        labels: List[str] = []
        if self.project_context:
            labels.extend(self.project_context.existing_labels)
        if self.workspace_context:
            labels.extend(self.workspace_context.common_labels)
        return labels


class PrioritySuggestion(BaseModel):
    """Suggested priority with confidence (0-1)."""
    value: PriorityLevel
    confidence: float
    reasoning: str


class LabelSuggestion(BaseModel):
    """Suggested label. `is_existing` means it is already in the vocabulary."""
    name: str
    is_existing: bool
    confidence: float


class TriageSuggestion(BaseModel):
    """Full triage result for one issue."""
    type: IssueType
    priority: PrioritySuggestion
    labels: List[LabelSuggestion] = []
    story_points: Optional[int] = None
    summary: Optional[str] = None
    confidence: float
    reasoning: str
