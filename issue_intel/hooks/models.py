"""Data models for issue lifecycle hooks."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from issue_intel.assignment.models import TeamMember
from issue_intel.duplicates.models import DuplicateSearchResult, IssueForDuplication
from issue_intel.rules.models import AutomationResult, AutomationRule, EventIssue
from issue_intel.triage.models import TriageSuggestion


class IssueCreatedPayload(BaseModel):
    """An issue as it was just stored."""
    id: str
    title: str
    description: Optional[str] = None
    type: str
    priority: str
    status: Optional[str] = None
    labels: List[str] = []
    assignee_id: Optional[str] = None
    project_id: str
    workspace_id: str
    reporter_id: Optional[str] = None

    def to_event_issue(self) -> EventIssue:
        return EventIssue(
            id=self.id,
            title=self.title,
            description=self.description or None,
            type=self.type,
            priority=self.priority,
            status=self.status,
            labels=self.labels,
            assignee_id=self.assignee_id or None,
            project_id=self.project_id,
        )


class IssueUpdatedPayload(IssueCreatedPayload):
    """An issue after an update, with what changed."""
    previous_values: Dict[str, Any] = {}
    changed_fields: List[str] = []


class AutomationContext(BaseModel):
    """Workspace data the caller loaded for this hook call."""
    workspace_id: str
    project_id: str
    project_name: Optional[str] = None
    existing_issues: Optional[List[IssueForDuplication]] = None
    automation_rules: Optional[List[AutomationRule]] = None
    existing_labels: Optional[List[str]] = None
    team_members: Optional[List[TeamMember]] = None


class OnIssueCreatedResult(BaseModel):
    """Each field is None when its step was skipped or failed."""
    triage_suggestions: Optional[TriageSuggestion] = None
    duplicate_check: Optional[DuplicateSearchResult] = None
    automation_results: Optional[List[AutomationResult]] = None


class OnIssueUpdatedResult(BaseModel):
    automation_results: Optional[List[AutomationResult]] = None


class TitleMatch(BaseModel):
    """Result row of the title-only duplicate check."""
    id: str
    title: str
    similarity: float
