"""Data models for automation rules and events."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from issue_intel.assignment.models import TeamMember
from issue_intel.duplicates.models import IssueForDuplication


class AutomationTriggerType(str, Enum):
    """Events a rule can fire on."""
    ISSUE_CREATED = "issue.created"
    ISSUE_UPDATED = "issue.updated"
    ISSUE_STATUS_CHANGED = "issue.status_changed"
    ISSUE_ASSIGNED = "issue.assigned"
    ISSUE_COMMENTED = "issue.commented"
    PR_OPENED = "pr.opened"
    PR_MERGED = "pr.merged"
    SCHEDULE_DAILY = "schedule.daily"
    SCHEDULE_WEEKLY = "schedule.weekly"
    MANUAL = "manual"


class AutomationActionType(str, Enum):
    """What a rule does when it fires."""
    AUTO_TRIAGE = "auto_triage"
    AUTO_LABEL = "auto_label"
    AUTO_ASSIGN = "auto_assign"
    CHECK_DUPLICATES = "check_duplicates"
    NOTIFY = "notify"
    UPDATE_FIELD = "update_field"
    ADD_COMMENT = "add_comment"
    GENERATE_SUMMARY = "generate_summary"
    CUSTOM_AI = "custom_ai"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    IN_APP = "in_app"
    SLACK = "slack"


class SummaryType(str, Enum):
    ISSUE = "issue"
    PROJECT = "project"
    SPRINT = "sprint"


class ResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class TriggerConditions(BaseModel):
    """
    Filters a rule applies to the event payload.

    All set filters must hold. None (or an empty list) means "don't care".
    """
    # Issue filters
    issue_types: Optional[List[str]] = None
    priorities: Optional[List[str]] = None
    labels: Optional[List[str]] = None  # Issue must carry at least one
    exclude_labels: Optional[List[str]] = None  # Issue must carry none
    has_label: Optional[bool] = None
    has_assignee: Optional[bool] = None
    status_from: Optional[List[str]] = None  # previous_values["status"]
    status_to: Optional[List[str]] = None

    # Pull request filters (shell-style globs, e.g. "release/*")
    source_branch: Optional[List[str]] = None
    target_branch: Optional[List[str]] = None


class ActionConfig(BaseModel):
    """Per-action options; each executor reads only its own fields."""
    # auto_triage
    apply_type: bool = True
    apply_priority: bool = True
    apply_labels: bool = True
    apply_story_points: bool = True
    require_confirmation: bool = False

    # auto_label
    label_names: Optional[List[str]] = None

    # auto_assign
    assignee_ids: Optional[List[str]] = None
    consider_workload: Optional[bool] = None

    # check_duplicates
    threshold: Optional[float] = None
    notify_if_found: Optional[bool] = None
    auto_link: Optional[bool] = None

    # notify
    channels: Optional[List[NotificationChannel]] = None
    recipients: Optional[List[str]] = None
    message: Optional[str] = None

    # update_field
    field_name: Optional[str] = None
    field_value: Any = None

    # add_comment
    comment_template: Optional[str] = None

    # Shared AI switch (auto_label, auto_assign, add_comment)
    use_ai: Optional[bool] = None

    # generate_summary
    summary_type: Optional[SummaryType] = None

    # custom_ai
    prompt: Optional[str] = None
    model: Optional[str] = None


class EventIssue(BaseModel):
    """Issue snapshot carried by an issue event."""
    id: str
    title: str
    description: Optional[str] = None
    type: str
    priority: str
    status: Optional[str] = None
    labels: List[str] = []
    assignee_id: Optional[str] = None
    project_id: str


class EventPullRequest(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    source_branch: str
    target_branch: str


class EventPayload(BaseModel):
    """What happened, plus optional candidate sets for inline services."""
    issue: Optional[EventIssue] = None
    previous_values: Optional[Dict[str, Any]] = None
    changed_fields: Optional[List[str]] = None
    pull_request: Optional[EventPullRequest] = None
    triggered_by: Optional[str] = None
    existing_issues: Optional[List[IssueForDuplication]] = None  # For check_duplicates
    team_members: Optional[List[TeamMember]] = None  # For auto_assign


class AutomationEvent(BaseModel):
    type: AutomationTriggerType
    workspace_id: str
    payload: EventPayload = EventPayload()
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AutomationRule(BaseModel):
    """A stored automation rule; passed by value on every call."""
    id: str
    name: str
    description: Optional[str] = None
    workspace_id: str
    project_id: Optional[str] = None
    agent_id: Optional[str] = None
    trigger_type: AutomationTriggerType
    trigger_conditions: TriggerConditions = TriggerConditions()
    action_type: AutomationActionType
    action_config: ActionConfig = ActionConfig()
    is_enabled: bool = True


class AutomationResult(BaseModel):
    """Outcome of one matched rule."""
    rule_id: str
    status: ResultStatus
    action_type: AutomationActionType
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    duration_ms: float = 0.0
