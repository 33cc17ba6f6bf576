"""Issue lifecycle hooks - wire triage, duplicates and rules into create/update flows."""

from issue_intel.hooks.lifecycle import (
    event_type_for_changes,
    invalidate_issue_cache,
    on_issue_created,
    on_issue_updated,
    pre_generate_embeddings,
    quick_duplicate_check,
    quick_triage_type,
)
from issue_intel.hooks.models import (
    AutomationContext,
    IssueCreatedPayload,
    IssueUpdatedPayload,
    OnIssueCreatedResult,
    OnIssueUpdatedResult,
    TitleMatch,
)

__all__ = [
    "event_type_for_changes",
    "invalidate_issue_cache",
    "on_issue_created",
    "on_issue_updated",
    "pre_generate_embeddings",
    "quick_duplicate_check",
    "quick_triage_type",
    "AutomationContext",
    "IssueCreatedPayload",
    "IssueUpdatedPayload",
    "OnIssueCreatedResult",
    "OnIssueUpdatedResult",
    "TitleMatch",
]
