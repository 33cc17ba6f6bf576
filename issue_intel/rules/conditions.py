"""
Trigger condition matching.

A rule matches an event payload when every filter it sets holds:
- If any excluded label is present, the rule does not match.
- Otherwise each set filter (type, priority, labels, status, branches, ...)
  must pass. Unset filters and empty lists pass vacuously.
"""

from fnmatch import fnmatchcase
from typing import List, Optional

from issue_intel.rules.models import EventPayload, TriggerConditions


def _branch_matches(branch: str, patterns: List[str]) -> bool:
    """Shell-style glob match; a plain name only matches itself."""
    return any(fnmatchcase(branch, pattern) for pattern in patterns)


def _in(value: Optional[str], allowed: List[str]) -> bool:
    return value is not None and value in allowed


def matches_conditions(conditions: TriggerConditions, payload: EventPayload) -> bool:
    """True when the payload satisfies every filter set in `conditions`."""
    issue = payload.issue
    issue_labels = issue.labels if issue else []

    if conditions.exclude_labels:
        if any(label in issue_labels for label in conditions.exclude_labels):
            return False

    if conditions.issue_types:
        if not issue or not _in(issue.type, conditions.issue_types):
            return False

    if conditions.priorities:
        if not issue or not _in(issue.priority, conditions.priorities):
            return False

    if conditions.labels:
        if not any(label in issue_labels for label in conditions.labels):
            return False

    if conditions.has_label is not None:
        if conditions.has_label != bool(issue_labels):
            return False

    if conditions.has_assignee is not None:
        has_assignee = bool(issue and issue.assignee_id)
        if conditions.has_assignee != has_assignee:
            return False

    if conditions.status_from:
        previous_status = (payload.previous_values or {}).get("status")
        if not previous_status or previous_status not in conditions.status_from:
            return False

    if conditions.status_to:
        if not issue or not _in(issue.status, conditions.status_to):
            return False

    pr = payload.pull_request
    if conditions.target_branch:
        if not pr or not _branch_matches(pr.target_branch, conditions.target_branch):
            return False

    if conditions.source_branch:
        if not pr or not _branch_matches(pr.source_branch, conditions.source_branch):
            return False

    return True
