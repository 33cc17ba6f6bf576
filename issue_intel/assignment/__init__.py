"""Assignee suggestions and team workload analysis."""

from issue_intel.assignment.models import (
    AssignedIssue,
    AssignmentResult,
    AssignmentSuggestion,
    Availability,
    IssueForAssignment,
    TeamMember,
    WorkloadAnalysis,
    WorkloadBalance,
)
from issue_intel.assignment.scorer import AssignmentScorer, TECH_MAPPING

__all__ = [
    "AssignmentScorer",
    "TECH_MAPPING",
    "AssignedIssue",
    "AssignmentResult",
    "AssignmentSuggestion",
    "Availability",
    "IssueForAssignment",
    "TeamMember",
    "WorkloadAnalysis",
    "WorkloadBalance",
]
