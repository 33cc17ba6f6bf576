"""Issue triage - type, priority, label and story point suggestions."""

from issue_intel.triage.classifier import TriageClassifier
from issue_intel.triage.models import (
    IssueType,
    LabelSuggestion,
    PriorityLevel,
    PrioritySuggestion,
    ProjectContext,
    TriageInput,
    TriageSuggestion,
    WorkspaceContext,
)
from issue_intel.triage.parsing import decode_json_object, default_suggestion, normalize_triage

__all__ = [
    "TriageClassifier",
    "IssueType",
    "LabelSuggestion",
    "PriorityLevel",
    "PrioritySuggestion",
    "ProjectContext",
    "TriageInput",
    "TriageSuggestion",
    "WorkspaceContext",
    "decode_json_object",
    "default_suggestion",
    "normalize_triage",
]
