"""Automation rules - condition matching, action executors and the engine loop."""

from issue_intel.rules.actions import ActionExecutor, ActionRegistry, build_default_registry
from issue_intel.rules.conditions import matches_conditions
from issue_intel.rules.engine import RuleEngine
from issue_intel.rules.models import (
    ActionConfig,
    AutomationActionType,
    AutomationEvent,
    AutomationResult,
    AutomationRule,
    AutomationTriggerType,
    EventIssue,
    EventPayload,
    EventPullRequest,
    ResultStatus,
    TriggerConditions,
)

__all__ = [
    "ActionExecutor",
    "ActionRegistry",
    "build_default_registry",
    "matches_conditions",
    "RuleEngine",
    "ActionConfig",
    "AutomationActionType",
    "AutomationEvent",
    "AutomationResult",
    "AutomationRule",
    "AutomationTriggerType",
    "EventIssue",
    "EventPayload",
    "EventPullRequest",
    "ResultStatus",
    "TriggerConditions",
]
