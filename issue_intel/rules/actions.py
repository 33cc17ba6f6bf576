"""
Action executors.

One executor per action type. Executors describe what should change (an
"intent" dict) and never mutate anything themselves; the caller applies the
intent. Errors propagate to the rule engine, which records them per rule.
"""

import logging
from typing import Any, Dict, List, Optional

from issue_intel.assignment.models import IssueForAssignment
from issue_intel.assignment.scorer import AssignmentScorer
from issue_intel.duplicates.detector import DEFAULT_THRESHOLD, DuplicateDetector
from issue_intel.duplicates.models import NewIssueText
from issue_intel.errors import InputError, MissingIssueError, UnknownActionError
from issue_intel.gateway.base import ModelGateway
from issue_intel.rules.models import (
    AutomationActionType,
    AutomationEvent,
    AutomationRule,
    EventIssue,
    NotificationChannel,
    SummaryType,
)
from issue_intel.triage.classifier import TriageClassifier
from issue_intel.triage.models import TriageInput

logger = logging.getLogger(__name__)

LABEL_CONFIDENCE_THRESHOLD = 0.6

# Candidate sets ride along for inline services and stay out of prompts
CANDIDATE_SETS = {"existing_issues", "team_members"}


def require_issue(event: AutomationEvent) -> EventIssue:
    if event.payload.issue is None:
        raise MissingIssueError()
    return event.payload.issue


def render_template(template: str, values: Dict[str, str]) -> str:
    """Replace `{{name}}` placeholders; unknown placeholders are left as-is."""
    rendered = template
    for name, value in values.items():
        rendered = rendered.replace("{{" + name + "}}", value)
    return rendered


class ActionExecutor:
    """Base class for executors."""

    action_type: AutomationActionType

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        raise NotImplementedError


class AutoTriageExecutor(ActionExecutor):
    """Runs full triage and turns the suggestion into field updates."""

    action_type = AutomationActionType.AUTO_TRIAGE

    def __init__(self, classifier: TriageClassifier):
        self.classifier = classifier

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config

        suggestions = await self.classifier.analyze_issue(TriageInput(
            title=issue.title,
            description=issue.description,
        ))

        updates: Dict[str, Any] = {}
        if config.apply_type:
            updates["type"] = suggestions.type.value
        if config.apply_priority:
            updates["priority"] = suggestions.priority.value.value
        if config.apply_labels and suggestions.labels:
            # Only labels that already exist; new ones need a human
            updates["labels"] = [label.name for label in suggestions.labels if label.is_existing]
        if config.apply_story_points and suggestions.story_points:
            updates["story_points"] = suggestions.story_points

        return {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "suggestions": suggestions.model_dump(mode="json"),
            "updates": updates,
            "requires_confirmation": config.require_confirmation,
        }


class AutoLabelExecutor(ActionExecutor):
    """Configured labels win; otherwise confident AI suggestions from the existing set."""

    action_type = AutomationActionType.AUTO_LABEL

    def __init__(self, classifier: TriageClassifier):
        self.classifier = classifier

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config

        labels_to_add: List[str] = []
        if config.label_names:
            labels_to_add = list(config.label_names)
        elif config.use_ai:
            suggestions = await self.classifier.suggest_labels(issue.title, issue.description, issue.labels)
            labels_to_add = [
                label.name for label in suggestions
                if label.is_existing and label.confidence > LABEL_CONFIDENCE_THRESHOLD
            ]

        return {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "labels_to_add": labels_to_add,
        }


class AutoAssignExecutor(ActionExecutor):
    """
    Picks an assignee.

    Order: configured assignee ids, then scoring over `team_members` from
    the payload, then a lookup request for the caller to resolve.
    """

    action_type = AutomationActionType.AUTO_ASSIGN

    def __init__(self, scorer: AssignmentScorer):
        self.scorer = scorer

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config
        consider_workload = config.consider_workload if config.consider_workload is not None else True

        if config.assignee_ids:
            return {
                "action": self.action_type.value,
                "issue_id": issue.id,
                "assignee_id": config.assignee_ids[0],
                "source": "configured",
            }

        team_members = event.payload.team_members
        if team_members is not None:
            result = self.scorer.suggest_assignees(
                IssueForAssignment(
                    title=issue.title,
                    description=issue.description,
                    type=issue.type,
                    priority=issue.priority,
                    labels=issue.labels,
                ),
                team_members,
                consider_workload=consider_workload,
            )
            top_pick = result.suggestions[0] if result.suggestions else None
            return {
                "action": self.action_type.value,
                "issue_id": issue.id,
                "assignee_id": top_pick.user_id if top_pick else None,
                "source": "scored",
                "suggestions": [s.model_dump(mode="json") for s in result.suggestions],
                "reasoning": result.reasoning,
            }

        return {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "requires_team_lookup": True,
            "use_ai": config.use_ai if config.use_ai is not None else True,
            "consider_workload": consider_workload,
        }


class CheckDuplicatesExecutor(ActionExecutor):
    """Searches `existing_issues` when supplied, else describes the search to run."""

    action_type = AutomationActionType.CHECK_DUPLICATES

    def __init__(self, detector: DuplicateDetector):
        self.detector = detector

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config

        intent: Dict[str, Any] = {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "title": issue.title,
            "description": issue.description,
            "threshold": config.threshold if config.threshold is not None else DEFAULT_THRESHOLD,
            "notify_if_found": config.notify_if_found if config.notify_if_found is not None else True,
            "auto_link": config.auto_link if config.auto_link is not None else False,
        }

        existing_issues = event.payload.existing_issues
        if existing_issues is None:
            return intent

        others = [other for other in existing_issues if other.id != issue.id]
        result = await self.detector.find_duplicates(
            NewIssueText(title=issue.title, description=issue.description),
            others,
            threshold=intent["threshold"],
        )
        intent["candidates"] = [c.model_dump(mode="json") for c in result.candidates]
        intent["duplicates_found"] = bool(result.candidates)
        intent["searched_count"] = result.searched_count
        return intent


class NotifyExecutor(ActionExecutor):
    action_type = AutomationActionType.NOTIFY

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        config = rule.action_config
        message = config.message or ""

        issue = event.payload.issue
        if issue:
            message = render_template(message, {
                "issue.title": issue.title,
                "issue.type": issue.type,
                "issue.priority": issue.priority,
            })

        channels = config.channels or [NotificationChannel.IN_APP]
        return {
            "action": self.action_type.value,
            "channels": [channel.value for channel in channels],
            "recipients": list(config.recipients or []),
            "message": message,
            "event_type": event.type.value,
        }


class UpdateFieldExecutor(ActionExecutor):
    action_type = AutomationActionType.UPDATE_FIELD

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config
        if not config.field_name:
            raise InputError("Field name not configured")

        return {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "field_name": config.field_name,
            "field_value": config.field_value,
        }


class AddCommentExecutor(ActionExecutor):
    """Templated comment, or a short generated one when the template is empty and AI is on."""

    action_type = AutomationActionType.ADD_COMMENT

    def __init__(self, gateway: ModelGateway, model: Optional[str] = None):
        self.gateway = gateway
        self.model = model

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        issue = require_issue(event)
        config = rule.action_config
        comment = config.comment_template or ""

        if config.use_ai and not comment:
            what_happened = event.type.value.replace("issue.", "")
            prompt = (
                f"Generate a brief, helpful comment for an issue that was just {what_happened}.\n\n"
                f'Issue: "{issue.title}"\n'
                f"Type: {issue.type}\n"
                f"Priority: {issue.priority}\n\n"
                "Keep the comment professional and under 100 words."
            )
            comment = await self.gateway.quick_complete(
                prompt,
                model=config.model or self.model,
                temperature=0.7,
            )

        comment = render_template(comment, {
            "issue.title": issue.title,
            "event.type": event.type.value,
            "timestamp": event.timestamp.isoformat(),
        })

        return {
            "action": self.action_type.value,
            "issue_id": issue.id,
            "comment": comment,
            "is_automated": True,
        }


class GenerateSummaryExecutor(ActionExecutor):
    action_type = AutomationActionType.GENERATE_SUMMARY

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        summary_type = rule.action_config.summary_type or SummaryType.ISSUE
        issue = event.payload.issue
        return {
            "action": self.action_type.value,
            "summary_type": summary_type.value,
            "workspace_id": event.workspace_id,
            "issue_id": issue.id if issue else None,
        }


class CustomAIExecutor(ActionExecutor):
    """Runs the rule's prompt with the event payload appended as context."""

    action_type = AutomationActionType.CUSTOM_AI

    def __init__(self, gateway: ModelGateway, model: Optional[str] = None):
        self.gateway = gateway
        self.model = model

    async def execute(self, rule: AutomationRule, event: AutomationEvent) -> Dict[str, Any]:
        config = rule.action_config
        if not config.prompt:
            raise InputError("Prompt not configured for custom AI action")

        context = event.payload.model_dump_json(indent=2, exclude_none=True, exclude=CANDIDATE_SETS)
        response = await self.gateway.quick_complete(
            f"{config.prompt}\n\nEvent context:\n{context}",
            model=config.model or self.model,
            temperature=0.5,
        )

        return {
            "action": self.action_type.value,
            "prompt": config.prompt,
            "response": response,
        }


class ActionRegistry:
    """Action type -> executor. New action types plug in via `register`."""

    def __init__(self):
        self._executors: Dict[AutomationActionType, ActionExecutor] = {}

    def register(self, executor: ActionExecutor) -> None:
        if executor.action_type in self._executors:
            logger.debug(f"Replacing executor for {executor.action_type.value}")
        self._executors[executor.action_type] = executor

    def get(self, action_type: AutomationActionType) -> ActionExecutor:
        executor = self._executors.get(action_type)
        if executor is None:
            raise UnknownActionError(f"Unknown action type: {getattr(action_type, 'value', action_type)}")
        return executor

    def __contains__(self, action_type: AutomationActionType) -> bool:
        return action_type in self._executors


def build_default_registry(
    gateway: ModelGateway,
    classifier: TriageClassifier,
    detector: DuplicateDetector,
    scorer: AssignmentScorer,
    model: Optional[str] = None,
) -> ActionRegistry:
    """Registry with an executor for every built-in action type."""
    registry = ActionRegistry()
    for executor in (
        AutoTriageExecutor(classifier),
        AutoLabelExecutor(classifier),
        AutoAssignExecutor(scorer),
        CheckDuplicatesExecutor(detector),
        NotifyExecutor(),
        UpdateFieldExecutor(),
        AddCommentExecutor(gateway, model),
        GenerateSummaryExecutor(),
        CustomAIExecutor(gateway, model),
    ):
        registry.register(executor)
    return registry
