"""
Issue lifecycle hooks.

Call these from issue create/update flows:
- on_issue_created: triage, duplicate check, then matching rules
- on_issue_updated: cache invalidation, then matching rules

Every step is guarded on its own. A failed step is logged and leaves its
result field as None; hooks never raise because of a model or rule failure.
"""

import logging
from typing import Any, Dict, List, Sequence

from issue_intel.duplicates.models import IssueForDuplication, NewIssueText
from issue_intel.duplicates.similarity import jaccard_similarity
from issue_intel.hooks.models import (
    AutomationContext,
    IssueCreatedPayload,
    IssueUpdatedPayload,
    OnIssueCreatedResult,
    OnIssueUpdatedResult,
    TitleMatch,
)
from issue_intel.rules.models import AutomationEvent, AutomationTriggerType, EventPayload
from issue_intel.services import AutomationServices
from issue_intel.triage.models import ProjectContext, TriageInput

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("title", "description")
STATUS_FIELDS = ("status", "status_id")
QUICK_MATCH_THRESHOLD = 0.5
QUICK_MATCH_LIMIT = 5


async def on_issue_created(
    issue: IssueCreatedPayload,
    context: AutomationContext,
    services: AutomationServices,
) -> OnIssueCreatedResult:
    """
    Run AI automation for a newly created issue.

    Args:
        issue: The stored issue
        context: Existing issues, labels, rules and team for the project
        services: Service container

    Returns:
        OnIssueCreatedResult with triage suggestions, duplicate candidates
        and rule results (each None if skipped or failed)
    """
    result = OnIssueCreatedResult()

    try:
        result.triage_suggestions = await services.triage.analyze_issue(TriageInput(
            title=issue.title,
            description=issue.description or None,
            project_context=ProjectContext(
                name=context.project_name or "",
                existing_labels=context.existing_labels or [],
            ),
        ))
    except Exception as e:
        logger.error(f"Auto-triage failed for issue {issue.id}: {e}", exc_info=True)

    try:
        if context.existing_issues:
            result.duplicate_check = await services.duplicates.find_duplicates(
                NewIssueText(title=issue.title, description=issue.description),
                [existing for existing in context.existing_issues if existing.id != issue.id],
                threshold=0.75,
                max_candidates=3,
                include_explanation=True,
            )
    except Exception as e:
        logger.error(f"Duplicate detection failed for issue {issue.id}: {e}", exc_info=True)

    try:
        if context.automation_rules:
            event = AutomationEvent(
                type=AutomationTriggerType.ISSUE_CREATED,
                workspace_id=context.workspace_id,
                payload=EventPayload(
                    issue=issue.to_event_issue(),
                    triggered_by=issue.reporter_id,
                    existing_issues=context.existing_issues,
                    team_members=context.team_members,
                ),
            )
            result.automation_results = await services.engine.process_event(event, context.automation_rules)
    except Exception as e:
        logger.error(f"Automation execution failed for issue {issue.id}: {e}", exc_info=True)

    return result


def event_type_for_changes(changed_fields: Sequence[str]) -> AutomationTriggerType:
    """Status changes win over assignment; anything else is a plain update."""
    if any(field in changed_fields for field in STATUS_FIELDS):
        return AutomationTriggerType.ISSUE_STATUS_CHANGED
    if "assignee_id" in changed_fields:
        return AutomationTriggerType.ISSUE_ASSIGNED
    return AutomationTriggerType.ISSUE_UPDATED


async def on_issue_updated(
    issue: IssueUpdatedPayload,
    context: AutomationContext,
    services: AutomationServices,
) -> OnIssueUpdatedResult:
    """Invalidate stale embeddings and run rules for an issue update."""
    result = OnIssueUpdatedResult()

    if any(field in issue.changed_fields for field in CONTENT_FIELDS):
        try:
            await invalidate_issue_cache(issue.id, services)
        except Exception as e:
            logger.error(f"Cache invalidation failed for issue {issue.id}: {e}", exc_info=True)

    try:
        if context.automation_rules:
            event = AutomationEvent(
                type=event_type_for_changes(issue.changed_fields),
                workspace_id=context.workspace_id,
                payload=EventPayload(
                    issue=issue.to_event_issue(),
                    previous_values=issue.previous_values,
                    changed_fields=issue.changed_fields,
                    existing_issues=context.existing_issues,
                    team_members=context.team_members,
                ),
            )
            result.automation_results = await services.engine.process_event(event, context.automation_rules)
    except Exception as e:
        logger.error(f"Automation execution failed for issue {issue.id}: {e}", exc_info=True)

    return result


async def invalidate_issue_cache(issue_id: str, services: AutomationServices) -> None:
    """Drop the cached embedding after an issue's content changed."""
    await services.duplicates.invalidate_cache(issue_id)


async def pre_generate_embeddings(issues: Sequence[IssueForDuplication], services: AutomationServices) -> int:
    """
    Warm the embedding cache for existing issues.

    Per-issue failures are logged and skipped. Returns how many issues now
    have a cached embedding.
    """
    generated = 0
    for issue in issues:
        try:
            await services.duplicates.generate_and_cache_embedding(issue)
            generated += 1
        except Exception as e:
            logger.error(f"Failed to generate embedding for issue {issue.id}: {e}")

    logger.info(f"Pre-generated embeddings for {generated}/{len(issues)} issues")
    return generated


async def quick_triage_type(title: str, services: AutomationServices) -> Dict[str, Any]:
    """Type-only triage from a title, for suggestions while typing."""
    issue_type = await services.triage.classify_type(title)
    return {"type": issue_type.value, "confidence": 0.8}


def quick_duplicate_check(title: str, existing_titles: Sequence[Dict[str, str]]) -> List[TitleMatch]:
    """
    Title-only duplicate check by word overlap, for warnings while typing.

    Args:
        title: Title being typed
        existing_titles: Dicts with "id" and "title"

    Returns:
        Up to 5 matches with Jaccard similarity above 0.5, best first
    """
    matches = [
        TitleMatch(id=existing["id"], title=existing["title"], similarity=jaccard_similarity(title, existing["title"]))
        for existing in existing_titles
    ]
    matches = [match for match in matches if match.similarity > QUICK_MATCH_THRESHOLD]
    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches[:QUICK_MATCH_LIMIT]
