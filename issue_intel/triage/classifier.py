"""
Issue triage classifier.

Suggests for a new issue:
- Issue type (BUG, TASK, STORY, ...)
- Priority (low, medium, high, urgent)
- Labels, preferring the existing vocabulary
- Story points on the Fibonacci scale

Classification is advisory: a failed or garbled model call yields a
low-confidence default instead of an exception, so issue creation is never
blocked by triage.
"""

import logging
import re
from typing import List, Optional

from issue_intel.errors import ParseError, ProviderError
from issue_intel.gateway.base import ModelGateway
from issue_intel.gateway.models import ResponseFormat
from issue_intel.triage import prompts
from issue_intel.triage.models import (
    ESTIMABLE_TYPES,
    FIBONACCI_POINTS,
    IssueType,
    LabelSuggestion,
    PriorityLevel,
    PrioritySuggestion,
    TriageInput,
    TriageSuggestion,
)
from issue_intel.triage.parsing import (
    decode_json_array,
    decode_json_object,
    default_suggestion,
    normalize_labels,
    normalize_triage,
)

logger = logging.getLogger(__name__)

CLASSIFIABLE_TYPES = [
    IssueType.BUG.value,
    IssueType.TASK.value,
    IssueType.STORY.value,
    IssueType.EPIC.value,
    IssueType.SUBTASK.value,
]

DEFAULT_STORY_POINTS = 3

LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class TriageClassifier:
    """Classifies issues through the model gateway."""

    def __init__(self, gateway: ModelGateway, model: Optional[str] = None):
        self.gateway = gateway
        self.model = model  # Fast model for triage; gateway default when None

    async def analyze_issue(self, triage_input: TriageInput) -> TriageSuggestion:
        """
        Full triage pass: type, priority, labels, story points, summary.

        Args:
            triage_input: Issue title/description with optional project and
                workspace context (the label vocabulary comes from there)

        Returns:
            Normalized TriageSuggestion, or the default suggestion when the
            model call fails or returns unusable output
        """
        try:
            response = await self.gateway.quick_complete(
                prompts.build_triage_user_prompt(triage_input),
                system_prompt=prompts.build_triage_system_prompt(triage_input),
                model=self.model,
                temperature=0.2,  # Low temperature for consistent results
                response_format=ResponseFormat.JSON,
            )
            data = decode_json_object(response)
        except ParseError as e:
            logger.warning(f"Triage output unparseable for '{triage_input.title}': {e}")
            return default_suggestion()
        except ProviderError as e:
            logger.warning(f"Triage model call failed for '{triage_input.title}': {e}")
            return default_suggestion()
        except Exception as e:
            logger.error(f"Triage failed for '{triage_input.title}': {e}", exc_info=True)
            return default_suggestion()

        return normalize_triage(data, triage_input.label_vocabulary())

    async def classify_type(self, title: str, description: Optional[str] = None) -> IssueType:
        """Quick classification of issue type only."""
        result = await self.gateway.classify(
            prompts.issue_text(title, description),
            CLASSIFIABLE_TYPES,
            prompts.TYPE_HINT,
        )
        return IssueType(result)

    async def assess_priority(
        self,
        title: str,
        description: Optional[str] = None,
        issue_type: Optional[str] = None,
    ) -> PrioritySuggestion:
        """Quick priority assessment."""
        result = await self.gateway.classify(
            prompts.build_priority_context(title, description, issue_type),
            [level.value for level in PriorityLevel],
            prompts.PRIORITY_HINT,
        )
        return PrioritySuggestion(
            value=PriorityLevel(result),
            confidence=0.8,
            reasoning=prompts.PRIORITY_DESCRIPTIONS[result],
        )

    async def suggest_labels(
        self,
        title: str,
        description: Optional[str],
        existing_labels: List[str],
    ) -> List[LabelSuggestion]:
        """Suggest labels for the issue; empty list if the output is unusable."""
        response = await self.gateway.quick_complete(
            prompts.issue_text(title, description),
            system_prompt=prompts.build_label_system_prompt(existing_labels),
            model=self.model,
            temperature=0.3,
            response_format=ResponseFormat.JSON,
        )

        try:
            raw_labels = decode_json_array(response, key="labels")
        except ParseError as e:
            logger.debug(f"Label suggestions unparseable: {e}")
            return []

        return normalize_labels(raw_labels, existing_labels)

    async def estimate_story_points(
        self,
        title: str,
        description: Optional[str] = None,
        issue_type: Optional[str] = None,
    ) -> Optional[int]:
        """
        Estimate story points.

        Only stories, tasks, bugs and subtasks are estimated; other types
        return None without a model call.
        """
        if issue_type and issue_type not in ESTIMABLE_TYPES:
            return None

        response = await self.gateway.quick_complete(
            f"Type: {issue_type or 'TASK'}\n{prompts.issue_text(title, description)}",
            system_prompt=prompts.STORY_POINT_SYSTEM_PROMPT,
            model=self.model,
            temperature=0.1,
            max_tokens=10,
        )

        # Leading integer only: "8 points" and "8." both read as 8
        match = LEADING_INT.match(response)
        if not match:
            logger.debug(f"Story point answer not a number: {response!r}")
            return DEFAULT_STORY_POINTS

        estimate = int(match.group(1))
        return estimate if estimate in FIBONACCI_POINTS else DEFAULT_STORY_POINTS
