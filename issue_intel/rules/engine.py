"""
Rule engine.

Processes an event by:
1. Selecting enabled rules whose trigger type and conditions match
2. Running each rule's executor inside its own error boundary
3. Returning one AutomationResult per matched rule, in rule order

Results are intents; nothing is persisted or mutated here.
"""

import asyncio
import logging
import time
from typing import List, Sequence

from issue_intel.rules.actions import ActionRegistry
from issue_intel.rules.conditions import matches_conditions
from issue_intel.rules.models import (
    AutomationEvent,
    AutomationResult,
    AutomationRule,
    ResultStatus,
)

logger = logging.getLogger(__name__)


class RuleEngine:
    """Matches rules against events and dispatches to registered executors."""

    def __init__(self, registry: ActionRegistry):
        self.registry = registry

    def matching_rules(self, event: AutomationEvent, rules: Sequence[AutomationRule]) -> List[AutomationRule]:
        return [
            rule for rule in rules
            if rule.is_enabled
            and rule.trigger_type == event.type
            and matches_conditions(rule.trigger_conditions, event.payload)
        ]

    async def process_event(
        self,
        event: AutomationEvent,
        rules: Sequence[AutomationRule],
        concurrent: bool = False,
    ) -> List[AutomationResult]:
        """
        Run every matching rule for an event.

        Args:
            event: The event to process
            rules: Candidate rules (non-matching ones produce no result)
            concurrent: Run matched rules with asyncio.gather; results keep
                rule order either way

        Returns:
            List of AutomationResult, one per matched rule
        """
        matched = self.matching_rules(event, rules)
        logger.info(
            f"Event {event.type.value} in workspace {event.workspace_id}: "
            f"{len(matched)} of {len(rules)} rules matched"
        )

        if concurrent:
            return list(await asyncio.gather(*(self.execute_rule(rule, event) for rule in matched)))

        results = []
        for rule in matched:
            results.append(await self.execute_rule(rule, event))
        return results

    async def execute_rule(self, rule: AutomationRule, event: AutomationEvent) -> AutomationResult:
        """Run one rule; any failure becomes a `failed` result instead of an exception."""
        start = time.perf_counter()

        try:
            executor = self.registry.get(rule.action_type)
            result = await executor.execute(rule, event)
        except Exception as e:
            logger.error(f"Rule {rule.id} ({rule.action_type.value}) failed: {e}", exc_info=True)
            return AutomationResult(
                rule_id=rule.id,
                status=ResultStatus.FAILED,
                action_type=rule.action_type,
                error=str(e) or e.__class__.__name__,
                duration_ms=(time.perf_counter() - start) * 1000,
            )

        return AutomationResult(
            rule_id=rule.id,
            status=ResultStatus.SUCCESS,
            action_type=rule.action_type,
            result=result,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
