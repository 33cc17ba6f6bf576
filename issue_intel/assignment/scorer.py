"""
Assignee scoring.

Ranks team members for an issue based on:
- Expertise match (direct mention or technology category)
- Recent work on the same issue type or labels
- Availability
- Current workload
- Priority (urgent/high work prefers free, available people)

Scoring is deterministic and makes no model calls.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

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

logger = logging.getLogger(__name__)

# Expertise category -> keywords that signal it in issue text
TECH_MAPPING: Dict[str, List[str]] = {
    "frontend": ["react", "vue", "angular", "ui", "css", "html", "component"],
    "backend": ["api", "server", "database", "endpoint", "service"],
    "database": ["sql", "postgres", "mysql", "mongo", "query", "migration"],
    "devops": ["deploy", "ci", "cd", "docker", "kubernetes", "infrastructure"],
    "security": ["auth", "authentication", "security", "vulnerability", "xss"],
    "testing": ["test", "qa", "quality", "e2e", "unit test"],
    "mobile": ["ios", "android", "mobile", "app"],
}

BASE_SCORE = 0.5
BASE_CONFIDENCE = 0.7
BALANCE_THRESHOLD = 0.5


def issue_search_text(issue: IssueForAssignment) -> str:
    return f"{issue.title} {issue.description or ''} {' '.join(issue.labels)}".lower()


def is_relevant_expertise(issue: IssueForAssignment, expertise: str) -> bool:
    """True if the tag is mentioned in the issue or its category's keywords are."""
    expertise_lower = expertise.lower()
    issue_lower = issue_search_text(issue)

    if expertise_lower in issue_lower:
        return True

    for category, keywords in TECH_MAPPING.items():
        if category in expertise_lower or expertise_lower in category:
            if any(keyword in issue_lower for keyword in keywords):
                return True

    return False


def workload_factor(current_workload: int) -> float:
    """2-4 in-progress issues is the sweet spot; beyond 6 it turns negative."""
    if current_workload <= 2:
        return 0.2
    if current_workload <= 4:
        return 0.1
    if current_workload <= 6:
        return 0.0
    return -0.1 * (current_workload - 6)


class AssignmentScorer:
    """Suggests assignees and reports on team workload."""

    def suggest_assignees(
        self,
        issue: IssueForAssignment,
        team_members: Sequence[TeamMember],
        max_suggestions: int = 3,
        consider_workload: bool = True,
    ) -> AssignmentResult:
        """
        Rank team members for an issue.

        Args:
            issue: The issue to assign
            team_members: Candidates
            max_suggestions: How many suggestions to return
            consider_workload: Whether current workload affects the score

        Returns:
            AssignmentResult with suggestions (best first) and a summary
        """
        if not team_members:
            return AssignmentResult(
                suggestions=[],
                reasoning="No team members available for assignment",
            )

        if len(team_members) == 1:
            member = team_members[0]
            return AssignmentResult(
                suggestions=[AssignmentSuggestion(
                    user_id=member.id,
                    user_name=member.name,
                    score=1.0,
                    reasons=["Only team member available"],
                    confidence=1.0,
                )],
                reasoning="Single team member available",
            )

        scored = [self.score_member(issue, member, consider_workload) for member in team_members]
        scored.sort(key=lambda s: s.score, reverse=True)
        suggestions = scored[:max_suggestions]

        logger.debug(
            f"Scored {len(team_members)} members for '{issue.title}', "
            f"top: {suggestions[0].user_name} ({suggestions[0].score:.2f})"
        )

        return AssignmentResult(
            suggestions=suggestions,
            reasoning=self._build_reasoning(suggestions),
        )

    def get_best_assignee(
        self,
        issue: IssueForAssignment,
        team_members: Sequence[TeamMember],
    ) -> Optional[AssignmentSuggestion]:
        result = self.suggest_assignees(issue, team_members, max_suggestions=1)
        return result.suggestions[0] if result.suggestions else None

    def score_member(
        self,
        issue: IssueForAssignment,
        member: TeamMember,
        consider_workload: bool = True,
    ) -> AssignmentSuggestion:
        """Score one member (0-1) with human-readable reasons."""
        score = BASE_SCORE
        confidence = BASE_CONFIDENCE
        reasons: List[str] = []

        # Expertise
        if member.expertise:
            relevant = [e for e in member.expertise if is_relevant_expertise(issue, e)]
            expertise_score = len(relevant) / len(member.expertise)
            score += expertise_score * 0.3
            if expertise_score > 0.5:
                reasons.append(f"Expertise matches: {', '.join(relevant)}")

        # Recent work
        if member.recently_assigned:
            recent_score = self._recent_work_match(issue, member.recently_assigned)
            score += recent_score * 0.2
            if recent_score > 0.3:
                reasons.append("Recently worked on similar issues")

        # Availability
        if member.availability == Availability.AVAILABLE:
            score += 0.1
            reasons.append("Currently available")
        elif member.availability == Availability.AWAY:
            score -= 0.3
            reasons.append("Currently away")
            confidence *= 0.5

        # Workload
        if consider_workload and member.current_workload is not None:
            score += workload_factor(member.current_workload) * 0.2
            if member.current_workload <= 2:
                reasons.append("Low current workload")
            elif member.current_workload >= 5:
                reasons.append("High current workload")

        # Urgent work goes to free, available people
        if issue.priority.lower() in ("urgent", "high"):
            if member.availability == Availability.AVAILABLE and (member.current_workload or 0) < 3:
                score += 0.1
                reasons.append("Available for urgent work")

        score = max(0.0, min(1.0, score))

        if not member.expertise:
            confidence *= 0.8
        if member.current_workload is None:
            confidence *= 0.9

        return AssignmentSuggestion(
            user_id=member.id,
            user_name=member.name,
            score=score,
            reasons=reasons,
            confidence=confidence,
        )

    def analyze_workload(
        self,
        team_members: Sequence[TeamMember],
        assigned_issues: Sequence[AssignedIssue],
    ) -> List[WorkloadAnalysis]:
        """
        Count assigned, in-progress and blocked issues per member.

        Issues assigned to someone outside `team_members` are ignored.
        """
        counts: Dict[str, Dict[str, int]] = {
            member.id: {"total": 0, "in_progress": 0, "blocked": 0} for member in team_members
        }

        for issue in assigned_issues:
            current = counts.get(issue.assignee_id)
            if current is None:
                continue
            current["total"] += 1
            if issue.status == "in_progress":
                current["in_progress"] += 1
            if issue.status == "blocked":
                current["blocked"] += 1

        max_in_progress = max([c["in_progress"] for c in counts.values()] + [1])

        analysis = []
        for member in team_members:
            workload = counts[member.id]
            capacity = 1 - workload["in_progress"] / (max_in_progress + 5)
            analysis.append(WorkloadAnalysis(
                user_id=member.id,
                user_name=member.name,
                total_assigned=workload["total"],
                in_progress=workload["in_progress"],
                blocked=workload["blocked"],
                capacity_score=max(0.0, min(1.0, capacity)),
            ))

        return analysis

    def is_workload_balanced(self, analysis: Sequence[WorkloadAnalysis]) -> WorkloadBalance:
        """
        Check whether in-progress work is spread evenly.

        Imbalance is the coefficient of variation (population std / mean);
        the team is balanced below 0.5.
        """
        if len(analysis) < 2:
            return WorkloadBalance(is_balanced=True, imbalance_score=0.0)

        in_progress = np.array([w.in_progress for w in analysis], dtype=np.float64)
        mean = float(in_progress.mean())
        std = float(in_progress.std())

        imbalance = std / mean if mean > 0 else 0.0
        is_balanced = imbalance < BALANCE_THRESHOLD

        recommendation = None
        if not is_balanced:
            overloaded = [w.user_name for w in analysis if w.in_progress > mean + std]
            underloaded = [w.user_name for w in analysis if w.in_progress < mean - std]
            if overloaded and underloaded:
                recommendation = (
                    f"Consider reassigning some work from {', '.join(overloaded)} "
                    f"to {', '.join(underloaded)}"
                )

        return WorkloadBalance(
            is_balanced=is_balanced,
            imbalance_score=imbalance,
            recommendation=recommendation,
        )

    # Internals

    def _recent_work_match(self, issue: IssueForAssignment, recently_assigned: List[str]) -> float:
        recent_lower = [r.lower() for r in recently_assigned]

        if issue.type.lower() in recent_lower:
            return 0.5

        matching = [
            label for label in issue.labels
            if any(label.lower() in r or r in label.lower() for r in recent_lower)
        ]
        return 0.3 + 0.1 * len(matching) if matching else 0.0

    def _build_reasoning(self, suggestions: List[AssignmentSuggestion]) -> str:
        if not suggestions:
            return "No suitable assignees found."

        top_pick = suggestions[0]
        reasons = "; ".join(top_pick.reasons)

        if len(suggestions) == 1:
            return f"Recommended: {top_pick.user_name}. {reasons}"

        alternatives = ", ".join(s.user_name for s in suggestions[1:])
        return (
            f"Top recommendation: {top_pick.user_name} ({top_pick.score * 100:.0f}% match). "
            f"{reasons}. Alternatives: {alternatives}"
        )
