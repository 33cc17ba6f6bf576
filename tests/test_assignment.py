from __future__ import annotations

import math

import pytest

from issue_intel.assignment.models import (
    AssignedIssue,
    Availability,
    IssueForAssignment,
    TeamMember,
    WorkloadAnalysis,
)
from issue_intel.assignment.scorer import AssignmentScorer, is_relevant_expertise, workload_factor

ISSUE = IssueForAssignment(
    title="Fix React component rendering",
    description="The dashboard component flickers",
    type="BUG",
    priority="medium",
    labels=["ui"],
)


def _member(member_id: str, **kwargs) -> TeamMember:
    return TeamMember(id=member_id, name=member_id.title(), **kwargs)


def test_no_members() -> None:
    result = AssignmentScorer().suggest_assignees(ISSUE, [])
    assert result.suggestions == []
    assert result.reasoning == "No team members available for assignment"


def test_single_member_gets_full_score() -> None:
    result = AssignmentScorer().suggest_assignees(ISSUE, [_member("ana", availability=Availability.AWAY)])

    assert len(result.suggestions) == 1
    suggestion = result.suggestions[0]
    assert (suggestion.user_id, suggestion.score, suggestion.confidence) == ("ana", 1.0, 1.0)
    assert suggestion.reasons == ["Only team member available"]
    assert result.reasoning == "Single team member available"


def test_available_member_ranks_above_away_member() -> None:
    shared = dict(expertise=["frontend"], current_workload=2)
    team = [
        _member("away", availability=Availability.AWAY, **shared),
        _member("here", availability=Availability.AVAILABLE, **shared),
    ]

    result = AssignmentScorer().suggest_assignees(ISSUE, team)

    assert [s.user_id for s in result.suggestions] == ["here", "away"]
    assert result.suggestions[0].score > result.suggestions[1].score
    assert result.reasoning.startswith("Top recommendation: Here (")
    assert result.reasoning.endswith("Alternatives: Away")


def test_score_member_factors() -> None:
    member = _member(
        "ana",
        expertise=["frontend", "react"],
        recently_assigned=["bug"],
        availability=Availability.AVAILABLE,
        current_workload=1,
    )

    suggestion = AssignmentScorer().score_member(ISSUE, member)

    # 0.5 + 0.3 (expertise) + 0.1 (recent) + 0.1 (available) + 0.04 (workload), clamped
    assert suggestion.score == 1.0
    assert suggestion.confidence == pytest.approx(0.7)
    assert suggestion.reasons == [
        "Expertise matches: frontend, react",
        "Recently worked on similar issues",
        "Currently available",
        "Low current workload",
    ]


def test_score_member_without_data_lowers_confidence() -> None:
    suggestion = AssignmentScorer().score_member(ISSUE, _member("new"))

    assert suggestion.score == pytest.approx(0.5)
    assert suggestion.confidence == pytest.approx(0.7 * 0.8 * 0.9)
    assert suggestion.reasons == []


def test_away_member_is_penalized() -> None:
    suggestion = AssignmentScorer().score_member(ISSUE, _member("gone", availability=Availability.AWAY, current_workload=3))

    assert suggestion.score == pytest.approx(0.5 - 0.3 + 0.1 * 0.2)
    assert suggestion.confidence == pytest.approx(0.7 * 0.5 * 0.8)
    assert "Currently away" in suggestion.reasons


def test_recent_label_overlap() -> None:
    member = _member("lee", recently_assigned=["ui-polish"])
    suggestion = AssignmentScorer().score_member(ISSUE, member)

    # One label overlapping by substring: 0.3 + 0.1 = 0.4 recent score
    assert suggestion.score == pytest.approx(0.5 + 0.4 * 0.2)
    assert "Recently worked on similar issues" in suggestion.reasons


def test_urgent_issue_prefers_free_available_member() -> None:
    urgent = ISSUE.model_copy(update={"priority": "urgent"})
    free = _member("free", availability=Availability.AVAILABLE, current_workload=1)
    busy = _member("busy", availability=Availability.AVAILABLE, current_workload=4)

    scorer = AssignmentScorer()
    assert "Available for urgent work" in scorer.score_member(urgent, free).reasons
    assert "Available for urgent work" not in scorer.score_member(urgent, busy).reasons


def test_high_workload_is_reported_and_ignored_when_disabled() -> None:
    member = _member("ana", current_workload=9)
    scorer = AssignmentScorer()

    with_workload = scorer.score_member(ISSUE, member)
    without_workload = scorer.score_member(ISSUE, member, consider_workload=False)

    assert "High current workload" in with_workload.reasons
    assert with_workload.score == pytest.approx(0.5 - 0.3 * 0.2)
    assert without_workload.score == pytest.approx(0.5)


@pytest.mark.parametrize("load, expected", [(0, 0.2), (2, 0.2), (3, 0.1), (4, 0.1), (6, 0.0), (8, -0.2)])
def test_workload_factor(load, expected) -> None:
    assert workload_factor(load) == pytest.approx(expected)


def test_expertise_by_category_keyword() -> None:
    issue = IssueForAssignment(title="Add Docker build to CI", type="TASK", priority="low")
    assert is_relevant_expertise(issue, "DevOps")
    assert not is_relevant_expertise(issue, "security")


def test_get_best_assignee() -> None:
    scorer = AssignmentScorer()
    team = [_member("a", availability=Availability.AWAY), _member("b", availability=Availability.AVAILABLE)]

    assert scorer.get_best_assignee(ISSUE, team).user_id == "b"
    assert scorer.get_best_assignee(ISSUE, []) is None


def test_analyze_workload_counts_and_capacity() -> None:
    team = [_member("a"), _member("b")]
    issues = [
        AssignedIssue(assignee_id="a", status="in_progress", priority="high"),
        AssignedIssue(assignee_id="a", status="in_progress", priority="low"),
        AssignedIssue(assignee_id="a", status="blocked", priority="low"),
        AssignedIssue(assignee_id="b", status="todo", priority="low"),
        AssignedIssue(assignee_id="stranger", status="in_progress", priority="low"),
    ]

    analysis = AssignmentScorer().analyze_workload(team, issues)

    a, b = analysis
    assert (a.total_assigned, a.in_progress, a.blocked) == (3, 2, 1)
    assert (b.total_assigned, b.in_progress, b.blocked) == (1, 0, 0)
    assert a.capacity_score == pytest.approx(1 - 2 / 7)
    assert b.capacity_score == 1.0


def test_capacity_is_non_increasing_in_in_progress() -> None:
    scorer = AssignmentScorer()
    team = [_member("a"), _member("b")]
    fixed = [AssignedIssue(assignee_id="b", status="in_progress", priority="low")] * 3

    capacities = []
    for count in range(6):
        issues = fixed + [AssignedIssue(assignee_id="a", status="in_progress", priority="low")] * count
        capacities.append(scorer.analyze_workload(team, issues)[0].capacity_score)

    assert all(later <= earlier for earlier, later in zip(capacities, capacities[1:]))


def _analysis(*counts: int):
    return [
        WorkloadAnalysis(user_id=f"u{i}", user_name=f"User {i}", in_progress=count)
        for i, count in enumerate(counts)
    ]


def test_identical_workloads_are_balanced() -> None:
    balance = AssignmentScorer().is_workload_balanced(_analysis(3, 3, 3))
    assert balance.is_balanced is True
    assert balance.imbalance_score == 0.0


def test_single_member_is_balanced() -> None:
    balance = AssignmentScorer().is_workload_balanced(_analysis(7))
    assert (balance.is_balanced, balance.imbalance_score) == (True, 0.0)


def test_unbalanced_workload_recommends_reassignment() -> None:
    balance = AssignmentScorer().is_workload_balanced(_analysis(0, 5, 5, 5, 15))

    # mean 6, population std sqrt(24)
    assert balance.is_balanced is False
    assert math.isclose(balance.imbalance_score, math.sqrt(24) / 6)
    assert balance.recommendation == "Consider reassigning some work from User 4 to User 0"


def test_unbalanced_without_underloaded_member_has_no_recommendation() -> None:
    balance = AssignmentScorer().is_workload_balanced(_analysis(0, 0, 6))
    # mean 2, std ~2.83: nobody is below mean - std
    assert balance.is_balanced is False
    assert balance.recommendation is None
