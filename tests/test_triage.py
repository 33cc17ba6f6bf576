from __future__ import annotations

import asyncio
import json

from conftest import FakeGateway

from issue_intel.errors import ProviderError
from issue_intel.gateway.models import ResponseFormat
from issue_intel.triage.classifier import DEFAULT_STORY_POINTS, TriageClassifier
from issue_intel.triage.models import IssueType, PriorityLevel, ProjectContext, TriageInput


def _triage_response(**overrides) -> str:
    data = {
        "type": "BUG",
        "priority": {"value": "high", "confidence": 0.9, "reasoning": "Login is blocked"},
        "labels": [{"name": "auth", "confidence": 0.9}, {"name": "safari", "confidence": 0.7}],
        "story_points": 3,
        "summary": "Login fails on Safari",
        "confidence": 0.88,
        "reasoning": "Broken existing behavior",
    }
    data.update(overrides)
    return json.dumps(data)


def test_analyze_issue_normalizes_model_output() -> None:
    gateway = FakeGateway(completions=[_triage_response()])
    classifier = TriageClassifier(gateway)

    suggestion = asyncio.run(classifier.analyze_issue(TriageInput(
        title="Login fails on Safari",
        description="Clicking sign in does nothing",
        project_context=ProjectContext(name="Web", existing_labels=["auth", "frontend"]),
    )))

    assert suggestion.type == IssueType.BUG
    assert suggestion.priority.value == PriorityLevel.HIGH
    assert [(label.name, label.is_existing) for label in suggestion.labels] == [("auth", True), ("safari", False)]
    assert suggestion.story_points == 3

    request = gateway.complete_calls[0]
    assert request.response_format == ResponseFormat.JSON
    assert request.temperature == 0.2
    assert "auth, frontend" in request.system_prompt


def test_analyze_issue_returns_default_on_malformed_output() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["Sure! It's a bug, probably."]))

    suggestion = asyncio.run(classifier.analyze_issue(TriageInput(title="Login fails on Safari", description="...")))

    assert suggestion.type == IssueType.TASK
    assert suggestion.priority.value == PriorityLevel.MEDIUM
    assert suggestion.priority.confidence == 0.5
    assert suggestion.priority.reasoning == "Default priority - unable to analyze"
    assert suggestion.labels == []
    assert suggestion.confidence == 0.3
    assert suggestion.reasoning == "Unable to fully analyze the issue"


def test_analyze_issue_returns_default_on_provider_failure() -> None:
    classifier = TriageClassifier(FakeGateway(completions=[ProviderError("rate limited", status_code=429)]))

    suggestion = asyncio.run(classifier.analyze_issue(TriageInput(title="Anything")))

    assert suggestion.confidence == 0.3
    assert suggestion.type == IssueType.TASK


def test_classify_type_maps_loose_answer_onto_type() -> None:
    gateway = FakeGateway(completions=["This looks like a bug"])
    classifier = TriageClassifier(gateway)

    assert asyncio.run(classifier.classify_type("Crash on save")) == IssueType.BUG
    assert gateway.complete_calls[0].temperature == 0


def test_classify_type_falls_back_to_first_type() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["no idea"]))
    assert asyncio.run(classifier.classify_type("???")) == IssueType.BUG


def test_assess_priority_uses_canned_reasoning() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["urgent"]))

    priority = asyncio.run(classifier.assess_priority("Prod is down", issue_type="BUG"))

    assert priority.value == PriorityLevel.URGENT
    assert priority.confidence == 0.8
    assert priority.reasoning == "Critical, blocking work or production issue"


def test_suggest_labels_accepts_wrapped_array() -> None:
    classifier = TriageClassifier(FakeGateway(completions=['{"labels": [{"name": "UI", "confidence": 0.9}]}']))

    labels = asyncio.run(classifier.suggest_labels("Button misaligned", None, ["ui"]))

    assert [(label.name, label.is_existing, label.confidence) for label in labels] == [("ui", True, 0.9)]


def test_suggest_labels_returns_empty_on_garbage() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["ui, css"]))
    assert asyncio.run(classifier.suggest_labels("Button misaligned", None, ["ui"])) == []


def test_estimate_story_points_skips_epics_without_model_call() -> None:
    gateway = FakeGateway(completions=["8"])
    classifier = TriageClassifier(gateway)

    assert asyncio.run(classifier.estimate_story_points("Platform rewrite", "...", "EPIC")) is None
    assert gateway.complete_calls == []


def test_estimate_story_points_accepts_fibonacci_answer() -> None:
    gateway = FakeGateway(completions=[" 8\n"])
    classifier = TriageClassifier(gateway)

    assert asyncio.run(classifier.estimate_story_points("Add SSO", None, "STORY")) == 8
    assert gateway.complete_calls[0].max_tokens == 10


def test_estimate_story_points_defaults_for_unusable_answer() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["4", "about five"]))

    assert asyncio.run(classifier.estimate_story_points("A", None, "TASK")) == DEFAULT_STORY_POINTS
    assert asyncio.run(classifier.estimate_story_points("B", None, "TASK")) == DEFAULT_STORY_POINTS


def test_analyze_issue_returns_default_on_unexpected_error() -> None:
    classifier = TriageClassifier(FakeGateway(completions=[RuntimeError("socket closed")]))

    suggestion = asyncio.run(classifier.analyze_issue(TriageInput(title="Anything")))

    assert suggestion.confidence == 0.3
    assert suggestion.type == IssueType.TASK


def test_estimate_story_points_reads_leading_integer() -> None:
    classifier = TriageClassifier(FakeGateway(completions=["8 points", "5.", "13 (large)"]))

    assert asyncio.run(classifier.estimate_story_points("Add SSO", None, "STORY")) == 8
    assert asyncio.run(classifier.estimate_story_points("Add SSO", None, "STORY")) == 5
    assert asyncio.run(classifier.estimate_story_points("Add SSO", None, "STORY")) == 13
