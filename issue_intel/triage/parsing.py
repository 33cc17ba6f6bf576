"""
Decoding and normalization of model triage output.

Decoding is strict: anything that isn't the JSON shape we asked for raises
ParseError. Normalization is lenient: every field of a decoded object is
checked and replaced by a safe default when it's missing or out of range.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from issue_intel.errors import ParseError
from issue_intel.triage.models import (
    FIBONACCI_POINTS,
    IssueType,
    LabelSuggestion,
    PriorityLevel,
    PrioritySuggestion,
    TriageSuggestion,
)

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _strip_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE.match(stripped)
    return match.group(1) if match else stripped


def _decode(text: str) -> Any:
    try:
        return json.loads(_strip_fence(text))
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Model output is not valid JSON: {e}", raw=text) from e


def decode_json_object(text: str) -> Dict[str, Any]:
    """Decode a JSON object from model output (optionally ```-fenced)."""
    data = _decode(text)
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}", raw=text)
    return data


def decode_json_array(text: str, key: Optional[str] = None) -> List[Any]:
    """
    Decode a JSON array from model output.

    JSON-mode providers often wrap arrays in an object; when `key` is given,
    `{key: [...]}` is accepted too.
    """
    data = _decode(text)
    if isinstance(data, dict) and key and isinstance(data.get(key), list):
        data = data[key]
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON array, got {type(data).__name__}", raw=text)
    return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def normalize_labels(raw_labels: Iterable[Any], vocabulary: Iterable[str]) -> List[LabelSuggestion]:
    """Lower-case names, drop empty ones, flag vocabulary members."""
    known = {label.lower() for label in vocabulary}
    labels: List[LabelSuggestion] = []

    for item in raw_labels:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").lower()
        if not name:
            continue
        confidence = item.get("confidence")
        labels.append(LabelSuggestion(
            name=name,
            is_existing=name in known,
            confidence=float(confidence) if _is_number(confidence) else 0.5,
        ))

    return labels


def normalize_story_points(value: Any) -> Optional[int]:
    """Keep only values on the Fibonacci scale."""
    if not _is_number(value) or value != int(value):
        return None
    points = int(value)
    return points if points in FIBONACCI_POINTS else None


def normalize_triage(data: Dict[str, Any], vocabulary: Iterable[str]) -> TriageSuggestion:
    """Turn a decoded model object into a valid TriageSuggestion."""
    issue_type = IssueType.TASK
    raw_type = data.get("type")
    if isinstance(raw_type, str) and raw_type in IssueType._value2member_map_:
        issue_type = IssueType(raw_type)

    priority = PrioritySuggestion(
        value=PriorityLevel.MEDIUM,
        confidence=0.5,
        reasoning="Default priority",
    )
    raw_priority = data.get("priority")
    if isinstance(raw_priority, dict):
        value = raw_priority.get("value")
        if isinstance(value, str) and value in PriorityLevel._value2member_map_:
            confidence = raw_priority.get("confidence")
            reasoning = raw_priority.get("reasoning")
            priority = PrioritySuggestion(
                value=PriorityLevel(value),
                confidence=float(confidence) if _is_number(confidence) else 0.7,
                reasoning=reasoning if isinstance(reasoning, str) else "AI suggested",
            )

    raw_labels = data.get("labels")
    labels = normalize_labels(raw_labels, vocabulary) if isinstance(raw_labels, list) else []

    summary = data.get("summary")
    confidence = data.get("confidence")
    reasoning = data.get("reasoning")

    return TriageSuggestion(
        type=issue_type,
        priority=priority,
        labels=labels,
        story_points=normalize_story_points(_pick(data, "story_points", "storyPoints")),
        summary=summary if isinstance(summary, str) else None,
        confidence=float(confidence) if _is_number(confidence) else 0.7,
        reasoning=reasoning if isinstance(reasoning, str) else "AI classification",
    )


def default_suggestion() -> TriageSuggestion:
    """Low-confidence fallback used when the model output can't be used."""
    return TriageSuggestion(
        type=IssueType.TASK,
        priority=PrioritySuggestion(
            value=PriorityLevel.MEDIUM,
            confidence=0.5,
            reasoning="Default priority - unable to analyze",
        ),
        labels=[],
        confidence=0.3,
        reasoning="Unable to fully analyze the issue",
    )
