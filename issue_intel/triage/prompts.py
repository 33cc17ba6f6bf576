"""Prompt templates for triage."""

from typing import List, Optional

from issue_intel.triage.models import FIBONACCI_POINTS, TriageInput

TYPE_HINT = (
    "Classify this issue. BUG = defect/error to fix. TASK = specific work item. "
    "STORY = user-facing feature. EPIC = large multi-story feature. "
    "SUBTASK = small part of larger task."
)

PRIORITY_HINT = "Assess the priority of this issue based on urgency and impact."

PRIORITY_DESCRIPTIONS = {
    "low": "Nice to have, no deadline pressure",
    "medium": "Standard priority, normal workflow",
    "high": "Important, should be addressed soon",
    "urgent": "Critical, blocking work or production issue",
}

PRIORITY_GUIDELINES = """Priority guidelines:
- urgent: Production issues, security vulnerabilities, blocking multiple people
- high: Important features, significant bugs, near deadline
- medium: Standard work items, planned features
- low: Nice-to-have, improvements, cleanup"""

RESPONSE_SCHEMA = """{
  "type": "BUG|TASK|STORY|EPIC|SUBTASK|MILESTONE",
  "priority": {
    "value": "low|medium|high|urgent",
    "confidence": 0.0-1.0,
    "reasoning": "brief explanation"
  },
  "labels": [
    {"name": "label-name", "is_existing": true|false, "confidence": 0.0-1.0}
  ],
  "story_points": number|null,
  "summary": "1-2 sentence summary of the issue",
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation of overall classification"
}"""


def issue_text(title: str, description: Optional[str] = None) -> str:
    text = f"Title: {title}\n"
    if description:
        text += f"Description: {description}"
    return text


def _format_labels(labels: List[str], empty: str) -> str:
    return ", ".join(labels) if labels else empty


def build_triage_system_prompt(triage_input: TriageInput) -> str:
    """System prompt for a full triage pass."""
    project_line = ""
    project = triage_input.project_context
    if project and project.name:
        project_line = f"Project: {project.name}"
        if project.description:
            project_line += f" - {project.description}"

    labels = _format_labels(
        triage_input.label_vocabulary(),
        "No existing labels - suggest new ones if appropriate",
    )
    points = ", ".join(str(p) for p in FIBONACCI_POINTS)

    return f"""You are an intelligent issue triage system for a project management tool.

Analyze the issue and provide classification suggestions in JSON format.

{project_line}

Available labels:
{labels}

Issue Types:
- BUG: Defects, errors, things that are broken
- TASK: Specific work items, technical tasks
- STORY: User-facing features, described from user perspective
- EPIC: Large features spanning multiple stories
- SUBTASK: Small parts of a larger task
- MILESTONE: Major project milestones or releases

Priority Levels:
- urgent: Production issues, security vulnerabilities, blocking work
- high: Important, should be addressed soon
- medium: Standard priority, normal workflow
- low: Nice to have, no immediate pressure

Story Points (Fibonacci): {points}

Response JSON schema:
{RESPONSE_SCHEMA}"""


def build_triage_user_prompt(triage_input: TriageInput) -> str:
    prompt = f"Please analyze and triage this issue:\n\nTitle: {triage_input.title}\n"
    if triage_input.description:
        prompt += f"\nDescription:\n{triage_input.description}"
    return prompt


def build_priority_context(title: str, description: Optional[str], issue_type: Optional[str]) -> str:
    return f"Issue type: {issue_type or 'TASK'}\n{issue_text(title, description)}\n\n{PRIORITY_GUIDELINES}"


def build_label_system_prompt(existing_labels: List[str]) -> str:
    labels = _format_labels(existing_labels, "No existing labels yet")
    return f"""You are a label suggestion system for a project management tool.

Given an issue title and description, suggest relevant labels.

Available labels in this workspace:
{labels}

Guidelines:
1. Prefer existing labels when they match
2. Suggest new labels only if clearly needed
3. Limit suggestions to 3-5 most relevant labels
4. Use lowercase, hyphenated format for new labels (e.g., "api-integration")

Return JSON array:
[{{"name": "label-name", "is_existing": true/false, "confidence": 0.0-1.0}}]"""


STORY_POINT_SYSTEM_PROMPT = f"""You are a story point estimation assistant.

Estimate story points using the Fibonacci scale: {", ".join(str(p) for p in FIBONACCI_POINTS)}

Guidelines:
- 1-2 points: Simple, well-understood, few hours of work
- 3-5 points: Medium complexity, clear scope, 1-2 days
- 8 points: Complex, some unknowns, 3-5 days
- 13 points: Very complex, multiple components, 1-2 weeks
- 21 points: Too large, should probably be broken down

Respond with ONLY a single number from the scale."""
