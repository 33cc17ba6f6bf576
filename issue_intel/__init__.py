"""issue_intel - AI automation for issue trackers: triage, duplicates, assignment and rules."""

__version__ = "0.1.0"
