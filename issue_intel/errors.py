"""
Error taxonomy for issue automation.

- InputError: the caller handed us an event or rule that can't be acted on
- ProviderError: the model gateway failed (network, auth, rate limit, ...)
- ParseError: the model answered, but not with the structure we asked for
- DimensionMismatchError: vectors of different length were compared
"""

from typing import Optional


class AutomationError(Exception):
    """Base class for all errors raised by issue_intel."""


class InputError(AutomationError, ValueError):
    """Missing or invalid input (payload fields, rule configuration)."""


class MissingIssueError(InputError):
    """An issue-scoped action ran on an event without an issue."""

    def __init__(self, message: str = "No issue in event payload"):
        super().__init__(message)


class UnknownActionError(InputError):
    """No executor is registered for the rule's action type."""


class ProviderError(AutomationError):
    """The model gateway could not produce a response."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable


class ParseError(AutomationError):
    """Structured model output could not be decoded."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class DimensionMismatchError(AutomationError, ValueError):
    """Two embedding vectors have different lengths."""
