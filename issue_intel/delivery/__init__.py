"""Optional delivery of automation intents to external channels."""

from issue_intel.delivery.slack import deliver_notification

__all__ = ["deliver_notification"]
