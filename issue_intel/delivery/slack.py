"""
Slack delivery for `notify` intents.

The rule engine only describes notifications. Callers that want Slack
delivery pass the intent here; it is posted to each recipient (Slack user
ids, as DMs) or, without recipients, to the configured notification channel.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from issue_intel.config import AutomationSettings, get_settings

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


def _get_slack_headers(settings: AutomationSettings) -> dict:
    token = settings.slack_bot_token
    if not token:
        raise ValueError("SLACK_BOT_TOKEN not configured")
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def _build_blocks(intent: Dict[str, Any]) -> List[dict]:
    """Slack Block Kit blocks for a notification."""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": intent.get("message") or "(no message)"},
        },
        {
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"Automation: `{intent.get('event_type', 'unknown')}`"},
            ],
        },
    ]


async def deliver_notification(
    intent: Dict[str, Any],
    settings: Optional[AutomationSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Post a notify intent to Slack.

    Args:
        intent: Result dict of a `notify` rule
        settings: Slack token and default channel; from the environment when omitted
        transport: Optional httpx transport (tests)

    Returns:
        True if every target accepted the message; False if Slack is not
        among the intent's channels or any post failed
    """
    if "slack" not in intent.get("channels", []):
        return False

    settings = settings or get_settings()
    targets = list(intent.get("recipients") or [])
    if not targets and settings.slack_notification_channel:
        targets = [settings.slack_notification_channel]
    if not targets:
        logger.warning("No Slack recipients or SLACK_NOTIFICATION_CHANNEL configured")
        return False

    try:
        headers = _get_slack_headers(settings)
    except ValueError as e:
        logger.warning(f"Slack delivery skipped: {e}")
        return False

    delivered = True
    async with httpx.AsyncClient(timeout=settings.timeout, transport=transport) as client:
        for channel in targets:
            payload = {
                "channel": channel,
                "text": intent.get("message", ""),
                "blocks": _build_blocks(intent),
            }
            try:
                response = await client.post(SLACK_POST_MESSAGE_URL, headers=headers, json=payload)
                response.raise_for_status()
                result = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Failed to send Slack notification to {channel}: {e}", exc_info=True)
                delivered = False
                continue

            if not result.get("ok"):
                logger.error(f"Slack API error for {channel}: {result.get('error', 'unknown_error')}")
                delivered = False
                continue

            logger.info(f"Notification sent to Slack {channel}")

    return delivered
