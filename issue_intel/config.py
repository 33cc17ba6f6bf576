"""
Runtime configuration for issue automation.

Values come from the environment (optionally a .env file at the project
root). Nothing here is required at import time; services fall back to the
defaults below.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

project_root = Path(__file__).resolve().parent.parent
load_dotenv(project_root / ".env")


class AutomationSettings(BaseModel):
    """Settings shared by the gateway adapters and services."""
    provider: str = "gemini"  # "gemini" or "openai"

    # Gemini via Vertex AI (or API key)
    gcp_project_id: Optional[str] = None
    gcp_location: str = "global"
    gemini_api_key: Optional[str] = None

    # OpenAI-compatible HTTP API
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"

    # Models
    default_model: str = "gemini-2.5-flash"
    triage_model: str = "gemini-2.5-flash"  # Fast model for triage
    embedding_model: str = "gemini-embedding-001"
    embedding_dimensions: int = 1536

    # Provider call policy
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds
    timeout: float = 30.0  # seconds

    # Notification delivery
    slack_bot_token: Optional[str] = None
    slack_notification_channel: Optional[str] = None

    # Embedding cache; Redis when a URL is set, in-process otherwise
    redis_url: Optional[str] = None
    embedding_cache_ttl: Optional[int] = None  # seconds

    @classmethod
    def from_env(cls) -> "AutomationSettings":
        """Build settings from environment variables."""
        ttl = os.getenv("EMBEDDING_CACHE_TTL")
        return cls(
            provider=os.getenv("AI_PROVIDER", "gemini").lower(),
            gcp_project_id=os.getenv("GCP_PROJECT_ID"),
            gcp_location=os.getenv("GCP_LOCATION", "global"),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            default_model=os.getenv("AI_DEFAULT_MODEL", "gemini-2.5-flash"),
            triage_model=os.getenv("AI_TRIAGE_MODEL", "gemini-2.5-flash"),
            embedding_model=os.getenv("AI_EMBEDDING_MODEL", "gemini-embedding-001"),
            embedding_dimensions=int(os.getenv("AI_EMBEDDING_DIMENSIONS", "1536")),
            max_retries=int(os.getenv("AI_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("AI_RETRY_DELAY", "1.0")),
            timeout=float(os.getenv("AI_TIMEOUT", "30")),
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN"),
            slack_notification_channel=os.getenv("SLACK_NOTIFICATION_CHANNEL"),
            redis_url=os.getenv("REDIS_URL"),
            embedding_cache_ttl=int(ttl) if ttl else None,
        )


@lru_cache(maxsize=1)
def get_settings() -> AutomationSettings:
    """Settings loaded once from the environment."""
    return AutomationSettings.from_env()
