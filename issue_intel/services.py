"""
Service container.

Builds every automation service once around a single model gateway and
hands them out together, so hooks and callers share one embedding cache and
one provider client.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from issue_intel.assignment.scorer import AssignmentScorer
from issue_intel.config import AutomationSettings, get_settings
from issue_intel.duplicates.cache import EmbeddingCache, InMemoryEmbeddingCache, RedisEmbeddingCache
from issue_intel.duplicates.detector import DuplicateDetector
from issue_intel.gateway.base import ModelGateway
from issue_intel.rules.actions import build_default_registry
from issue_intel.rules.engine import RuleEngine
from issue_intel.triage.classifier import TriageClassifier

logger = logging.getLogger(__name__)


@dataclass
class AutomationServices:
    """Everything the lifecycle hooks need."""
    settings: AutomationSettings
    gateway: ModelGateway
    triage: TriageClassifier
    duplicates: DuplicateDetector
    assignment: AssignmentScorer
    engine: RuleEngine


def build_gateway(settings: AutomationSettings) -> ModelGateway:
    """Gateway for the configured provider ("gemini" or "openai")."""
    if settings.provider == "openai":
        from issue_intel.gateway.openai_compat import OpenAICompatibleGateway
        return OpenAICompatibleGateway(settings)

    if settings.provider != "gemini":
        logger.warning(f"Unknown AI_PROVIDER '{settings.provider}', using gemini")

    from issue_intel.gateway.gemini import GeminiGateway
    return GeminiGateway(settings)


def build_cache(settings: AutomationSettings) -> EmbeddingCache:
    if settings.redis_url:
        import redis
        logger.info("Using Redis embedding cache")
        return RedisEmbeddingCache(redis.Redis.from_url(settings.redis_url), ttl=settings.embedding_cache_ttl)
    return InMemoryEmbeddingCache()


def build_services(
    gateway: Optional[ModelGateway] = None,
    settings: Optional[AutomationSettings] = None,
    cache: Optional[EmbeddingCache] = None,
) -> AutomationServices:
    """
    Construct all services.

    Args:
        gateway: Model gateway; built from settings when omitted
        settings: Settings; loaded from the environment when omitted
        cache: Embedding cache; Redis if REDIS_URL is set, else in-process

    Returns:
        AutomationServices sharing one gateway and one cache
    """
    settings = settings or get_settings()
    gateway = gateway or build_gateway(settings)
    cache = cache if cache is not None else build_cache(settings)

    triage = TriageClassifier(gateway, model=settings.triage_model)
    duplicates = DuplicateDetector(
        gateway,
        cache=cache,
        dimensions=settings.embedding_dimensions,
        embedding_model=settings.embedding_model,
        explanation_model=settings.triage_model,
    )
    assignment = AssignmentScorer()
    registry = build_default_registry(gateway, triage, duplicates, assignment, model=settings.default_model)

    return AutomationServices(
        settings=settings,
        gateway=gateway,
        triage=triage,
        duplicates=duplicates,
        assignment=assignment,
        engine=RuleEngine(registry),
    )
