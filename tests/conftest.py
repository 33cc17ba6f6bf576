from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

import pytest

from issue_intel.config import AutomationSettings
from issue_intel.duplicates.cache import InMemoryEmbeddingCache
from issue_intel.gateway.base import BaseModelGateway
from issue_intel.gateway.models import CompletionRequest, EmbeddingRequest, EmbeddingResponse
from issue_intel.services import AutomationServices, build_services

DEFAULT_VECTOR = [0.0, 0.0, 1.0]


class FakeGateway(BaseModelGateway):
    """Scripted gateway: queued completions, embeddings looked up by title."""

    provider_name = "fake"

    def __init__(
        self,
        completions: Optional[Sequence[Union[str, Exception]]] = None,
        vectors: Optional[Dict[str, List[float]]] = None,
        default_completion: str = "",
    ):
        self.completions = list(completions or [])
        self.vectors = dict(vectors or {})
        self.default_completion = default_completion
        self.complete_calls: List[CompletionRequest] = []
        self.embed_calls: List[List[str]] = []

    async def complete(self, request: CompletionRequest) -> str:
        self.complete_calls.append(request)
        if not self.completions:
            return self.default_completion
        item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        texts = request.texts()
        self.embed_calls.append(texts)
        return EmbeddingResponse(embeddings=[self.vector_for(text) for text in texts])

    def vector_for(self, text: str) -> List[float]:
        title = text.split("\n\n")[0]
        return self.vectors.get(text) or self.vectors.get(title) or DEFAULT_VECTOR

    @property
    def embedded_texts(self) -> List[str]:
        return [text for call in self.embed_calls for text in call]


@pytest.fixture
def settings() -> AutomationSettings:
    return AutomationSettings()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def cache() -> InMemoryEmbeddingCache:
    return InMemoryEmbeddingCache()


@pytest.fixture
def services(gateway: FakeGateway, settings: AutomationSettings, cache: InMemoryEmbeddingCache) -> AutomationServices:
    return build_services(gateway=gateway, settings=settings, cache=cache)
