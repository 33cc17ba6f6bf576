"""
Model gateway contract.

Every service in issue_intel talks to language models through this narrow
interface:

- complete(request) -> text
- classify(text, labels, hint) -> one of labels
- embed(request) -> vectors

Adapters only need to implement `complete` and `embed`; `BaseModelGateway`
derives `classify` and `quick_complete` from them.
"""

import logging
from typing import Optional, Protocol, Sequence, TypeVar, runtime_checkable

from issue_intel.gateway.models import (
    CompletionRequest,
    EmbeddingRequest,
    EmbeddingResponse,
    ResponseFormat,
)

logger = logging.getLogger(__name__)

L = TypeVar("L", bound=str)


@runtime_checkable
class ModelGateway(Protocol):
    """Capabilities the automation services need from a model provider."""

    async def complete(self, request: CompletionRequest) -> str:
        ...

    async def classify(self, text: str, labels: Sequence[L], hint: Optional[str] = None) -> L:
        ...

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        ...

    async def quick_complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: ResponseFormat = ResponseFormat.TEXT,
    ) -> str:
        ...


def match_label(raw: str, labels: Sequence[L]) -> L:
    """
    Map a free-text model answer onto one of `labels`.

    Exact match first, then a case-insensitive equal or contained match,
    then the first label.
    """
    if not labels:
        raise ValueError("classify needs at least one candidate label")

    result = raw.strip()
    if result in labels:
        return result  # type: ignore[return-value]

    lower = result.lower()
    for label in labels:
        if label.lower() == lower or label.lower() in lower:
            return label

    logger.debug(f"Classifier answer '{result}' matched no label, using '{labels[0]}'")
    return labels[0]


class BaseModelGateway:
    """Shared `classify` / `quick_complete` on top of `complete`."""

    provider_name = "base"
    classify_model: Optional[str] = None

    async def complete(self, request: CompletionRequest) -> str:
        raise NotImplementedError

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        raise NotImplementedError

    async def quick_complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: ResponseFormat = ResponseFormat.TEXT,
    ) -> str:
        """Stateless single-prompt completion."""
        return await self.complete(CompletionRequest(
            prompt=prompt,
            system_prompt=system_prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
        ))

    async def classify(self, text: str, labels: Sequence[L], hint: Optional[str] = None) -> L:
        """Classify `text` into exactly one of `labels`."""
        system_prompt = (
            "You are a text classifier. Classify the given text into exactly one "
            f"of these categories: {', '.join(labels)}.\n"
        )
        if hint:
            system_prompt += f"\nClassification context: {hint}\n"
        system_prompt += "\nRespond with ONLY the category name, nothing else."

        response = await self.complete(CompletionRequest(
            prompt=text,
            system_prompt=system_prompt,
            model=self.classify_model,
            temperature=0,
            max_tokens=50,
        ))
        return match_label(response, labels)
