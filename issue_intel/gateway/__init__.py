"""Model gateway - the only way issue_intel talks to language models."""

from issue_intel.gateway.base import BaseModelGateway, ModelGateway, match_label
from issue_intel.gateway.models import (
    ChatMessage,
    CompletionRequest,
    EmbeddingRequest,
    EmbeddingResponse,
    MessageRole,
    ResponseFormat,
)

__all__ = [
    "BaseModelGateway",
    "ModelGateway",
    "match_label",
    "ChatMessage",
    "CompletionRequest",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "MessageRole",
    "ResponseFormat",
]
