"""Request/response models for the model gateway."""

from enum import Enum
from typing import List, Optional, Union
from pydantic import BaseModel, model_validator


class MessageRole(str, Enum):
    """Chat message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ResponseFormat(str, Enum):
    """Shape the completion should come back in."""
    TEXT = "text"
    JSON = "json"


class ChatMessage(BaseModel):
    """A single chat turn."""
    role: MessageRole
    content: str


class CompletionRequest(BaseModel):
    """Completion request. Either `prompt` or `messages` must be set."""
    prompt: Optional[str] = None
    messages: List[ChatMessage] = []
    system_prompt: Optional[str] = None
    model: Optional[str] = None  # Provider default when unset
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    response_format: ResponseFormat = ResponseFormat.TEXT

    @model_validator(mode="after")
    def _require_input(self) -> "CompletionRequest":
        if not self.prompt and not self.messages:
            raise ValueError("CompletionRequest needs a prompt or messages")
        return self

    def as_messages(self) -> List[ChatMessage]:
        """Conversation turns, with a bare prompt treated as one user turn."""
        if self.messages:
            return list(self.messages)
        return [ChatMessage(role=MessageRole.USER, content=self.prompt or "")]


class EmbeddingRequest(BaseModel):
    """Embedding request for one text or a batch."""
    input: Union[str, List[str]]
    dimensions: int = 1536
    model: Optional[str] = None

    def texts(self) -> List[str]:
        if isinstance(self.input, str):
            return [self.input]
        return list(self.input)


class EmbeddingResponse(BaseModel):
    """One vector per input text, in input order."""
    embeddings: List[List[float]]
    model: Optional[str] = None
