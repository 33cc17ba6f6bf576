"""
Gemini model gateway (google-genai).

Uses Vertex AI when a GCP project is configured (authenticate with
`gcloud auth application-default login`), otherwise a Gemini API key.
"""

import asyncio
import logging
from typing import Any, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from issue_intel.config import AutomationSettings, get_settings
from issue_intel.errors import ProviderError
from issue_intel.gateway.base import BaseModelGateway
from issue_intel.gateway.models import (
    CompletionRequest,
    EmbeddingRequest,
    EmbeddingResponse,
    MessageRole,
    ResponseFormat,
)

logger = logging.getLogger(__name__)

# Client-side failures (connection refused, timeouts) that never reach the API
TRANSPORT_ERRORS = (httpx.HTTPError, OSError, asyncio.TimeoutError)


def _build_client(settings: AutomationSettings) -> genai.Client:
    if settings.gcp_project_id:
        return genai.Client(
            vertexai=True,
            project=settings.gcp_project_id,
            location=settings.gcp_location,
        )
    if settings.gemini_api_key:
        return genai.Client(api_key=settings.gemini_api_key)
    raise ProviderError(
        "Gemini not configured. Set GCP_PROJECT_ID (Vertex AI) or GEMINI_API_KEY.",
        provider="gemini",
    )


class GeminiGateway(BaseModelGateway):
    """Model gateway backed by Gemini models."""

    provider_name = "gemini"

    def __init__(
        self,
        settings: Optional[AutomationSettings] = None,
        client: Optional[Any] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or _build_client(self.settings)
        self.classify_model = self.settings.triage_model

    async def complete(self, request: CompletionRequest) -> str:
        model = request.model or self.settings.default_model

        contents = []
        system_parts = [request.system_prompt] if request.system_prompt else []
        for message in request.as_messages():
            if message.role == MessageRole.SYSTEM:
                system_parts.append(message.content)
                continue
            role = "model" if message.role == MessageRole.ASSISTANT else "user"
            contents.append(types.Content(role=role, parts=[types.Part(text=message.content)]))

        config = types.GenerateContentConfig(
            system_instruction="\n\n".join(system_parts) if system_parts else None,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            response_mime_type="application/json" if request.response_format == ResponseFormat.JSON else None,
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            code = getattr(e, "code", None)
            raise ProviderError(
                f"Gemini completion failed: {e}",
                provider=self.provider_name,
                status_code=code,
                retryable=code in (429, 500, 503),
            ) from e
        except TRANSPORT_ERRORS as e:
            raise ProviderError(
                f"Gemini completion request failed: {type(e).__name__}: {e}",
                provider=self.provider_name,
                retryable=True,
            ) from e

        text = response.text
        if text is None:
            raise ProviderError("Gemini returned an empty completion", provider=self.provider_name)
        return text

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        model = request.model or self.settings.embedding_model
        texts = request.texts()

        try:
            response = await self.client.aio.models.embed_content(
                model=model,
                contents=texts,
                config=types.EmbedContentConfig(output_dimensionality=request.dimensions),
            )
        except genai_errors.APIError as e:
            code = getattr(e, "code", None)
            raise ProviderError(
                f"Gemini embedding failed: {e}",
                provider=self.provider_name,
                status_code=code,
                retryable=code in (429, 500, 503),
            ) from e
        except TRANSPORT_ERRORS as e:
            raise ProviderError(
                f"Gemini embedding request failed: {type(e).__name__}: {e}",
                provider=self.provider_name,
                retryable=True,
            ) from e

        embeddings: List[List[float]] = [list(item.values or []) for item in (response.embeddings or [])]
        if len(embeddings) != len(texts):
            raise ProviderError(
                f"Gemini returned {len(embeddings)} embeddings for {len(texts)} inputs",
                provider=self.provider_name,
            )

        return EmbeddingResponse(embeddings=embeddings, model=model)
