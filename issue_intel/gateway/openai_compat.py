"""
OpenAI-compatible model gateway over plain HTTP (httpx).

Works against any server exposing `/chat/completions` and `/embeddings`
with the OpenAI request/response shapes.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from issue_intel.config import AutomationSettings, get_settings
from issue_intel.errors import ProviderError
from issue_intel.gateway.base import BaseModelGateway
from issue_intel.gateway.models import (
    CompletionRequest,
    EmbeddingRequest,
    EmbeddingResponse,
    ResponseFormat,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class OpenAICompatibleGateway(BaseModelGateway):
    """Model gateway for OpenAI-style HTTP APIs."""

    provider_name = "openai"

    def __init__(
        self,
        settings: Optional[AutomationSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.openai_base_url.rstrip("/")
        self.classify_model = self.settings.triage_model
        self._transport = transport

    def _headers(self) -> dict:
        token = self.settings.openai_api_key
        if not token:
            raise ProviderError("OPENAI_API_KEY not configured", provider=self.provider_name)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST with bounded retries on transport errors and retryable statuses."""
        headers = self._headers()
        attempts = max(1, self.settings.max_retries)
        last_error: Optional[ProviderError] = None

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.timeout,
            transport=self._transport,
        ) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = await client.post(path, headers=headers, json=payload)
                    response.raise_for_status()
                    data = response.json()
                except httpx.HTTPStatusError as e:
                    status = e.response.status_code
                    last_error = ProviderError(
                        f"{self.provider_name} {path} returned {status}: {e.response.text[:200]}",
                        provider=self.provider_name,
                        status_code=status,
                        retryable=status in RETRYABLE_STATUS,
                    )
                except httpx.HTTPError as e:
                    last_error = ProviderError(
                        f"{self.provider_name} {path} request failed: {type(e).__name__}: {e}",
                        provider=self.provider_name,
                        retryable=isinstance(e, httpx.TransportError),
                    )
                except ValueError:
                    last_error = ProviderError(
                        f"{self.provider_name} {path} returned a non-JSON body: {response.text[:200]}",
                        provider=self.provider_name,
                    )
                else:
                    if isinstance(data, dict):
                        return data
                    last_error = ProviderError(
                        f"{self.provider_name} {path} returned {type(data).__name__}, expected a JSON object",
                        provider=self.provider_name,
                    )

                if not last_error.retryable or attempt == attempts:
                    break
                logger.warning(f"{path} attempt {attempt}/{attempts} failed, retrying: {last_error}")
                await asyncio.sleep(self.settings.retry_delay)

        raise last_error

    async def complete(self, request: CompletionRequest) -> str:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(m.model_dump(mode="json") for m in request.as_messages())

        payload: Dict[str, Any] = {
            "model": request.model or self.settings.default_model,
            "messages": messages,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.response_format == ResponseFormat.JSON:
            payload["response_format"] = {"type": "json_object"}

        data = await self._post("/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected completion response shape: {e}", provider=self.provider_name) from e
        return content or ""

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        texts = request.texts()
        model = request.model or self.settings.embedding_model
        data = await self._post("/embeddings", {
            "model": model,
            "input": texts,
            "dimensions": request.dimensions,
        })

        try:
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            embeddings = [item["embedding"] for item in items]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Unexpected embedding response shape: {e}", provider=self.provider_name) from e

        if len(embeddings) != len(texts):
            raise ProviderError(
                f"Got {len(embeddings)} embeddings for {len(texts)} inputs",
                provider=self.provider_name,
            )
        return EmbeddingResponse(embeddings=embeddings, model=data.get("model", model))
