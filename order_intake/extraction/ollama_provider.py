"""Ollama-based extraction client for self-hosted LLM inference.

Uses a local Ollama server's chat endpoint with a vision-capable model.
Supports data sovereignty requirements by running entirely on-premises.

See: https://github.com/ollama/ollama/blob/main/docs/api.md
"""

import logging
from typing import Any

import httpx

from order_intake.extraction.base import ExtractionClient
from order_intake.extraction.schema import ModelInput
from order_intake.shared.config import Settings
from order_intake.shared.errors import InferenceError

logger = logging.getLogger(__name__)


class OllamaExtractionClient(ExtractionClient):
    """Ollama-based extraction client (e.g. llama3.2-vision, qwen2.5vl)."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize Ollama extraction client.

        Args:
            settings: Application settings
            http_client: Preconfigured HTTP client (created when omitted)
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.inference_timeout_seconds
        )

    @property
    def provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Ollama needs no credentials; reachability is checked per call."""
        return bool(self._base_url and self._model)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def invoke(self, model_input: ModelInput) -> str:
        """Call the Ollama chat endpoint and return the message content.

        Args:
            model_input: Prompt built by build_model_input

        Returns:
            Raw completion text

        Raises:
            InferenceError: On non-success status or transport failure
        """
        try:
            response = await self._client.post(
                f"{self._base_url}/api/chat",
                json=self.build_payload(model_input),
            )
        except httpx.HTTPError as e:
            logger.error(f"Ollama request failed: {e}")
            raise InferenceError(None, str(e)) from e

        if not response.is_success:
            logger.error(f"Ollama API error ({response.status_code}): {response.text}")
            raise InferenceError(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Ollama returned a non-JSON body: {response.text[:200]}")
            raise InferenceError(response.status_code, response.text) from e

        if not isinstance(body, dict):
            logger.error(f"Ollama returned unexpected JSON: {type(body).__name__}")
            raise InferenceError(response.status_code, response.text)

        message = body.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return content if isinstance(content, str) and content else "[]"

    def build_payload(self, model_input: ModelInput) -> dict[str, Any]:
        """Build a non-streaming chat request.

        Images travel as bare base64 strings on the user message.
        """
        message: dict[str, Any] = {"role": model_input.role, "content": model_input.text}
        images = [image.base64 for image in model_input.images]
        if images:
            message["images"] = images

        return {
            "model": self._model,
            "messages": [message],
            "stream": False,
            "options": {
                "temperature": self.settings.extraction_temperature,
                "num_predict": self.settings.extraction_max_tokens,
            },
        }
