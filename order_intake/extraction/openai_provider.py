"""OpenAI-based extraction client for vision and text line item extraction.

Uses the chat completions API with a single multimodal user message.
Image documents are sent inline as base64 data URIs.

No retries: the SDK's built-in retry is disabled so that one request maps
to exactly one inference call.
"""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from order_intake.extraction.base import ExtractionClient
from order_intake.extraction.schema import ImageBlock, ModelInput, TextBlock
from order_intake.shared.config import Settings
from order_intake.shared.errors import InferenceError

logger = logging.getLogger(__name__)


class OpenAIExtractionClient(ExtractionClient):
    """OpenAI-based extraction client using GPT-4o.

    Requires APP_OPENAI_API_KEY.
    """

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        """Initialize OpenAI extraction client.

        Args:
            settings: Application settings
            client: Preconfigured SDK client (created lazily when omitted)
        """
        super().__init__(settings)
        self._client = client

    @property
    def provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if an OpenAI API key is configured."""
        return bool(self.settings.openai_api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.inference_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def invoke(self, model_input: ModelInput) -> str:
        """Call chat completions and return the message content.

        Args:
            model_input: Prompt built by build_model_input

        Returns:
            Raw completion text ("[]" when the model returns no content)

        Raises:
            InferenceError: On non-success status or transport failure
        """
        client = self._get_client()

        try:
            response = await client.chat.completions.create(  # type: ignore[call-overload]
                model=self.settings.openai_model,
                messages=[self.build_message(model_input)],
                max_tokens=self.settings.extraction_max_tokens,
                temperature=self.settings.extraction_temperature,
            )
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"OpenAI API error ({e.status_code}): {body}")
            raise InferenceError(e.status_code, body) from e
        except openai.APIError as e:
            # Connection errors and timeouts carry no status
            logger.error(f"OpenAI request failed: {e}")
            raise InferenceError(None, str(e)) from e

        if not response.choices:
            return "[]"
        return response.choices[0].message.content or "[]"

    def build_message(self, model_input: ModelInput) -> dict[str, Any]:
        """Translate a ModelInput into an OpenAI chat message.

        Args:
            model_input: Provider-neutral prompt

        Returns:
            User message with text and image_url content parts
        """
        content: list[dict[str, Any]] = []
        for block in model_input.blocks:
            if isinstance(block, TextBlock):
                content.append({"type": "text", "text": block.text})
            elif isinstance(block, ImageBlock):
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": block.image.data_uri,
                            "detail": self.settings.image_detail,
                        },
                    }
                )
        return {"role": model_input.role, "content": content}
