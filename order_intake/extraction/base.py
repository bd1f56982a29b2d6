"""Abstract base class for extraction clients.

Enables switching between inference providers (OpenAI, self-hosted Ollama)
while keeping one contract: one prompt in, one raw completion out.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from order_intake.extraction.schema import ModelInput
from order_intake.shared.config import Settings


class ExtractionClient(ABC):
    """Abstract base class for inference providers.

    Implementations make exactly one call per invocation and never retry;
    a failed call surfaces as InferenceError and ends the request.

    Example implementations:
    - OpenAIExtractionClient: Uses OpenAI chat completions (cloud-based)
    - OllamaExtractionClient: Uses a local Ollama server (self-hosted)
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    async def invoke(self, model_input: ModelInput) -> str:
        """Submit the prompt and return the raw textual completion.

        Args:
            model_input: Single user message with text and optional image

        Returns:
            Raw completion text, untrusted

        Raises:
            InferenceError: If the provider does not return a successful completion
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured.

        Returns:
            True if provider can be used, False otherwise
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'openai', 'ollama')
        """

    async def aclose(self) -> None:
        """Release network resources held by the client."""
