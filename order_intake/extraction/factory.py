"""Selects the extraction client named by ``APP_EXTRACTION_PROVIDER``."""

import logging

from order_intake.extraction.base import ExtractionClient
from order_intake.extraction.ollama_provider import OllamaExtractionClient
from order_intake.extraction.openai_provider import OpenAIExtractionClient
from order_intake.shared.config import Settings

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[ExtractionClient]] = {
    "openai": OpenAIExtractionClient,
    "ollama": OllamaExtractionClient,
}


def model_name(settings: Settings) -> str:
    """Model the selected provider will be asked to run."""
    if settings.extraction_provider == "ollama":
        return settings.ollama_model
    return settings.openai_model


def create_extraction_client(settings: Settings) -> ExtractionClient:
    """Build the extraction client for the configured provider.

    An unconfigured client is still returned so the app can start and report
    itself not ready; startup validation lives in Settings.missing_required.

    Raises:
        ValueError: If the provider name is not one of PROVIDERS
    """
    provider_class = PROVIDERS.get(settings.extraction_provider)
    if provider_class is None:
        raise ValueError(
            f"Unknown extraction provider: '{settings.extraction_provider}'. "
            f"Expected one of: {', '.join(PROVIDERS)}"
        )

    client = provider_class(settings)
    if not client.is_available():
        logger.warning(f"Extraction provider '{client.provider_name}' is not configured")

    logger.info(f"Using {client.provider_name} extraction with model {model_name(settings)}")
    return client
