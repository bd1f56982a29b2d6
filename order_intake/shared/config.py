"""Shared configuration management for the order intake service.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_OPENAI_API_KEY=sk-...
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    service_name: str = Field(
        default="order-intake",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Inference provider configuration
    extraction_provider: Literal["openai", "ollama"] = Field(
        default="openai",
        description="Inference provider: openai (cloud API), ollama (self-hosted LLM)",
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key (use env var APP_OPENAI_API_KEY)",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="Vision-capable chat model used for line item extraction",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_model: str = Field(
        default="llama3.2-vision",
        description="Vision-capable Ollama model used for extraction",
    )
    extraction_temperature: float = Field(
        default=0.1,
        ge=0,
        le=2,
        description="Sampling temperature, kept low for repeatable extraction",
    )
    extraction_max_tokens: int = Field(
        default=2000,
        gt=0,
        description="Completion token ceiling, enough for dozens of line items",
    )
    image_detail: Literal["low", "high", "auto"] = Field(
        default="high",
        description="Vision detail level for image documents",
    )
    inference_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout for a single inference call",
    )

    # Content extraction
    max_text_chars: int = Field(
        default=15000,
        gt=0,
        description="Character budget for text extracted from PDF documents",
    )
    remote_fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout when downloading a document by URL",
    )

    # Storage configuration (S3-compatible object storage)
    storage_endpoint: str = Field(
        default="localhost:9000",
        description="S3-compatible storage endpoint (host:port)",
    )
    storage_access_key: str = Field(
        default="",
        description="Storage access key (use env var APP_STORAGE_ACCESS_KEY)",
    )
    storage_secret_key: str = Field(
        default="",
        description="Storage secret key (use env var APP_STORAGE_SECRET_KEY)",
    )
    storage_bucket: str = Field(
        default="invoices",
        description="Bucket receiving uploaded order documents",
    )
    storage_prefix: str = Field(
        default="public",
        description="Key prefix for uploaded documents",
    )
    storage_secure: bool = Field(
        default=False,
        description="Use HTTPS for storage connections",
    )
    storage_public_base_url: str | None = Field(
        default=None,
        description="Public base URL for stored objects (defaults to the storage endpoint)",
    )

    # CORS
    cors_allow_origin: str = Field(default="*")
    cors_allow_headers: str = Field(default="authorization, x-client-info, apikey, content-type")
    cors_allow_methods: str = Field(default="POST, OPTIONS")
    cors_max_age: int = Field(default=86400)

    def missing_required(self) -> list[str]:
        """List required settings that are not configured.

        Returns:
            Environment variable names that must be set before serving requests
        """
        missing = []
        if self.extraction_provider == "openai" and not self.openai_api_key:
            missing.append("APP_OPENAI_API_KEY")
        if not self.storage_access_key:
            missing.append("APP_STORAGE_ACCESS_KEY")
        if not self.storage_secret_key:
            missing.append("APP_STORAGE_SECRET_KEY")
        return missing


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
