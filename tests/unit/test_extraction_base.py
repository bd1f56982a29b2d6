"""Unit tests for the ExtractionClient interface.

Tests cover:
- Abstract base class enforcement
- Interface contracts for concrete clients
"""

import pytest

from order_intake.extraction.base import ExtractionClient
from order_intake.extraction.schema import ModelInput, TextBlock
from order_intake.shared.config import Settings


def test_extraction_client_is_abstract() -> None:
    """Test that ExtractionClient cannot be instantiated directly."""
    settings = Settings(_env_file=None)

    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        ExtractionClient(settings)  # type: ignore[abstract]


def test_extraction_client_requires_implementation() -> None:
    """Test that concrete clients must implement all abstract methods."""

    class IncompleteClient(ExtractionClient):
        async def invoke(self, model_input: ModelInput) -> str:
            return "[]"

        def is_available(self) -> bool:
            return True

        # Missing: provider_name property

    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        IncompleteClient(Settings(_env_file=None))  # type: ignore[abstract]


@pytest.mark.asyncio
async def test_concrete_client_implementation() -> None:
    """Test that a properly implemented client works correctly."""

    class EchoClient(ExtractionClient):
        async def invoke(self, model_input: ModelInput) -> str:
            return f'[{{"notes": "{len(model_input.blocks)} block"}}]'

        def is_available(self) -> bool:
            return True

        @property
        def provider_name(self) -> str:
            return "echo"

    client = EchoClient(Settings(_env_file=None))

    assert client.provider_name == "echo"
    assert client.is_available() is True
    assert await client.invoke(ModelInput(blocks=[TextBlock(text="hi")])) == '[{"notes": "1 block"}]'
    await client.aclose()
