"""Integration tests for the OpenAI extraction client.

These tests require:
- APP_OPENAI_API_KEY environment variable set
- Internet connection to OpenAI API

Tests are skipped if APP_OPENAI_API_KEY is not available.
Use pytest -v -m integration to run only integration tests.
"""

import os
from datetime import UTC, datetime

import pytest

from order_intake.extraction.normalizer import normalize_response
from order_intake.extraction.openai_provider import OpenAIExtractionClient
from order_intake.extraction.prompt import build_model_input
from order_intake.extraction.schema import ExtractionContext, TextContent
from order_intake.shared.config import Settings

# Skip all tests in this module if no API key available
pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.getenv("APP_OPENAI_API_KEY"),
        reason="APP_OPENAI_API_KEY not set - skipping integration tests",
    ),
]

ORDER_TEXT = """
--- Page 1 ---
PURCHASE ORDER

From: Acme Knitwear Ltd.
Bill To: Shop Co Boutique

Style #        Description             Qty      Ship Date
AK-2041        Cable crew sweater      24 pcs   2024-05-01
AK-3310        Ribbed beanie           48 pcs   2024-05-15
"""


@pytest.fixture
def client() -> OpenAIExtractionClient:
    return OpenAIExtractionClient(Settings())


@pytest.fixture
def context() -> ExtractionContext:
    return ExtractionContext(
        source_invoice_id="public/integration",
        source_file_url="http://localhost:9000/invoices/public/integration.pdf",
        requested_at=datetime.now(UTC),
    )


@pytest.mark.asyncio
async def test_extracts_line_items_from_order_text(
    client: OpenAIExtractionClient, context: ExtractionContext
) -> None:
    model_input = build_model_input(TextContent(text=ORDER_TEXT))

    raw = await client.invoke(model_input)
    items = normalize_response(raw, context)
    await client.aclose()

    styles = {item.style_number for item in items}
    assert {"AK-2041", "AK-3310"} <= styles
    by_style = {item.style_number: item for item in items}
    assert by_style["AK-2041"].quantity == 24
    assert by_style["AK-3310"].quantity == 48
    assert "Acme" in by_style["AK-2041"].vendor_name
