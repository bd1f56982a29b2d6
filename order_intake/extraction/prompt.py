"""Prompt construction for line item extraction.

The instruction block is fixed; only the caller's hints and the document
content vary between requests.
"""

from order_intake.extraction.schema import (
    ImageBlock,
    ImageContent,
    ModelInput,
    PreparedContent,
    TextBlock,
    TextContent,
)

EXTRACTION_PROMPT = """You are an expert at extracting wholesale apparel order data from invoices.

Extract line items from this invoice and return ONLY a valid JSON array with this exact structure:
[
  {
    "vendor_name": "string (company selling the products)",
    "customer_name": "string (company buying the products)",
    "style_number": "string (product style/model number)",
    "quantity": "integer (number of units)",
    "eta_date": "YYYY-MM-DD or null if not found",
    "notes": "string (any special notes about this line item)",
    "needs_review": "boolean (true if any required fields are unclear or missing)"
  }
]

Rules:
- Extract ALL line items from the invoice
- vendor_name: Look for "From:", "Vendor:", "Supplier:", company header, or sender info
- customer_name: Look for "To:", "Bill To:", "Ship To:", "Customer:", or recipient info
- style_number: Look for "Style:", "SKU:", "Item #:", "Product:", or similar identifiers
- quantity: Convert text like "12 pcs", "6 units" to just the number
- eta_date: Look for "ETA:", "Delivery:", "Ship Date:", "Expected:" and normalize to \
YYYY-MM-DD (use null if missing/ambiguous)
- Set needs_review=true if vendor_name, customer_name, or style_number are missing/unclear
- Return empty array [] if no line items found

Return ONLY the JSON array, no other text."""

TEXT_START = "--- OCR/TEXT START ---"
TEXT_END = "--- OCR/TEXT END ---"


def _hints(heading: str, vendor_hint: str, customer_hint: str) -> str:
    return f'{heading}:\nVendor: "{vendor_hint}"\nCustomer: "{customer_hint}"'


def build_model_input(
    content: PreparedContent,
    vendor_hint: str = "",
    customer_hint: str = "",
) -> ModelInput:
    """Compose the single user message sent to the extraction client.

    Hints are advisory: the model is told to use them only when the document
    does not name the vendor or customer itself.

    Args:
        content: Prepared text or image content
        vendor_hint: Caller-supplied vendor name (may be empty)
        customer_hint: Caller-supplied customer name (may be empty)

    Returns:
        ModelInput with the instruction text, plus an image block for image content
    """
    if isinstance(content, TextContent):
        text = (
            f"{EXTRACTION_PROMPT}\n\n"
            + _hints(
                "Prefilled data (use only if not clearly present in the text)",
                vendor_hint,
                customer_hint,
            )
            + f"\n\n{TEXT_START}\n{content.text}\n{TEXT_END}"
        )
        return ModelInput(blocks=[TextBlock(text=text)])

    if isinstance(content, ImageContent):
        text = f"{EXTRACTION_PROMPT}\n\n" + _hints(
            "Prefilled data (use if vendor/customer not found in image)",
            vendor_hint,
            customer_hint,
        )
        return ModelInput(blocks=[TextBlock(text=text), ImageBlock(image=content)])

    raise TypeError(f"Unsupported content type: {type(content).__name__}")
