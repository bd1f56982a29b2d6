"""Order line item data models for structured extraction.

Covers every shape that flows through one request: the prepared document
content, the provider-neutral model input, the per-request context used when
normalizing, and the canonical line item returned to the caller.
"""

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """Plain text extracted from a text-bearing document (PDF)."""

    kind: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """Scanned or photographed document embedded as an inline image."""

    kind: Literal["image"] = "image"
    mime_type: str
    base64: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


PreparedContent = Annotated[TextContent | ImageContent, Field(discriminator="kind")]


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    image: ImageContent


class ModelInput(BaseModel):
    """Single user-role message handed to an extraction client.

    Providers translate the blocks into their own wire format.
    """

    role: Literal["user"] = "user"
    blocks: list[Annotated[TextBlock | ImageBlock, Field(discriminator="type")]]

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "\n\n".join(block.text for block in self.blocks if isinstance(block, TextBlock))

    @property
    def images(self) -> list[ImageContent]:
        return [block.image for block in self.blocks if isinstance(block, ImageBlock)]


class ExtractionContext(BaseModel):
    """Request-scoped values stamped onto every normalized line item.

    Attributes:
        source_invoice_id: Stored object key with its extension stripped
        source_file_url: Public URL of the stored original document
        vendor_hint: Caller-supplied vendor name, used only as a fallback
        customer_hint: Caller-supplied customer name, used only as a fallback
        requested_at: Processing timestamp shared by all records of the request
    """

    source_invoice_id: str
    source_file_url: str
    vendor_hint: str = ""
    customer_hint: str = ""
    requested_at: datetime


class OrderLineItem(BaseModel):
    """One style/quantity/ETA row extracted from a wholesale order document.

    Every field is always populated; unknown data degrades to empty strings,
    zero quantity, no ETA date and needs_review=True.
    """

    id: str = Field(..., description="Unique within the response")
    source_invoice_id: str = Field(..., description="Stored file key without extension")
    vendor_name: str = Field("", description="Company selling the products")
    customer_name: str = Field("", description="Company buying the products")
    style_number: str = Field("", description="Product style/model number")
    quantity: int = Field(0, ge=0, description="Number of units")
    eta_date: date | None = Field(None, description="Expected delivery date")
    created_at: datetime = Field(..., description="Processing timestamp")
    source_file_url: str = Field(..., description="Public URL of the stored original")
    notes: str = Field("", description="Free-text notes for this line item")
    needs_review: bool = Field(True, description="Requires human verification")


class ParseInvoiceResponse(BaseModel):
    """Successful response of the parse endpoint."""

    success: bool = True
    data: list[OrderLineItem]
    source_file_url: str
    # Set when the completion could not be parsed; kept out of the JSON body
    used_fallback: bool = Field(False, exclude=True)
