"""High-level pipeline that turns an uploaded order document into line items.

Steps run strictly in sequence for one request:
store original -> prepare content -> build prompt -> invoke model -> normalize.
Blocking library calls (MinIO, PyMuPDF) run in the threadpool so the event
loop only waits on I/O; cancelling the request task cancels the pipeline.
"""

import logging
from datetime import UTC, datetime

from starlette.concurrency import run_in_threadpool

from order_intake.content.service import DocumentContentExtractor
from order_intake.extraction.base import ExtractionClient
from order_intake.extraction.normalizer import normalize_completion
from order_intake.extraction.prompt import build_model_input
from order_intake.extraction.schema import ExtractionContext, ParseInvoiceResponse
from order_intake.storage.service import StorageService

logger = logging.getLogger(__name__)


class OrderExtractionPipeline:
    """Glue layer between storage, content preparation and the extraction client."""

    def __init__(
        self,
        storage: StorageService,
        content_extractor: DocumentContentExtractor,
        extraction_client: ExtractionClient,
    ) -> None:
        self.storage = storage
        self.content_extractor = content_extractor
        self.extraction_client = extraction_client

    async def run(
        self,
        file_bytes: bytes,
        filename: str | None,
        media_type: str | None,
        vendor_hint: str = "",
        customer_hint: str = "",
    ) -> ParseInvoiceResponse:
        """Process one uploaded document.

        Args:
            file_bytes: Uploaded document
            filename: Original file name
            media_type: Declared content type (routes PDF vs. image)
            vendor_hint: Optional vendor name from the caller
            customer_hint: Optional customer name from the caller

        Returns:
            Normalized line items and the stored document URL

        Raises:
            UpstreamStorageError: If the original cannot be stored
            ContentExtractionError: If a PDF cannot be opened
            InferenceError: If the model call fails
        """
        requested_at = datetime.now(UTC)
        logger.info(f"Processing file: {filename}, type: {media_type}, size: {len(file_bytes)}")

        stored = await run_in_threadpool(
            self.storage.store_document, file_bytes, filename, media_type
        )
        logger.info(f"File uploaded successfully: {stored.url}")

        content = await run_in_threadpool(self.content_extractor.prepare, file_bytes, media_type)
        model_input = build_model_input(content, vendor_hint, customer_hint)

        logger.info(f"Calling {self.extraction_client.provider_name} for extraction...")
        raw_completion = await self.extraction_client.invoke(model_input)
        logger.debug(f"Raw AI response: {raw_completion}")

        context = ExtractionContext(
            source_invoice_id=stored.source_invoice_id,
            source_file_url=stored.url,
            vendor_hint=vendor_hint,
            customer_hint=customer_hint,
            requested_at=requested_at,
        )
        items, used_fallback = normalize_completion(raw_completion, context)

        return ParseInvoiceResponse(
            data=items, source_file_url=stored.url, used_fallback=used_fallback
        )
