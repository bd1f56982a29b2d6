"""FastAPI application for wholesale order document intake.

Endpoints:
- Invoice parsing: upload a PDF or image, get normalized order line items
- Text retrieval: fetch a PDF by URL and return its raw text
- Health, readiness and Prometheus metrics

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from order_intake.api import metrics
from order_intake.content.remote import RemoteTextService
from order_intake.content.service import DocumentContentExtractor
from order_intake.extraction.factory import create_extraction_client
from order_intake.extraction.pipeline import OrderExtractionPipeline
from order_intake.extraction.schema import ParseInvoiceResponse
from order_intake.shared.config import get_settings
from order_intake.shared.errors import ClientInputError, OrderIntakeError, UpstreamStorageError
from order_intake.storage.service import StorageService

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

storage_service = StorageService(settings)
content_extractor = DocumentContentExtractor(settings)
extraction_client = create_extraction_client(settings)
pipeline = OrderExtractionPipeline(storage_service, content_extractor, extraction_client)
remote_text_service = RemoteTextService(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Fail fast on missing configuration and release clients on shutdown."""
    missing = settings.missing_required()
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")
    yield
    await extraction_client.aclose()
    await remote_text_service.aclose()


app = FastAPI(
    title="Order Intake",
    description="Extracts wholesale apparel order line items from invoices and order sheets",
    version=settings.service_version,
    lifespan=lifespan,
)


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Headers": settings.cors_allow_headers,
        "Access-Control-Allow-Methods": settings.cors_allow_methods,
        "Access-Control-Max-Age": str(settings.cors_max_age),
    }


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


@app.middleware("http")
async def cors_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Answer preflight requests and attach permissive CORS headers."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers())

    response = await call_next(request)
    response.headers.update(cors_headers())
    return response


@app.exception_handler(OrderIntakeError)
async def order_intake_error_handler(request: Request, exc: OrderIntakeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
        headers=cors_headers(),
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    storage: bool
    extraction_provider: str


class TextRequest(BaseModel):
    """Text retrieval request body."""

    model_config = ConfigDict(populate_by_name=True)

    file_url: str | None = Field(None, alias="fileUrl")


class TextResponse(BaseModel):
    """Text retrieval response."""

    text: str


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check(response: Response) -> ReadinessResponse:
    """Readiness check: storage reachable and extraction provider configured.

    Returns 503 when not ready.
    """
    storage_ok = storage_service.health_check()
    ready = storage_ok and extraction_client.is_available()
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        ready=ready, storage=storage_ok, extraction_provider=extraction_client.provider_name
    )


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/api/v1/invoices/parse", response_model=ParseInvoiceResponse, tags=["Invoices"])
async def parse_invoice(
    file: UploadFile | None = File(None, description="Order document (PDF or image)"),  # noqa: B008
    vendor_name: str = Form("", alias="vendorName"),
    customer_name: str = Form("", alias="customerName"),
) -> ParseInvoiceResponse:
    """Extract order line items from an uploaded wholesale apparel document.

    This endpoint performs:
    1. **Storage**: Saves the original document and returns its public URL
    2. **Content preparation**: PDF text (first 15,000 chars, page-marked) or
       the image itself for scans and photos
    3. **Extraction**: A vision-capable model returns line items as JSON
    4. **Normalization**: Every record is fully defaulted and flagged for
       review when vendor, customer or style is missing

    ## Usage Example

    ```bash
    curl -X POST "http://localhost:8000/api/v1/invoices/parse" \\
      -F "file=@order.pdf" -F "vendorName=Acme Knits" -F "customerName=Shop Co"
    ```

    ## Error Handling

    - Returns 400 if no file (or an empty file) is provided
    - Returns 500 if storage upload or the model call fails
    - Returns 200 with a single `needs_review` record if the model output
      cannot be parsed

    Args:
        file: Uploaded PDF or image (required)
        vendor_name: Vendor to use when the document does not name one
        customer_name: Customer to use when the document does not name one

    Returns:
        Line items and the stored document URL
    """
    if file is None:
        raise ClientInputError("No file provided")

    content = await file.read()
    if not content:
        raise ClientInputError("Empty file")

    metrics.document_upload_size_bytes.observe(len(content))

    extraction_start = time.time()
    try:
        result = await pipeline.run(
            file_bytes=content,
            filename=file.filename,
            media_type=file.content_type,
            vendor_hint=vendor_name,
            customer_hint=customer_name,
        )
    except OrderIntakeError as e:
        # Storage is the first step; any later failure happened after a good upload
        upload_status = "failed" if isinstance(e, UpstreamStorageError) else "success"
        metrics.documents_uploaded_total.labels(status=upload_status).inc()
        metrics.extraction_requests_total.labels(status="failed").inc()
        raise
    finally:
        metrics.extraction_processing_duration_seconds.observe(time.time() - extraction_start)

    metrics.documents_uploaded_total.labels(status="success").inc()
    metrics.extraction_requests_total.labels(status="success").inc()
    metrics.line_items_extracted_total.inc(len(result.data))
    metrics.line_items_needs_review_total.inc(sum(1 for item in result.data if item.needs_review))
    if result.used_fallback:
        metrics.extraction_fallback_total.inc()

    return result


@app.post("/api/v1/invoices/text", response_model=TextResponse, tags=["Invoices"])
async def extract_document_text(body: TextRequest | None = None) -> TextResponse:
    """Fetch a PDF by URL and return its raw text (no line item structuring).

    ## Usage Example

    ```bash
    curl -X POST "http://localhost:8000/api/v1/invoices/text" \\
      -H "Content-Type: application/json" -d '{"fileUrl": "https://.../order.pdf"}'
    ```

    Returns 400 if `fileUrl` is missing or cannot be fetched, 500 if the
    document cannot be read.
    """
    file_url = body.file_url if body else None
    text = await remote_text_service.fetch_text(file_url or "")
    return TextResponse(text=text)
