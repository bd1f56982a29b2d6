"""Error taxonomy for the order intake pipeline.

Only errors derived from OrderIntakeError halt a request. Each one knows the
HTTP status it maps to and the public message returned to the caller.
"""

from typing import Any


class OrderIntakeError(Exception):
    """Base exception for errors that end a request with an error response."""

    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        """Initialize the exception.

        Args:
            message: Public error message
            details: Optional diagnostic payload returned alongside the message
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_response(self) -> dict[str, Any]:
        """Render the error as a JSON response body."""
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientInputError(OrderIntakeError):
    """Request is missing required input or has an unsupported shape."""

    status_code = 400


class UpstreamStorageError(OrderIntakeError):
    """Write to object storage failed."""

    def __init__(self, details: Any = None) -> None:
        super().__init__("Failed to upload file", details)


class InferenceError(OrderIntakeError):
    """Inference endpoint did not return a successful completion."""

    def __init__(self, upstream_status: int | None, upstream_body: str) -> None:
        """Initialize with the upstream response for diagnostics.

        Args:
            upstream_status: HTTP status returned by the provider, None on transport errors
            upstream_body: Raw error body (or transport error text)
        """
        super().__init__("Failed to process file with AI", upstream_body)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class ContentExtractionError(OrderIntakeError):
    """Document could not be opened by the text extraction library."""


class ExtractionAmbiguityError(Exception):
    """Model output did not contain the expected JSON array.

    Raised inside the normalizer and always absorbed into a fallback record.
    """
