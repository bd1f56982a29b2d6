"""Plain text retrieval for documents referenced by URL.

Standalone utility behind the text endpoint: download a PDF and return its
raw text. No line item structuring happens here.
"""

import logging

import httpx
from starlette.concurrency import run_in_threadpool

from order_intake.content.service import extract_text
from order_intake.shared.config import Settings
from order_intake.shared.errors import ClientInputError

logger = logging.getLogger(__name__)


class RemoteTextService:
    """Fetches a remote document and extracts its text."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.remote_fetch_timeout_seconds,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_text(self, file_url: str) -> str:
        """Download a document and return its text.

        Args:
            file_url: Location of the PDF to read

        Returns:
            Full document text

        Raises:
            ClientInputError: If the URL is missing or the download fails
            ContentExtractionError: If the downloaded bytes are not a readable PDF
        """
        if not file_url:
            raise ClientInputError("Missing fileUrl")

        try:
            response = await self._client.get(file_url)
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch {file_url}: {e}")
            raise ClientInputError("Could not fetch fileUrl") from e

        if not response.is_success:
            logger.warning(f"Could not fetch {file_url}: HTTP {response.status_code}")
            raise ClientInputError("Could not fetch fileUrl")

        text = await run_in_threadpool(extract_text, response.content)
        logger.info(f"Extracted {len(text)} chars from {file_url}")
        return text
