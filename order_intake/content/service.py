"""Document content preparation using PyMuPDF.

Turns uploaded bytes into the payload an extraction client can consume:
- PDF documents: page-marked text, bounded by a character budget
- Everything else: the raw bytes as an inline base64 image

Based on PyMuPDF documentation:
https://pymupdf.readthedocs.io/en/latest/
"""

import base64
import logging

import fitz  # PyMuPDF

from order_intake.extraction.schema import ImageContent, PreparedContent, TextContent
from order_intake.shared.config import Settings
from order_intake.shared.errors import ContentExtractionError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


def page_marker(page_number: int) -> str:
    """Boundary inserted before each page's text (pages are 1-based)."""
    return f"\n\n--- Page {page_number} ---\n"


def is_text_document(media_type: str | None) -> bool:
    """Route on the declared media type only; no content sniffing."""
    if not media_type:
        return False
    return media_type.split(";")[0].strip().lower() == PDF_MEDIA_TYPE


class DocumentContentExtractor:
    """Prepares document content for the inference call.

    Stateless apart from settings; safe to share across concurrent requests.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize content extractor.

        Args:
            settings: Application settings (max_text_chars budget)
        """
        self.settings = settings
        self.max_text_chars = settings.max_text_chars

    def prepare(self, file_bytes: bytes, media_type: str | None) -> PreparedContent:
        """Produce text or image content for a document.

        Args:
            file_bytes: Raw uploaded document
            media_type: Declared content type of the upload

        Returns:
            TextContent for PDFs, ImageContent for every other media type

        Raises:
            ContentExtractionError: If the PDF cannot be opened at all
        """
        if is_text_document(media_type):
            return TextContent(text=self.extract_page_text(file_bytes))

        mime_type = media_type or "application/octet-stream"
        encoded = base64.b64encode(file_bytes).decode("ascii")
        logger.debug(f"Prepared image content ({mime_type}, {len(file_bytes)} bytes)")
        return ImageContent(mime_type=mime_type, base64=encoded)

    def extract_page_text(self, pdf_bytes: bytes) -> str:
        """Extract page-marked text, stopping once the budget is exceeded.

        Pages are read in order. As soon as the accumulated text is longer than
        max_text_chars no further page is read, and the result is cut to the
        exact budget.

        Args:
            pdf_bytes: Raw PDF document

        Returns:
            Text with a page marker before each page, at most max_text_chars long
        """
        parts: list[str] = []
        length = 0

        with open_pdf(pdf_bytes) as doc:
            for page_number, page in enumerate(doc, start=1):
                chunk = page_marker(page_number) + page.get_text()
                parts.append(chunk)
                length += len(chunk)
                if length > self.max_text_chars:
                    logger.info(
                        f"Text budget of {self.max_text_chars} chars exceeded at page "
                        f"{page_number} of {doc.page_count}; skipping remaining pages"
                    )
                    break

        return "".join(parts)[: self.max_text_chars]


def extract_text(pdf_bytes: bytes) -> str:
    """Extract the full text of a PDF, pages separated by blank lines.

    Unbounded; used by the plain text retrieval endpoint.
    """
    with open_pdf(pdf_bytes) as doc:
        return "\n\n".join(page.get_text() for page in doc)


def open_pdf(pdf_bytes: bytes) -> fitz.Document:
    """Open a PDF from memory.

    Raises:
        ContentExtractionError: If PyMuPDF rejects the document
    """
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        logger.error(f"Failed to open PDF document: {e}")
        raise ContentExtractionError("Failed to read PDF document", str(e)) from e
