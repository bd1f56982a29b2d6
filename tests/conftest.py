"""Shared fixtures: generated PDF and image documents."""

import io
from collections.abc import Callable

import fitz  # PyMuPDF
import pytest
from PIL import Image


def build_pdf(pages: list[str]) -> bytes:
    """Create an in-memory PDF with one text page per entry."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=9)
    data: bytes = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf() -> Callable[[list[str]], bytes]:
    return build_pdf


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """One-page order with all fields clearly labeled."""
    return build_pdf(
        [
            "From: Acme Knitwear\nBill To: Shop Co\nStyle: ABC-123, Qty: 24, ETA: 2024-05-01",
        ]
    )


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create a simple test image as bytes."""
    img = Image.new("RGB", (200, 100), color="white")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format="PNG")
    img_bytes.seek(0)
    return img_bytes.read()
