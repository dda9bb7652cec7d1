# scorecard_api/pdf_text.py
from __future__ import annotations

import io

import pdfplumber

from scorecard_api.errors import PdfTextError


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Plain text of every page, pages joined by newlines.
    Layout is not interpreted; the extractor gets the raw text.
    """
    if not pdf_bytes:
        raise PdfTextError("Uploaded PDF is empty")

    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise PdfTextError(f"Could not read PDF: {e}") from e

    text = "\n".join(p.strip() for p in pages if p and p.strip())
    if not text:
        raise PdfTextError("PDF contains no extractable text (scanned image?)")
    return text
