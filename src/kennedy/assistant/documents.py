from __future__ import annotations

import io
import os

from pypdf import PdfReader

PDF_MIME_TYPE = "application/pdf"
DEFAULT_DOC_CHAR_LIMIT = 1500


def doc_char_limit() -> int:
    raw = (os.getenv("KENNEDY_BOT_DOC_CHAR_LIMIT") or "").strip()
    if not raw:
        return DEFAULT_DOC_CHAR_LIMIT
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_DOC_CHAR_LIMIT


def binary_placeholder(file_name: str | None) -> str:
    return f"[Archivo binario no legible: {file_name or 'sin nombre'}]"


def _normalize_mime(value: str | None) -> str:
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


def extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [(page.extract_text() or "").strip() for page in reader.pages]
    return "\n".join(page for page in pages if page)


def extract_document_text(data: bytes, *, mime_type: str | None, file_name: str | None) -> str:
    """Return readable text for a stored document.

    Only PDFs are parsed. Every other type yields a placeholder naming the
    file so raw bytes never reach the prompt. PDF parsing errors propagate.
    """

    if _normalize_mime(mime_type) != PDF_MIME_TYPE:
        return binary_placeholder(file_name)
    text = extract_pdf_text(data)
    return text or f"[PDF sin texto extraíble: {file_name or 'sin nombre'}]"


def document_block(
    *,
    document_type: str | None,
    file_name: str | None,
    text: str,
    limit: int | None = None,
) -> str:
    """Wrap ``text`` in a labelled block truncated to ``limit`` characters."""

    if limit is None:
        limit = doc_char_limit()
    body = (text or "").strip()
    if len(body) > limit:
        body = body[:limit].rstrip() + "..."
    header = f"--- DOCUMENTO: {document_type or 'documento'} ({file_name or 'sin nombre'}) ---"
    return f"{header}\n{body}"
