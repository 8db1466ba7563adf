# -*- coding: utf-8 -*-
"""
PDF upload pipeline
===================
Extracts text and document info with PyPDF2, stores the original file in
object storage and saves the result as an article of type ``pdf``.
"""

import html
import io
import re
from dataclasses import dataclass, field
from typing import List, Optional

from config import settings
from infrastructure.document_store import DocumentStore
from infrastructure.file_storage import FileStorage
from services.article_service import create_article
from services.errors import ExtractionError, InvalidRequestError
from services.monitoring import PDF_UPLOAD_BYTES
from utils.logger import get_logger
from utils.sanitizer import sanitize_title
from utils.text_utils import now_ms

logger = get_logger("pdf_service")

PDF_CONTENT_TYPE = "application/pdf"


@dataclass
class PDFExtractionResult:
    text: str
    page_count: int
    title: Optional[str] = None
    author: Optional[str] = None
    pages: List[str] = field(default_factory=list)


def require_pdf_content_type(content_type: Optional[str]) -> None:
    if (content_type or "").split(";")[0].strip().lower() != PDF_CONTENT_TYPE:
        raise InvalidRequestError("File must be a PDF")


def validate_pdf_size(size: int, max_size_mb: Optional[int] = None) -> None:
    max_size_mb = max_size_mb or settings.PDF_MAX_SIZE_MB
    if size > max_size_mb * 1024 * 1024:
        raise InvalidRequestError(f"PDF file size exceeds {max_size_mb}MB limit")


def _info_value(info, key: str) -> Optional[str]:
    if not info:
        return None
    value = info.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_text_from_pdf(data: bytes) -> PDFExtractionResult:
    try:
        from PyPDF2 import PdfReader

        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "") for page in reader.pages]
        info = reader.metadata
        return PDFExtractionResult(
            text="\n\n".join(p for p in pages if p.strip()),
            page_count=len(reader.pages),
            title=_info_value(info, "/Title"),
            author=_info_value(info, "/Author"),
            pages=pages,
        )
    except Exception as e:
        logger.error(f"PDF extraction failed: {e}", exc_info=True)
        raise ExtractionError("Failed to extract text from PDF")


def text_to_html(text: str) -> str:
    """Paragraph markup for extracted text: blank lines split paragraphs."""
    paragraphs = []
    for block in re.split(r"\n\s*\n", text or ""):
        lines = [line.strip() for line in block.splitlines() if line.strip()]
        if lines:
            paragraphs.append(f"<p>{html.escape(' '.join(lines))}</p>")
    return "\n".join(paragraphs) or "<p></p>"


def safe_file_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.\-]", "_", name or "document.pdf")


def _title_from_file_name(name: str) -> str:
    base = (name or "").strip()
    if base.lower().endswith(".pdf"):
        base = base[:-4]
    return base or "Untitled PDF"


def process_pdf_upload(
    store: DocumentStore,
    file_storage: FileStorage,
    uid: str,
    file_name: str,
    content_type: Optional[str],
    data: bytes,
    project_id: Optional[str] = None,
) -> dict:
    require_pdf_content_type(content_type)
    validate_pdf_size(len(data))
    PDF_UPLOAD_BYTES.observe(len(data))

    extraction = extract_text_from_pdf(data)

    storage_path = f"pdfs/{uid}/{now_ms()}_{safe_file_name(file_name)}"
    pdf_url = file_storage.upload(
        storage_path,
        data,
        PDF_CONTENT_TYPE,
        metadata={"userId": uid},
    )

    title = sanitize_title(extraction.title, fallback=_title_from_file_name(file_name))
    article_id = create_article(store, uid, {
        "url": pdf_url,
        "title": title,
        "byline": extraction.author or "",
        "content": text_to_html(extraction.text),
        "projectId": project_id,
    }, pdf_url=pdf_url, pdf_metadata={"pageCount": extraction.page_count, "fileSize": len(data)})
    logger.info(
        "PDF uploaded",
        extra={"article_id": article_id, "page_count": extraction.page_count, "size": len(data)},
    )
    return {
        "id": article_id,
        "title": title,
        "pageCount": extraction.page_count,
        "pdfUrl": pdf_url,
    }
