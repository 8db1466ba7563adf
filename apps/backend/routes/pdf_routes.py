import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from config import settings
from infrastructure.document_store import DocumentStore, get_document_store
from infrastructure.file_storage import FileStorage, get_file_storage
from middleware.auth_middleware import verify_firebase_token
from models.request_models import PdfUploadForm
from services.errors import AppError, InvalidRequestError
from services.pdf_service import process_pdf_upload, require_pdf_content_type, validate_pdf_size

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/pdf", tags=["PDF"])

_READ_CHUNK_BYTES = 1024 * 1024


async def _read_upload(file: UploadFile) -> bytes:
    """Read the upload, stopping as soon as it passes the size limit."""
    limit = settings.PDF_MAX_SIZE_MB * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            validate_pdf_size(total)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload")
async def upload_pdf_endpoint(
    file: Optional[UploadFile] = File(None),
    projectId: Optional[str] = Form(None),
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
    file_storage: FileStorage = Depends(get_file_storage),
):
    try:
        if file is None or not file.filename:
            raise InvalidRequestError("No file provided")

        require_pdf_content_type(file.content_type)
        form = PdfUploadForm(projectId=projectId)
        logger.info("PDF upload received", extra={"upload_filename": file.filename})
        data = await _read_upload(file)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            process_pdf_upload,
            store,
            file_storage,
            uid,
            file.filename,
            file.content_type,
            data,
            form.projectId,
        )
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"PDF upload failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
