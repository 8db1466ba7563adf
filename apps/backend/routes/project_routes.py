import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from infrastructure.document_store import DocumentStore, get_document_store
from middleware.auth_middleware import verify_firebase_token
from models.request_models import ProjectCreateRequest
from services.errors import AppError
from services.project_service import create_project, delete_project, fetch_projects

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get("")
async def list_projects_endpoint(
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fetch_projects, store, uid)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Fetch projects failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("")
async def create_project_endpoint(
    body: Optional[ProjectCreateRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        project_id = await loop.run_in_executor(None, create_project, store, uid, body.name if body else None)
        return {"id": project_id}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Create project failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{project_id}")
async def delete_project_endpoint(
    project_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        moved = await loop.run_in_executor(None, delete_project, store, uid, project_id)
        return {"success": True, "articlesMoved": moved}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Delete project failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
