import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from infrastructure.document_store import DocumentStore, get_document_store
from middleware.auth_middleware import verify_firebase_token
from models.request_models import ListCreateRequest, ListUpdateRequest
from services.errors import AppError
from services.list_service import create_list, delete_list, fetch_lists, update_list

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/lists", tags=["Lists"])


@router.get("")
async def list_lists_endpoint(
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fetch_lists, store, uid)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Fetch lists failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("")
async def create_list_endpoint(
    body: Optional[ListCreateRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    body = body or ListCreateRequest()
    try:
        loop = asyncio.get_running_loop()
        list_id = await loop.run_in_executor(None, create_list, store, uid, body.name, body.color)
        return {"id": list_id}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Create list failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{list_id}")
async def update_list_endpoint(
    list_id: str,
    body: Optional[ListUpdateRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, update_list, store, uid, list_id, body.payload() if body else {})
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Update list failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{list_id}")
async def delete_list_endpoint(
    list_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        updated = await loop.run_in_executor(None, delete_list, store, uid, list_id)
        return {"success": True, "articlesUpdated": updated}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Delete list failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
