import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from infrastructure.document_store import DocumentStore, get_document_store
from middleware.auth_middleware import verify_firebase_token
from models.request_models import BoardCreateRequest
from services.board_service import (
    create_board,
    delete_board,
    fetch_board,
    fetch_board_summaries,
    update_board,
)
from services.errors import AppError, InvalidRequestError

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/boards", tags=["Boards"])


@router.get("")
async def list_boards_endpoint(
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fetch_board_summaries, store, uid)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Fetch boards failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("")
async def create_board_endpoint(
    body: Optional[BoardCreateRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        board_id = await loop.run_in_executor(None, create_board, store, uid, body.name if body else None)
        return {"id": board_id}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Create board failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{board_id}")
async def get_board_endpoint(
    board_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fetch_board, store, uid, board_id)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Get board failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{board_id}")
async def update_board_endpoint(
    board_id: str,
    request: Request,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    """Autosave target: nodes and edges are sanitized, never rejected one by one."""
    try:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise InvalidRequestError("Invalid request body")

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, update_board, store, uid, board_id, payload)
        return {"success": True, **result}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Update board failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{board_id}")
async def delete_board_endpoint(
    board_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, delete_board, store, uid, board_id)
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Delete board failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
