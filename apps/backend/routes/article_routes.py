import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from infrastructure.document_store import DocumentStore, get_document_store
from middleware.auth_middleware import verify_firebase_token
from models.request_models import ArticleBody, ListMembershipRequest
from services.article_service import (
    add_article_to_list,
    create_article,
    delete_article,
    get_article,
    list_article_summaries,
    remove_article_from_list,
    update_article,
)
from services.errors import AppError

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/articles", tags=["Articles"])


@router.post("")
async def create_article_endpoint(
    body: Optional[ArticleBody] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        article_id = await loop.run_in_executor(
            None, create_article, store, uid, body.payload() if body else {}
        )
        return {"id": article_id}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Create article failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("")
async def list_articles_endpoint(
    projectId: Optional[str] = None,
    listId: Optional[str] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, list_article_summaries, store, uid, projectId or None, listId or None
        )
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"List articles failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{article_id}")
async def get_article_endpoint(
    article_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, get_article, store, uid, article_id)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Get article failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{article_id}")
async def update_article_endpoint(
    article_id: str,
    body: Optional[ArticleBody] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, update_article, store, uid, article_id, body.payload() if body else {}
        )
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Update article failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{article_id}")
async def delete_article_endpoint(
    article_id: str,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, delete_article, store, uid, article_id)
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Delete article failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{article_id}/lists")
async def add_to_list_endpoint(
    article_id: str,
    body: Optional[ListMembershipRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, add_article_to_list, store, uid, article_id, body.listId if body else None
        )
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Add article to list failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{article_id}/lists")
async def remove_from_list_endpoint(
    article_id: str,
    listId: Optional[str] = None,
    body: Optional[ListMembershipRequest] = None,
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    """List id comes from the body or, for clients that cannot send DELETE bodies, the query."""
    try:
        list_id = body.listId if body and body.listId else listId
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, remove_article_from_list, store, uid, article_id, list_id)
        return {"success": True}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Remove article from list failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
