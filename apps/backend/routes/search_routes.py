import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from infrastructure.document_store import DocumentStore, get_document_store
from middleware.auth_middleware import verify_firebase_token
from services.errors import AppError
from services.search_service import DEFAULT_LIMIT, fetch_all_tags, search_articles

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api", tags=["Search"])


@router.get("/search")
async def search_endpoint(
    q: str = "",
    projectId: Optional[str] = None,
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=200),
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(
            None, search_articles, store, uid, q, projectId or None, limit
        )
        return {"results": results}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/tags")
async def tags_endpoint(
    uid: str = Depends(verify_firebase_token),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        loop = asyncio.get_running_loop()
        tags = await loop.run_in_executor(None, fetch_all_tags, store, uid)
        return {"tags": tags}
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Fetch tags failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
