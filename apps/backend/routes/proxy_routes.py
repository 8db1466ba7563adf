import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from middleware.auth_middleware import verify_firebase_token
from services.errors import AppError, InvalidRequestError
from services.monitoring import UPSTREAM_FETCH_TOTAL
from services.proxy_service import fetch_for_embedding
from services.snapshot_service import capture_snapshot

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api", tags=["Web Content"])


def _record_outcome(kind: str, error: Optional[Exception]) -> None:
    if error is None:
        status = "success"
    elif isinstance(error, InvalidRequestError):
        status = "rejected"
    else:
        status = "upstream_error"
    UPSTREAM_FETCH_TOTAL.labels(kind=kind, status=status).inc()


@router.get("/proxy")
async def proxy_endpoint(
    url: Optional[str] = None,
    uid: str = Depends(verify_firebase_token),
):
    """Fetch a page server-side so it can be shown in an iframe."""
    try:
        proxied = await fetch_for_embedding(url)
        _record_outcome("proxy", None)
        return Response(content=proxied.body, headers=proxied.headers)
    except AppError as e:
        _record_outcome("proxy", e)
        raise
    except HTTPException:
        raise
    except Exception as e:
        _record_outcome("proxy", e)
        logger.error(f"Proxy failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/snapshot")
async def snapshot_endpoint(
    url: Optional[str] = None,
    uid: str = Depends(verify_firebase_token),
):
    try:
        snapshot = await capture_snapshot(url)
        _record_outcome("snapshot", None)
        return {"snapshot": snapshot}
    except AppError as e:
        _record_outcome("snapshot", e)
        raise
    except HTTPException:
        raise
    except Exception as e:
        _record_outcome("snapshot", e)
        logger.error(f"Snapshot failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
