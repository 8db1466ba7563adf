import asyncio
import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from config import settings
from models.request_models import SessionRequest

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _create_session_cookie(id_token: str, expires_in: timedelta) -> str:
    from firebase_admin import auth

    return auth.create_session_cookie(id_token, expires_in=expires_in)


@router.post("/session")
async def create_session_endpoint(body: Optional[SessionRequest] = None):
    """Exchange a Firebase ID token for an httpOnly session cookie."""
    if body is None or not body.idToken:
        raise HTTPException(status_code=400, detail="Missing idToken")
    if not settings.FIREBASE_READY:
        logger.error("Firebase Admin SDK is not initialized")
        raise HTTPException(status_code=500, detail="Authentication service unavailable")

    expires_in = timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    try:
        loop = asyncio.get_running_loop()
        cookie = await loop.run_in_executor(None, _create_session_cookie, body.idToken, expires_in)
    except Exception as e:
        logger.warning(f"Session cookie creation failed ({type(e).__name__}): {e}")
        raise HTTPException(status_code=401, detail="Failed to create session")

    response = JSONResponse({"success": True})
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=cookie,
        max_age=int(expires_in.total_seconds()),
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        path="/",
    )
    return response


@router.delete("/session")
async def delete_session_endpoint():
    response = JSONResponse({"success": True})
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value="",
        max_age=0,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        path="/",
    )
    return response
