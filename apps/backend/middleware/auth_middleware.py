# -*- coding: utf-8 -*-
"""
Firebase Authentication Middleware
===================================
Resolves the calling user for protected endpoints.

Production: Firebase ID token (Bearer) or session cookie, verified with the
Firebase Admin SDK.
Development: Optional unsafe bypass only when DEV_UNSAFE_AUTH_BYPASS=true and
Firebase is not initialized.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request

from config import settings

logger = logging.getLogger(__name__)

DEV_UID_HEADER = "X-Firebase-UID"


def _allow_dev_unverified_auth() -> bool:
    return (
        settings.is_development
        and bool(getattr(settings, "DEV_UNSAFE_AUTH_BYPASS", False))
        and not settings.FIREBASE_READY
    )


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header format")
    return parts[1]


def _translate_firebase_error(e: Exception) -> HTTPException:
    exception_type = type(e).__name__
    if "Expired" in exception_type:
        return HTTPException(status_code=401, detail="Token expired")
    if "Revoked" in exception_type:
        return HTTPException(status_code=401, detail="Session revoked")
    if "UserDisabledError" in exception_type:
        return HTTPException(status_code=403, detail="User account disabled")
    if "Invalid" in exception_type:
        return HTTPException(status_code=401, detail="Invalid token")
    logger.warning(f"Firebase verification failed ({exception_type}): {e}")
    return HTTPException(status_code=401, detail="Authentication required")


async def verify_firebase_token(request: Request) -> str:
    """
    Resolve the authenticated Firebase UID.

    Order: ``Authorization: Bearer <id token>``, then the session cookie,
    then (development bypass only) the ``X-Firebase-UID`` header.
    """
    token = _bearer_token(request)
    session_cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)

    if _allow_dev_unverified_auth():
        uid = request.headers.get(DEV_UID_HEADER, "").strip()
        if uid:
            logger.warning("DEV_UNSAFE_AUTH_BYPASS enabled: Using uid from request header")
            request.state.uid = uid
            return uid

    if not token and not session_cookie:
        raise HTTPException(status_code=401, detail="Authentication required")

    if not settings.FIREBASE_READY:
        logger.error("Firebase Admin SDK is not initialized")
        raise HTTPException(status_code=500, detail="Authentication service unavailable")

    from firebase_admin import auth

    try:
        if token:
            decoded = auth.verify_id_token(token)
        else:
            decoded = auth.verify_session_cookie(session_cookie, check_revoked=True)
    except Exception as e:
        raise _translate_firebase_error(e)

    uid = decoded.get("uid")
    if not uid:
        logger.error("Firebase token missing 'uid' claim")
        raise HTTPException(status_code=401, detail="Invalid token claims")
    request.state.uid = uid
    return uid
