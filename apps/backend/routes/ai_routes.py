import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from config import settings
from middleware.auth_middleware import verify_firebase_token
from middleware.rate_limit import limiter
from models.request_models import ChatStreamRequest, ModelListRequest, SummarizeRequest
from services.ai_service import (
    TEXT_STREAM_HEADERS,
    list_models,
    open_chat_stream,
    prepare_chat,
    summarize_article,
)
from services.errors import AppError

logger = logging.getLogger("annotator_api")
router = APIRouter(prefix="/api/ai", tags=["AI Assistant"])


@router.post("/chat")
@limiter.limit(settings.RATE_LIMIT_AI)
async def chat_endpoint(
    request: Request,
    body: Optional[ChatStreamRequest] = None,
    uid: str = Depends(verify_firebase_token),
):
    """
    Stream the assistant reply as plain text.

    Body: ``{provider, model, apiKey, systemPrompt, messages}``.
    """
    chat = prepare_chat(body.payload() if body else {})
    logger.info("AI chat requested", extra={"provider": chat.provider, "model": chat.model})

    try:
        stream = await open_chat_stream(chat)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"AI chat failed: {e}", extra={"provider": chat.provider}, exc_info=True)
        raise HTTPException(status_code=500, detail=str(e) or "AI request failed")

    return StreamingResponse(stream, media_type="text/plain; charset=utf-8", headers=TEXT_STREAM_HEADERS)


@router.post("/models")
@limiter.limit(settings.RATE_LIMIT_AI)
async def models_endpoint(
    request: Request,
    body: Optional[ModelListRequest] = None,
    uid: str = Depends(verify_firebase_token),
):
    try:
        payload, status = await list_models(body.payload() if body else {})
        return JSONResponse(payload, status_code=status)
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"AI model listing failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/summarize")
@limiter.limit(settings.RATE_LIMIT_AI)
async def summarize_endpoint(
    request: Request,
    body: Optional[SummarizeRequest] = None,
    uid: str = Depends(verify_firebase_token),
):
    try:
        return await summarize_article(body.payload() if body else {})
    except (AppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"AI summary failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
