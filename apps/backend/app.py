# -*- coding: utf-8 -*-
"""
Web Annotator FastAPI Backend
=============================
Articles, notes, lists, projects, boards, search, PDF import, page proxy /
snapshot and the AI reading assistant over Firestore and Firebase Auth.
"""

import sys
import os
import logging
import uvicorn
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Add backend dir to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Rate Limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import settings
from middleware.rate_limit import limiter
from services.errors import AppError
from utils.logger import CustomJsonFormatter

# Configure Logging (Structured JSON)
logger = logging.getLogger("annotator_api")
logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

# Console Handler (Stdout for Docker)
logHandler = logging.StreamHandler()
logHandler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
logger.addHandler(logHandler)
logger.propagate = False

# Remove default handlers to avoid duplicates
logging.getLogger().handlers = []
logging.getLogger().addHandler(logHandler)
logging.getLogger().setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))


def _validate_cors_origins(origins: list[str]) -> list[str]:
    normalized = [o.strip() for o in origins if str(o).strip()]
    if not normalized:
        raise ValueError("ALLOWED_ORIGINS cannot be empty")
    if "*" in normalized:
        raise ValueError("SECURITY: '*' is not allowed when allow_credentials=True")

    for origin in normalized:
        if origin.startswith("https://"):
            continue
        if settings.ENVIRONMENT == "development" and origin.startswith(
            ("http://localhost", "http://127.0.0.1", "http://0.0.0.0")
        ):
            continue
        raise ValueError(f"Invalid CORS origin: {origin}")
    return normalized


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Startup: Initializing Web Annotator API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    if settings.ENVIRONMENT == "production" and not settings.FIREBASE_READY:
        error_msg = (
            "CRITICAL: Firebase Admin SDK not initialized. "
            "Set GOOGLE_APPLICATION_CREDENTIALS or FIREBASE_SERVICE_ACCOUNT_KEY. "
            "Firestore and Firebase Auth are required for production."
        )
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    if getattr(app.state, "store", None) is None:
        if settings.FIREBASE_READY:
            from infrastructure.document_store import FirestoreDocumentStore
            from infrastructure.file_storage import FirebaseFileStorage

            app.state.store = FirestoreDocumentStore()
            if getattr(app.state, "file_storage", None) is None:
                app.state.file_storage = FirebaseFileStorage(settings.storage_bucket())
            logger.info("Firestore document store and storage bucket ready")
        else:
            logger.warning("Firebase not configured: data endpoints will fail (OK for local development only)")

    yield
    logger.info("Shutdown: Web Annotator API stopped")


# Initialize FastAPI
app = FastAPI(
    title="Web Annotator API",
    description="Backend for saving, annotating and discussing web articles",
    version="1.0.0",
    lifespan=lifespan
)
app.state.store = None
app.state.file_storage = None

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ============================================================================
# ERROR BODIES: every failure answers {"error": "<message>"}
# ============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(
            "Request rejected",
            extra={"path": request.url.path, "status": exc.status_code, "reason": exc.message},
        )
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=_validate_cors_origins(settings.ALLOWED_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from routes import (
    ai_routes,
    article_routes,
    auth_routes,
    board_routes,
    list_routes,
    pdf_routes,
    project_routes,
    proxy_routes,
    search_routes,
)

for module in (
    auth_routes,
    article_routes,
    list_routes,
    project_routes,
    board_routes,
    search_routes,
    pdf_routes,
    proxy_routes,
    ai_routes,
):
    app.include_router(module.router)
    logger.info("Router registered", extra={"router": module.__name__, "route_count": len(module.router.routes)})

# Prometheus Instrumentation (must be AFTER all routers are added)
from prometheus_fastapi_instrumentator import Instrumentator
Instrumentator().instrument(app).expose(app, endpoint="/metrics")


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "Web Annotator API (FastAPI)",
        "timestamp": datetime.now().isoformat(),
        "environment": {
            "environment": settings.ENVIRONMENT,
            "firebaseReady": settings.FIREBASE_READY,
            "storeReady": getattr(app.state, "store", None) is not None,
        },
    }


if __name__ == "__main__":
    logger.info("Starting FastAPI Server on port 8000 (DIRECT)...")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=settings.is_development)
