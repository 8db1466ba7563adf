"""Readable snapshot of a web page: headless Chromium render, then trafilatura extraction."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import trafilatura
from playwright.async_api import async_playwright

from config import settings
from services.errors import InvalidRequestError, UpstreamError
from services.proxy_service import validate_proxy_url
from utils.logger import get_logger
from utils.sanitizer import sanitize_html, sanitize_plain_text, sanitize_title

logger = get_logger("snapshot_service")

BLOCKED_RESOURCE_TYPES = {"image", "stylesheet", "font", "media"}


async def render_page(url: str, timeout_seconds: Optional[float] = None) -> str:
    timeout_ms = int((timeout_seconds or settings.SNAPSHOT_TIMEOUT_SECONDS) * 1000)

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page()

            async def _route(route):
                if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
                    await route.abort()
                else:
                    await route.continue_()

            await page.route("**/*", _route)
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return await page.content()
        finally:
            await browser.close()


def extract_readable(document: str, url: str) -> Optional[Dict[str, Any]]:
    content = trafilatura.extract(
        document,
        url=url,
        output_format="html",
        include_comments=False,
        include_tables=True,
        include_images=True,
        favor_recall=True,
    )
    if not content:
        return None

    metadata = trafilatura.extract_metadata(document, default_url=url)
    return {
        "title": getattr(metadata, "title", None),
        "byline": getattr(metadata, "author", None),
        "siteName": getattr(metadata, "sitename", None),
        "content": content,
    }


async def capture_snapshot(url: Optional[str]) -> Dict[str, Any]:
    if not url:
        raise InvalidRequestError("URL parameter is required")
    target = validate_proxy_url(url)

    try:
        document = await render_page(target)
    except Exception as e:
        logger.error(f"Snapshot render failed: {e}", exc_info=True)
        raise UpstreamError(f"Failed to capture the website content: {e}")

    loop = asyncio.get_running_loop()
    article = await loop.run_in_executor(None, extract_readable, document, target)
    if not article:
        raise UpstreamError("Failed to parse article content")

    return {
        "title": sanitize_title(article.get("title"), fallback=target),
        "content": sanitize_html(article.get("content")),
        "byline": sanitize_plain_text(article.get("byline")) or None,
        "siteName": sanitize_plain_text(article.get("siteName")) or None,
        "url": target,
    }
