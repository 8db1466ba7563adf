"""
Server-side fetch for iframe embedding.

The upstream response is reduced to its body and content type; headers that
block framing (X-Frame-Options, CSP frame-ancestors) are never forwarded.
HTML gets a ``<base>`` tag so relative asset URLs resolve against the
original site.
"""

from __future__ import annotations

import codecs
import html
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from config import settings
from services.errors import InvalidRequestError, UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; WebAnnotator/1.0)"
ACCEPT = "text/html,application/xhtml+xml,*/*"
CACHE_CONTROL = "public, max-age=300"

_HEAD_WITH_ATTRS = re.compile(r"<head\s[^>]*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html[^>]*>", re.IGNORECASE)


@dataclass
class ProxiedResponse:
    body: bytes
    content_type: str

    @property
    def headers(self) -> dict:
        return {"content-type": self.content_type, "cache-control": CACHE_CONTROL}


def validate_proxy_url(url: str | None) -> str:
    if not url:
        raise InvalidRequestError("Missing url parameter")
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        raise InvalidRequestError("Invalid URL")
    if not parsed.scheme or not parsed.netloc:
        raise InvalidRequestError("Invalid URL")
    if parsed.scheme.lower() not in {"http", "https"}:
        raise InvalidRequestError("Only HTTP(S) URLs allowed")
    return url.strip()


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme.lower()}://{parsed.netloc}"


def inject_base_tag(document: str, origin: str) -> str:
    base_tag = f'<base href="{html.escape(origin, quote=True)}/">'
    if "<head>" in document:
        return document.replace("<head>", f"<head>{base_tag}", 1)
    match = _HEAD_WITH_ATTRS.search(document)
    if match:
        return document[:match.end()] + base_tag + document[match.end():]
    match = _HTML_OPEN.search(document)
    if match:
        return document[:match.end()] + f"<head>{base_tag}</head>" + document[match.end():]
    return base_tag + document


def _resolve_encoding(charset: str | None) -> str:
    encoding = charset or "utf-8"
    try:
        codecs.lookup(encoding)
    except LookupError:
        return "utf-8"
    return encoding


def _build_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
    )


async def fetch_for_embedding(url: str | None) -> ProxiedResponse:
    target = validate_proxy_url(url)
    max_bytes = settings.PROXY_MAX_BYTES

    try:
        async with _build_client(settings.PROXY_TIMEOUT_SECONDS) as client:
            async with client.stream("GET", target) as upstream:
                if not upstream.is_success:
                    raise UpstreamError(f"Upstream returned {upstream.status_code}")

                declared = upstream.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > max_bytes:
                    raise UpstreamError("Response too large")

                chunks = []
                received = 0
                async for chunk in upstream.aiter_bytes():
                    received += len(chunk)
                    if received > max_bytes:
                        raise UpstreamError("Response too large")
                    chunks.append(chunk)

                content_type = upstream.headers.get("content-type") or "application/octet-stream"
                charset = upstream.charset_encoding
    except UpstreamError:
        raise
    except httpx.HTTPError as e:
        logger.warning("Proxy fetch failed", extra={"url": target, "error": str(e)})
        raise UpstreamError(str(e) or "Proxy fetch failed")

    body = b"".join(chunks)
    if "text/html" in content_type.lower():
        encoding = _resolve_encoding(charset)
        document = inject_base_tag(body.decode(encoding, errors="replace"), origin_of(target))
        body = document.encode(encoding, errors="replace")
    return ProxiedResponse(body=body, content_type=content_type)
