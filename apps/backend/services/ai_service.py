"""
Reading-assistant operations: chat streaming, model listing and summaries.

Request bodies are normalized here (provider, model, key, prompts) so the
routes only translate results and errors into HTTP responses.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Tuple

from models.entity_models import normalize_chat_messages
from services import llm_client
from services.ai_config import (
    FALLBACK_MODELS,
    DEFAULT_PROVIDER,
    LOCAL_PROVIDERS_DISABLED_MESSAGE,
    PROVIDER_GATEWAY,
    default_model_for,
    is_local_provider,
    local_providers_enabled,
    normalize_provider,
    requires_api_key,
    to_model_options,
)
from services.errors import InvalidRequestError, UpstreamError
from services.monitoring import AI_SERVICE_LATENCY, LLM_CALLS_TOTAL

logger = logging.getLogger(__name__)

MAX_API_KEY_LENGTH = 512
MAX_MODEL_LENGTH = 180
MAX_CHAT_MESSAGES = 24
MAX_CHAT_MESSAGE_LENGTH = 10_000
MAX_SYSTEM_PROMPT_LENGTH = 8_000
MAX_ARTICLE_CONTENT_LENGTH = 100_000
MAX_ARTICLE_TITLE_LENGTH = 500
MAX_SUMMARY_KEY_POINTS = 5

DEFAULT_SYSTEM_PROMPT = (
    "You are an AI reading assistant helping users understand saved web articles and notes."
)

TEXT_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}

SUMMARY_LENGTH_INSTRUCTIONS = {
    "short": "Provide a brief 2-3 sentence summary.",
    "medium": "Provide a comprehensive 4-6 sentence summary.",
    "long": "Provide a detailed 8-10 sentence summary covering all major points.",
}

SUMMARY_SYSTEM_PROMPT = """You are an expert at analyzing and summarizing articles. Your task is to:
1. Create a clear, concise summary that captures the main ideas and key insights
2. Extract 3-5 key points as bullet points that represent the most important takeaways
3. Maintain objectivity and accuracy

Format your response as JSON with this structure:
{
  "summary": "The summary text here...",
  "keyPoints": ["First key point", "Second key point", "Third key point"]
}"""

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")
_BARE_JSON = re.compile(r"(\{[\s\S]*\})")


def normalize_prompt_text(value: Any, max_length: int) -> str:
    if value is None:
        return ""
    return str(value).replace("\x00", "").strip()[:max_length]


def normalize_api_key(value: Any) -> str:
    return value.strip()[:MAX_API_KEY_LENGTH] if isinstance(value, str) else ""


@dataclass
class ChatRequest:
    provider: str
    model: str
    api_key: str
    system_prompt: str
    messages: List[Dict[str, str]] = field(default_factory=list)


def _check_provider_access(provider: str, api_key: str) -> None:
    if is_local_provider(provider) and not local_providers_enabled():
        raise InvalidRequestError(LOCAL_PROVIDERS_DISABLED_MESSAGE)
    if requires_api_key(provider) and not api_key:
        raise InvalidRequestError(f"API key is required for {provider}")


def prepare_chat(body: Any) -> ChatRequest:
    body = body if isinstance(body, dict) else {}
    provider = normalize_provider(body.get("provider"))
    chat = ChatRequest(
        provider=provider,
        model=normalize_prompt_text(body.get("model"), MAX_MODEL_LENGTH) or default_model_for(provider),
        api_key=normalize_api_key(body.get("apiKey")),
        system_prompt=(
            normalize_prompt_text(body.get("systemPrompt"), MAX_SYSTEM_PROMPT_LENGTH) or DEFAULT_SYSTEM_PROMPT
        ),
        messages=normalize_chat_messages(
            body.get("messages"),
            max_messages=MAX_CHAT_MESSAGES,
            max_length=MAX_CHAT_MESSAGE_LENGTH,
            sanitize=False,
        ),
    )
    if not chat.messages:
        raise InvalidRequestError("At least one message is required")
    _check_provider_access(chat.provider, chat.api_key)
    return chat


async def open_chat_stream(chat: ChatRequest) -> AsyncIterator[str]:
    """
    Start the provider stream and wait for its first chunk.

    Setup failures (bad key, unknown model, unreachable bridge) therefore
    raise here, before any response bytes are sent. Failures after the first
    chunk end the stream early and are only logged.
    """
    provider = llm_client.get_provider(chat.provider)
    iterator = provider.stream_chat(chat.model, chat.system_prompt, chat.messages, chat.api_key).__aiter__()

    started = time.time()
    try:
        first = await iterator.__anext__()
    except StopAsyncIteration:
        first = ""
    except Exception:
        LLM_CALLS_TOTAL.labels(provider=chat.provider, operation="chat", status="error").inc()
        raise
    AI_SERVICE_LATENCY.labels(provider=chat.provider, operation="chat").observe(time.time() - started)
    LLM_CALLS_TOTAL.labels(provider=chat.provider, operation="chat", status="success").inc()

    async def _relay() -> AsyncIterator[str]:
        if first:
            yield first
        try:
            async for chunk in iterator:
                yield chunk
        except Exception as e:
            logger.error(f"AI stream interrupted: {e}", extra={"provider": chat.provider}, exc_info=True)

    return _relay()


def _fallback_models(provider: str, error: str | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "models": to_model_options(provider, FALLBACK_MODELS.get(provider, []), "fallback"),
        "source": "fallback",
    }
    if error:
        payload["error"] = error
    return payload


async def list_models(body: Any) -> Tuple[Dict[str, Any], int]:
    """Model options for a provider, with the HTTP status to answer with."""
    body = body if isinstance(body, dict) else {}
    provider = normalize_provider(body.get("provider"))
    api_key = normalize_api_key(body.get("apiKey"))

    if is_local_provider(provider):
        if not local_providers_enabled():
            return _fallback_models(DEFAULT_PROVIDER, LOCAL_PROVIDERS_DISABLED_MESSAGE), 400
        return _fallback_models(provider), 200

    if provider != PROVIDER_GATEWAY:
        return _fallback_models(
            provider, "Live model discovery is currently available via Vercel AI Gateway only."
        ), 200

    try:
        model_ids = await llm_client.list_live_models(api_key)
    except Exception as e:
        logger.warning(f"AI model discovery failed: {e}")
        LLM_CALLS_TOTAL.labels(provider=provider, operation="models", status="error").inc()
        return _fallback_models(provider, str(e) or "Failed to fetch models"), 200

    LLM_CALLS_TOTAL.labels(provider=provider, operation="models", status="success").inc()
    if not model_ids:
        return _fallback_models(provider, "No models returned from provider catalog."), 200
    return {"models": to_model_options(provider, model_ids, "live"), "source": "live"}, 200


def parse_summary_reply(text: str) -> Dict[str, Any]:
    """Read ``{summary, keyPoints}`` from a model reply; raw text becomes the summary."""
    raw = (text or "").strip()
    match = _FENCED_JSON.search(raw) or _BARE_JSON.search(raw)
    candidate = match.group(1) if match else raw
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        parsed = None
    if not isinstance(parsed, dict):
        parsed = {"summary": raw, "keyPoints": []}

    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise UpstreamError("Invalid summary format from AI")
    key_points = parsed.get("keyPoints")
    if not isinstance(key_points, list):
        key_points = []
    key_points = [p.strip() for p in key_points if isinstance(p, str) and p.strip()]
    return {"summary": summary.strip(), "keyPoints": key_points[:MAX_SUMMARY_KEY_POINTS]}


async def summarize_article(body: Any) -> Dict[str, Any]:
    body = body if isinstance(body, dict) else {}
    provider = normalize_provider(body.get("provider"))
    model = normalize_prompt_text(body.get("model"), MAX_MODEL_LENGTH) or default_model_for(provider)
    api_key = normalize_api_key(body.get("apiKey"))
    content = normalize_prompt_text(body.get("articleContent"), MAX_ARTICLE_CONTENT_LENGTH)
    title = normalize_prompt_text(body.get("articleTitle"), MAX_ARTICLE_TITLE_LENGTH)
    length = body.get("summaryLength") if body.get("summaryLength") in SUMMARY_LENGTH_INSTRUCTIONS else "medium"

    if not content:
        raise InvalidRequestError("Article content is required")
    _check_provider_access(provider, api_key)
    if is_local_provider(provider):
        raise InvalidRequestError(
            "Local providers are not supported for summary generation. Please use OpenAI, Anthropic, or Google."
        )

    titled = f' titled "{title}"' if title else ""
    prompt = (
        f"Please analyze and summarize the following article{titled}:\n\n"
        f"{content}\n\n"
        f"{SUMMARY_LENGTH_INSTRUCTIONS[length]}\n\n"
        "Remember to respond with valid JSON in the exact format specified."
    )

    started = time.time()
    try:
        reply = await llm_client.generate_text(provider, model, SUMMARY_SYSTEM_PROMPT, prompt, api_key)
    except Exception:
        LLM_CALLS_TOTAL.labels(provider=provider, operation="summarize", status="error").inc()
        raise
    AI_SERVICE_LATENCY.labels(provider=provider, operation="summarize").observe(time.time() - started)
    LLM_CALLS_TOTAL.labels(provider=provider, operation="summarize", status="success").inc()
    return parse_summary_reply(reply)
