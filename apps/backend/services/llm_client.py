# -*- coding: utf-8 -*-
"""
Streaming LLM client for the reading assistant.

Responsibilities:
- One provider class per wire protocol (OpenAI-compatible SSE, Anthropic
  Messages SSE, Google GenAI SDK, local CLI bridge SSE)
- Yield plain text chunks; provider errors surface as ``UpstreamError``
- Live model discovery for the AI Gateway
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import httpx
from google import genai
from google.genai import types

from config import settings
from services.ai_config import (
    LOCAL_TOOL_BY_PROVIDER,
    PROVIDER_ANTHROPIC,
    PROVIDER_GATEWAY,
    PROVIDER_GOOGLE,
    PROVIDER_OPENAI,
    unique_model_ids,
)
from services.errors import UpstreamError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 4096
_MAX_ERROR_BODY_CHARS = 400


class ChatProvider(Protocol):
    name: str

    def stream_chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[Dict[str, str]],
        api_key: str,
    ) -> AsyncIterator[str]:
        ...


def _client(timeout_s: Optional[float] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_s or settings.AI_REQUEST_TIMEOUT_SECONDS))


async def _raise_for_provider_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raw = ""
    try:
        raw = (await response.aread()).decode("utf-8", errors="replace")
    except httpx.HTTPError:
        pass
    if not raw:
        raise UpstreamError(f"Provider returned {response.status_code}")
    raise UpstreamError(f"Provider returned {response.status_code}: {raw[:_MAX_ERROR_BODY_CHARS]}")


async def iter_sse_data(response: httpx.Response) -> AsyncIterator[str]:
    """``data:`` payloads of a server-sent event stream, one per event line."""
    async for line in response.aiter_lines():
        if line.startswith("data:"):
            yield line[5:].strip()


class OpenAICompatibleProvider:
    """Chat Completions streaming, used for OpenAI and the AI Gateway."""

    def __init__(self, name: str, base_url: str, default_api_key: str = ""):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.default_api_key = default_api_key

    def _headers(self, api_key: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        key = api_key or self.default_api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
        return headers

    async def stream_chat(self, model, system_prompt, messages, api_key):
        payload = {
            "model": model,
            "stream": True,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
        }
        async with _client() as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                headers=self._headers(api_key),
                json=payload,
            ) as response:
                await _raise_for_provider_status(response)
                async for data in iter_sse_data(response):
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        continue
                    if event.get("error"):
                        error = event["error"]
                        raise UpstreamError(error.get("message") if isinstance(error, dict) else str(error))
                    for choice in event.get("choices") or []:
                        text = (choice.get("delta") or {}).get("content")
                        if text:
                            yield text

    async def list_models(self, api_key: str) -> List[str]:
        async with _client() as client:
            response = await client.get(f"{self.base_url}/models", headers=self._headers(api_key))
            await _raise_for_provider_status(response)
            body = response.json()
        entries = body.get("data") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            entries = body.get("models", []) if isinstance(body, dict) else []
        return unique_model_ids(
            entry.get("id")
            for entry in entries
            if isinstance(entry, dict) and entry.get("type") in (None, "language")
        )


class AnthropicProvider:
    name = PROVIDER_ANTHROPIC

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    async def stream_chat(self, model, system_prompt, messages, api_key):
        payload = {
            "model": model,
            "system": system_prompt,
            "messages": messages,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "stream": True,
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        async with _client() as client:
            async with client.stream("POST", f"{self.base_url}/messages", headers=headers, json=payload) as response:
                await _raise_for_provider_status(response)
                async for data in iter_sse_data(response):
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        continue
                    event_type = event.get("type")
                    if event_type == "error":
                        raise UpstreamError((event.get("error") or {}).get("message") or "Anthropic stream error")
                    if event_type == "content_block_delta":
                        text = (event.get("delta") or {}).get("text")
                        if text:
                            yield text
                    elif event_type == "message_stop":
                        break


class GoogleProvider:
    name = PROVIDER_GOOGLE

    @staticmethod
    def _contents(messages: List[Dict[str, str]]) -> List[types.Content]:
        return [
            types.Content(
                role="model" if message["role"] == "assistant" else "user",
                parts=[types.Part(text=message["content"])],
            )
            for message in messages
        ]

    async def stream_chat(self, model, system_prompt, messages, api_key):
        client = genai.Client(api_key=api_key)
        config = types.GenerateContentConfig(system_instruction=system_prompt)
        stream = await client.aio.models.generate_content_stream(
            model=model,
            contents=self._contents(messages),
            config=config,
        )
        async for chunk in stream:
            text = getattr(chunk, "text", None)
            if text:
                yield text


class LocalBridgeProvider:
    """Local CLI tools (claude, codex, gemini) behind the CLI bridge's SSE endpoint."""

    def __init__(self, name: str, bridge_url: str):
        self.name = name
        self.bridge_url = bridge_url.rstrip("/")

    async def stream_chat(self, model, system_prompt, messages, api_key):
        payload: Dict[str, Any] = {
            "tool": LOCAL_TOOL_BY_PROVIDER[self.name],
            "messages": messages,
            "systemPrompt": system_prompt,
        }
        # "<tool>-local" placeholders mean "the CLI's own default model".
        if model and not model.endswith("-local"):
            payload["model"] = model

        async with _client() as client:
            async with client.stream("POST", f"{self.bridge_url}/api/chat", json=payload) as response:
                await _raise_for_provider_status(response)
                async for data in iter_sse_data(response):
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        continue
                    if event.get("error"):
                        raise UpstreamError(str(event["error"]))
                    if event.get("text"):
                        yield event["text"]


def get_provider(provider: str) -> ChatProvider:
    if provider == PROVIDER_OPENAI:
        return OpenAICompatibleProvider(PROVIDER_OPENAI, settings.OPENAI_BASE_URL)
    if provider == PROVIDER_ANTHROPIC:
        return AnthropicProvider(settings.ANTHROPIC_BASE_URL)
    if provider == PROVIDER_GOOGLE:
        return GoogleProvider()
    if provider in LOCAL_TOOL_BY_PROVIDER:
        return LocalBridgeProvider(provider, settings.CLI_BRIDGE_URL)
    return gateway_provider()


def gateway_provider() -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(PROVIDER_GATEWAY, settings.AI_GATEWAY_BASE_URL, settings.AI_GATEWAY_API_KEY)


async def generate_text(provider: str, model: str, system_prompt: str, prompt: str, api_key: str) -> str:
    chunks = []
    async for chunk in get_provider(provider).stream_chat(
        model, system_prompt, [{"role": "user", "content": prompt}], api_key
    ):
        chunks.append(chunk)
    return "".join(chunks)


async def list_live_models(api_key: str) -> List[str]:
    return await gateway_provider().list_models(api_key)
