"""AI provider catalogue and model-id helpers."""

from typing import Any, Dict, Iterable, List

from config import settings

PROVIDER_GATEWAY = "gateway"
PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_GOOGLE = "google"
PROVIDER_CLAUDE_CODE = "claude-code"
PROVIDER_CODEX = "codex"
PROVIDER_GEMINI_CLI = "gemini-cli"

ALL_PROVIDERS = (
    PROVIDER_GATEWAY,
    PROVIDER_OPENAI,
    PROVIDER_ANTHROPIC,
    PROVIDER_GOOGLE,
    PROVIDER_CLAUDE_CODE,
    PROVIDER_CODEX,
    PROVIDER_GEMINI_CLI,
)
DEFAULT_PROVIDER = PROVIDER_GATEWAY

# Local providers run through the CLI bridge; the value is the bridge's tool name.
LOCAL_TOOL_BY_PROVIDER = {
    PROVIDER_CLAUDE_CODE: "claude",
    PROVIDER_CODEX: "codex",
    PROVIDER_GEMINI_CLI: "gemini",
}

FALLBACK_MODELS: Dict[str, List[str]] = {
    PROVIDER_GATEWAY: ["openai/gpt-4.1-mini", "anthropic/claude-sonnet-4-5", "google/gemini-2.5-flash"],
    PROVIDER_OPENAI: ["gpt-4.1-mini", "gpt-4.1", "gpt-4o-mini", "o4-mini"],
    PROVIDER_ANTHROPIC: ["claude-sonnet-4-5-20250929", "claude-haiku-4-5-20251001", "claude-opus-4-6"],
    PROVIDER_GOOGLE: ["gemini-2.5-flash", "gemini-2.5-pro", "gemini-3-pro-preview"],
    PROVIDER_CLAUDE_CODE: ["claude-code-local"],
    PROVIDER_CODEX: ["codex-local"],
    PROVIDER_GEMINI_CLI: ["gemini-cli-local"],
}

UNSTABLE_MODEL_TOKENS = ("preview", "beta", "alpha", "experimental", "exp", "nightly", "dev")

LOCAL_PROVIDERS_DISABLED_MESSAGE = "Local CLI providers are available only in development environments."


def normalize_provider(value: Any) -> str:
    return value if value in ALL_PROVIDERS else DEFAULT_PROVIDER


def is_local_provider(provider: str) -> bool:
    return provider in LOCAL_TOOL_BY_PROVIDER


def local_providers_enabled() -> bool:
    return settings.is_development


def requires_api_key(provider: str) -> bool:
    return not is_local_provider(provider) and provider != PROVIDER_GATEWAY


def default_model_for(provider: str) -> str:
    models = FALLBACK_MODELS.get(provider) or FALLBACK_MODELS[DEFAULT_PROVIDER]
    return models[0]


def is_stable_model_id(model_id: str) -> bool:
    lower = model_id.lower()
    return not any(token in lower for token in UNSTABLE_MODEL_TOKENS)


def unique_model_ids(ids: Iterable[Any]) -> List[str]:
    seen = set()
    out = []
    for raw in ids:
        if not isinstance(raw, str):
            continue
        model_id = raw.strip()
        if model_id and model_id not in seen:
            seen.add(model_id)
            out.append(model_id)
    return out


def prioritize_stable_model_ids(ids: Iterable[Any]) -> List[str]:
    return sorted(unique_model_ids(ids), key=lambda m: (not is_stable_model_id(m), m))


def to_model_options(provider: str, ids: Iterable[Any], source: str) -> List[Dict[str, Any]]:
    return [
        {
            "id": model_id,
            "name": model_id,
            "provider": provider,
            "source": source,
            "isStable": is_stable_model_id(model_id),
        }
        for model_id in prioritize_stable_model_ids(ids)
    ]
