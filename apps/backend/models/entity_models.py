"""
Lenient reconciliation normalizers for article data.

Every function here is total: it accepts arbitrary decoded JSON and returns a
bounded, sanitized value. Malformed elements are dropped instead of failing
the whole payload, so a partially corrupted client state still saves.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Union

from services.errors import InvalidRequestError
from utils.sanitizer import clamp, sanitize_html, sanitize_plain_text, sanitize_title
from utils.tag_utils import MAX_TAG_LENGTH, MAX_TAGS, clean_tags
from utils.text_utils import now_ms

ARTICLE_STATUSES = ("read", "in_progress")
CHAT_ROLES = ("user", "assistant")

MAX_URL_LENGTH = 2048
MAX_BYLINE_LENGTH = 500
MAX_NOTE_TEXT_LENGTH = 10000
MAX_ANCHOR_TAG_LENGTH = 40
MAX_ANCHOR_PREVIEW_LENGTH = 240
MAX_CHAT_MESSAGES = 80
MAX_CHAT_MESSAGE_LENGTH = 4000
MAX_KEY_POINTS = 5
MAX_KEY_POINT_LENGTH = 500
MAX_SUMMARY_LENGTH = 5000

Number = Union[int, float]


def as_finite_number(value: Any, allow_strings: bool = False) -> Optional[Number]:
    """Finite int/float, or None. Booleans are never numbers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if allow_strings and isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            number = float(raw)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _as_note_id(value: Any) -> Number:
    number = as_finite_number(value, allow_strings=True)
    if number is None:
        return now_ms()
    return number


def normalize_note_anchor(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    element_index = as_finite_number(value.get("elementIndex"))
    if element_index is None or element_index < 0:
        return None

    anchor: Dict[str, Any] = {
        "elementIndex": int(element_index),
        "tagName": clamp(sanitize_plain_text(value.get("tagName")), MAX_ANCHOR_TAG_LENGTH).lower(),
    }
    preview = clamp(sanitize_plain_text(value.get("textPreview")), MAX_ANCHOR_PREVIEW_LENGTH)
    if preview:
        anchor["textPreview"] = preview
    return anchor


def normalize_notes(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, list):
        return []

    notes: List[Dict[str, Any]] = []
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        raw_id = raw.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int, float)):
            continue

        note: Dict[str, Any] = {
            "id": _as_note_id(raw_id),
            "text": clamp(sanitize_plain_text(raw.get("text")), MAX_NOTE_TEXT_LENGTH),
            "top": as_finite_number(raw.get("top"), allow_strings=True) or 0,
        }
        left = as_finite_number(raw.get("left"))
        if left is not None:
            note["left"] = left
        anchor = normalize_note_anchor(raw.get("anchor"))
        if anchor is not None:
            note["anchor"] = anchor
        notes.append(note)
    return notes


def normalize_status(value: Any) -> Optional[str]:
    return value if value in ARTICLE_STATUSES else None


def normalize_tags(value: Any) -> List[str]:
    return clean_tags(value, max_tags=MAX_TAGS, max_length=MAX_TAG_LENGTH)


def normalize_chat_messages(
    payload: Any,
    max_messages: int = MAX_CHAT_MESSAGES,
    max_length: int = MAX_CHAT_MESSAGE_LENGTH,
    sanitize: bool = True,
) -> List[Dict[str, str]]:
    """
    Keep ``{role, content}`` pairs with a known role and non-empty content.

    With ``sanitize=False`` content is only stripped of NUL characters, which
    is what prompts sent to a model need. Only the most recent
    ``max_messages`` survive.
    """
    if not isinstance(payload, list):
        return []

    messages: List[Dict[str, str]] = []
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        role = raw.get("role")
        if role not in CHAT_ROLES:
            continue
        content = raw.get("content")
        if sanitize:
            text = clamp(sanitize_plain_text(content), max_length)
        elif isinstance(content, str):
            text = clamp(content.replace("\x00", "").strip(), max_length)
        else:
            text = ""
        if not text:
            continue
        messages.append({"role": role, "content": text})

    if max_messages <= 0:
        return []
    return messages[-max_messages:]


def normalize_key_points(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    points = []
    for item in value:
        if not isinstance(item, str):
            continue
        text = clamp(sanitize_plain_text(item), MAX_KEY_POINT_LENGTH)
        if text:
            points.append(text)
    return points[:MAX_KEY_POINTS]


def normalize_summary(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return clamp(sanitize_plain_text(value), MAX_SUMMARY_LENGTH)


def sanitize_article_payload(payload: Dict[str, Any]) -> Dict[str, str]:
    url = clamp(sanitize_plain_text(payload.get("url")), MAX_URL_LENGTH)
    if not url:
        raise InvalidRequestError("URL is required")

    return {
        "url": url,
        "title": sanitize_title(payload.get("title"), fallback=url),
        "byline": clamp(sanitize_plain_text(payload.get("byline") or ""), MAX_BYLINE_LENGTH),
        "content": sanitize_html(payload.get("content")),
    }
