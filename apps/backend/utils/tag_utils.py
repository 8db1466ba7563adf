import re
from typing import Any, Iterable, List

from utils.sanitizer import clamp, sanitize_plain_text

MAX_TAGS = 50
MAX_TAG_LENGTH = 64


def _split_tag_string(value: str) -> List[str]:
    return [part for part in re.split(r"[,;\n]", value)]


def tag_key(tag: str) -> str:
    return tag.casefold()


def dedupe_tags(tags: Iterable[str]) -> List[str]:
    """
    Case-insensitive de-duplication that keeps the first spelling seen.
    """
    seen = set()
    out: List[str] = []
    for tag in tags:
        key = tag_key(tag)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(tag)
    return out


def clean_tags(value: Any, max_tags: int = MAX_TAGS, max_length: int = MAX_TAG_LENGTH) -> List[str]:
    """
    Tags from a list (or a comma separated string) as plain text, clamped and
    de-duplicated. Non-string elements are dropped.
    """
    if isinstance(value, str):
        candidates = _split_tag_string(value)
    elif isinstance(value, (list, tuple)):
        candidates = [item for item in value if isinstance(item, str)]
    else:
        return []

    cleaned = []
    for raw in candidates:
        tag = clamp(sanitize_plain_text(raw), max_length).strip()
        if tag:
            cleaned.append(tag)
    return dedupe_tags(cleaned)[:max_tags]


def sort_tags(tags: Iterable[str]) -> List[str]:
    return sorted(tags, key=lambda t: (tag_key(t), t))
