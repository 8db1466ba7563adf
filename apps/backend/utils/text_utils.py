import math
import re
import time
import unicodedata

from bs4 import BeautifulSoup

WORDS_PER_MINUTE = 200

_WHITESPACE = re.compile(r"\s+")


def now_ms() -> int:
    return int(time.time() * 1000)


def collapse_whitespace(text: str) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def html_to_text(html: str) -> str:
    """Visible text of an HTML fragment with block boundaries kept as spaces."""
    if not html:
        return ""
    try:
        soup = BeautifulSoup(html, "html.parser")
        return collapse_whitespace(soup.get_text(" "))
    except Exception:
        return ""


def count_words(text: str) -> int:
    if not text:
        return 0
    return len(text.split())


def reading_time_minutes(html: str) -> int:
    """
    Estimated reading time of an HTML body at 200 words per minute.

    Rounded up; 0 only when the body has no words at all.
    """
    words = count_words(html_to_text(html))
    if words == 0:
        return 0
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def normalize_text(text: str) -> str:
    """
    Accent- and case-insensitive form used for matching.

    1. NFKD decomposition, combining marks dropped
    2. casefold
    3. Collapse whitespace
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return collapse_whitespace(stripped.casefold())


def excerpt_around(text: str, needle: str, width: int = 160) -> str:
    """
    Window of ``text`` at most ``width`` characters long, centred on the first
    case-insensitive occurrence of ``needle``. Falls back to the start of the text.
    """
    if not text:
        return ""
    if len(text) <= width:
        return text
    position = text.lower().find(needle.lower()) if needle else -1
    if position < 0:
        return text[:width]
    start = max(0, position - (width - len(needle)) // 2)
    start = min(start, len(text) - width)
    return text[start:start + width]
