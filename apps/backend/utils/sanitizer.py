# -*- coding: utf-8 -*-
"""
HTML and plain-text sanitizers
==============================
Everything user supplied passes through one of these two functions before it
is stored: titles, names, labels, note text and chat messages go through
``sanitize_plain_text``; saved article bodies go through ``sanitize_html``.

Both are total: they accept any value and never raise. Malformed input that
the parser cannot handle degrades to an empty string.
"""

import re
import warnings
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag

# Titles and urls are often bare URLs; bs4 warns about each one.
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

# Removed together with everything inside them.
_DROP_WITH_CONTENT = {
    "script", "style", "template", "noscript", "object", "embed", "applet",
    "frame", "frameset", "form", "input", "button", "textarea", "select",
    "option", "svg", "math", "link", "meta", "base", "head", "title", "xmp",
    "noembed", "noframes", "plaintext", "iframe",
}

_BASELINE_TAGS = {
    "a", "abbr", "address", "article", "aside", "b", "bdi", "bdo", "blockquote",
    "br", "caption", "cite", "code", "col", "colgroup", "data", "dd", "del",
    "details", "dfn", "div", "dl", "dt", "em", "figcaption", "figure", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "i", "ins",
    "kbd", "li", "main", "mark", "nav", "ol", "p", "pre", "q", "rp", "rt",
    "ruby", "s", "samp", "section", "small", "span", "strong", "sub", "summary",
    "sup", "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "u",
    "ul", "var", "wbr",
}
_MEDIA_TAGS = {"img", "picture", "source", "video", "iframe"}
ALLOWED_TAGS = frozenset(_BASELINE_TAGS | _MEDIA_TAGS)

_GLOBAL_ATTRS = {"title", "lang", "dir", "class"}
_TAG_ATTRS = {
    "a": {"href", "name"},
    "img": {"src", "srcset", "sizes", "alt", "width", "height", "loading"},
    "source": {"src", "srcset", "sizes", "type", "media"},
    "video": {"src", "poster", "controls", "width", "height", "preload", "muted", "loop", "playsinline"},
    "iframe": {"src", "width", "height", "allow", "allowfullscreen", "frameborder", "loading"},
    "td": {"colspan", "rowspan", "headers"},
    "th": {"colspan", "rowspan", "headers", "scope"},
    "ol": {"start", "type", "reversed"},
    "li": {"value"},
    "col": {"span"},
    "colgroup": {"span"},
    "time": {"datetime"},
    "data": {"value"},
    "blockquote": {"cite"},
    "q": {"cite"},
    "del": {"cite", "datetime"},
    "ins": {"cite", "datetime"},
}
_URL_ATTRS = {"href", "src", "poster", "cite"}
_DATA_IMAGE_TAGS = {"img", "source"}

ALLOWED_IFRAME_HOSTS = frozenset({
    "www.youtube.com",
    "youtube.com",
    "www.youtube-nocookie.com",
    "youtube-nocookie.com",
    "player.vimeo.com",
    "www.loom.com",
    "open.spotify.com",
    "codepen.io",
})

_NON_TEXT_NODES = (Comment, Doctype, Declaration, ProcessingInstruction, CData)
_CONTROL_CHARS = re.compile(r"[\x00-\x20\x7f]+")
_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

# Markup-stripping can expose new markup (``&lt;b&gt;`` decodes to ``<b>``), so
# the plain-text pass repeats until the text stops changing.
_MAX_PLAIN_TEXT_PASSES = 8


def clamp(text: str, max_length: int) -> str:
    # A cut can land on whitespace; trimming keeps clamp(sanitize(x)) idempotent.
    return text[:max_length].rstrip()


def _url_scheme(url: str) -> str | None:
    match = _SCHEME.match(_CONTROL_CHARS.sub("", url))
    return match.group(1).lower() if match else None


def is_safe_url(url: Any, allow_data_image: bool = False) -> bool:
    if not isinstance(url, str):
        return False
    scheme = _url_scheme(url)
    if scheme is None:
        # Relative and protocol-relative URLs resolve against http(s) pages.
        return True
    if scheme in {"http", "https"}:
        return True
    if scheme == "data" and allow_data_image:
        return _CONTROL_CHARS.sub("", url).lower().startswith("data:image/")
    return False


def _is_safe_srcset(value: str, allow_data_image: bool) -> bool:
    for candidate in value.split(","):
        parts = candidate.strip().split()
        if parts and not is_safe_url(parts[0], allow_data_image=allow_data_image):
            return False
    return True


def is_allowed_iframe_src(src: Any) -> bool:
    if not isinstance(src, str) or not src.strip():
        return False
    parsed = urlparse(_CONTROL_CHARS.sub("", src))
    if parsed.scheme.lower() not in {"http", "https"}:
        return False
    return (parsed.hostname or "").lower() in ALLOWED_IFRAME_HOSTS


def _clean_attributes(tag: Tag) -> None:
    name = tag.name.lower()
    allowed = _GLOBAL_ATTRS | _TAG_ATTRS.get(name, set())
    allow_data_image = name in _DATA_IMAGE_TAGS
    for attr in list(tag.attrs):
        key = attr.lower()
        value = tag.attrs[attr]
        if isinstance(value, list):
            value = " ".join(value)
        if key not in allowed:
            del tag.attrs[attr]
        elif key in _URL_ATTRS and not is_safe_url(value, allow_data_image=allow_data_image and key == "src"):
            del tag.attrs[attr]
        elif key == "srcset" and not _is_safe_srcset(str(value), allow_data_image):
            del tag.attrs[attr]


def _clean_children(parent: Tag) -> None:
    for child in list(parent.children):
        if isinstance(child, _NON_TEXT_NODES):
            child.extract()
            continue
        if not isinstance(child, Tag):
            continue

        name = (child.name or "").lower()
        if name == "iframe" and is_allowed_iframe_src(child.get("src")):
            # Fallback content is never rendered by browsers that support iframes.
            child.clear()
            _clean_attributes(child)
            continue
        if name in _DROP_WITH_CONTENT:
            child.decompose()
            continue

        _clean_children(child)
        if name not in ALLOWED_TAGS:
            child.unwrap()
            continue
        _clean_attributes(child)


def sanitize_html(value: Any) -> str:
    if value is None:
        return ""
    try:
        soup = BeautifulSoup(str(value), "html.parser")
        _clean_children(soup)
        return soup.decode(formatter="minimal")
    except Exception:
        return ""


def _strip_markup(text: str) -> str:
    soup = BeautifulSoup(text, "html.parser")
    for element in soup.find_all(string=lambda s: isinstance(s, _NON_TEXT_NODES)):
        element.extract()
    for tag in soup.find_all(list(_DROP_WITH_CONTENT)):
        if tag.parent is not None:
            tag.extract()
    return soup.get_text()


def sanitize_plain_text(value: Any) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    try:
        text = text.replace("\x00", "").strip()
        for _ in range(_MAX_PLAIN_TEXT_PASSES):
            cleaned = _strip_markup(text).replace("\x00", "").strip()
            if cleaned == text:
                break
            text = cleaned
        return text
    except Exception:
        return ""


def sanitize_title(value: Any, fallback: Any = "", max_length: int = 500) -> str:
    title = clamp(sanitize_plain_text(value), max_length)
    if title:
        return title
    return clamp(sanitize_plain_text(fallback), max_length)
