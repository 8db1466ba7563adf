"""
Board graph normalizers.

Nodes carry a closed ``type`` tag whose payload shape is fixed per type.
Anything that does not fit (unknown type, missing id, non-finite position,
missing data) is dropped silently; the output arrays are truncated to the
node and edge caps rather than rejected.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from models.entity_models import as_finite_number, normalize_chat_messages
from utils.sanitizer import clamp, sanitize_plain_text, sanitize_title

MAX_NODES = 200
MAX_EDGES = 500
MAX_AI_MESSAGES_PER_NODE = 80
MAX_AI_MESSAGE_LENGTH = 4000
MAX_NOTE_TEXT_LENGTH = 5000
MAX_URL_LENGTH = 2048
MAX_EXCERPT_LENGTH = 500
MAX_COLOR_LENGTH = 20
MAX_CONTEXT_LABEL_LENGTH = 200
MAX_EDGE_LABEL_LENGTH = 200

NODE_TYPES = ("website", "note", "aiChat", "iframe")
EDGE_STYLES = ("solid", "dashed")


def _trimmed_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _website_data(data: Dict[str, Any]) -> Dict[str, Any]:
    favicon = data.get("favicon")
    article_id = data.get("articleId")
    return _drop_none({
        "url": clamp(sanitize_plain_text(data.get("url")), MAX_URL_LENGTH),
        "title": sanitize_title(data.get("title"), fallback="Untitled"),
        "excerpt": clamp(sanitize_plain_text(data.get("excerpt")), MAX_EXCERPT_LENGTH),
        "favicon": clamp(favicon, MAX_URL_LENGTH) if isinstance(favicon, str) else None,
        "articleId": article_id.strip() if isinstance(article_id, str) else None,
    })


def _note_data(data: Dict[str, Any]) -> Dict[str, Any]:
    color = data.get("color")
    return {
        "text": clamp(sanitize_plain_text(data.get("text")), MAX_NOTE_TEXT_LENGTH),
        "color": clamp(color, MAX_COLOR_LENGTH) if isinstance(color, str) else "yellow",
    }


def _iframe_data(data: Dict[str, Any]) -> Dict[str, Any]:
    title = data.get("title")
    return _drop_none({
        "url": clamp(sanitize_plain_text(data.get("url")), MAX_URL_LENGTH),
        "title": sanitize_title(title) if isinstance(title, str) else None,
    })


def _ai_chat_data(data: Dict[str, Any]) -> Dict[str, Any]:
    label = data.get("contextLabel")
    return _drop_none({
        "messages": normalize_chat_messages(
            data.get("messages"),
            max_messages=MAX_AI_MESSAGES_PER_NODE,
            max_length=MAX_AI_MESSAGE_LENGTH,
        ),
        "contextLabel": (
            clamp(sanitize_plain_text(label), MAX_CONTEXT_LABEL_LENGTH) if isinstance(label, str) else None
        ),
    })


_NODE_DATA: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "website": _website_data,
    "note": _note_data,
    "iframe": _iframe_data,
    "aiChat": _ai_chat_data,
}


def _position_component(position: Dict[str, Any], key: str) -> Optional[float]:
    raw = position.get(key)
    if raw is None:
        return 0
    return as_finite_number(raw, allow_strings=True)


def sanitize_board_node(node: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(node, dict):
        return None

    node_id = _trimmed_str(node.get("id"))
    if not node_id:
        return None

    node_type = node.get("type")
    if node_type not in NODE_TYPES:
        return None

    position = node.get("position")
    if position is None:
        position = {}
    if not isinstance(position, dict):
        return None
    x = _position_component(position, "x")
    y = _position_component(position, "y")
    if x is None or y is None:
        return None

    data = node.get("data")
    if not isinstance(data, dict):
        return None

    sanitized: Dict[str, Any] = {
        "id": node_id,
        "type": node_type,
        "position": {"x": x, "y": y},
    }
    for dimension in ("width", "height"):
        value = as_finite_number(node.get(dimension))
        if value is not None:
            sanitized[dimension] = value
    sanitized["data"] = _NODE_DATA[node_type](data)
    return sanitized


def sanitize_board_edge(edge: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(edge, dict):
        return None

    edge_id = _trimmed_str(edge.get("id"))
    source = _trimmed_str(edge.get("source"))
    target = _trimmed_str(edge.get("target"))
    if not edge_id or not source or not target:
        return None

    sanitized: Dict[str, Any] = {"id": edge_id, "source": source, "target": target}
    label = edge.get("label")
    if isinstance(label, str):
        sanitized["label"] = clamp(sanitize_plain_text(label), MAX_EDGE_LABEL_LENGTH)
    sanitized["style"] = edge.get("style") if edge.get("style") in EDGE_STYLES else "solid"
    return sanitized


def sanitize_nodes(nodes: Any) -> List[Dict[str, Any]]:
    if not isinstance(nodes, list):
        return []
    sanitized = [n for n in (sanitize_board_node(node) for node in nodes) if n is not None]
    return sanitized[:MAX_NODES]


def sanitize_edges(edges: Any) -> List[Dict[str, Any]]:
    if not isinstance(edges, list):
        return []
    sanitized = [e for e in (sanitize_board_edge(edge) for edge in edges) if e is not None]
    return sanitized[:MAX_EDGES]
