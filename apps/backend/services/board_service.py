import logging
from typing import Any, Dict, List

from infrastructure.document_store import DocumentStore
from models.board_models import sanitize_edges, sanitize_nodes
from services.errors import InvalidRequestError
from services.ownership import OWNER_FIELD, load_owned
from utils.sanitizer import sanitize_title

logger = logging.getLogger(__name__)

BOARDS_COLLECTION = "boards"
DEFAULT_BOARD_NAME = "Untitled Board"


def board_view(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": record["id"],
        "userId": record.get(OWNER_FIELD),
        "name": record.get("name") or DEFAULT_BOARD_NAME,
        "nodes": sanitize_nodes(record.get("nodes")),
        "edges": sanitize_edges(record.get("edges")),
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }


def fetch_board_summaries(store: DocumentStore, uid: str) -> List[Dict[str, Any]]:
    records = store.query(
        BOARDS_COLLECTION,
        [(OWNER_FIELD, "==", uid)],
        order_by="updatedAt",
        descending=True,
    )
    return [
        {
            "id": record["id"],
            "name": record.get("name") or DEFAULT_BOARD_NAME,
            "nodeCount": len(record["nodes"]) if isinstance(record.get("nodes"), list) else 0,
            "createdAt": record.get("createdAt"),
            "updatedAt": record.get("updatedAt"),
        }
        for record in records
    ]


def fetch_board(store: DocumentStore, uid: str, board_id: str) -> Dict[str, Any]:
    return board_view(load_owned(store, BOARDS_COLLECTION, board_id, uid, "Board"))


def create_board(store: DocumentStore, uid: str, name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise InvalidRequestError("Board name is required")
    board_id = store.add(BOARDS_COLLECTION, {
        OWNER_FIELD: uid,
        "name": sanitize_title(name, fallback=DEFAULT_BOARD_NAME),
        "nodes": [],
        "edges": [],
    })
    logger.info("Created board", extra={"board_id": board_id})
    return board_id


def update_board(store: DocumentStore, uid: str, board_id: str, payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidRequestError("Invalid request body")
    load_owned(store, BOARDS_COLLECTION, board_id, uid, "Board")

    changes: Dict[str, Any] = {}
    if isinstance(payload.get("name"), str):
        changes["name"] = sanitize_title(payload["name"], fallback=DEFAULT_BOARD_NAME)
    if "nodes" in payload:
        changes["nodes"] = sanitize_nodes(payload["nodes"])
    if "edges" in payload:
        changes["edges"] = sanitize_edges(payload["edges"])

    store.update(BOARDS_COLLECTION, board_id, changes)
    return {"nodeCount": len(changes["nodes"])} if "nodes" in changes else {}


def delete_board(store: DocumentStore, uid: str, board_id: str) -> None:
    load_owned(store, BOARDS_COLLECTION, board_id, uid, "Board")
    store.delete(BOARDS_COLLECTION, board_id)
    logger.info("Deleted board", extra={"board_id": board_id})
