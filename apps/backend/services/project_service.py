import logging
from typing import Any, Dict, List

from infrastructure.document_store import DocumentStore
from services.errors import InvalidRequestError
from services.monitoring import CASCADE_DOCUMENTS_TOTAL
from services.ownership import OWNER_FIELD, can_access, is_default_entity, load_owned
from utils.sanitizer import sanitize_title

logger = logging.getLogger(__name__)

PROJECTS_COLLECTION = "projects"
ARTICLES_COLLECTION = "annotations"

DEFAULT_PROJECT_NAME = "Default"
MAX_PROJECT_NAME_LENGTH = 500


def default_project_id(uid: str) -> str:
    return f"{uid}_default"


def _project_view(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": record["id"],
        "name": record.get("name") or "",
        "userId": record.get(OWNER_FIELD),
        "isDefault": is_default_entity(record),
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }


def ensure_default_project(store: DocumentStore, uid: str) -> Dict[str, Any]:
    project_id = default_project_id(uid)
    record = store.get(PROJECTS_COLLECTION, project_id)
    if record is None:
        store.set(PROJECTS_COLLECTION, project_id, {
            "name": DEFAULT_PROJECT_NAME,
            OWNER_FIELD: uid,
            "isDefault": True,
        })
        logger.info("Created default project", extra={"project_id": project_id})
        record = store.get(PROJECTS_COLLECTION, project_id) or {"id": project_id}
    view = _project_view({**record, "isDefault": True})
    view["name"] = view["name"] or DEFAULT_PROJECT_NAME
    return view


def fetch_projects(store: DocumentStore, uid: str) -> List[Dict[str, Any]]:
    default = ensure_default_project(store, uid)
    others = [
        _project_view(record)
        for record in store.query(
            PROJECTS_COLLECTION,
            [(OWNER_FIELD, "==", uid)],
            order_by="createdAt",
            descending=True,
        )
        if record["id"] != default["id"]
    ]
    return [default] + others


def create_project(store: DocumentStore, uid: str, name: Any) -> str:
    clean = sanitize_title(name, max_length=MAX_PROJECT_NAME_LENGTH) if isinstance(name, str) else ""
    if not clean:
        raise InvalidRequestError("Project name is required")
    project_id = store.add(PROJECTS_COLLECTION, {"name": clean, OWNER_FIELD: uid, "isDefault": False})
    logger.info("Created project", extra={"project_id": project_id})
    return project_id


def resolve_project_id(store: DocumentStore, uid: str, project_id: Any) -> str:
    """
    Project id to file a new article under: the requested one when the caller
    may use it, the caller's default project otherwise.
    """
    if isinstance(project_id, str) and project_id.strip():
        candidate = project_id.strip()
        if candidate == default_project_id(uid):
            return ensure_default_project(store, uid)["id"]
        if can_access(store.get(PROJECTS_COLLECTION, candidate), uid):
            return candidate
    return ensure_default_project(store, uid)["id"]


def reassign_project_articles(store: DocumentStore, project_id: str, target_project_id: str) -> int:
    """
    Move every article of ``project_id`` to ``target_project_id``.

    Safe to repeat: a second run finds no articles left in the source project.
    """
    articles = store.query(ARTICLES_COLLECTION, [("projectId", "==", project_id)])
    if not articles:
        return 0
    updates = [(article["id"], {"projectId": target_project_id}) for article in articles]
    return store.batch_update(ARTICLES_COLLECTION, updates)


def delete_project(store: DocumentStore, uid: str, project_id: str) -> int:
    if project_id == default_project_id(uid):
        raise InvalidRequestError("Cannot delete default project")

    record = load_owned(store, PROJECTS_COLLECTION, project_id, uid, "Project")
    if is_default_entity(record):
        raise InvalidRequestError("Cannot delete default project")

    target = ensure_default_project(store, uid)["id"]
    moved = reassign_project_articles(store, project_id, target)
    CASCADE_DOCUMENTS_TOTAL.labels(operation="delete_project").inc(moved)
    store.delete(PROJECTS_COLLECTION, project_id)
    logger.info("Deleted project", extra={"project_id": project_id, "articles_moved": moved})
    return moved
