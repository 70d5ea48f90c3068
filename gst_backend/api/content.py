"""
Write endpoints for users, notifications and articles.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from loguru import logger

from gst_backend.api.dependencies import get_store, get_users, json_body, parse_model
from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.domains.document_store.users import UserRegistry
from gst_backend.models.schemas import (
    ArticleRecord,
    ContentCreate,
    NotificationCreate,
    NotificationRecord,
    UserCreate,
    UserRecord,
)
from gst_backend.utils.errors import ValidationError
from gst_backend.utils.helpers import epoch_ms, now_iso

router = APIRouter()

KIND_CATEGORIES = {
    "caseLaw": "Case Law",
    "circular": "Circulars",
}
DEFAULT_CATEGORY = "Updates"


def derive_category(kind: str) -> str:
    """Map a content kind to the article category shown on the dashboard."""
    return KIND_CATEGORIES.get(kind, DEFAULT_CATEGORY)


@router.get("/users")
async def list_users(users: UserRegistry = Depends(get_users)):
    return users.users()


@router.post("/users", status_code=201, response_model=UserRecord)
def create_user(
    body: Dict[str, Any] = Depends(json_body),
    users: UserRegistry = Depends(get_users),
):
    """
    Register a user.

    Returns:
        The stored record with its server-assigned ``id`` and ``createdAt``
    """
    request = parse_model(UserCreate, body)
    return users.create(
        phone=request.phone,
        name=request.name or "",
        email=request.email or "",
        company=request.company or "",
        notes=request.notes or "",
    )


@router.post("/notifications", status_code=201, response_model=NotificationRecord)
def create_notification(
    body: Dict[str, Any] = Depends(json_body),
    store: DocumentStore = Depends(get_store),
):
    """Append a notification to the dashboard."""
    request = parse_model(NotificationCreate, body)
    if not request.title or not request.message:
        raise ValidationError("title and message are required")

    item = {
        "id": str(epoch_ms()),
        "title": request.title,
        "message": request.message,
        "createdAt": now_iso(),
    }
    store.mutate("notifications", item)
    logger.info(f"Notification added: {request.title}")
    return item


@router.post("/content", status_code=201, response_model=ArticleRecord)
def create_content(
    body: Dict[str, Any] = Depends(json_body),
    store: DocumentStore = Depends(get_store),
):
    """
    Add an article.

    When ``category`` is empty it is derived from ``kind``:
    caseLaw -> Case Law, circular -> Circulars, anything else -> Updates.
    """
    request = parse_model(ContentCreate, body)
    if not request.title:
        raise ValidationError("title is required")

    entry = {
        "title": request.title,
        "category": request.category or derive_category(request.kind or "article"),
        "date": request.date or "",
        "author": request.author or "",
    }
    store.mutate("articles", entry)
    logger.info(f"Article added: {entry['title']} ({entry['category']})")
    return entry
