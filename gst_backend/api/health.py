"""
Health and read-only snapshot endpoints.
"""

from fastapi import APIRouter, Depends

from gst_backend.api.dependencies import get_store, get_users
from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.domains.document_store.users import UserRegistry
from gst_backend.models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: DocumentStore = Depends(get_store),
    users: UserRegistry = Depends(get_users),
):
    """
    Health check endpoint.

    Reports when the snapshot was last reloaded, collection sizes and the
    full data set including registered users.
    """
    snapshot = store.snapshot()
    registered = users.users()

    counts = {name: len(records) for name, records in snapshot.items()}
    counts["users"] = len(registered)

    return HealthResponse(
        status="ok",
        updatedAt=store.last_loaded,
        counts=counts,
        data={**snapshot, "users": registered},
    )


@router.get("/dashboard")
async def get_dashboard(store: DocumentStore = Depends(get_store)):
    """Full document store snapshot."""
    return store.snapshot()
