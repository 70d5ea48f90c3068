"""Request-scoped accessors for the components created in the app lifespan."""

import json
from typing import Any, Dict, Type, TypeVar

import pydantic
from fastapi import Request

from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.domains.document_store.users import UserRegistry
from gst_backend.domains.file_ingest.uploads import UploadIngestor
from gst_backend.utils.config import Settings
from gst_backend.utils.errors import PayloadTooLarge, ValidationError

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    """Provide the document store owned by the running app."""
    return request.app.state.store


def get_users(request: Request) -> UserRegistry:
    """Provide the user registry owned by the running app."""
    return request.app.state.users


def get_ingestor(request: Request) -> UploadIngestor:
    return request.app.state.ingestor


async def read_body(request: Request, limit: int, message: str = "Payload too large") -> bytes:
    """
    Buffer the request body, stopping as soon as it exceeds ``limit`` bytes.

    Raises:
        PayloadTooLarge: Body is larger than ``limit``
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise PayloadTooLarge(message)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLarge(message)
    return bytes(body)


async def json_body(request: Request) -> Dict[str, Any]:
    """Read a size-capped JSON object body; an empty body counts as ``{}``."""
    settings = get_settings_dep(request)
    raw = await read_body(request, settings.max_json_bytes)
    if not raw.strip():
        return {}

    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e

    if not isinstance(payload, dict):
        raise ValidationError("JSON body must be an object")
    return payload


def parse_model(model: Type[ModelT], payload: Dict[str, Any]) -> ModelT:
    """Validate ``payload`` against ``model``, reporting failures as ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(problems) from e
