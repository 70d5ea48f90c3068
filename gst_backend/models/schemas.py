"""
Pydantic models for the GST dashboard API.

Field names follow the camelCase keys the admin UI already sends and reads.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict


# =====================================================
# Request Models
# =====================================================

class UserCreate(BaseModel):
    """Body of ``POST /api/users``."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    phone: Optional[str] = None
    name: Optional[str] = ""
    email: Optional[str] = ""
    company: Optional[str] = ""
    notes: Optional[str] = ""


class NotificationCreate(BaseModel):
    """Body of ``POST /api/notifications``."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    title: Optional[str] = None
    message: Optional[str] = None


class ContentCreate(BaseModel):
    """Body of ``POST /api/content``."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    kind: Optional[str] = "article"
    title: Optional[str] = None
    category: Optional[str] = ""
    date: Optional[str] = ""
    author: Optional[str] = ""


class UploadEnvelope(BaseModel):
    """Body of ``POST /api/upload/pdf``: base64 payload plus original name."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    fileName: Optional[str] = "upload.pdf"
    data: Optional[str] = None


# =====================================================
# Response Models
# =====================================================

class UserRecord(BaseModel):
    id: str
    phone: str
    name: str = ""
    email: str = ""
    company: str = ""
    notes: str = ""
    createdAt: str


class NotificationRecord(BaseModel):
    id: str
    title: str
    message: str
    createdAt: str


class ArticleRecord(BaseModel):
    title: str
    category: str
    date: str = ""
    author: str = ""


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    updatedAt: int
    counts: Dict[str, int]
    data: Dict[str, List[Any]]


class MultipartUploadResponse(BaseModel):
    """Result of ``POST /api/upload``; summary fields only on success."""
    success: bool
    message: str
    fileName: str
    totalArticles: Optional[int] = None
    categories: Optional[Dict[str, int]] = None
    error: Optional[str] = None


class EnvelopeUploadResponse(BaseModel):
    """Result of ``POST /api/upload/pdf``."""
    ok: bool
    message: str
    path: str
    error: Optional[str] = None
