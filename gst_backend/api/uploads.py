"""
Document upload endpoints.

Two transports feed the same ingestion path:
- ``POST /upload``: raw ``multipart/form-data`` body holding a PDF part
- ``POST /upload/pdf``: JSON envelope with a base64 ``data`` field

A failed extraction still answers 200 because the file itself was saved.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from gst_backend.api.dependencies import get_ingestor, get_settings_dep, json_body, parse_model, read_body
from gst_backend.domains.file_ingest.collectors.multipart import collect_pdf, get_boundary
from gst_backend.domains.file_ingest.uploads import UploadIngestor, decode_base64_payload
from gst_backend.models.schemas import (
    EnvelopeUploadResponse,
    MultipartUploadResponse,
    UploadEnvelope,
)
from gst_backend.utils.config import Settings
from gst_backend.utils.errors import ValidationError

router = APIRouter()


@router.post("/upload", response_model=MultipartUploadResponse, response_model_exclude_none=True)
async def upload_multipart(
    request: Request,
    settings: Settings = Depends(get_settings_dep),
    ingestor: UploadIngestor = Depends(get_ingestor),
):
    """
    Upload a PDF as ``multipart/form-data`` and run extraction on it.

    Returns:
        ``success`` flag, stored file name and the article summary, or the
        extraction error when the tool failed
    """
    # Checked before any of the body is read
    boundary = get_boundary(request.headers.get("content-type"))
    body = await read_body(request, settings.max_upload_bytes, message="File too large")

    upload = collect_pdf(body, boundary)
    result = await run_in_threadpool(ingestor.ingest, upload.file_name, upload.payload)

    if result.extracted:
        return MultipartUploadResponse(
            success=True,
            message="PDF uploaded and data extracted successfully",
            fileName=result.file_name,
            **result.summary_fields(),
        )

    return MultipartUploadResponse(
        success=False,
        message="PDF uploaded but extraction failed",
        fileName=result.file_name,
        error=result.error,
    )


@router.post("/upload/pdf", response_model=EnvelopeUploadResponse, response_model_exclude_none=True)
async def upload_envelope(
    body: dict = Depends(json_body),
    ingestor: UploadIngestor = Depends(get_ingestor),
):
    """Upload a base64-encoded PDF wrapped in JSON and run extraction on it."""
    envelope = parse_model(UploadEnvelope, body)
    if not envelope.data:
        raise ValidationError("data is required (base64)")

    payload = decode_base64_payload(envelope.data)
    result = await run_in_threadpool(ingestor.ingest, envelope.fileName or "upload.pdf", payload)

    if result.extracted:
        response = EnvelopeUploadResponse(ok=True, message="Uploaded and extracted", path=str(result.path))
        return JSONResponse(status_code=201, content=response.model_dump(exclude_none=True))

    return EnvelopeUploadResponse(
        ok=True,
        message="Uploaded but extraction failed",
        path=str(result.path),
        error=result.error,
    )
