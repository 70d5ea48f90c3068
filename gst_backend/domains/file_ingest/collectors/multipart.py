"""
Multipart body collector.

Splits a buffered ``multipart/form-data`` body into parts using
python-multipart's streaming parser and picks out the uploaded document.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from gst_backend.utils.errors import ValidationError

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_FILE_NAME = "upload.pdf"


@dataclass
class MultipartPart:
    """One part of a multipart body: lower-cased headers plus raw payload."""

    headers: Dict[str, str] = field(default_factory=dict)
    payload: bytes = b""

    @property
    def content_type(self) -> str:
        value, _ = parse_options_header(self.headers.get("content-type", ""))
        return value.decode("latin-1").lower()

    @property
    def filename(self) -> Optional[str]:
        _, options = parse_options_header(self.headers.get("content-disposition", ""))
        raw = options.get(b"filename")
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace")


@dataclass
class UploadedFile:
    file_name: str
    payload: bytes


def get_boundary(content_type: Optional[str]) -> str:
    """
    Extract the boundary token from a ``Content-Type`` header.

    Raises:
        ValidationError: Header missing or without a boundary parameter
    """
    _, options = parse_options_header(content_type or "")
    boundary = options.get(b"boundary")
    if not boundary:
        raise ValidationError("No boundary found")
    return boundary.decode("latin-1")


def parse_parts(body: bytes, boundary: str) -> List[MultipartPart]:
    """Parse ``body`` into its parts."""

    parts: List[MultipartPart] = []
    current = MultipartPart()
    payload = bytearray()
    header_field = bytearray()
    header_value = bytearray()

    def on_part_begin():
        nonlocal current
        current = MultipartPart()
        payload.clear()

    def on_part_data(data: bytes, start: int, end: int):
        payload.extend(data[start:end])

    def on_part_end():
        current.payload = bytes(payload)
        parts.append(current)

    def on_header_field(data: bytes, start: int, end: int):
        header_field.extend(data[start:end])

    def on_header_value(data: bytes, start: int, end: int):
        header_value.extend(data[start:end])

    def on_header_end():
        name = header_field.decode("latin-1").strip().lower()
        current.headers[name] = header_value.decode("latin-1").strip()
        header_field.clear()
        header_value.clear()

    callbacks = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    }

    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as e:
        raise ValidationError(f"Malformed multipart body: {e}") from e

    logger.debug(f"Parsed {len(parts)} multipart parts")
    return parts


def find_part(parts: List[MultipartPart], content_type: str = PDF_CONTENT_TYPE) -> Optional[MultipartPart]:
    """Return the first part declaring ``content_type``."""
    for part in parts:
        if part.content_type == content_type:
            return part
    return None


def collect_pdf(body: bytes, boundary: str) -> UploadedFile:
    """
    Pull the uploaded PDF out of a multipart body.

    Raises:
        ValidationError: No part declares a PDF content type
    """
    part = find_part(parse_parts(body, boundary))
    if part is None:
        raise ValidationError("No PDF file found in upload")

    return UploadedFile(file_name=part.filename or DEFAULT_FILE_NAME, payload=part.payload)
