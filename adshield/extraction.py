"""
Document Extraction Seam

Turns an uploaded document into plain text. Only plain-text formats
are handled here; PDF and Word extraction belong to an external
service, so those (and anything undecodable) raise ExtractionError.

Callers that have a real extractor pass it to analyze_batch() as
`extractor=`; it must accept an UploadedDocument and return str.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from adshield.config import settings
from adshield.errors import ExtractionError, FileTooLargeError

TEXT_EXTENSIONS = {".txt", ".text", ".md", ".markdown", ".csv"}


@dataclass(frozen=True)
class UploadedDocument:
    """Raw bytes of an uploaded file, before extraction."""
    filename: str
    data: bytes
    content_type: str = "document"
    user_id: Optional[str] = None


def extract_text(document: UploadedDocument, max_bytes: Optional[int] = None) -> str:
    """
    Decode a plain-text document.

    Args:
        document: The uploaded file.
        max_bytes: Size limit; defaults to settings.MAX_UPLOAD_BYTES.

    Raises:
        FileTooLargeError: payload is over the size limit.
        ExtractionError: unsupported extension, binary payload, or
            bytes that are not valid UTF-8.
    """
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    if len(document.data) > limit:
        raise FileTooLargeError(
            f"'{document.filename}' is {len(document.data)} bytes; the limit is {limit}."
        )

    suffix = PurePath(document.filename or "").suffix.lower()
    if suffix not in TEXT_EXTENSIONS:
        raise ExtractionError(
            f"Cannot extract text from '{document.filename}': "
            f"unsupported document type '{suffix or 'unknown'}'."
        )
    if b"\x00" in document.data:
        raise ExtractionError(
            f"Cannot extract text from '{document.filename}': binary content."
        )
    try:
        return document.data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ExtractionError(
            f"Cannot extract text from '{document.filename}': not valid UTF-8 ({e.reason})."
        ) from e
