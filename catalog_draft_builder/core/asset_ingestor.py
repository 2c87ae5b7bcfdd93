# core/asset_ingestor.py

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional, Union

from catalog_draft_builder.config.settings import MAX_ASSET_BYTES
from catalog_draft_builder.core.errors import IngestError
from catalog_draft_builder.core.product_schema import ImageRef

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"
DEFAULT_MIME_TYPE = "application/octet-stream"

# 根据文件头判断格式
_MAGIC_NUMBERS = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
]

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
}


def _sniff_mime_type(data: bytes) -> Optional[str]:
    for magic, mime in _MAGIC_NUMBERS:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def guess_mime_type(data: bytes, filename: Optional[str] = None) -> str:
    """Filename extension first, then file header, then a generic binary type."""
    if filename:
        ext = Path(filename).suffix.lower()
        if ext in _EXTENSION_TYPES:
            return _EXTENSION_TYPES[ext]
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return _sniff_mime_type(data) or DEFAULT_MIME_TYPE


def _read_blob(blob: Union[bytes, bytearray, BinaryIO]) -> bytes:
    if isinstance(blob, (bytes, bytearray, memoryview)):
        return bytes(blob)
    try:
        data = blob.read()
    except (OSError, ValueError) as e:
        raise IngestError(f"could not read asset: {e}") from e
    if not isinstance(data, (bytes, bytearray)):
        raise IngestError("asset stream must be opened in binary mode")
    return bytes(data)


def ingest(
    blob: Union[bytes, bytearray, BinaryIO],
    mime_type: Optional[str] = None,
    filename: Optional[str] = None,
    max_bytes: int = MAX_ASSET_BYTES,
) -> ImageRef:
    """
    Read a binary asset fully and encode it as a data URI.

    Args:
        blob: raw bytes, or a binary file object
        mime_type: explicit MIME type; guessed from filename / header when omitted
        filename: original file name, only used for MIME detection and messages
        max_bytes: size ceiling; 0 or negative disables it

    Returns:
        ``data:<mime>;base64,<payload>``

    Raises:
        IngestError: unreadable, empty or oversize asset
    """
    data = _read_blob(blob)
    label = filename or "asset"

    if not data:
        raise IngestError(f"{label} is empty")
    if max_bytes > 0 and len(data) > max_bytes:
        raise IngestError(
            f"{label} is {len(data)} bytes, larger than the {max_bytes} byte limit"
        )

    mime = mime_type or guess_mime_type(data, filename)
    encoded = base64.b64encode(data).decode("ascii")
    logger.debug("Ingested %s (%s, %d bytes)", label, mime, len(data))
    return f"{DATA_URI_PREFIX}{mime};base64,{encoded}"


def ingest_path(path: Union[str, Path], max_bytes: int = MAX_ASSET_BYTES) -> ImageRef:
    """Read a local file and encode it; I/O failures become IngestError."""
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = f.read()
    except OSError as e:
        raise IngestError(f"could not read {path}: {e}") from e
    return ingest(data, filename=path.name, max_bytes=max_bytes)


def is_data_uri(ref: ImageRef) -> bool:
    return ref.startswith(DATA_URI_PREFIX)


def data_uri_mime_type(ref: ImageRef) -> Optional[str]:
    if not is_data_uri(ref):
        return None
    header = ref[len(DATA_URI_PREFIX):].split(",", 1)[0]
    return header.split(";", 1)[0] or None


def describe_ref(ref: ImageRef) -> str:
    """
    Short human-readable form of a reference.
    URLs are returned as-is, data URIs become e.g. ``embedded image/png (12.3 KB)``.
    """
    if not is_data_uri(ref):
        return ref
    payload = ref.split(",", 1)[1] if "," in ref else ""
    size_kb = len(payload) * 3 / 4 / 1024
    return f"embedded {data_uri_mime_type(ref) or DEFAULT_MIME_TYPE} ({size_kb:.1f} KB)"
