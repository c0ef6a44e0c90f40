"""Attachment encoder: binary file -> inline base64 part for the provider.

The MIME type comes from the file's declared type when it is on the
allow-list, otherwise from the filename extension. No content sniffing.
"""
import base64
import logging
import os
from typing import Any, Optional, Union

from config.settings import MAX_ATTACHMENT_BYTES
from core.errors import UnsupportedAttachmentError
from models.session import InlineAttachment

logger = logging.getLogger(__name__)

EXTENSION_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
    "gif": "image/gif",
}

ALLOWED_MIME_TYPES = frozenset(EXTENSION_MIME_TYPES.values())


def infer_mime_type(filename: Optional[str]) -> Optional[str]:
    """Look up a MIME type from the filename extension, or None."""
    if not filename:
        return None
    ext = os.path.splitext(str(filename))[1].lower().lstrip(".")
    return EXTENSION_MIME_TYPES.get(ext)


def _read_payload(file: Any, max_bytes: int) -> bytes:
    if isinstance(file, (bytes, bytearray, memoryview)):
        data = bytes(file)
    elif isinstance(file, (str, os.PathLike)):
        with open(file, "rb") as f:
            data = f.read(max_bytes + 1)
    else:
        # Upload wrappers (e.g. Starlette's UploadFile) keep the stream in .file
        stream = getattr(file, "file", file)
        data = stream.read(max_bytes + 1)

    if len(data) > max_bytes:
        raise UnsupportedAttachmentError(f"Attachment exceeds {max_bytes} bytes")
    return data


def encode_attachment(file: Union[bytes, str, os.PathLike, Any],
                      filename: Optional[str] = None,
                      mime_type: Optional[str] = None,
                      max_bytes: int = MAX_ATTACHMENT_BYTES) -> InlineAttachment:
    """
    Read a file fully into memory and base64-encode it.

    Args:
        file: Raw bytes, a filesystem path, or a binary file-like object.
        filename: Name used for extension lookup (defaults to the file's own name).
        mime_type: Declared MIME type (defaults to the file's content_type, if any).
        max_bytes: Largest accepted payload.

    Returns:
        InlineAttachment with base64 data and a MIME type from the allow-list.

    Raises:
        UnsupportedAttachmentError: neither the declared nor the inferred type
            is accepted, or the payload is too large.
    """
    if filename is None:
        filename = getattr(file, "filename", None) or getattr(file, "name", None)
        if filename is None and isinstance(file, (str, os.PathLike)):
            filename = os.fspath(file)
    if mime_type is None:
        mime_type = getattr(file, "content_type", None) or getattr(file, "mime_type", None)

    declared = (mime_type or "").split(";")[0].strip().lower() or None
    if declared in ALLOWED_MIME_TYPES:
        resolved = declared
    else:
        resolved = infer_mime_type(filename)

    if resolved is None:
        logger.warning(f"Rejected attachment '{filename}' with declared type {declared!r}")
        raise UnsupportedAttachmentError(
            f"Unsupported attachment type (declared={declared!r}, filename={filename!r})"
        )

    data = _read_payload(file, max_bytes)
    return InlineAttachment(data=base64.b64encode(data).decode("ascii"), mime_type=resolved)
