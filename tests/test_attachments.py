"""Tests for attachment encoding."""
import base64
import io

import pytest

from core.errors import UnsupportedAttachmentError
from tools.attachments import encode_attachment, infer_mime_type

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


class Upload:
    """Minimal upload wrapper exposing .file, .filename and .content_type."""

    def __init__(self, data, filename, content_type=None):
        self.file = io.BytesIO(data)
        self.filename = filename
        self.content_type = content_type


class TestInferMimeType:

    def test_known_extensions(self):
        assert infer_mime_type("scan.PNG") == "image/png"
        assert infer_mime_type("photo.jpeg") == "image/jpeg"
        assert infer_mime_type("photo.jpg") == "image/jpeg"
        assert infer_mime_type("img.heic") == "image/heic"

    def test_unknown_extension(self):
        assert infer_mime_type("notes.txt") is None
        assert infer_mime_type(None) is None


class TestEncodeAttachment:

    def test_png_upload_round_trips(self):
        """A 10 KB PNG with no declared type is inferred and decodes back to the original bytes."""
        payload = PNG_HEADER + bytes(range(256)) * 40
        attachment = encode_attachment(Upload(payload, "belly.png"))
        assert attachment.mime_type == "image/png"
        assert base64.b64decode(attachment.data) == payload

    def test_declared_type_wins_when_allowed(self):
        attachment = encode_attachment(b"data", filename="photo.png", mime_type="image/webp")
        assert attachment.mime_type == "image/webp"

    def test_falls_back_to_extension(self):
        attachment = encode_attachment(b"data", filename="photo.jpg", mime_type="application/octet-stream")
        assert attachment.mime_type == "image/jpeg"

    def test_reads_from_path(self, tmp_path):
        path = tmp_path / "rash.png"
        path.write_bytes(PNG_HEADER)
        attachment = encode_attachment(path)
        assert attachment.mime_type == "image/png"
        assert base64.b64decode(attachment.data) == PNG_HEADER

    def test_rejects_unsupported_type(self):
        with pytest.raises(UnsupportedAttachmentError):
            encode_attachment(b"%PDF-1.7", filename="report.pdf", mime_type="application/pdf")

    def test_rejects_oversized_payload(self):
        with pytest.raises(UnsupportedAttachmentError):
            encode_attachment(b"x" * 11, filename="big.png", max_bytes=10)
