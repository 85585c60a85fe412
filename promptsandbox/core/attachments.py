"""Attachment ingestion and per-category payload encoding."""

from __future__ import annotations

import base64
import math
import mimetypes
import uuid

from promptsandbox.config.settings import settings
from promptsandbox.core.errors import AttachmentReadError
from promptsandbox.core.models import Attachment, AttachmentCategory, ImagePart


_CATEGORY_EXTENSIONS: dict[AttachmentCategory, frozenset[str]] = {
    AttachmentCategory.IMAGE: frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "heic", "heif", "tiff", "tif"}),
    AttachmentCategory.PDF: frozenset({"pdf"}),
    AttachmentCategory.DOCUMENT: frozenset({"doc", "docx", "txt", "rtf"}),
    AttachmentCategory.VIDEO: frozenset({"mp4", "avi", "mov", "webm", "mkv"}),
    AttachmentCategory.AUDIO: frozenset({"mp3", "wav", "ogg", "flac"}),
    AttachmentCategory.ARCHIVE: frozenset({"zip", "rar", "7z", "tar", "gz"}),
    AttachmentCategory.DATA: frozenset({"json", "xml", "csv", "xlsx", "xls"}),
}

TEXT_BASED_CATEGORIES = frozenset({AttachmentCategory.DOCUMENT, AttachmentCategory.DATA, AttachmentCategory.FILE})
PLAIN_TEXT_EXTENSIONS = frozenset(
    {"txt", "md", "json", "xml", "csv", "js", "ts", "jsx", "tsx", "css", "html", "py", "java", "cpp", "c", "h"}
)
TRUNCATION_MARKER = "\n\n[Content truncated - file is too large]"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
# mimetypes has no entry for these on every platform
_IMAGE_MIME_FALLBACK = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "heic": "image/heic",
    "heif": "image/heif",
    "tiff": "image/tiff",
    "tif": "image/tiff",
}


def category_for_file_name(file_name: str) -> AttachmentCategory:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    for category, extensions in _CATEGORY_EXTENSIONS.items():
        if extension in extensions:
            return category
    return AttachmentCategory.FILE


def _new_attachment_id() -> str:
    return uuid.uuid4().hex


def ingest_bytes(file_name: str, data: bytes, attachment_id: str | None = None) -> Attachment:
    return Attachment(
        id=attachment_id or _new_attachment_id(),
        file_name=file_name,
        category=category_for_file_name(file_name),
        payload=bytes(data),
        size_bytes=len(data),
    )


def ingest_url(file_name: str, url: str, size_bytes: int = 0, attachment_id: str | None = None) -> Attachment:
    return Attachment(
        id=attachment_id or _new_attachment_id(),
        file_name=file_name,
        category=category_for_file_name(file_name),
        payload=url,
        size_bytes=size_bytes,
    )


def format_file_size(size_bytes: int) -> str:
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = min(int(math.floor(math.log(size_bytes, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size_bytes / math.pow(1024, exponent), 2)
    rendered = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{rendered} {_SIZE_UNITS[exponent]}"


def image_mime_type(file_name: str) -> str:
    guessed, _ = mimetypes.guess_type(file_name)
    if guessed and guessed.startswith("image/"):
        return guessed
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return _IMAGE_MIME_FALLBACK.get(extension, "application/octet-stream")


class AttachmentEncoder:
    def __init__(self, max_text_chars: int | None = None) -> None:
        self._max_text_chars = max_text_chars

    @property
    def max_text_chars(self) -> int:
        if self._max_text_chars is not None:
            return self._max_text_chars
        return int(settings.max_text_attachment_chars)

    @staticmethod
    def supports_streaming_read(attachment: Attachment) -> bool:
        """True when the raw bytes are in memory and can be read by the encoder."""
        return isinstance(attachment.payload, (bytes, bytearray))

    @staticmethod
    def is_text_like(attachment: Attachment) -> bool:
        return attachment.category in TEXT_BASED_CATEGORIES or attachment.extension in PLAIN_TEXT_EXTENSIONS

    def encode(self, attachment: Attachment) -> ImagePart | str:
        """Encode *attachment* as an inline image part or a text block body.

        Raises AttachmentReadError when a text-like payload is not held in memory.
        """
        if attachment.is_image:
            return self._encode_image(attachment)
        if attachment.category is AttachmentCategory.PDF:
            return (
                f"PDF document: {attachment.file_name} ({format_file_size(attachment.size_bytes)})\n\n"
                "Note: This is a PDF file. To analyze its content, please copy and paste the text from the PDF, "
                "as PDF text extraction is not available."
            )
        if self.is_text_like(attachment):
            return self._truncate(self._read_text(attachment))
        return (
            f"Binary file: {attachment.file_name} ({attachment.category.value}, "
            f"{format_file_size(attachment.size_bytes)})\n\n"
            "Note: This appears to be a binary file that cannot be read as text. "
            "Please describe what you'd like me to analyze about this file."
        )

    def _encode_image(self, attachment: Attachment) -> ImagePart:
        if isinstance(attachment.payload, str):
            return ImagePart.from_url(attachment.payload)
        # full bytes, no size cap
        encoded = base64.b64encode(attachment.payload).decode("ascii")
        return ImagePart.from_url(f"data:{image_mime_type(attachment.file_name)};base64,{encoded}")

    @staticmethod
    def _read_text(attachment: Attachment) -> str:
        if not isinstance(attachment.payload, (bytes, bytearray)):
            raise AttachmentReadError(f"{attachment.file_name}: content is not held in memory")
        # invalid bytes become U+FFFD
        return bytes(attachment.payload).decode("utf-8-sig", errors="replace")

    def _truncate(self, text: str) -> str:
        limit = self.max_text_chars
        if len(text) <= limit:
            return text
        return f"{text[:limit]}{TRUNCATION_MARKER}"

    @staticmethod
    def read_failure_notice(attachment: Attachment) -> str:
        return (
            f"Attachment: {attachment.file_name} ({attachment.category.value}) - Unable to read file content. "
            "Please copy and paste the content manually."
        )
