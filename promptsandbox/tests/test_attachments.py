import base64

import pytest

from promptsandbox.core.attachments import (
    TRUNCATION_MARKER,
    AttachmentEncoder,
    category_for_file_name,
    format_file_size,
    ingest_bytes,
    ingest_url,
)
from promptsandbox.core.errors import AttachmentReadError
from promptsandbox.core.models import AttachmentCategory, ImagePart


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("photo.JPG", AttachmentCategory.IMAGE),
        ("scan.tif", AttachmentCategory.IMAGE),
        ("paper.pdf", AttachmentCategory.PDF),
        ("notes.txt", AttachmentCategory.DOCUMENT),
        ("clip.mkv", AttachmentCategory.VIDEO),
        ("song.flac", AttachmentCategory.AUDIO),
        ("bundle.tar.gz", AttachmentCategory.ARCHIVE),
        ("table.csv", AttachmentCategory.DATA),
        ("script.py", AttachmentCategory.FILE),
        ("Makefile", AttachmentCategory.FILE),
    ],
)
def test_category_for_file_name(file_name, expected):
    assert category_for_file_name(file_name) is expected


def test_ingest_bytes_derives_category_and_size():
    attachment = ingest_bytes("notes.txt", b"hello")
    assert attachment.category is AttachmentCategory.DOCUMENT
    assert attachment.size_bytes == 5
    assert attachment.id


def test_ingested_attachments_get_unique_ids():
    first = ingest_bytes("a.txt", b"x")
    second = ingest_bytes("a.txt", b"x")
    assert first.id != second.id


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(5) == "5 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(2 * 1024 * 1024) == "2 MB"


def test_image_is_encoded_as_data_url_of_full_bytes():
    raw = b"\x89PNG\r\n" + b"\x00" * 50_000
    part = AttachmentEncoder().encode(ingest_bytes("chart.png", raw))
    assert isinstance(part, ImagePart)
    prefix = "data:image/png;base64,"
    assert part.image_url.url.startswith(prefix)
    assert base64.b64decode(part.image_url.url[len(prefix):]) == raw


def test_image_given_as_url_passes_through():
    part = AttachmentEncoder().encode(ingest_url("cat.webp", "https://cdn.example.com/cat.webp"))
    assert isinstance(part, ImagePart)
    assert part.image_url.url == "https://cdn.example.com/cat.webp"


def test_pdf_is_a_placeholder_without_bytes():
    text = AttachmentEncoder().encode(ingest_bytes("paper.pdf", b"%PDF-1.7 secret body"))
    assert text.startswith("PDF document: paper.pdf (20 Bytes)")
    assert "secret body" not in text


def test_text_file_is_embedded():
    text = AttachmentEncoder().encode(ingest_bytes("notes.txt", "héllo".encode("utf-8")))
    assert text == "héllo"


def test_markdown_file_is_embedded():
    assert AttachmentEncoder().encode(ingest_bytes("README.md", b"# Title")) == "# Title"


def test_text_truncated_to_limit_with_marker():
    body = "x" * 10_500
    text = AttachmentEncoder(max_text_chars=10_000).encode(ingest_bytes("big.txt", body.encode()))
    assert text == "x" * 10_000 + TRUNCATION_MARKER


def test_text_at_limit_is_not_truncated():
    body = "y" * 10_000
    text = AttachmentEncoder(max_text_chars=10_000).encode(ingest_bytes("edge.txt", body.encode()))
    assert text == body


def test_binary_category_gets_placeholder():
    text = AttachmentEncoder().encode(ingest_bytes("song.mp3", b"\x00\x01\x02"))
    assert text.startswith("Binary file: song.mp3 (audio, 3 Bytes)")
    assert "cannot be read as text" in text


def test_invalid_utf8_bytes_are_replaced_not_rejected():
    text = AttachmentEncoder().encode(ingest_bytes("data.json", b'{"k": "\xff"}'))
    assert text == '{"k": "\ufffd"}'


def test_utf8_bom_is_dropped():
    assert AttachmentEncoder().encode(ingest_bytes("notes.txt", b"\xef\xbb\xbfhello")) == "hello"


def test_text_attachment_held_as_url_raises_read_error():
    with pytest.raises(AttachmentReadError):
        AttachmentEncoder().encode(ingest_url("remote.md", "https://example.com/remote.md"))


def test_supports_streaming_read_only_for_in_memory_payloads():
    encoder = AttachmentEncoder()
    assert encoder.supports_streaming_read(ingest_bytes("a.txt", b"a")) is True
    assert encoder.supports_streaming_read(ingest_url("a.txt", "https://example.com/a.txt")) is False
