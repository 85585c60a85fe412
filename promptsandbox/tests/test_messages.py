from promptsandbox.config.settings import settings
from promptsandbox.core.attachments import AttachmentEncoder, ingest_bytes, ingest_url
from promptsandbox.core.errors import AttachmentReadError
from promptsandbox.core.messages import MessageBuilder
from promptsandbox.core.models import ImagePart, TextPart


def test_no_attachments_gives_system_then_plain_user_message():
    messages = MessageBuilder().build("What is 2+2?")
    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == settings.system_prompt
    assert messages[1].content == "What is 2+2?"


def test_custom_system_prompt():
    messages = MessageBuilder(system_prompt="Be terse.").build("hi")
    assert messages[0].content == "Be terse."


def test_attachments_build_text_part_then_image_parts_in_order():
    attachments = [
        ingest_bytes("first.png", b"img-1"),
        ingest_bytes("notes.txt", b"alpha"),
        ingest_bytes("second.jpg", b"img-2"),
        ingest_bytes("table.csv", b"a,b\n1,2"),
    ]
    messages = MessageBuilder().build("Summarize", attachments)
    assert len(messages) == 2
    parts = messages[1].content
    assert isinstance(parts[0], TextPart)
    assert parts[0].text == (
        "Summarize"
        "\n\n--- notes.txt ---\nalpha\n--- End of notes.txt ---"
        "\n\n--- table.csv ---\na,b\n1,2\n--- End of table.csv ---"
    )
    assert [type(part) for part in parts[1:]] == [ImagePart, ImagePart]
    assert parts[1].image_url.url.startswith("data:image/png;base64,")
    assert parts[2].image_url.url.startswith("data:image/jpeg;base64,")


def test_image_only_attachments_keep_prompt_text_part():
    messages = MessageBuilder().build("Describe", [ingest_bytes("a.gif", b"GIF89a")])
    parts = messages[1].content
    assert parts[0] == TextPart(text="Describe")
    assert len(parts) == 2


class _FailingEncoder(AttachmentEncoder):
    def encode(self, attachment):
        if attachment.file_name == "broken.json":
            raise AttachmentReadError(f"{attachment.file_name}: disk went away")
        return super().encode(attachment)


def test_unreadable_text_attachment_becomes_placeholder():
    attachments = [ingest_bytes("broken.json", b"{}"), ingest_bytes("ok.txt", b"fine")]
    parts = MessageBuilder(encoder=_FailingEncoder()).build("Check", attachments)[1].content
    text = parts[0].text
    assert "Attachment: broken.json (data) - Unable to read file content." in text
    assert "--- ok.txt ---\nfine\n--- End of ok.txt ---" in text


def test_non_utf8_text_attachment_is_still_embedded():
    csv = "name,price\ncafé,3\n".encode("latin-1")
    text = MessageBuilder(system_prompt="s").build("Summarize", [ingest_bytes("prices.csv", csv)])[1].content[0].text
    assert "--- prices.csv ---\nname,price\ncaf\ufffd,3\n" in text
    assert "Unable to read file content" not in text


def test_non_image_attachment_without_in_memory_bytes_is_skipped():
    attachments = [ingest_url("remote.txt", "https://example.com/remote.txt")]
    parts = MessageBuilder().build("Read", attachments)[1].content
    assert parts == [TextPart(text="Read")]


def test_truncation_limit_flows_through_builder():
    builder = MessageBuilder(encoder=AttachmentEncoder(max_text_chars=3))
    parts = builder.build("P", [ingest_bytes("long.txt", b"abcdef")])[1].content
    assert "abc\n\n[Content truncated - file is too large]\n--- End of long.txt ---" in parts[0].text


def test_wire_shape_of_structured_message():
    message = MessageBuilder().build("Look", [ingest_url("x.png", "https://example.com/x.png")])[1]
    assert message.to_wire() == {
        "role": "user",
        "content": [
            {"type": "text", "text": "Look"},
            {"type": "image_url", "image_url": {"url": "https://example.com/x.png"}},
        ],
    }
