from promptsandbox.core.models import ConversationMessage, ImagePart, TextPart
from promptsandbox.filters.message_sanitizer import MessageSanitizer


def test_sanitize_text_strips_script_blocks():
    text = "before <script type='text/javascript'>alert(1)</script> after"
    assert MessageSanitizer().sanitize_text(text) == "before  after"


def test_sanitize_text_strips_javascript_scheme_case_insensitive():
    assert MessageSanitizer().sanitize_text("click JavaScript:doEvil()") == "click doEvil()"


def test_sanitize_text_strips_inline_event_handlers():
    assert MessageSanitizer().sanitize_text('<img src=x onerror = "steal()">') == '<img src=x  "steal()">'


def test_sanitize_text_leaves_plain_text_untouched():
    sanitizer = MessageSanitizer()
    assert sanitizer.sanitize_text("  plain prompt  ") == "plain prompt"
    assert sanitizer.report()["hit"] is False


def test_process_messages_covers_string_and_text_parts_but_not_images():
    image = ImagePart.from_url("data:image/png;base64,AAAA")
    messages = [
        ConversationMessage(role="system", content="sys <script>x()</script>"),
        ConversationMessage(role="user", content=[TextPart(text="hi onclick=go()"), image]),
    ]
    sanitizer = MessageSanitizer()
    cleaned = sanitizer.process_messages(messages)

    assert cleaned[0].content == "sys"
    assert cleaned[1].content[0].text == "hi go()"
    assert cleaned[1].content[1] == image
    assert sanitizer.report()["hit"] is True
    # originals are not mutated
    assert messages[0].content == "sys <script>x()</script>"
