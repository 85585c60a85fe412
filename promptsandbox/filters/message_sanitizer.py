"""Outgoing message scrubbing: script blocks, javascript: schemes, inline handlers."""

from __future__ import annotations

import re
from collections.abc import Iterable

from promptsandbox.core.models import ConversationMessage, TextPart
from promptsandbox.util.logger import logger


_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JAVASCRIPT_SCHEME_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)


class MessageSanitizer:
    name = "message_sanitizer"

    def __init__(self) -> None:
        self._report = {"filter": self.name, "hit": False, "stripped_chars": 0}

    def sanitize_text(self, text: str) -> str:
        if not isinstance(text, str):
            return ""
        cleaned = _SCRIPT_BLOCK_RE.sub("", text)
        cleaned = _JAVASCRIPT_SCHEME_RE.sub("", cleaned)
        cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
        cleaned = cleaned.strip()
        trimmed = text.strip()
        if cleaned != trimmed:
            self._report["hit"] = True
            self._report["stripped_chars"] += len(trimmed) - len(cleaned)
        return cleaned

    def sanitize_message(self, message: ConversationMessage) -> ConversationMessage:
        if isinstance(message.content, str):
            return message.model_copy(update={"content": self.sanitize_text(message.content)})
        parts = [
            part.model_copy(update={"text": self.sanitize_text(part.text)}) if isinstance(part, TextPart) else part
            for part in message.content
        ]
        return message.model_copy(update={"content": parts})

    def process_messages(self, messages: Iterable[ConversationMessage]) -> list[ConversationMessage]:
        self._report = {"filter": self.name, "hit": False, "stripped_chars": 0}
        sanitized = [self.sanitize_message(message) for message in messages]
        if self._report["hit"]:
            logger.info("message sanitizer stripped content chars=%s", self._report["stripped_chars"])
        return sanitized

    def report(self) -> dict:
        return dict(self._report)
