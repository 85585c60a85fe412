"""Conversation assembly from prompt text and attachments."""

from __future__ import annotations

from collections.abc import Sequence

from promptsandbox.config.settings import settings
from promptsandbox.core.attachments import AttachmentEncoder
from promptsandbox.core.errors import AttachmentReadError
from promptsandbox.core.models import Attachment, ConversationMessage, ImagePart, TextPart
from promptsandbox.util.logger import logger


class MessageBuilder:
    def __init__(self, encoder: AttachmentEncoder | None = None, system_prompt: str | None = None) -> None:
        self._encoder = encoder or AttachmentEncoder()
        self._system_prompt = system_prompt

    @property
    def system_prompt(self) -> str:
        return self._system_prompt if self._system_prompt is not None else settings.system_prompt

    def build(self, prompt_text: str, attachments: Sequence[Attachment] = ()) -> list[ConversationMessage]:
        system = ConversationMessage(role="system", content=self.system_prompt)
        if not attachments:
            return [system, ConversationMessage(role="user", content=prompt_text)]

        text = prompt_text
        image_parts: list[ImagePart] = []
        for attachment in attachments:
            if attachment.is_image:
                image_parts.append(self._encoder.encode(attachment))
                continue
            if not self._encoder.supports_streaming_read(attachment):
                logger.debug("skip attachment without readable content name=%s", attachment.file_name)
                continue
            try:
                body = self._encoder.encode(attachment)
            except AttachmentReadError as exc:
                logger.warning("attachment read failed, using placeholder: %s", exc)
                text += f"\n\n{self._encoder.read_failure_notice(attachment)}"
                continue
            name = attachment.file_name
            text += f"\n\n--- {name} ---\n{body}\n--- End of {name} ---"

        parts: list[TextPart | ImagePart] = [TextPart(text=text), *image_parts]
        return [system, ConversationMessage(role="user", content=parts)]
