"""Attachment-driven model capability filtering."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from promptsandbox.config.model_registry import ModelRegistry
from promptsandbox.core.models import Attachment, Capability, ModelDescriptor
from promptsandbox.util.logger import logger


class DeselectionReason(str, Enum):
    NO_ATTACHMENTS = "no_attachments"
    NON_IMAGE_UNSUPPORTED = "non_image_unsupported"
    IMAGE_UNSUPPORTED = "image_unsupported"


_REASON_TEXT = {
    DeselectionReason.NO_ATTACHMENTS: "they don't support attachments",
    DeselectionReason.NON_IMAGE_UNSUPPORTED: "they don't support non-image attachments",
    DeselectionReason.IMAGE_UNSUPPORTED: "they don't support image attachments",
}


@dataclass(slots=True)
class FilterOutcome:
    kept: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    reason: DeselectionReason | None = None

    def notice(self, registry: ModelRegistry) -> str:
        """Human-readable deselection message, empty when nothing was dropped."""
        if not self.dropped or self.reason is None:
            return ""
        names = ", ".join(registry.display_name(model_id) for model_id in self.dropped)
        verb = "was" if len(self.dropped) == 1 else "were"
        return f"Note: {names} {verb} automatically deselected because {_REASON_TEXT[self.reason]}."


def _is_compatible(descriptor: ModelDescriptor, has_non_image: bool) -> bool:
    tags = descriptor.capabilities
    if Capability.ACCEPTS_NO_ATTACHMENTS in tags:
        return False
    if has_non_image:
        return Capability.ACCEPTS_NON_IMAGE_ATTACHMENTS in tags
    return Capability.ACCEPTS_IMAGES in tags


class CompatibilityFilter:
    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    def filter(self, requested_ids: Sequence[str], attachments: Iterable[Attachment]) -> FilterOutcome:
        items = list(attachments)
        if not items:
            return FilterOutcome(kept=list(requested_ids))

        has_non_image = any(not item.is_image for item in items)
        outcome = FilterOutcome()
        zero_attachment_hit = False
        for model_id in requested_ids:
            if model_id not in self._registry:
                outcome.dropped.append(model_id)
                continue
            descriptor = self._registry.get(model_id)
            if _is_compatible(descriptor, has_non_image):
                outcome.kept.append(model_id)
                continue
            outcome.dropped.append(model_id)
            if Capability.ACCEPTS_NO_ATTACHMENTS in descriptor.capabilities:
                zero_attachment_hit = True

        if outcome.dropped:
            if zero_attachment_hit:
                outcome.reason = DeselectionReason.NO_ATTACHMENTS
            elif has_non_image:
                outcome.reason = DeselectionReason.NON_IMAGE_UNSUPPORTED
            else:
                outcome.reason = DeselectionReason.IMAGE_UNSUPPORTED
            logger.info(
                "compatibility filter dropped=%s kept=%s reason=%s",
                outcome.dropped,
                outcome.kept,
                outcome.reason.value,
            )
        return outcome
