"""Internal transport models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Capability(str, Enum):
    ACCEPTS_IMAGES = "accepts_images"
    ACCEPTS_NON_IMAGE_ATTACHMENTS = "accepts_non_image_attachments"
    ACCEPTS_NO_ATTACHMENTS = "accepts_no_attachments"


class ModelDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    display_name: str
    provider_name: str
    provider_model_id: str = Field(min_length=1)
    supports_image_attachments: bool = False
    supports_non_image_attachments: bool = False
    # hard rule: any attachment at all disqualifies the model
    accepts_no_attachments: bool = False
    color: str = ""

    @property
    def capabilities(self) -> frozenset[Capability]:
        tags: set[Capability] = set()
        if self.supports_image_attachments:
            tags.add(Capability.ACCEPTS_IMAGES)
        if self.supports_non_image_attachments:
            tags.add(Capability.ACCEPTS_NON_IMAGE_ATTACHMENTS)
        if self.accepts_no_attachments:
            tags.add(Capability.ACCEPTS_NO_ATTACHMENTS)
        return frozenset(tags)


class AttachmentCategory(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    ARCHIVE = "archive"
    DATA = "data"
    FILE = "file"


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    file_name: str
    category: AttachmentCategory
    # raw bytes held in memory, or an external URL
    payload: Union[bytes, str] = Field(repr=False)
    size_bytes: int = Field(default=0, ge=0)

    @property
    def is_image(self) -> bool:
        return self.category is AttachmentCategory.IMAGE

    @property
    def extension(self) -> str:
        if "." not in self.file_name:
            return ""
        return self.file_name.rsplit(".", 1)[-1].lower()


class TextPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str


class ImagePart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl

    @classmethod
    def from_url(cls, url: str) -> "ImagePart":
        return cls(image_url=ImageUrl(url=url))


MessagePart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class ConversationMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: Union[str, list[MessagePart]]

    def to_wire(self) -> dict:
        return self.model_dump(mode="json")


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_text: str
    credential: str
    requested_model_ids: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("requested_model_ids")
    @classmethod
    def _dedupe_model_ids(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        for model_id in value:
            if model_id in seen:
                continue
            seen.add(model_id)
            ordered.append(model_id)
        return ordered


class GenerationSuccess(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    status: Literal["success"] = "success"
    model_id: str
    content: str
    error_message: None = None
    created_at: datetime = Field(default_factory=_utcnow)
    token_count: int | None = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return True


class GenerationFailure(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    status: Literal["error"] = "error"
    model_id: str
    content: Literal[""] = ""
    error_message: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=_utcnow)
    token_count: None = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return False


GenerationResult = Annotated[Union[GenerationSuccess, GenerationFailure], Field(discriminator="status")]
