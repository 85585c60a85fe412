"""HTTP routes over the orchestrator."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from promptsandbox.config.settings import settings
from promptsandbox.core.aggregator import summarize
from promptsandbox.core.attachments import ingest_bytes, ingest_url
from promptsandbox.core.credentials import CredentialValidator
from promptsandbox.core.errors import ConfigurationError
from promptsandbox.core.models import Attachment, GenerationRequest
from promptsandbox.core.orchestrator import PromptOrchestrator
from promptsandbox.util.logger import logger


router = APIRouter()
_orchestrator: PromptOrchestrator | None = None
_validator = CredentialValidator()


class AttachmentIn(BaseModel):
    file_name: str = Field(min_length=1)
    content_base64: str | None = None
    url: str | None = None
    size_bytes: int = Field(default=0, ge=0)


class GenerateBody(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    prompt: str
    credential: str = ""
    model_ids: list[str] = Field(default_factory=list)
    attachments: list[AttachmentIn] = Field(default_factory=list)


class CompatibilityBody(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_ids: list[str] = Field(default_factory=list)
    attachments: list[AttachmentIn] = Field(default_factory=list)


class CredentialBody(BaseModel):
    credential: str = ""


def _get_orchestrator() -> PromptOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = PromptOrchestrator()
    return _orchestrator


def _error_response(status_code: int, reason: str, detail: str, **extra: Any) -> JSONResponse:
    content: dict[str, Any] = {
        "error": {
            "message": detail,
            "type": "promptsandbox_error",
            "code": reason,
        }
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _to_attachment(item: AttachmentIn) -> Attachment:
    if item.content_base64 is not None:
        try:
            data = base64.b64decode(item.content_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"{item.file_name}: content_base64 is not valid base64") from exc
        return ingest_bytes(item.file_name, data)
    if item.url:
        return ingest_url(item.file_name, item.url, size_bytes=item.size_bytes)
    raise ValueError(f"{item.file_name}: content_base64 or url is required")


def _placeholder_attachment(item: AttachmentIn) -> Attachment:
    # compatibility only looks at the category
    return ingest_url(item.file_name, item.url or "", size_bytes=item.size_bytes)


@router.get("/models")
def list_models() -> dict:
    return {"models": [model.model_dump(mode="json") for model in _get_orchestrator().get_all_models()]}


@router.post("/credentials/validate")
async def validate_credential(payload: dict[str, Any]) -> JSONResponse:
    try:
        body = CredentialBody.model_validate(payload)
    except ValidationError as exc:
        return _error_response(400, "invalid_parameters", str(exc))
    check = _validator.validate(body.credential)
    return JSONResponse(content={"ok": check.ok, "problems": check.problems})


@router.post("/compatibility")
async def check_compatibility(payload: dict[str, Any]) -> JSONResponse:
    try:
        body = CompatibilityBody.model_validate(payload)
    except ValidationError as exc:
        return _error_response(400, "invalid_parameters", str(exc))
    orchestrator = _get_orchestrator()
    attachments = [_placeholder_attachment(item) for item in body.attachments]
    outcome = orchestrator.compatibility.filter(body.model_ids, attachments)
    return JSONResponse(
        content={
            "kept": outcome.kept,
            "dropped": outcome.dropped,
            "reason": outcome.reason.value if outcome.reason else None,
            "notice": outcome.notice(orchestrator.registry),
        }
    )


@router.post("/generate")
async def generate(payload: dict[str, Any]) -> JSONResponse:
    try:
        body = GenerateBody.model_validate(payload)
    except ValidationError as exc:
        return _error_response(400, "invalid_parameters", str(exc))

    if not body.prompt.strip():
        return _error_response(400, "empty_prompt", "Prompt must not be empty")
    if not body.credential.strip():
        return _error_response(400, "missing_credential", "Please enter your OpenRouter API key")
    check = _validator.validate(body.credential.strip())
    if not check.ok:
        return _error_response(
            400,
            "invalid_credential",
            f"Invalid API key: {', '.join(check.problems)}",
            problems=check.problems,
        )
    if len(body.attachments) > settings.max_attachments:
        return _error_response(400, "too_many_attachments", f"At most {settings.max_attachments} attachments are allowed")

    try:
        attachments = [_to_attachment(item) for item in body.attachments]
    except ValueError as exc:
        return _error_response(400, "invalid_attachment", str(exc))

    request = GenerationRequest(
        prompt_text=body.prompt.strip(),
        credential=body.credential.strip(),
        requested_model_ids=body.model_ids,
        attachments=attachments,
    )
    orchestrator = _get_orchestrator()
    try:
        models, outcome = orchestrator.plan(request)
    except ConfigurationError as exc:
        logger.warning("generate rejected: %s", exc)
        return _error_response(400, "configuration_error", str(exc))

    results = await orchestrator.run(request, models)
    return JSONResponse(
        content={
            "results": [item.model_dump(mode="json") for item in results],
            "summary": summarize(results).model_dump(),
            "notice": outcome.notice(orchestrator.registry),
        }
    )
