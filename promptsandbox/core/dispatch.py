"""Staggered fan-out of one completion call per model, joined with gather."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from promptsandbox.adapters.openrouter import upstream
from promptsandbox.config.settings import settings
from promptsandbox.core.credentials import CredentialValidator
from promptsandbox.core.errors import PromptSandboxError
from promptsandbox.core.models import (
    ConversationMessage,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
    ModelDescriptor,
)
from promptsandbox.filters.message_sanitizer import MessageSanitizer
from promptsandbox.util.logger import logger

PostFunc = Callable[[str, dict[str, Any], Mapping[str, str]], Awaitable[tuple[int, "dict[str, Any] | str"]]]
SleepFunc = Callable[[float], Awaitable[Any]]

INVALID_KEY_MESSAGE = "Invalid API key format"
MALFORMED_RESPONSE_MESSAGE = "Malformed response from gateway"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class DispatchScheduler:
    def __init__(
        self,
        validator: CredentialValidator | None = None,
        sanitizer: MessageSanitizer | None = None,
        interval_ms: int | None = None,
        post: PostFunc | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._validator = validator or CredentialValidator()
        self._sanitizer = sanitizer or MessageSanitizer()
        self._interval_ms = interval_ms
        self._post = post
        self._sleep = sleep

    @property
    def interval_seconds(self) -> float:
        interval = self._interval_ms if self._interval_ms is not None else settings.stagger_interval_ms
        return max(0, int(interval)) / 1000.0

    def stagger_offsets(self, count: int) -> list[float]:
        return [index * self.interval_seconds for index in range(count)]

    async def dispatch(
        self,
        models: Sequence[ModelDescriptor],
        messages: Sequence[ConversationMessage],
        credential: str,
    ) -> list[GenerationResult]:
        """Resolve one result per model, in *models* order, after every call has settled."""
        wire_messages = [message.to_wire() for message in self._sanitizer.process_messages(messages)]
        offsets = self.stagger_offsets(len(models))
        tasks = [
            self._dispatch_one(model, wire_messages, credential, offset)
            for model, offset in zip(models, offsets)
        ]
        return list(await asyncio.gather(*tasks))

    async def _dispatch_one(
        self,
        model: ModelDescriptor,
        wire_messages: list[dict],
        credential: str,
        offset: float,
    ) -> GenerationResult:
        if offset > 0:
            await self._sleep(offset)
        started = time.perf_counter()

        if not self._validator.is_well_formed_for_transmission(credential):
            logger.warning("dispatch skipped model=%s reason=invalid_key_format", model.id)
            return GenerationFailure(model_id=model.id, error_message=INVALID_KEY_MESSAGE, latency_ms=_elapsed_ms(started))

        post = self._post or upstream._post_completion
        payload = {"model": model.provider_model_id, "messages": wire_messages}
        headers = upstream._build_gateway_headers(self._validator.sanitize(credential))
        try:
            status_code, body = await post(settings.gateway_url, payload, headers)
        except PromptSandboxError as exc:
            logger.warning("dispatch failed model=%s error=%s", model.id, exc)
            return self._failure(model, str(exc), started)
        except Exception as exc:  # pragma: no cover - fail-safe
            logger.exception("dispatch unexpected error model=%s", model.id)
            return self._failure(model, str(exc), started)

        if not 200 <= status_code < 300:
            message = upstream._gateway_error_message(status_code, body)
            logger.warning("dispatch gateway error model=%s status=%s message=%s", model.id, status_code, message)
            return self._failure(model, message, started)
        if not isinstance(body, dict):
            logger.warning("dispatch malformed body model=%s status=%s", model.id, status_code)
            return self._failure(model, MALFORMED_RESPONSE_MESSAGE, started)

        content, tokens = upstream._extract_completion(body)
        latency_ms = _elapsed_ms(started)
        logger.info("dispatch ok model=%s latency_ms=%d tokens=%s", model.id, latency_ms, tokens)
        return GenerationSuccess(model_id=model.id, content=content, token_count=tokens, latency_ms=latency_ms)

    @staticmethod
    def _failure(model: ModelDescriptor, message: str, started: float) -> GenerationFailure:
        return GenerationFailure(
            model_id=model.id,
            error_message=message.strip() or "Unknown error occurred",
            latency_ms=_elapsed_ms(started),
        )
