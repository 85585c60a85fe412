"""
Gateway endpoint checks, header assembly and the single completions POST.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping
from urllib.parse import urlparse

import httpx

from promptsandbox.config.settings import settings
from promptsandbox.core.errors import GatewayUnreachableError, InsecureTransportError
from promptsandbox.util.logger import logger

_gateway_async_client: httpx.AsyncClient | None = None
_gateway_client_lock: asyncio.Lock | None = None


def _gateway_http_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=max(10, int(settings.gateway_max_connections)),
        max_keepalive_connections=max(5, int(settings.gateway_max_keepalive_connections)),
    )


def _gateway_http_timeout() -> httpx.Timeout:
    timeout = float(settings.gateway_timeout_seconds)
    return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=timeout)


async def _get_gateway_async_client() -> httpx.AsyncClient:
    global _gateway_async_client, _gateway_client_lock
    if _gateway_async_client is not None:
        return _gateway_async_client
    if _gateway_client_lock is None:
        _gateway_client_lock = asyncio.Lock()
    async with _gateway_client_lock:
        if _gateway_async_client is None:
            _gateway_async_client = httpx.AsyncClient(
                timeout=_gateway_http_timeout(),
                limits=_gateway_http_limits(),
            )
    return _gateway_async_client


async def close_gateway_async_client() -> None:
    global _gateway_async_client
    if _gateway_async_client is not None:
        await _gateway_async_client.aclose()
        _gateway_async_client = None


def _ensure_secure_endpoint(url: str) -> str:
    parsed = urlparse((url or "").strip())
    if parsed.scheme != "https":
        raise InsecureTransportError("API endpoint must use HTTPS")
    if not parsed.netloc:
        raise InsecureTransportError("API endpoint host is missing")
    return parsed.geturl()


def _build_gateway_headers(credential: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {credential}",
        "HTTP-Referer": settings.app_referer,
        "X-Title": settings.app_title,
        "Content-Type": "application/json",
    }


def _decode_json_or_text(body: bytes) -> dict[str, Any] | str:
    text = body.decode("utf-8", errors="replace")
    if not text:
        return ""
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
        return text
    except json.JSONDecodeError:
        return text


def _gateway_error_message(status_code: int, body: dict[str, Any] | str) -> str:
    """Structured ``error.message`` when present, else a status-derived message."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message
    reason = httpx.codes.get_reason_phrase(status_code) or "Unknown Status"
    return f"HTTP {status_code}: {reason}"


def _extract_completion(body: dict[str, Any]) -> tuple[str, int | None]:
    content = ""
    choices = body.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            content = message["content"]
    tokens = None
    usage = body.get("usage")
    if isinstance(usage, dict) and isinstance(usage.get("total_tokens"), int):
        tokens = usage["total_tokens"]
    return content or "No response received", tokens


async def _post_completion(
    url: str,
    payload: dict[str, Any],
    headers: Mapping[str, str],
) -> tuple[int, dict[str, Any] | str]:
    target = _ensure_secure_endpoint(url)
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    logger.debug("post_completion start url=%s model=%s payload_bytes=%d", target, payload.get("model"), len(body))
    client = await _get_gateway_async_client()
    try:
        response = await client.post(url=target, content=body, headers=dict(headers))
        logger.debug("post_completion done url=%s status=%s", target, response.status_code)
        return response.status_code, _decode_json_or_text(response.content)
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
        logger.warning("post_completion http_error url=%s error=%s", target, detail)
        raise GatewayUnreachableError(f"Gateway unreachable: {detail}") from exc
