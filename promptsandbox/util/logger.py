"""Project logger: stderr plus an optional rotating file, with key masking."""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from promptsandbox.config.settings import settings
from promptsandbox.util.masking import mask_for_log


LOG_FILE_NAME = "promptsandbox.log"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5

_GATEWAY_KEY_RE = re.compile(r"sk-or-v1-[A-Za-z0-9_-]+")


class GatewayKeyMaskingFilter(logging.Filter):
    """Rewrite any gateway key that reaches a log record into its masked form."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "sk-or-v1-" in message:
            record.msg = _GATEWAY_KEY_RE.sub(lambda match: mask_for_log(match.group(0)), message)
            record.args = None
        return True


def _normalize_level(raw: str) -> int:
    level = logging.getLevelName(str(raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(log_dir: str, formatter: logging.Formatter) -> logging.Handler | None:
    if not log_dir.strip():
        return None
    try:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            directory / LOG_FILE_NAME,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # read-only working directory: stderr only
        return None
    handler.setFormatter(formatter)
    handler.addFilter(GatewayKeyMaskingFilter())
    return handler


def _build_logger() -> logging.Logger:
    configured_logger = logging.getLogger("promptsandbox")
    if configured_logger.handlers:
        return configured_logger

    resolved_level = _normalize_level(settings.log_level)
    configured_logger.setLevel(resolved_level)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(GatewayKeyMaskingFilter())
    configured_logger.addHandler(stream_handler)

    file_handler = _file_handler(settings.log_dir, formatter)
    if file_handler is not None:
        configured_logger.addHandler(file_handler)

    configured_logger.propagate = False
    return configured_logger


logger = _build_logger()

