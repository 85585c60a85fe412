"""Gateway credential checks and optional at-rest obfuscation."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Protocol


KEY_PREFIX = "sk-or-v1-"
MIN_KEY_LENGTH = 25
MAX_KEY_LENGTH = 200
# exclusive lower bound used by the pre-dispatch check
TRANSMISSION_MIN_LENGTH = 20

_ALLOWED_CHARS_RE = re.compile(r"^[A-Za-z0-9_-]+$")
# wire check is narrower: no underscore
_TRANSMISSION_CHARS_RE = re.compile(r"^[A-Za-z0-9-]+$")
_STRIP_RE = re.compile(r"[^\w-]")


@dataclass(slots=True)
class CredentialCheck:
    ok: bool
    problems: list[str] = field(default_factory=list)


class CredentialValidator:
    def validate(self, raw: str) -> CredentialCheck:
        """Evaluate every rule and report each one that fails."""
        key = raw if isinstance(raw, str) else ""
        problems: list[str] = []
        if not key.startswith(KEY_PREFIX):
            problems.append("Invalid API key format")
        if len(key) < MIN_KEY_LENGTH:
            problems.append("API key too short")
        if len(key) > MAX_KEY_LENGTH:
            problems.append("API key too long")
        if not _ALLOWED_CHARS_RE.match(key):
            problems.append("API key contains invalid characters")
        return CredentialCheck(ok=not problems, problems=problems)

    @staticmethod
    def sanitize(raw: str) -> str:
        if not isinstance(raw, str):
            return ""
        return _STRIP_RE.sub("", raw).strip()

    def is_well_formed_for_transmission(self, raw: str) -> bool:
        key = self.sanitize(raw)
        if not key:
            return False
        return (
            key.startswith(KEY_PREFIX)
            and TRANSMISSION_MIN_LENGTH < len(key) < MAX_KEY_LENGTH
            and bool(_TRANSMISSION_CHARS_RE.match(key))
        )


class CredentialTransform(Protocol):
    def encode(self, value: str) -> str: ...

    def decode(self, stored: str) -> str: ...


class IdentityTransform:
    def encode(self, value: str) -> str:
        return value

    def decode(self, stored: str) -> str:
        return stored


class ReversedBase64Transform:
    """Reverse-then-base64 obfuscation for credentials kept on the client.

    Not encryption: it only keeps the key from being readable at a glance.
    Malformed input decodes to itself so plain keys pass through.
    """

    def encode(self, value: str) -> str:
        return base64.b64encode(value[::-1].encode("utf-8")).decode("ascii")

    def decode(self, stored: str) -> str:
        try:
            return base64.b64decode(stored.encode("ascii"), validate=True).decode("utf-8")[::-1]
        except (binascii.Error, UnicodeError, ValueError):
            return stored
