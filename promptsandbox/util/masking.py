"""Value masking for log output."""

from __future__ import annotations

import re


def mask_for_log(value: str) -> str:
    """Return a partially-masked version of *value* safe for log output.

    Credentials share a long common prefix (``sk-or-v1-``), so only the
    tail carries any identifying signal:

    - values of 12+ chars keep the scheme prefix and the last 4 chars;
    - shorter values keep at most the first and last char.
    """
    normalized = re.sub(r"\s+", " ", value or "").strip()
    length = len(normalized)
    if length <= 0:
        return ""
    if length == 1:
        return "*"
    if length < 12:
        return f"{normalized[:1]}{'*' * (length - 2)}{normalized[-1:]}"

    head = normalized.rfind("-", 0, 10) + 1 if normalized.startswith("sk-") else 2
    tail = 4
    if head + tail >= length:
        head, tail = 1, 1
    return f"{normalized[:head]}{'*' * (length - head - tail)}{normalized[-tail:]}"
