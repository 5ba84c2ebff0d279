"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|apikey\"?\s*[:=]\s*\"?[\w\.-]+\"?"
    r"|access_token\"\s*:\s*\"[^\"]+\""
    r"|refresh_token\"\s*:\s*\"[^\"]+\")",
    re.IGNORECASE,
)

REDACTED = "**REDACTED**"


def redact(text: str) -> str:
    return _SENSITIVE_PATTERN.sub(REDACTED, text)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )
        return True


__all__ = ["REDACTED", "SensitiveFilter", "redact"]
