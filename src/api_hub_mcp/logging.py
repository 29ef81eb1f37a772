"""Process logging and argument redaction for tool-call logs."""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, Mapping, Optional, TextIO


_SENSITIVE_KEYS = re.compile(r"token|secret|api[_-]?key|password|authorization", re.IGNORECASE)
_MASK = "***REDACTED***"
# httpx logs every request URL at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str, stream: Optional[TextIO] = None) -> None:
    # stdout belongs to the stdio transport.
    logging.basicConfig(
        level=level.upper(),
        stream=stream or sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if logging.getLogger().getEffectiveLevel() > logging.DEBUG:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def redact_payload(payload: Any) -> Any:
    """Copy ``payload`` with credential-like keys masked at any depth."""
    if isinstance(payload, Mapping):
        return {
            key: _MASK if _SENSITIVE_KEYS.search(str(key)) else redact_payload(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple)):
        return [redact_payload(item) for item in payload]
    return payload
