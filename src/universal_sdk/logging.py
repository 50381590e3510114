"""Logging helpers with redaction."""

from __future__ import annotations

import logging
import re
from typing import Dict, Mapping


_SENSITIVE_KEYS = re.compile(r"(authorization|cookie|token|secret|api[_-]?key|password)", re.IGNORECASE)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    redacted: Dict[str, str] = {}
    for key, value in headers.items():
        if _SENSITIVE_KEYS.search(key):
            redacted[key] = "***REDACTED***"
        else:
            redacted[key] = value
    return redacted
