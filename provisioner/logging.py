"""
logging.py

Responsibility: Logger setup for the `provisioner` package and token redaction.

Tokens must never reach a log line in full; anything that may contain one goes
through `redact()` first.
"""

from __future__ import annotations

import logging
import re

_root_logger = logging.getLogger("provisioner")

_TOKEN_PATTERNS = [
    re.compile(r"ghp_[A-Za-z0-9]{20,}"),
    re.compile(r"gho_[A-Za-z0-9]{20,}"),
    re.compile(r"ghs_[A-Za-z0-9]{20,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}"),
]


def configure_logging(
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Attach a handler to the `provisioner` logger.

    Calling this more than once replaces the previously installed handler.
    """
    if format_string is None:
        format_string = "%(levelname)s %(name)s: %(message)s"
    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    for existing in list(_root_logger.handlers):
        _root_logger.removeHandler(existing)
    _root_logger.addHandler(handler)
    _root_logger.setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    if name is None:
        return _root_logger
    return logging.getLogger(f"provisioner.{name}")


def redact(text: str) -> str:
    out = text
    for pattern in _TOKEN_PATTERNS:
        out = pattern.sub("[REDACTED]", out)
    return out
