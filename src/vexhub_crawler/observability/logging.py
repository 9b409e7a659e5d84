"""Structured logging setup: structlog on top of stdlib ``logging`` with redaction."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Mapping, MutableMapping
from typing import IO, Any, Final
from urllib.parse import urlsplit, urlunsplit

import structlog

_REDACTED_VALUE: Final[str] = "***REDACTED***"
_DEFAULT_LOGGER_NAME: Final[str] = "vexhub_crawler"

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "cookie",
    "private_key",
)

_SENSITIVE_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_BEARER_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_URL_USERINFO_PATTERN: Final[re.Pattern[str]] = re.compile(r"\b([a-z][a-z0-9+.-]*://)[^/\s@]+@")

_EVENT_KEYS: Final[frozenset[str]] = frozenset({"event", "level", "logger", "timestamp"})


def configure_logging(
    level: int | str = "INFO",
    *,
    json_output: bool = False,
    stream: IO[str] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Route structlog through the stdlib ``logger_name`` logger and return it.

    Calling this again replaces the handler installed by the previous call.
    """

    resolved_level = parse_log_level(level)
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_event,
    ]

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(resolved_level)
    logger.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    return logger


def parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def redact_event(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask secret-looking keys and credentials embedded in strings."""
    for key in list(event_dict):
        if key in _EVENT_KEYS:
            if isinstance(event_dict[key], str):
                event_dict[key] = redact_string(event_dict[key])
            continue
        event_dict[key] = _redact_value(event_dict[key], key_context=key)
    return event_dict


def redact_url(url: str) -> str:
    """Drop the userinfo component of ``url``; non-URLs pass through unchanged."""
    getter, separator, rest = url.rpartition("::")
    if separator:
        return f"{getter}::{redact_url(rest)}"
    parts = urlsplit(url)
    if not parts.scheme or parts.hostname is None or "@" not in parts.netloc:
        return url
    netloc = parts.hostname
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact_string(text: str) -> str:
    redacted = _URL_USERINFO_PATTERN.sub(r"\1", text)
    redacted = _SENSITIVE_ASSIGNMENT_PATTERN.sub(
        lambda match: f"{match.group(1)}{match.group(2)}{_REDACTED_VALUE}", redacted
    )
    return _BEARER_TOKEN_PATTERN.sub(f"Bearer {_REDACTED_VALUE}", redacted)


def _redact_value(value: object, *, key_context: str | None) -> object:
    if key_context is not None and _requires_redaction_for_key(key_context):
        return _REDACTED_VALUE

    if isinstance(value, str):
        return redact_string(value)

    if isinstance(value, (list, tuple)):
        return [_redact_value(item, key_context=None) for item in value]

    if isinstance(value, Mapping):
        return {
            str(key): _redact_value(item, key_context=str(key)) for key, item in value.items()
        }

    return value


def _requires_redaction_for_key(key: str) -> bool:
    key_lower = key.lower()
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


__all__ = [
    "configure_logging",
    "parse_log_level",
    "redact_event",
    "redact_string",
    "redact_url",
]
