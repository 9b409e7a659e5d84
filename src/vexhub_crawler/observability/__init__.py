"""Public observability primitives: structured logging and redaction."""

from vexhub_crawler.observability.logging import (
    configure_logging,
    parse_log_level,
    redact_event,
    redact_string,
    redact_url,
)

__all__ = [
    "configure_logging",
    "parse_log_level",
    "redact_event",
    "redact_string",
    "redact_url",
]
