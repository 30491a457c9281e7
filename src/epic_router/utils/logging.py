"""
Structured logging configuration for the epic router.

Structlog is the logging system for every module in the package:
  - JSON output in production and staging for log aggregation
  - Colored console output in development
  - Context propagation (issue_number, analysis_mode, request_id)
  - Integration with standard library logging
  - Redaction of provider credentials that end up in log events

Usage:
    from epic_router.utils.logging import setup_logging, get_logger

    setup_logging(log_level="INFO", environment="development")

    logger = get_logger(__name__)
    logger.info("epic_classified", issue_number=42, epic_type="foundation")

    # Bound context persists across calls on the returned logger
    logger = logger.bind(issue_number=42)
    logger.info("routing_decided", primary="epic-breakdown-agent")
"""

import logging
import re
import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

SERVICE_NAME = "epic-router"

# Credential shapes for the providers a routing profile can name
_SENSITIVE_PATTERNS = [
    re.compile(r"(ghp_[a-zA-Z0-9]{36,})"),           # GitHub PAT
    re.compile(r"(ghs_[a-zA-Z0-9]{36,})"),           # GitHub App token
    re.compile(r"(sk-ant-[a-zA-Z0-9\-]{40,})"),      # Anthropic API key
    re.compile(r"(sk-[a-zA-Z0-9]{40,})"),            # OpenAI API key
    re.compile(r"(AKIA[0-9A-Z]{16})"),               # AWS access key id (bedrock)
    re.compile(r"(Bearer\s+[a-zA-Z0-9\-_.]+)"),      # Bearer tokens
]

_SENSITIVE_KEYS = frozenset({
    "token", "secret", "password", "api_key", "apikey",
    "authorization", "credentials", "private_key",
    "access_token", "refresh_token",
    "anthropic_api_key", "openai_api_key", "github_token",
})


def _sanitize_value(value: Any) -> Any:
    """Redact credential-looking strings."""
    if isinstance(value, str):
        for pattern in _SENSITIVE_PATTERNS:
            if pattern.search(value):
                return "***REDACTED***"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Structlog processor that redacts sensitive data from log events.

    Key names are checked first (``*_token``, ``api_key`` ...), then string
    values are matched against known credential formats.
    """
    sanitized = {}
    for key, value in event_dict.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = _sanitize_value(value)
    return sanitized


def _add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _drop_color_message_key(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Uvicorn duplicates the message in 'color_message'; drop it."""
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    environment: str = "development",
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the process.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Application environment (development, staging, production)
        json_output: Force JSON output (auto-detected from environment if None)
    """
    if json_output is None:
        json_output = environment in ("production", "staging")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        _add_app_context,
        _drop_color_message_key,
        _sanitize_event_dict,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event_to=40)

    stdlib_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Replace existing handlers so repeated setup does not duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(stdlib_formatter)
    console_handler.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for uvicorn_logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(uvicorn_logger_name)
        uvicorn_logger.handlers = [console_handler]
        uvicorn_logger.propagate = False

    logging.captureWarnings(True)


def get_logger(name: Optional[str] = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger, optionally pre-bound with context.

    Example:
        logger = get_logger(__name__, issue_number=42)
        logger.info("context_stored")  # issue_number included automatically
    """
    log = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log


def bind_contextvars(**kwargs: Any) -> None:
    """
    Bind context variables for all loggers in the current async context.

    Used for request-scoped values such as request_id and issue_number.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_contextvars(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_contextvars() -> None:
    structlog.contextvars.clear_contextvars()


def generate_request_id() -> str:
    """Short unique identifier for request tracking."""
    return f"req-{uuid.uuid4().hex[:12]}"
