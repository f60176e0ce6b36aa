"""Structured Logging for ursa

structlog on top of stdlib logging, one named logger per layer:
- ``ursa.schema``: validator construction (build errors, duplicate fields)
- ``ursa.sources``: request and body adapters (caps, content types, decoding)
- ``ursa.boundary``: FastAPI dependency rejections

Raw input can end up in events, so values under sensitive field names are
redacted and long strings are clipped before rendering.

The library never configures logging on import; applications call
``configure_logging`` once at startup.

Usage:
    configure_logging(level="DEBUG", json_logs=False)

    with validation_context(route="/signup"):
        schema.parse(request)
"""
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from structlog.types import EventDict, Processor

SENSITIVE_MARKERS = ("password", "passwd", "secret", "token", "authorization", "cookie")
MAX_LOGGED_CHARS = 256

LAYERS = ("schema", "sources", "boundary")


# ============================================================================
# Processors
# ============================================================================

def _is_sensitive(name: object) -> bool:
    lowered = str(name).lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def _redact_field_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Hide values whose key, or whose ``field`` path, names a secret."""
    if _is_sensitive(event_dict.get("field", "")) and "value" in event_dict:
        event_dict["value"] = "[REDACTED]"
    for key in list(event_dict):
        if key != "event" and _is_sensitive(key):
            event_dict[key] = "[REDACTED]"
    return event_dict


def _clip_long_strings(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, (str, bytes)) and len(value) > MAX_LOGGED_CHARS:
            event_dict[key] = f"{value[:MAX_LOGGED_CHARS]!r}... ({len(value)} chars)"
    return event_dict


def _add_library_version(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    from ursa import __version__

    event_dict.setdefault("ursa_version", __version__)
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors applied to structlog and foreign (stdlib) records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_library_version,
        _redact_field_values,
        _clip_long_strings,
    ]


# ============================================================================
# Setup
# ============================================================================

def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    level: str | None = None,
    json_logs: bool | None = None,
) -> None:
    """Route ursa (and python-multipart) logs through one stdout handler.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
        json_logs: JSON output instead of console output. Defaults to settings.LOG_JSON.
    """
    from ursa.config import get_settings

    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    shared = get_shared_processors()

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_logs),
        ],
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))

    # multipart parser logs every malformed part at debug/error
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


@contextmanager
def validation_context(**values: object) -> Iterator[None]:
    """Bind values (route, request id) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


# ============================================================================
# Layer Loggers
# ============================================================================

class LoggerRegistry:
    """One lazily created logger per library layer."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, layer: str) -> structlog.stdlib.BoundLogger:
        if layer not in LAYERS:
            raise ValueError(f"unknown logging layer {layer!r}, expected one of {LAYERS}")
        if layer not in cls._loggers:
            cls._loggers[layer] = structlog.get_logger(f"ursa.{layer}")
        return cls._loggers[layer]


def schema_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("schema")


def source_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("sources")


def boundary_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("boundary")
