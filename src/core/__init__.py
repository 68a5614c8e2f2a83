"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .validate import (
    ValidationError,
    ValidationResult,
    ScreenRequest,
    TemplateValidator,
    validate_template,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import (
    decode_json,
    decode_json_object,
    safe_json_dumps,
    JSONParseError,
    validate_json_size,
    validate_json_depth,
)
from .hash import Algorithm, hash_string
from .cache import LRUCache, Stats
from .id import new_request_id, new_session_id
from .tracing import init_tracer, trace_operation


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Validation
    "ValidationError",
    "ValidationResult",
    "ScreenRequest",
    "TemplateValidator",
    "validate_template",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "decode_json",
    "decode_json_object",
    "safe_json_dumps",
    "JSONParseError",
    "validate_json_size",
    "validate_json_depth",
    # DI
    "create_container",
    # Hashing
    "Algorithm",
    "hash_string",
    # Caching
    "LRUCache",
    "Stats",
    # IDs
    "new_request_id",
    "new_session_id",
    # Tracing
    "init_tracer",
    "trace_operation",
]
