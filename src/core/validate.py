"""Input validation with strong typing and multiple backends."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from returns.result import Result, Success, Failure

from pydantic import BaseModel, Field, field_validator, ConfigDict

from .json import JSONParseError, validate_json_depth, validate_json_size
from .logging_config import get_logger

logger = get_logger(__name__)


# Validation limits
MAX_TEMPLATE_SIZE = 512 * 1024  # 512KB
MAX_TEMPLATE_DEPTH = 256  # JSON nesting; each component level adds two (node + children list)
MAX_SCREEN_ID_LENGTH = 128
SCREEN_ID_PATTERN = r"^[A-Za-z0-9_.\-]+$"


class ValidationError(Exception):
    """Validation failed."""

    pass


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    field: str | None = None
    value: Any | None = None


class ScreenRequest(BaseModel):
    """Validated screen fetch request (path + query parameters)."""

    model_config = ConfigDict(strict=False, extra="ignore", frozen=True)

    screen_id: str = Field(min_length=1, max_length=MAX_SCREEN_ID_LENGTH, pattern=SCREEN_ID_PATTERN)
    user_id: str | None = None
    route_id: str | None = None
    service_date: datetime | None = None
    device_model: str | None = None
    app_version: str | None = None
    locale: str | None = Field(default=None, max_length=35, pattern=SCREEN_ID_PATTERN)

    @field_validator("screen_id")
    @classmethod
    def validate_screen_id(cls, v: str) -> str:
        """Reject path traversal segments."""
        if ".." in v:
            raise ValueError("screen_id must not contain '..'")
        return v

    @field_validator("user_id", "route_id", "device_model", "app_version", "locale", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty query values as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("service_date", mode="before")
    @classmethod
    def lenient_service_date(cls, v: Any) -> Any:
        """An unparsable RFC3339 date is ignored rather than rejected."""
        if v is None or isinstance(v, datetime):
            return v
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                logger.warning("service_date_ignored", value=v)
                return None
        return None


class TemplateValidator:
    """Validates raw screen templates before decoding."""

    @staticmethod
    def validate(
        template: Any,
        raw: str | bytes,
        max_size: int = MAX_TEMPLATE_SIZE,
        max_depth: int = MAX_TEMPLATE_DEPTH,
    ) -> None:
        """
        Validate a template payload.

        Args:
            template: Decoded template
            raw: Encoded template (for size limits)
            max_size: Maximum encoded size in bytes
            max_depth: Maximum JSON nesting depth

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(template, dict):
            raise ValidationError(f"Template must be a JSON object, got {type(template).__name__}")

        try:
            validate_json_size(raw, max_size, "Template")
            validate_json_depth(template, max_depth)
        except JSONParseError as e:
            raise ValidationError(str(e)) from e

        if "components" not in template and "component" not in template:
            raise ValidationError("Template missing required 'components' field")


def validate_template(
    template: Any,
    raw: str | bytes,
    max_size: int = MAX_TEMPLATE_SIZE,
    max_depth: int = MAX_TEMPLATE_DEPTH,
) -> Result[None, ValidationResult]:
    """
    Validate a screen template (Result pattern version).

    Returns:
        Result indicating success or validation error
    """
    try:
        TemplateValidator.validate(template, raw, max_size, max_depth)
        return Success(None)
    except ValidationError as e:
        return Failure(ValidationResult(str(e)))
