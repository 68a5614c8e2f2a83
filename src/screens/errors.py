"""Screen resolution errors."""


class ResolutionError(Exception):
    """Base error for screen resolution."""

    code = "resolution_failed"
    status_code = 500

    def __init__(self, screen_id: str, message: str) -> None:
        super().__init__(message)
        self.screen_id = screen_id
        self.message = message


class ScreenNotFoundError(ResolutionError):
    """No template exists for the screen id."""

    code = "not_found"
    status_code = 404

    def __init__(self, screen_id: str, tried: list[str] | None = None) -> None:
        super().__init__(screen_id, f"Screen '{screen_id}' not found")
        self.tried = tried or [screen_id]


class StoreUnavailableError(ResolutionError):
    """The template store could not be reached."""

    code = "store_unavailable"
    status_code = 503


class TemplateDecodeError(ResolutionError):
    """The stored template is not a usable screen document."""

    code = "invalid_template"
    status_code = 500
