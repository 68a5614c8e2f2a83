"""Handlers for screen requests."""

from .screens import ScreenHandler, to_context

__all__ = ["ScreenHandler", "to_context"]
