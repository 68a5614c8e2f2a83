"""
Screen resolution
Template stores and the service that selects and decodes screen documents.
"""

from .errors import ResolutionError, ScreenNotFoundError, StoreUnavailableError, TemplateDecodeError
from .store import FileTemplateStore, HttpTemplateStore, MemoryTemplateStore, TemplateStore
from .service import ScreenService
from .defaults import TECHNICIAN_DASHBOARD_ID, default_templates

__all__ = [
    "ResolutionError",
    "ScreenNotFoundError",
    "StoreUnavailableError",
    "TemplateDecodeError",
    "TemplateStore",
    "MemoryTemplateStore",
    "FileTemplateStore",
    "HttpTemplateStore",
    "ScreenService",
    "TECHNICIAN_DASHBOARD_ID",
    "default_templates",
]
