"""
Resources
Background loading of remote images referenced by render trees.
"""

from .loader import ResourceLoader, ResourceResult

__all__ = ["ResourceLoader", "ResourceResult"]
