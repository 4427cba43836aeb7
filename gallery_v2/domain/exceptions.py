"""
Exceptions raised inside the gallery v2 query layer.

These never cross the public call boundary: the server API facade converts
them into failed ``QueryResult`` objects before any request is issued.
"""

from __future__ import annotations


class GalleryQueryError(Exception):
    """Base class for query layer errors."""


class UnsupportedPatternError(GalleryQueryError):
    """Raised when a name pattern uses a wildcard shape the catalog cannot express."""

    def __init__(self, pattern: str, message: str):
        super().__init__(message)
        self.pattern = pattern
        self.message = message
