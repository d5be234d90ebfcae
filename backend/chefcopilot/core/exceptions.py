"""
Exception hierarchy for the catalog chat backend.

Only configuration errors, invalid requests and a failed generation call
are meant to reach the HTTP caller. Evidence failures (embedding, vector
search, lexical store) are caught inside the retrievers and turned into an
empty result.
"""

from typing import List, Optional


class CatalogChatError(Exception):
    """Base class for all application errors."""
    pass


class InvalidInputError(CatalogChatError):
    """Raised when a request is malformed. Lists every problem at once."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.missing_fields = missing_fields or []


class DependencyUnavailableError(CatalogChatError):
    """An external collaborator (embedding, vector store, database) cannot serve."""
    pass


class ConfigurationError(CatalogChatError, ValueError):
    """Missing credentials or settings required to build a component."""
    pass


class GenerationError(CatalogChatError):
    """The answer-generation service failed."""
    pass
