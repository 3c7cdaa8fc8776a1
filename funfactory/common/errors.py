"""
Error taxonomy shared by the coloring book, PDF, and chat features.
"""

from __future__ import annotations


class FunFactoryError(Exception):
    """Base class for every error raised by the funfactory package."""


class ValidationError(FunFactoryError, ValueError):
    """Missing or malformed user input, detected before any remote call."""


class RemoteGenerationError(FunFactoryError, RuntimeError):
    """An image or chat generation call failed, timed out, or returned nothing."""


class AssemblyError(FunFactoryError):
    """The printable document could not be produced; nothing was written."""


class PersistenceError(FunFactoryError):
    """Reading or writing persisted chat history failed."""


class PageNotFoundError(FunFactoryError, KeyError):
    """The requested page id does not belong to the current book."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class PageStateError(FunFactoryError):
    """The requested page transition is not allowed from its current status."""
