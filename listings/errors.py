"""
Error taxonomy for listing writes and proximity search.

InvalidInput means "fix your input", ProviderError means "try again".
"""
from typing import Optional


class ListingsError(Exception):
    """Base class for listings errors."""


class InvalidInput(ListingsError, ValueError):
    """Malformed address text, radius, coordinates or listing fields."""


class NoMatch(ListingsError):
    """The geocoding provider found no candidate for an address."""

    def __init__(self, address: str):
        super().__init__(f"No geocoding match for {address!r}")
        self.address = address


class ProviderError(ListingsError):
    """The geocoding provider could not be reached or answered garbage."""

    retryable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class NotFound(ListingsError):
    """Referenced user or listing does not exist."""


class PermissionDenied(ListingsError):
    """Acting user does not own the record."""
