"""Exception types shared across the fetch and classification layers."""

from __future__ import annotations


class FetchError(Exception):
    """Base class for a failed fetch attempt."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class TransientFetchError(FetchError):
    """Timeout, connection failure or 5xx: worth retrying."""


class PermanentFetchError(FetchError):
    """4xx or unsupported content type: retrying will not help."""


class ClassificationInputError(ValueError):
    """A page cannot be classified because a prerequisite record is missing."""
