"""Exceptions raised by the download and build stages."""

from __future__ import annotations


class LazyMediaError(Exception):
    """Base class for pipeline errors."""


class NetworkFailure(LazyMediaError):
    """Transient fetch failure; the fetch engine retries it."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"{url}: unexpected HTTP status {status}")
        self.url = url
        self.status = status


class RetryExhausted(LazyMediaError):
    """A destination path failed more times than the retry ceiling allows."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Failed to download {url} after {attempts} attempts")
        self.url = url
        self.attempts = attempts


class MissingRetryDirective(LazyMediaError):
    """A 429 response came without a usable Retry-After header."""


class MalformedSourceReference(LazyMediaError):
    """An asset's source reference cannot be interpreted."""
