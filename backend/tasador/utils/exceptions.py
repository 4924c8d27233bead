"""Errors that end a valuation request with a SERVER_ERROR envelope.

A model answer that cannot be parsed is *not* one of them: it resolves to
``valuation: null`` with a normal 200 response.
"""

from __future__ import annotations

SERVER_ERROR = "SERVER_ERROR"
UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"


class TasadorError(Exception):
    """Base exception for failures surfaced to the caller."""

    error_code: str = SERVER_ERROR


class ConfigurationError(TasadorError):
    """A required setting (usually the provider credential) is missing."""


class UpstreamError(TasadorError):
    """The LLM provider answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutError(TasadorError):
    """The LLM provider did not answer before the configured deadline."""

    error_code = UPSTREAM_TIMEOUT
