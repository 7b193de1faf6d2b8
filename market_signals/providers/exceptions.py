"""Custom exceptions for job-feed providers."""


class ProviderError(Exception):
    """Base exception for all provider errors.

    The orchestrator catches this to skip a provider for the current cycle
    without aborting the others.
    """


class ProviderHTTPError(ProviderError):
    """HTTP request failed with a 4xx/5xx status or a connection error (status 0)."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ProviderTimeoutError(ProviderError):
    """HTTP request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ProviderResponseError(ProviderError):
    """Response could not be parsed or had an unexpected shape."""


class ProviderConfigurationError(ProviderError):
    """Unsupported provider type or invalid provider settings."""
