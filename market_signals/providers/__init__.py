"""Job-feed providers that turn external APIs into RawSignal records."""

from .arbeitnow import ArbeitnowProvider, is_it_role
from .base import BaseProvider
from .exceptions import (
    ProviderConfigurationError,
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from .factory import PROVIDER_CLASSES, get_provider
from .jsearch import JSearchProvider

__all__ = [
    "BaseProvider",
    "ArbeitnowProvider",
    "JSearchProvider",
    "get_provider",
    "PROVIDER_CLASSES",
    "is_it_role",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "ProviderResponseError",
    "ProviderConfigurationError",
]
