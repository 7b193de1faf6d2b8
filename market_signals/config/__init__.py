"""Configuration management for the market signal pipeline."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    DEFAULT_QUERIES,
    AdvancedConfig,
    AppConfig,
    LifecycleConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ProviderConfig,
    ProviderType,
    QaConfig,
    ScoringConfig,
    SpendConfig,
    UrlHealthConfig,
    VendorConfig,
    default_caps_for,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ProviderConfig",
    "LifecycleConfig",
    "ScoringConfig",
    "QaConfig",
    "UrlHealthConfig",
    "VendorConfig",
    "SpendConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums and defaults
    "ProviderType",
    "LogLevel",
    "LogFormat",
    "DEFAULT_QUERIES",
    "default_caps_for",
    # Exceptions
    "ConfigurationError",
]
