"""Factory function for instantiating job-feed providers."""

import logging
from typing import Optional

from market_signals.config.environment import EnvironmentConfig
from market_signals.config.models import AdvancedConfig, ProviderConfig

from .arbeitnow import ArbeitnowProvider
from .base import BaseProvider
from .exceptions import ProviderConfigurationError
from .jsearch import JSearchProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES = {
    "ARBEITNOW": ArbeitnowProvider,
    "JSEARCH": JSearchProvider,
}


def get_provider(
    provider_config: ProviderConfig,
    advanced_config: AdvancedConfig,
    env_config: Optional[EnvironmentConfig] = None,
) -> BaseProvider:
    """Instantiate the provider for ``provider_config.type``.

    Args:
        provider_config: Provider entry from config.yaml
        advanced_config: Timeout, user-agent and result limit settings
        env_config: Source of API keys (JSearch needs RAPIDAPI_KEY)

    Returns:
        Provider instance; check ``is_configured()`` before fetching

    Raises:
        ProviderConfigurationError: If the type is unknown or construction fails
    """
    provider_name = provider_config.name
    provider_class = PROVIDER_CLASSES.get(provider_name)

    if not provider_class:
        supported = ", ".join(sorted(PROVIDER_CLASSES))
        raise ProviderConfigurationError(
            f"Unknown provider type: {provider_name}. Supported types: {supported}"
        )

    kwargs = {
        "timeout": advanced_config.http_request_timeout,
        "user_agent": advanced_config.user_agent,
        "max_results": advanced_config.max_results_per_provider,
    }
    if provider_class is JSearchProvider:
        kwargs["api_key"] = env_config.rapidapi_key if env_config else None
        kwargs["num_pages"] = provider_config.max_pages
    else:
        kwargs["max_pages"] = provider_config.max_pages

    logger.debug(
        "Creating provider instance",
        extra={"provider": provider_name, "provider_class": provider_class.__name__},
    )

    try:
        return provider_class(**kwargs)
    except ProviderConfigurationError:
        raise
    except Exception as e:
        raise ProviderConfigurationError(f"Failed to create {provider_name} provider: {e}") from e
