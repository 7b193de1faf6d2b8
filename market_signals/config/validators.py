"""Non-fatal configuration checks surfaced as warnings."""

import warnings
from typing import Any, Dict, List

from .models import default_caps_for

SHORT_INTERVALS = {"1m", "2m", "3m", "4m", "pt1m", "pt2m", "pt3m", "pt4m"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect a raw configuration dictionary for suspicious settings.

    Args:
        config_dict: Raw configuration dictionary (before validation)

    Returns:
        List of warning messages
    """
    warning_messages = []

    for provider in config_dict.get("providers", []) or []:
        if not isinstance(provider, dict):
            continue
        name = str(provider.get("type", "Unknown")).upper()

        if not provider.get("enabled", True):
            warning_messages.append(f"Provider '{name}' is disabled and will be skipped")

        # Raising a cap above the contracted default usually means surprise invoices
        default_requests, _ = default_caps_for(name)
        requested = provider.get("max_requests_per_day")
        if isinstance(requested, int) and requested > default_requests:
            warning_messages.append(
                f"Provider '{name}' max_requests_per_day ({requested}) exceeds "
                f"the default cap ({default_requests})"
            )

    sync_interval = config_dict.get("sync_interval", "1h")
    if isinstance(sync_interval, str) and sync_interval.strip().lower() in SHORT_INTERVALS:
        warning_messages.append(
            f"Short sync_interval ({sync_interval}) will burn through daily request caps"
        )

    qa = config_dict.get("qa", {})
    if isinstance(qa, dict):
        sample_size = qa.get("sample_size", 20)
        if isinstance(sample_size, int) and sample_size > 100:
            warning_messages.append(
                f"Large qa.sample_size ({sample_size}) issues one live URL probe per sample"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
