"""Spend alert delivery.

- SpendAlertService: emails (or logs) the once-a-day spend threshold alert
- TemplateRenderer: Jinja2 rendering of the alert email
- SMTPClient: SMTP wrapper with TLS/SSL support
"""

from .models import (
    AlertDeliveryResult,
    NotificationError,
    NotificationTemplateError,
    SMTPDeliveryError,
)
from .service import SpendAlertService, build_alert_context
from .smtp_client import SMTPClient, build_sender_address, parse_recipients
from .templates import TemplateRenderer

__all__ = [
    "SpendAlertService",
    "AlertDeliveryResult",
    "NotificationError",
    "NotificationTemplateError",
    "SMTPDeliveryError",
    "TemplateRenderer",
    "SMTPClient",
    "build_alert_context",
    "build_sender_address",
    "parse_recipients",
]
