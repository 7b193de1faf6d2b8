"""Data models and exceptions for spend alert delivery."""

from dataclasses import dataclass
from typing import List, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class SMTPDeliveryError(NotificationError):
    """Raised when SMTP delivery fails."""

    pass


@dataclass
class AlertDeliveryResult:
    """Outcome of delivering one spend alert.

    Attributes:
        provider: Provider the alert is about
        status: "sent", "logged" (SMTP not configured) or "failed"
        recipients: Addresses the alert was sent to
        error: Error message when status is "failed"
    """

    provider: str
    status: str
    recipients: Optional[List[str]] = None
    error: Optional[str] = None

    def is_success(self) -> bool:
        return self.status in ("sent", "logged")
