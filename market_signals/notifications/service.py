"""Spend alert delivery.

The spend guard fires at most one alert per provider per day. This service
turns that alert into an email when SMTP is configured and into a log line
otherwise. It never raises: a broken mail server must not block ingestion.
"""

import logging
from email.message import EmailMessage
from typing import Dict, Optional

from market_signals.config.environment import EnvironmentConfig
from market_signals.logging import get_logger
from market_signals.logging.context import log_context
from market_signals.spend.models import SpendAlert

from .models import AlertDeliveryResult, NotificationError
from .smtp_client import SMTPClient, build_sender_address, parse_recipients
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")


def build_alert_context(alert: SpendAlert) -> Dict:
    """Template variables for a spend alert."""
    return {
        "provider": alert.provider,
        "day": alert.day.isoformat(),
        "requests_made": alert.requests_made,
        "max_requests": alert.max_requests,
        "new_records_ingested": alert.new_records_ingested,
        "max_new_records": alert.max_new_records,
        "usage_percent": alert.usage_percent,
        "message": alert.message,
    }


class SpendAlertService:
    """Delivers spend alerts by email, or logs them when SMTP is not set up."""

    def __init__(
        self,
        env_config: EnvironmentConfig,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        use_tls: bool = True,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.env_config = env_config
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient()
        self.use_tls = use_tls
        self.logger = logger_instance or logger

    def __call__(self, alert: SpendAlert) -> None:
        self.send(alert)

    def send(self, alert: SpendAlert) -> AlertDeliveryResult:
        """Deliver one alert.

        Returns:
            AlertDeliveryResult with status "sent", "logged" or "failed"
        """
        with log_context(provider=alert.provider):
            if not self.env_config.smtp_enabled:
                self.logger.warning(
                    f"Spend alert (email not configured): {alert.message}",
                    extra={"event": "notification.alert.logged", "usage_percent": alert.usage_percent},
                )
                return AlertDeliveryResult(provider=alert.provider, status="logged")

            try:
                recipients = parse_recipients(self.env_config.alert_to_email)
                rendered = self.template_renderer.render(build_alert_context(alert))

                message = EmailMessage()
                message["Subject"] = rendered["subject"]
                message["From"] = build_sender_address(self.env_config)
                message["To"] = ", ".join(recipients)
                message.set_content(rendered["text_body"])
                message.add_alternative(rendered["html_body"], subtype="html")

                self.smtp_client.send(message, self.env_config, self.use_tls)
            except (NotificationError, ValueError) as e:
                self.logger.error(
                    f"Spend alert delivery failed for {alert.provider}: {e}",
                    extra={"event": "notification.alert.failed", "error_type": type(e).__name__},
                )
                return AlertDeliveryResult(provider=alert.provider, status="failed", error=str(e))

            self.logger.info(
                f"Spend alert sent for {alert.provider} to {', '.join(recipients)}",
                extra={"event": "notification.alert.sent", "recipients": recipients},
            )
            return AlertDeliveryResult(provider=alert.provider, status="sent", recipients=recipients)
