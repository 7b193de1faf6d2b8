"""SMTP client wrapper for alert delivery."""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, List, Optional

from email_validator import EmailNotValidError, validate_email

from market_signals.config.environment import EnvironmentConfig

from .models import SMTPDeliveryError

logger = logging.getLogger(__name__)


class SMTPClient:
    """Thin wrapper around smtplib with TLS and optional authentication.

    Port 465 uses implicit TLS; any other port connects in plain text and
    upgrades with STARTTLS when ``use_tls`` is set.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize the client.

        Args:
            smtp_factory: Replaces smtplib.SMTP (tests pass a mock)
            smtp_ssl_factory: Replaces smtplib.SMTP_SSL
        """
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, message: EmailMessage, env_config: EnvironmentConfig, use_tls: bool = True) -> None:
        """Send ``message`` and always close the connection.

        Raises:
            SMTPDeliveryError: On any SMTP or network failure
        """
        smtp = None
        try:
            if env_config.smtp_port == 465:
                smtp = self.smtp_ssl_factory(
                    env_config.smtp_host, env_config.smtp_port, context=ssl.create_default_context()
                )
            else:
                smtp = self.smtp_factory(env_config.smtp_host, env_config.smtp_port)
                if use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if env_config.smtp_user and env_config.smtp_pass:
                smtp.login(env_config.smtp_user, env_config.smtp_pass)

            smtp.send_message(message)
            logger.debug(f"Message sent to {message['To']}")
        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise SMTPDeliveryError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def parse_recipients(recipient_string: Optional[str]) -> List[str]:
    """Parse and validate comma-separated email addresses.

    Raises:
        ValueError: If any address is invalid or none are given
    """
    recipients = []
    for email in (part.strip() for part in (recipient_string or "").split(",")):
        if not email:
            continue
        try:
            recipients.append(validate_email(email, check_deliverability=False).normalized)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address in ALERT_TO_EMAIL: '{email}' - {e}") from e

    if not recipients:
        raise ValueError("No valid email addresses found in ALERT_TO_EMAIL")
    return recipients


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """Build the From header, e.g. "Market Signal Pipeline <user@example.com>"."""
    sender_email = env_config.smtp_user or f"noreply@{env_config.smtp_host}"
    return f"{env_config.smtp_sender_name} <{sender_email}>"
