"""Environment variable loading and validation."""

import os
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/market_signals.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        rapidapi_key: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_sender_name: Optional[str] = None,
        alert_to_email: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.rapidapi_key = rapidapi_key
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_sender_name = smtp_sender_name or "Market Signal Pipeline"
        self.alert_to_email = alert_to_email

    @property
    def smtp_enabled(self) -> bool:
        """Whether spend alerts can be delivered by email."""
        return bool(self.smtp_host and self.smtp_port and self.alert_to_email)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/market_signals.db)
    - LOG_LEVEL: Override log level
    - RAPIDAPI_KEY: Enables the JSearch provider
    - SMTP_HOST, SMTP_PORT, ALERT_TO_EMAIL: Enable spend alert emails (all three
      are required once SMTP_HOST is set)
    - SMTP_USER, SMTP_PASS: SMTP authentication (set both or neither)
    - SMTP_SENDER_NAME: Display name for alert emails

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable is present but invalid
    """
    errors: List[str] = []

    smtp_host = _getenv("SMTP_HOST")
    smtp_port_str = _getenv("SMTP_PORT")
    smtp_user = _getenv("SMTP_USER")
    smtp_pass = _getenv("SMTP_PASS")
    alert_to_email = _getenv("ALERT_TO_EMAIL")
    log_level = _getenv("LOG_LEVEL")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if smtp_host:
        if not smtp_port_str:
            errors.append("SMTP_HOST is set but SMTP_PORT is not")
        if not alert_to_email:
            errors.append("SMTP_HOST is set but ALERT_TO_EMAIL is not")

    if alert_to_email:
        for address in (part.strip() for part in alert_to_email.split(",")):
            if not address:
                continue
            try:
                validate_email(address, check_deliverability=False)
            except EmailNotValidError:
                errors.append(f"Invalid email address format in ALERT_TO_EMAIL: '{address}'")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if bool(smtp_user) != bool(smtp_pass):
        errors.append("SMTP_USER and SMTP_PASS must be set together for authentication.")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Leave SMTP_HOST unset to log spend alerts without emailing them",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        database_url=_getenv("DATABASE_URL"),
        log_level=log_level.upper() if log_level else None,
        rapidapi_key=_getenv("RAPIDAPI_KEY"),
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_sender_name=_getenv("SMTP_SENDER_NAME"),
        alert_to_email=alert_to_email,
    )


def _getenv(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()
