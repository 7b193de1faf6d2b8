"""Template rendering for spend alert emails using Jinja2."""

import logging
from typing import Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders the subject, plain-text and HTML bodies of an alert email.

    Templates live in the market_signals.notifications.email_templates package
    directory and are cached by the Jinja2 environment after first load.
    """

    def __init__(
        self,
        template_dir: str = "email_templates",
        subject_template: str = "spend_alert_subject.j2",
        html_template: str = "spend_alert_body.html.j2",
        text_template: str = "spend_alert_body.txt.j2",
    ):
        self.subject_template_name = subject_template
        self.html_template_name = html_template
        self.text_template_name = text_template

        self.env = Environment(
            loader=PackageLoader("market_signals.notifications", template_dir),
            autoescape=True,
            undefined=StrictUndefined,
        )

    def render(self, context: Dict) -> Dict[str, str]:
        """Render all alert templates.

        Args:
            context: Template variables

        Returns:
            Dict with ``subject`` (single line), ``html_body`` and ``text_body``

        Raises:
            NotificationTemplateError: If a template is missing or references an
                undefined variable
        """
        try:
            subject = self.env.get_template(self.subject_template_name).render(context)
            html_body = self.env.get_template(self.html_template_name).render(context)
            text_body = self.env.get_template(self.text_template_name).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        return {
            "subject": subject.strip().replace("\n", " "),
            "html_body": html_body,
            "text_body": text_body,
        }
