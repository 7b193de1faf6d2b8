"""Helpers for pulling hostnames out of URLs and email addresses."""

from typing import Optional
from urllib.parse import urlparse


def extract_hostname(url: Optional[str]) -> str:
    """Return the lowercase hostname of ``url`` without a leading ``www.``.

    Unparseable or relative URLs yield an empty string rather than an error.

    Args:
        url: Absolute URL such as "https://www.acme.com/jobs/1"

    Returns:
        Hostname like "acme.com", or "" when none can be determined
    """
    if not url:
        return ""
    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        return ""
    if not hostname:
        return ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def email_domain(email: Optional[str]) -> str:
    """Return the lowercase domain part of an email address, or ""."""
    if not email or email.count("@") != 1:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()
