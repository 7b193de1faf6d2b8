"""Match posting companies to known staffing vendors.

Priority: domain match (apply URL host, else recruiter email domain) beats
company-name match. Within each method the first vendor in directory order
wins.
"""

import re
from dataclasses import dataclass
from typing import Optional

from market_signals.utils.urls import email_domain, extract_hostname

from .cache import VendorDirectoryCache

MATCH_DOMAIN = "domain"
MATCH_NAME = "name"

MIN_NAME_LENGTH = 3
MIN_CONTAINMENT_LENGTH = 5

_CORPORATE_SUFFIXES = re.compile(
    r"\b(?:inc|llc|ltd|corp|corporation|co|company|group|solutions|services|"
    r"consulting|technologies|tech|staffing|international)\b"
)
_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass
class VendorMatchResult:
    """Vendor match outcome.

    ``company_domain`` is filled even without a match; scorers use it.
    """

    vendor_id: Optional[str] = None
    vendor_name: Optional[str] = None
    method: Optional[str] = None
    company_domain: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.vendor_id is not None


def normalize_company_name(name: Optional[str]) -> str:
    """Lowercase, drop corporate suffix words, then drop non-alphanumerics.

    Example:
        >>> normalize_company_name("Acme Staffing Solutions, Inc.")
        'acme'
    """
    if not name:
        return ""
    stripped = _CORPORATE_SUFFIXES.sub("", name.lower())
    return _NON_ALNUM.sub("", stripped)


def _contact_domain(email: Optional[str]) -> str:
    domain = email_domain(email)
    return domain[4:] if domain.startswith("www.") else domain


class VendorMatcher:
    """Resolves a posting to a vendor using a shared directory cache."""

    def __init__(self, cache: VendorDirectoryCache):
        self.cache = cache

    def match(
        self,
        company: Optional[str],
        apply_url: Optional[str] = None,
        recruiter_email: Optional[str] = None,
    ) -> VendorMatchResult:
        """Match a posting to a vendor.

        Args:
            company: Company name on the posting
            apply_url: Apply URL (its host is the preferred domain)
            recruiter_email: Recruiter email (domain fallback)

        Returns:
            VendorMatchResult; vendor fields are None when nothing matched
        """
        vendors = self.cache.entries()
        company_domain = extract_hostname(apply_url) or _contact_domain(recruiter_email) or None

        if company_domain:
            for vendor in vendors:
                if vendor.domain and vendor.domain == company_domain:
                    return self._hit(vendor, MATCH_DOMAIN, company_domain)
                vendor_email_domain = _contact_domain(vendor.contact_email)
                if vendor_email_domain and vendor_email_domain == company_domain:
                    return self._hit(vendor, MATCH_DOMAIN, company_domain)

        normalized_input = normalize_company_name(company)
        if len(normalized_input) >= MIN_NAME_LENGTH:
            for vendor in vendors:
                normalized_vendor = normalize_company_name(vendor.company_name)
                if len(normalized_vendor) < MIN_NAME_LENGTH:
                    continue
                if normalized_input == normalized_vendor:
                    return self._hit(vendor, MATCH_NAME, company_domain)
                if (
                    len(normalized_input) >= MIN_CONTAINMENT_LENGTH
                    and normalized_input in normalized_vendor
                ) or (
                    len(normalized_vendor) >= MIN_CONTAINMENT_LENGTH
                    and normalized_vendor in normalized_input
                ):
                    return self._hit(vendor, MATCH_NAME, company_domain)

        return VendorMatchResult(company_domain=company_domain)

    @staticmethod
    def _hit(vendor, method: str, company_domain: Optional[str]) -> VendorMatchResult:
        return VendorMatchResult(
            vendor_id=vendor.id,
            vendor_name=vendor.company_name,
            method=method,
            company_domain=company_domain,
        )
