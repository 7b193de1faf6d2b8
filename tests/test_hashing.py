"""Unit tests for hashing and URL utilities."""

from market_signals.utils.hashing import compute_signal_key, sha256_hex
from market_signals.utils.urls import email_domain, extract_hostname


class TestSha256Hex:
    """Tests for sha256_hex function."""

    def test_full_digest(self):
        digest = sha256_hex("hello")

        assert digest == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"

    def test_truncated_digest(self):
        assert sha256_hex("hello", 16) == "2cf24dba5fb0a30e"


class TestComputeSignalKey:
    """Tests for compute_signal_key function."""

    def test_basic(self):
        """Test that the key is a 64-character hex string."""
        key = compute_signal_key("JSEARCH", "abc123")

        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)

    def test_deterministic(self):
        assert compute_signal_key("JSEARCH", "abc123") == compute_signal_key("JSEARCH", "abc123")

    def test_source_is_case_insensitive(self):
        assert compute_signal_key("jsearch", "abc123") == compute_signal_key("JSEARCH", "abc123")

    def test_external_id_is_case_sensitive(self):
        assert compute_signal_key("JSEARCH", "ABC") != compute_signal_key("JSEARCH", "abc")

    def test_different_sources_differ(self):
        assert compute_signal_key("JSEARCH", "1") != compute_signal_key("ARBEITNOW", "1")

    def test_strips_whitespace(self):
        assert compute_signal_key(" JSEARCH ", " 1 ") == compute_signal_key("JSEARCH", "1")


class TestUrlHelpers:
    """Tests for extract_hostname and email_domain."""

    def test_extract_hostname_strips_www(self):
        assert extract_hostname("https://www.Acme.com/jobs/1") == "acme.com"

    def test_extract_hostname_keeps_subdomain(self):
        assert extract_hostname("https://careers.acme.com/apply") == "careers.acme.com"

    def test_extract_hostname_empty_inputs(self):
        assert extract_hostname(None) == ""
        assert extract_hostname("") == ""
        assert extract_hostname("/relative/path") == ""

    def test_email_domain(self):
        assert email_domain("Recruiter@TekStaff.com") == "tekstaff.com"

    def test_email_domain_invalid(self):
        assert email_domain("no-at-sign") == ""
        assert email_domain(None) == ""
        assert email_domain("pat@x@teksystems.com") == ""
        assert email_domain("@") == ""
