"""Unit tests for the realness and actionability scorers."""

import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from market_signals.classification import classify_employment, extract_rate, extract_skills
from market_signals.config.models import ScoringConfig
from market_signals.dedup import compute_fingerprint
from market_signals.domain.models import EmploymentType, UrlStatus
from market_signals.scoring import (
    ActionabilityInput,
    Adjustment,
    RealnessInput,
    apply_rules,
    hourly_rate_in_range,
    is_confidential_company,
    score_actionability,
    score_realness,
)
from market_signals.utils.urls import extract_hostname

NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


def realness_input(**overrides) -> RealnessInput:
    fields = dict(
        title="Java Developer",
        company="Acme",
        description="a" * 200,
        location="Austin, TX",
        employment_type=EmploymentType.C2C,
        source_posted_at=NOW - timedelta(days=2),
        classification_confidence=0.5,
    )
    fields.update(overrides)
    return RealnessInput(**fields)


def actionability_input(**overrides) -> ActionabilityInput:
    fields = dict(
        title="Java Developer",
        company="Acme",
        description="x" * 150,
        location="Austin, TX",
        employment_type=EmploymentType.C2C,
        classification_confidence=0.9,
        realness_score=60,
    )
    fields.update(overrides)
    return ActionabilityInput(**fields)


class TestApplyRules:
    """Tests for the shared rule fold."""

    def test_baseline_and_reasons(self):
        rules = [
            lambda s: Adjustment(10, "ten"),
            lambda s: None,
            lambda s: Adjustment(-5, "minus five"),
        ]

        result = apply_rules(rules, object())

        assert result.score == 55
        assert result.reasons == ["+10 ten", "-5 minus five"]

    def test_clamps_high_and_low(self):
        assert apply_rules([lambda s: Adjustment(80, "big")], None).score == 100
        assert apply_rules([lambda s: Adjustment(-80, "bad")], None).score == 0


class TestRealnessScore:
    """Tests for score_realness."""

    def test_fully_specified_posting_clamps_to_100(self):
        inp = realness_input(
            description="a" * 600,
            recruiter_email="r@acme.com",
            hourly_rate_min=70,
            rate_text="$70/hr",
            source_posted_at=NOW - timedelta(hours=2),
            apply_url="https://acme.com/1",
            classification_confidence=1.0,
        )

        result = score_realness(inp, now=NOW)

        assert result.score == 100
        assert result.reasons == [
            "+15 recruiter email present",
            "+5 location specified",
            "+8 compensation info present",
            "+5 detailed description (>500 chars)",
            "+5 high classification confidence",
            "+10 posted within 6 hours",
            "+3 apply URL present",
        ]

    def test_bad_posting_clamps_to_zero(self):
        inp = realness_input(
            company="Confidential",
            description="short",
            location=None,
            employment_type=EmploymentType.UNKNOWN,
            negative_signals=["NO C2C", "No vendors", "W2 only", "NO 1099"],
            source_posted_at=None,
            url_status=UrlStatus.DEAD,
        )

        result = score_realness(inp, now=NOW)

        assert result.score == 0
        assert "-25 negative signals: NO C2C, No vendors, W2 only, NO 1099" in result.reasons
        assert "-5 no posted date available" in result.reasons
        assert "-20 apply URL is dead" in result.reasons

    def test_negative_signal_penalty_per_signal(self):
        base = score_realness(realness_input(), now=NOW).score
        one = score_realness(realness_input(negative_signals=["NO C2C"]), now=NOW).score

        assert base - one == 8

    def test_freshness_tiers(self):
        within_day = score_realness(
            realness_input(source_posted_at=NOW - timedelta(hours=20)), now=NOW
        )
        within_three_days = score_realness(
            realness_input(source_posted_at=NOW - timedelta(hours=30)), now=NOW
        )

        assert "+7 posted within 24 hours" in within_day.reasons
        assert "+3 posted within 3 days" in within_three_days.reasons

    def test_old_posting_penalty(self):
        result = score_realness(realness_input(source_posted_at=NOW - timedelta(days=10)), now=NOW)

        assert "-8 posting older than 7 days" in result.reasons
        assert not any("posted within" in reason for reason in result.reasons)

    def test_posted_at_used_when_source_date_missing(self):
        result = score_realness(
            realness_input(source_posted_at=None, posted_at=NOW - timedelta(hours=1)), now=NOW
        )

        assert "+10 posted within 6 hours" in result.reasons

    def test_custom_tiers(self):
        settings = ScoringConfig(freshness_tiers_hours=[1, 2, 3], old_posting_days=1)

        result = score_realness(
            realness_input(source_posted_at=NOW - timedelta(hours=2)), settings=settings, now=NOW
        )

        assert "+7 posted within 2 hours" in result.reasons

    def test_url_redirect_penalty(self):
        result = score_realness(realness_input(url_status=UrlStatus.REDIRECT), now=NOW)

        assert "-5 apply URL redirects (may be closed)" in result.reasons

    def test_harvest_language(self):
        description = (
            "Immediate hiring! We are looking for multiple engineers. Urgent need. " + "a" * 100
        )

        result = score_realness(realness_input(description=description), now=NOW)

        assert "-10 possible resume harvesting signals" in result.reasons


class TestActionabilityScore:
    """Tests for score_actionability."""

    def test_baseline_c2c_posting(self):
        result = score_actionability(actionability_input())

        assert result.score == 70
        assert result.reasons == [
            "+10 employment type C2C (staffing-friendly)",
            "+5 location is specific",
            "+5 classification confidence >= 0.7",
        ]

    def test_c2c_blocking_signal_costs_exactly_30(self):
        """Test that a C2C posting carrying a C2C blocker loses 30 points."""
        clean = score_actionability(actionability_input())
        blocked = score_actionability(actionability_input(negative_signals=["NO C2C"]))

        assert clean.score - blocked.score == 30
        assert "-30 C2C type but blocking signals: NO C2C" in blocked.reasons

    def test_direct_hire_only(self):
        result = score_actionability(
            actionability_input(employment_type=EmploymentType.W2, negative_signals=["W2 only"])
        )

        assert "+8 employment type W2 (still actionable)" in result.reasons
        assert "-25 direct-hire-only signals: W2 only" in result.reasons

    def test_vendor_and_contact(self):
        result = score_actionability(
            actionability_input(
                vendor_id="v1",
                recruiter_email="r@v.com",
                hourly_rate_min=70,
                hourly_rate_max=90,
                url_status=UrlStatus.ALIVE,
                company_domain="acme.com",
            )
        )

        assert result.score == 100
        assert "+20 matched to known vendor (best signal)" in result.reasons
        assert "+5 hourly rate in good range ($30-$150/hr)" in result.reasons

    def test_vague_unknown_company(self):
        inp = replace(
            actionability_input(), company="Unknown", location=None, realness_score=20
        )

        result = score_actionability(inp)

        assert "-10 company is confidential or Unknown" in result.reasons
        assert "-10 no rate, no client, and no location (too vague to act on)" in result.reasons
        assert "-5 realness score low (20 < 40)" in result.reasons

    def test_fulltime_and_unknown_penalties(self):
        fulltime = score_actionability(actionability_input(employment_type=EmploymentType.FULLTIME))
        unknown = score_actionability(actionability_input(employment_type=EmploymentType.UNKNOWN))

        assert "-15 employment type FULLTIME (usually not staffing)" in fulltime.reasons
        assert "-5 employment type UNKNOWN" in unknown.reasons

    def test_missing_realness_is_ignored(self):
        result = score_actionability(actionability_input(realness_score=None))

        assert not any("realness" in reason for reason in result.reasons)


class TestHelpers:
    """Tests for scorer helper predicates."""

    def test_hourly_rate_in_range(self):
        assert hourly_rate_in_range(None, None) is False
        assert hourly_rate_in_range(20, 40) is True
        assert hourly_rate_in_range(160, 200) is False
        assert hourly_rate_in_range(None, 30) is True
        assert hourly_rate_in_range(200, None) is False

    def test_is_confidential_company(self):
        assert is_confidential_company("Confidential Client") is True
        assert is_confidential_company("Unknown") is True
        assert is_confidential_company("unknown") is False
        assert is_confidential_company("Acme") is False


TEXT_FRAGMENTS = [
    "Python", "Java", "C2C", "W2", "1099", "No C2C", "Corp-to-Corp", "full time",
    "$", "K", "/hr", "per hour", " - ", "–", ",000", "95", "٥٠", "５", "１２０",
    "\u200b", "\ufeff", "İ", "ß", "Ǆ", "é", "\u0301", "🚀", "📧", "\t", "\n",
    "recruiter@acme.com", "a@b@acme.com", "https://jobs.acme.com/1", "http://[::1",
    "Confidential", "Unknown", "Austin, TX", "remote", "",
]


def random_text(rng: random.Random, max_parts: int = 12) -> str:
    return "".join(rng.choice(TEXT_FRAGMENTS) for _ in range(rng.randint(0, max_parts)))


class TestArbitraryText:
    """Classification, fingerprinting and scoring over seeded random unicode text."""

    @pytest.mark.parametrize("seed", range(25))
    def test_pipeline_stages_never_raise_and_scores_stay_in_range(self, seed):
        rng = random.Random(seed)
        title, company, location = random_text(rng, 4), random_text(rng, 3), random_text(rng, 3)
        description = " ".join(random_text(rng) for _ in range(rng.randint(1, 6)))
        apply_url = rng.choice([None, "", random_text(rng, 3), "https://jobs.acme.com/" + title])

        text = f"{title} {description}"
        classification = classify_employment(text)
        rate = extract_rate(description)
        skills = extract_skills(text)
        fingerprint = compute_fingerprint(title, company, location, apply_url, description)

        realness = score_realness(
            realness_input(
                title=title,
                company=company,
                description=description,
                location=location or None,
                employment_type=classification.employment_type,
                negative_signals=classification.negative_signals,
                hourly_rate_min=rate.hourly_min,
                hourly_rate_max=rate.hourly_max,
                rate_text=rate.rate_text,
                apply_url=apply_url,
                classification_confidence=classification.confidence,
            ),
            now=NOW,
        )
        actionability = score_actionability(
            actionability_input(
                title=title,
                company=company,
                description=description,
                location=location or None,
                employment_type=classification.employment_type,
                negative_signals=classification.negative_signals,
                hourly_rate_min=rate.hourly_min,
                hourly_rate_max=rate.hourly_max,
                rate_text=rate.rate_text,
                apply_url=apply_url,
                classification_confidence=classification.confidence,
                company_domain=extract_hostname(apply_url) or None,
                realness_score=realness.score,
            )
        )

        assert 0.0 <= classification.confidence <= 1.0
        assert len(skills) == len(set(skills))
        assert len(fingerprint) == 32
        assert int(fingerprint, 16) >= 0
        assert 0 <= realness.score <= 100
        assert 0 <= actionability.score <= 100

    def test_fingerprint_ignores_zero_width_characters(self):
        plain = compute_fingerprint("Senior Python Developer", "Acme", None, None, "")
        padded = compute_fingerprint(
            "Senior\u200b Python\ufeff Developer", "Ac\u200bme", None, None, ""
        )

        assert plain == padded
