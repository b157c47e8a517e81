"""
Tests for Listing Risk Scoring

Tests cover:
- Severity tiers (clean / warning / danger)
- Score accumulation and the 100 cap
- Metadata rules (vague description, salary vs median, URLs)
- Determinism
"""

from conftest import CLEAN_DESCRIPTION, build_listing
from jobplanner.services.risk import (
    BLOCKING_WEIGHT,
    DEFAULT_MEDIAN_SALARY,
    STRONG_WEIGHT,
    get_median_salary,
    score_risk,
)


class TestSeverity:
    """Severity is driven by the strongest rule that fired."""

    def test_clean_listing(self):
        result = score_risk(build_listing())

        assert result.severity == "clean"
        assert result.score == 0
        assert result.reasons == []

    def test_upfront_payment_is_danger(self):
        listing = build_listing(
            description=CLEAN_DESCRIPTION + " New hires must send a $50 fee for the starter kit."
        )

        result = score_risk(listing)

        assert result.severity == "danger"
        assert "Requests upfront payment or fees" in result.reasons
        assert result.score >= BLOCKING_WEIGHT

    def test_crypto_payment_is_danger(self):
        listing = build_listing(
            description=CLEAN_DESCRIPTION + " Your salary will be paid in bitcoin every Friday."
        )

        assert score_risk(listing).severity == "danger"

    def test_vague_description_is_warning(self):
        result = score_risk(build_listing(description="Great job, apply today."))

        assert result.severity == "warning"
        assert result.reasons == ["Very vague job description (less than 50 words)"]
        assert result.score == STRONG_WEIGHT

    def test_mild_rule_is_warning(self):
        listing = build_listing(
            description=CLEAN_DESCRIPTION + " Questions? Email jobs.recruiter@gmail.com."
        )

        result = score_risk(listing)

        assert result.severity == "warning"
        assert "Uses personal email domain instead of company email" in result.reasons


class TestScore:
    def test_score_capped_at_100(self):
        listing = build_listing(
            company="",
            description="Work from home! Send a fee to start. Unlimited earning. Urgent!",
            requirements="",
        )

        result = score_risk(listing)

        assert result.score == 100
        assert result.severity == "danger"

    def test_reasons_follow_rule_order(self):
        listing = build_listing(company="", description="Hiring now.")

        reasons = score_risk(listing).reasons

        assert reasons.index("Very vague job description (less than 50 words)") < reasons.index(
            "No company name provided"
        )
        assert reasons[-1] == "Uses high-urgency language"


class TestSalaryRule:
    def test_median_lookup_by_title_keyword(self):
        assert get_median_salary("Senior Software Engineer") == 95000
        assert get_median_salary("Cashier") == DEFAULT_MEDIAN_SALARY

    def test_hourly_salary_is_annualized(self):
        """$60/hr is 124,800/yr, more than 2.5x the default median."""
        listing = build_listing(title="Cashier", salary_min=55.0, salary_max=60.0, salary_period="hourly")

        result = score_risk(listing)

        assert "Salary significantly above market rate (2.5x+ median)" in result.reasons

    def test_realistic_salary_not_flagged(self):
        listing = build_listing(salary_min=40000.0, salary_max=50000.0, salary_period="annual")

        assert score_risk(listing).severity == "clean"


class TestUrlRule:
    def test_shortened_url_flagged(self):
        result = score_risk(build_listing(apply_url="https://bit.ly/3xYz"))

        assert "Suspicious application URL" in result.reasons

    def test_missing_url_not_flagged(self):
        assert score_risk(build_listing(apply_url=None)).severity == "clean"


class TestDeterminism:
    def test_same_listing_same_assessment(self):
        listing = build_listing(description="Urgent! Text us to apply.")

        first = score_risk(listing)
        second = score_risk(listing)

        assert first.severity == second.severity
        assert first.reasons == second.reasons
        assert first.score == second.score
