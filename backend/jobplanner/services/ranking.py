"""
Ranking Engine - Weighted multi-factor match scoring

Scores how well an enriched listing suits a user. Used to order search
results (sort_by=match) and to pick the daily application plan.

Match Score Composition (fixed weights, sum to 1.0):
    - Skill Overlap (25%): user skills found in description/requirements
    - Program Fit (20%): program match percentage, 30 when not matched
    - Salary Fit (15%): annualized minimum salary vs the user's floor
    - Commute Fit (15%): commute vs the user's maximum commute
    - Freshness (10%): days since posting, five-step staircase
    - Employer (10%): curated allow-list of well-known employers
    - Employment Type (5%): listing type vs preferred types

Each sub-score is 0-100. A sub-score that cannot be computed counts as
NEUTRAL_SCORE. The total is rounded half-up and always lies in 0..100.

Reasons are attached only for sub-scores that helped the listing and are
capped at MAX_REASONS.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from jobplanner.config import get_settings
from jobplanner.schemas.listing import EnrichedListing, RankedListing
from jobplanner.schemas.profile import UserProfile

RANKING_WEIGHTS = {
    "skill": 0.25,
    "program": 0.20,
    "salary": 0.15,
    "commute": 0.15,
    "freshness": 0.10,
    "employer": 0.10,
    "employment_type": 0.05,
}

NEUTRAL_SCORE = 50
MAX_REASONS = 5
DEFAULT_PROGRAM_PERCENTAGE = 80
PROGRAM_BASELINE = 30

SubScore = Tuple[Optional[float], Optional[str]]


@dataclass
class MatchScore:
    total: int
    reasons: List[str] = field(default_factory=list)
    breakdown: Dict[str, Optional[float]] = field(default_factory=dict)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def days_since(posted_at: datetime, now: datetime) -> int:
    if posted_at.tzinfo is None:
        posted_at = posted_at.replace(tzinfo=timezone.utc)
    return math.floor((now - posted_at).total_seconds() / 86400)


def _normalize_type(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def score_skills(listing: EnrichedListing, skills: Sequence[str]) -> SubScore:
    """
    Share of the user's skills that appear in the listing text.

    Returns neutral (None) when the user declares no skills and 50 when
    the listing has no description or requirements.
    """
    skills = [skill for skill in skills if skill and skill.strip()]
    if not skills:
        return None, None

    text = f"{listing.description or ''} {listing.requirements or ''}".lower()
    if not text.strip():
        return 50, None

    matched = [skill for skill in skills if skill.lower() in text]
    score = min(100.0, len(matched) / len(skills) * 100)
    if matched:
        return score, f"{len(matched)} skills match: {', '.join(matched[:3])}"
    return score, None


def score_program(listing: EnrichedListing, program_name: Optional[str]) -> SubScore:
    if not listing.program_match:
        return PROGRAM_BASELINE, None
    percentage = listing.program_match_percentage or DEFAULT_PROGRAM_PERCENTAGE
    return percentage, f"{program_name or 'Program'} program match: {percentage}%"


def score_salary(listing: EnrichedListing, salary_floor: Optional[int]) -> SubScore:
    annual = listing.annual_salary_min()
    if not annual or not salary_floor:
        return 60, None
    if annual >= salary_floor:
        return 100, "Meets salary requirements"
    if annual >= salary_floor * 0.9:
        return 80, "Close to salary target"
    return 50, None


def score_commute(listing: EnrichedListing, max_commute: int) -> SubScore:
    minutes = listing.commute_minutes
    if minutes is None:
        return NEUTRAL_SCORE, None
    if minutes <= max_commute * 0.5:
        return 100, f"Short commute: {minutes} min"
    if minutes <= max_commute:
        return 80, f"Reasonable commute: {minutes} min"
    if minutes <= max_commute * 1.5:
        return 50, None
    return 20, None


def score_freshness(listing: EnrichedListing, now: datetime) -> SubScore:
    if listing.posted_at is None:
        return None, None
    days = days_since(listing.posted_at, now)
    if days <= 1:
        return 100, "Just posted!"
    if days <= 3:
        return 90, f"Posted {days} days ago"
    if days <= 7:
        return 70, None
    if days <= 14:
        return 50, None
    return 30, None


def score_employer(listing: EnrichedListing, employers: Sequence[str]) -> SubScore:
    company = (listing.company or "").lower()
    if company and any(employer.lower() in company for employer in employers):
        return 90, "Well-known employer"
    return 60, None


def score_employment_type(listing: EnrichedListing, preferred: Sequence[str]) -> SubScore:
    if not listing.employment_type or not preferred:
        return 60, None
    job_type = _normalize_type(listing.employment_type)
    if any(_normalize_type(p) and _normalize_type(p) in job_type for p in preferred):
        return 100, None
    return 40, None


def calculate_match_score(
    listing: EnrichedListing,
    profile: UserProfile,
    now: Optional[datetime] = None,
    quality_employers: Optional[Sequence[str]] = None,
) -> MatchScore:
    """
    Calculate the weighted match score for one listing.

    Args:
        listing: Enriched listing (risk/program/commute already attached)
        profile: The user being ranked for
        now: Reference time for freshness (defaults to current UTC time)
        quality_employers: Allow-list override (defaults to settings)

    Returns:
        MatchScore with total 0-100, up to MAX_REASONS reasons and the
        per-factor breakdown (None for factors counted as neutral)

    Example:
        >>> score = calculate_match_score(listing, profile)
        >>> score.total      # 74
        >>> score.reasons    # ["1 skills match: cashier", "Just posted!"]
    """
    now = now or datetime.now(timezone.utc)
    if quality_employers is None:
        quality_employers = get_settings().quality_employers

    sub_scores = {
        "skill": score_skills(listing, profile.skills),
        "program": score_program(listing, profile.program_name),
        "salary": score_salary(listing, profile.salary_min),
        "commute": score_commute(listing, profile.max_commute_minutes),
        "freshness": score_freshness(listing, now),
        "employer": score_employer(listing, quality_employers),
        "employment_type": score_employment_type(listing, profile.preferred_job_types),
    }

    total = 0.0
    reasons = []
    breakdown = {}
    for key, weight in RANKING_WEIGHTS.items():
        score, reason = sub_scores[key]
        breakdown[key] = score
        total += (NEUTRAL_SCORE if score is None else score) * weight
        if reason:
            reasons.append(reason)

    return MatchScore(
        total=max(0, min(100, round_half_up(total))),
        reasons=reasons[:MAX_REASONS],
        breakdown=breakdown,
    )


def rank_listings(
    listings: Sequence[EnrichedListing],
    profile: UserProfile,
    now: Optional[datetime] = None,
) -> List[RankedListing]:
    """Score every listing and order by descending score (ties keep input order)."""
    now = now or datetime.now(timezone.utc)
    ranked = []
    for listing in listings:
        score = calculate_match_score(listing, profile, now=now)
        ranked.append(
            RankedListing.from_listing(listing, match_score=score.total, match_reasons=score.reasons)
        )
    ranked.sort(key=lambda item: item.match_score, reverse=True)
    return ranked
