"""
Daily Plan Selector - pick today's applications for a user

Flow:
    1. Rank all enriched candidates with the Ranking Engine
    2. Keep the top N (default 8), never padding when fewer exist
    3. Per job: priority tier, estimated application time, tips
    4. Plan stats, focus area and a motivational message

Priority:
    high   - score >= 80, or score >= 70 for a program-matched listing
    low    - score < 60
    medium - everything else
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from jobplanner.schemas.listing import EnrichedListing, RankedListing
from jobplanner.schemas.plan import DailyPlan, PlannedJob, PlanStats
from jobplanner.schemas.profile import UserProfile
from jobplanner.services.messages import MessageGenerator, TemplateMessageGenerator
from jobplanner.services.ranking import days_since, rank_listings, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_PLAN_SIZE = 8
PROGRAM_APPLICATION_MINUTES = 15
DEFAULT_APPLICATION_MINUTES = 20
MAX_TIPS = 3
DEFAULT_FOCUS_AREA = "General job search"


def assign_priority(score: int, program_match: bool) -> str:
    if score >= 80 or (program_match and score >= 70):
        return "high"
    if score < 60:
        return "low"
    return "medium"


def generate_tips(listing: RankedListing, profile: UserProfile) -> List[str]:
    tips = []

    if listing.program_match:
        tips.append(f"Mention your {profile.program_name or 'program'} credential prominently")

    skills = [skill.lower() for skill in profile.skills if skill and skill.strip()]
    for line in (listing.requirements or "").splitlines():
        if line.strip() and any(skill in line.lower() for skill in skills):
            tips.append(f"Highlight experience with: {line.strip()}")
            break

    if listing.commute_minutes is not None and listing.commute_minutes <= 30:
        tips.append("Mention you live nearby and can commute easily")

    if not tips:
        tips.append("Tailor your resume summary to match the job description")

    return tips[:MAX_TIPS]


def format_salary_range(listing: EnrichedListing) -> Optional[str]:
    def fmt(amount: float) -> str:
        if listing.salary_period == "hourly":
            return f"${amount:g}/hr"
        return f"${amount / 1000:.0f}k"

    if listing.salary_min and listing.salary_max:
        return f"{fmt(listing.salary_min)} - {fmt(listing.salary_max)}"
    if listing.salary_min:
        return f"{fmt(listing.salary_min)}+"
    if listing.salary_max:
        return f"Up to {fmt(listing.salary_max)}"
    return None


def determine_focus_area(jobs: Sequence[PlannedJob]) -> str:
    """Most frequent significant title word and city, e.g. "Cashier roles in Orlando"."""
    if not jobs:
        return DEFAULT_FOCUS_AREA

    words = Counter(
        word for job in jobs for word in job.title.lower().split() if len(word) > 4
    )
    cities = Counter(
        job.location.split(",")[0].strip() for job in jobs if job.location.split(",")[0].strip()
    )

    top_word = words.most_common(1)[0][0] if words else "various"
    top_city = cities.most_common(1)[0][0] if cities else "your area"
    return f"{top_word.capitalize()} roles in {top_city}"


def calculate_stats(
    jobs: Sequence[PlannedJob],
    candidates: Sequence[EnrichedListing],
) -> PlanStats:
    """Means over the selected jobs; program matches over every candidate."""
    scores = [job.match_score for job in jobs]
    salaries = [job.annual_salary_min() for job in jobs if job.annual_salary_min()]
    commutes = [job.commute_minutes for job in jobs if job.commute_minutes is not None]

    return PlanStats(
        avg_match_score=round_half_up(sum(scores) / len(scores)) if scores else 0,
        avg_salary=round_half_up(sum(salaries) / len(salaries)) if salaries else 0,
        avg_commute=round_half_up(sum(commutes) / len(commutes)) if commutes else 0,
        program_match_count=sum(1 for listing in candidates if listing.program_match),
    )


async def generate_daily_plan(
    profile: UserProfile,
    candidates: Sequence[EnrichedListing],
    target_count: int = DEFAULT_PLAN_SIZE,
    message_generator: Optional[MessageGenerator] = None,
    now: Optional[datetime] = None,
) -> DailyPlan:
    """
    Build a daily plan from enriched candidates.

    Args:
        profile: User the plan is for
        candidates: Enriched listings (danger listings already removed)
        target_count: Maximum number of jobs in the plan
        message_generator: Motivational message source (templates by default)
        now: Reference time for freshness and the plan date

    Returns:
        DailyPlan with at most target_count jobs
    """
    now = now or datetime.now(timezone.utc)
    message_generator = message_generator or TemplateMessageGenerator()
    plan_date = now.date().isoformat()

    ranked = rank_listings(candidates, profile, now=now)

    jobs = []
    for listing in ranked[:max(0, target_count)]:
        jobs.append(
            PlannedJob.from_listing(
                listing,
                priority=assign_priority(listing.match_score, listing.program_match),
                estimated_application_time=(
                    PROGRAM_APPLICATION_MINUTES if listing.program_match else DEFAULT_APPLICATION_MINUTES
                ),
                tips_for_applying=generate_tips(listing, profile),
                salary_range=format_salary_range(listing),
                posted_days_ago=days_since(listing.posted_at, now) if listing.posted_at else None,
            )
        )

    message = await message_generator.generate(profile, jobs, plan_date)
    logger.info(f"Generated plan for {profile.id} on {plan_date}: {len(jobs)} of {len(candidates)} candidates")

    return DailyPlan(
        date=plan_date,
        user_id=profile.id,
        jobs=jobs,
        total_estimated_time=sum(job.estimated_application_time for job in jobs),
        motivational_message=message,
        focus_area=determine_focus_area(jobs),
        stats=calculate_stats(jobs, candidates),
        generated_at=now,
    )
