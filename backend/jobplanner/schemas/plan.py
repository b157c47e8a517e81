from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional
from jobplanner.schemas.listing import RankedListing


class PlannedJob(RankedListing):
    priority: Literal["high", "medium", "low"]
    estimated_application_time: int  # minutes
    tips_for_applying: list[str] = []
    salary_range: Optional[str] = None
    posted_days_ago: Optional[int] = None


class PlanStats(BaseModel):
    avg_match_score: int = 0
    avg_salary: int = 0
    avg_commute: int = 0
    program_match_count: int = 0


class DailyPlan(BaseModel):
    date: str  # ISO date
    user_id: str
    jobs: list[PlannedJob]
    total_estimated_time: int
    motivational_message: str
    focus_area: str
    stats: PlanStats
    generated_at: datetime


class DailyPlanRequest(BaseModel):
    user_id: str
    job_count: int = Field(8, ge=1, le=20)
    force_regenerate: bool = False


class DailyPlanResponse(BaseModel):
    plan: DailyPlan
    cached: bool
