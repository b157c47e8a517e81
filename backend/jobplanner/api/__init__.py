from fastapi import APIRouter
from jobplanner.api import daily_plan, jobs

api_router = APIRouter()
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(daily_plan.router, prefix="/daily-plan", tags=["daily-plan"])
