"""
Background Scheduler - Daily Plan Regeneration

Regenerates today's plan for every stored profile once a day so the
first request of the morning is served from the plan store.

Default Schedule: Daily at 06:00 (configurable via DAILY_PLAN_HOUR)
"""

import logging
from datetime import datetime, timezone
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from jobplanner.config import get_settings
from jobplanner.database import async_session
from jobplanner.services.cache import get_cache
from jobplanner.services.commute import build_commute_resolver
from jobplanner.services.plans import DailyPlanService

logger = logging.getLogger(__name__)

settings = get_settings()
scheduler = AsyncIOScheduler()


async def regenerate_daily_plans():
    """Scheduled task: rebuild today's plan for all profiles."""
    started = datetime.now(timezone.utc)
    logger.info(f"Starting daily plan regeneration at {started.isoformat()}")

    resolver = build_commute_resolver(cache=await get_cache())
    async with async_session() as db:
        done = await DailyPlanService(db, commute_resolver=resolver).regenerate_all(now=started)

    logger.info(f"Regenerated {len(done)} daily plans")


def start_scheduler():
    """Start the background scheduler"""
    scheduler.add_job(
        regenerate_daily_plans,
        trigger=CronTrigger(hour=settings.daily_plan_hour, minute=0),
        id="daily_plans",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started: regenerating daily plans at {settings.daily_plan_hour:02d}:00")


def stop_scheduler():
    """Stop the background scheduler"""
    scheduler.shutdown()
