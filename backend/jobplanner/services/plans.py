"""
Daily Plan Service - load, generate and store one plan per user per day

A stored plan for today is returned as-is unless regeneration is forced.
Generation pulls recent listings from the job store, enriches them for
the user, drops dangerous listings and runs the Daily Plan Selector.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobplanner.config import Settings, get_settings
from jobplanner.models import DailyPlanRecord
from jobplanner.schemas.plan import DailyPlan
from jobplanner.services.commute import CommuteResolver
from jobplanner.services.enrichment import enrich_listings
from jobplanner.services.filtering import exclude_dangerous
from jobplanner.services.messages import MessageGenerator, get_message_generator
from jobplanner.services.planner import generate_daily_plan
from jobplanner.services.profiles import ProfileService, ProgramService
from jobplanner.services.store import JobStore

logger = logging.getLogger(__name__)


class PlanStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _record(self, user_id: str, plan_date: str) -> Optional[DailyPlanRecord]:
        result = await self.db.execute(
            select(DailyPlanRecord).where(
                DailyPlanRecord.user_id == user_id,
                DailyPlanRecord.plan_date == plan_date,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: str, plan_date: str) -> Optional[DailyPlan]:
        record = await self._record(user_id, plan_date)
        if not record:
            return None
        return DailyPlan.model_validate(record.payload)

    async def save(self, plan: DailyPlan) -> None:
        """Insert the plan, or overwrite the stored plan for the same user and date."""
        payload = plan.model_dump(mode="json")
        generated_at = plan.generated_at.astimezone(timezone.utc).replace(tzinfo=None)

        try:
            record = await self._record(plan.user_id, plan.date)
            if record:
                record.payload = payload
                record.generated_at = generated_at
            else:
                self.db.add(
                    DailyPlanRecord(
                        id=str(uuid.uuid4()),
                        user_id=plan.user_id,
                        plan_date=plan.date,
                        payload=payload,
                        generated_at=generated_at,
                    )
                )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise


class DailyPlanService:
    def __init__(
        self,
        db: AsyncSession,
        commute_resolver: Optional[CommuteResolver] = None,
        message_generator: Optional[MessageGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.commute_resolver = commute_resolver
        self.message_generator = message_generator or get_message_generator(self.settings)
        self.plans = PlanStore(db)

    async def get_plan(
        self,
        user_id: str,
        job_count: Optional[int] = None,
        regenerate: bool = False,
        now: Optional[datetime] = None,
    ) -> Tuple[DailyPlan, bool]:
        """
        Return today's plan for a user.

        Args:
            user_id: Profile id
            job_count: Plan size (defaults to DAILY_PLAN_SIZE)
            regenerate: Ignore any stored plan and build a new one
            now: Reference time (defaults to current UTC time)

        Returns:
            Tuple of (plan, cached) where cached is True for a stored plan

        Raises:
            ProfileNotFound: No profile exists for user_id
        """
        now = now or datetime.now(timezone.utc)
        plan_date = now.date().isoformat()

        if not regenerate:
            stored = await self.plans.get(user_id, plan_date)
            if stored:
                return stored, True

        profile = await ProfileService(self.db).get(user_id)
        program = await ProgramService(self.db).get_program(profile)
        if program:
            profile = profile.model_copy(update={"program_name": program.program_name})

        listings = await JobStore(self.db).recent(
            days=self.settings.plan_candidate_days,
            limit=self.settings.plan_candidate_limit,
        )

        origin = profile.location or profile.address
        enrichment = await enrich_listings(
            listings,
            program=program,
            commute_resolver=self.commute_resolver if origin else None,
            origin=origin,
        )
        candidates = exclude_dangerous(enrichment.listings)

        plan = await generate_daily_plan(
            profile,
            candidates,
            target_count=job_count or self.settings.daily_plan_size,
            message_generator=self.message_generator,
            now=now,
        )
        await self.plans.save(plan)
        return plan, False

    async def regenerate_all(self, now: Optional[datetime] = None) -> List[str]:
        """Regenerate today's plan for every profile. Returns the user ids that succeeded."""
        done = []
        for user_id in await ProfileService(self.db).list_ids():
            try:
                await self.get_plan(user_id, regenerate=True, now=now)
                done.append(user_id)
            except Exception:
                logger.exception(f"Failed to generate daily plan for {user_id}")
                await self.db.rollback()
        return done
