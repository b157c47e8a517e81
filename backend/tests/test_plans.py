"""
Tests for the Daily Plan Service and Search Service

Tests cover:
- One stored plan per user per day, served as cached until regenerated
- Danger listings never reaching a plan
- Program lookup by id and by name
- Scheduled regeneration for every profile
- End-to-end search over the store with a profile
"""

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import func, select
from unittest.mock import patch

from conftest import CLEAN_DESCRIPTION, build_listing
from jobplanner.config import Settings
from jobplanner.models import DailyPlanRecord, Profile, Program
from jobplanner.schemas import Coordinates, FilterParams, SearchQuery, SearchRequest, UserProfile
from jobplanner.services.commute import CommuteResolver, CommuteResult, Geocoder, TransitRouter
from jobplanner.services.errors import ProfileNotFound
from jobplanner.services.messages import TemplateMessageGenerator
from jobplanner.services.plans import DailyPlanService
from jobplanner.services.profiles import ProfileService, ProgramService
from jobplanner.services.search import JobSearchService
from jobplanner.services.store import JobStore

SETTINGS = Settings(daily_plan_size=8, plan_candidate_days=30, plan_candidate_limit=500)


class NoGeocoder(Geocoder):
    async def geocode(self, address):
        return None


class FixedRouter(TransitRouter):
    def __init__(self, minutes):
        self.minutes = minutes
        self.calls = 0

    async def route(self, origin, destination):
        self.calls += 1
        return CommuteResult(minutes=self.minutes, route_ids=["21"], summary="Route 21")


async def seed(db, listings=None):
    db.add(Program(
        program_id="med-admin",
        program_name="Medical Office Administration",
        program_type="certificate",
        career_pathway="Healthcare",
        keywords=["electronic health records"],
        typical_salary_min=30000,
        typical_salary_max=45000,
    ))
    db.add(Profile(
        id="user-1",
        name="Alex",
        latitude=28.5383,
        longitude=-81.3792,
        max_commute_minutes=45,
        preferred_job_types=["full-time"],
        skills=["electronic health records"],
        education="certificate",
        salary_min=30000,
        program_id="med-admin",
    ))
    await db.commit()

    now = datetime.now(timezone.utc)
    await JobStore(db).upsert(listings or [
        build_listing(external_id="good", posted_at=now - timedelta(days=1)),
        build_listing(external_id="ok", title="Receptionist", company="Acme", posted_at=now - timedelta(days=4)),
        build_listing(
            external_id="scam",
            description=CLEAN_DESCRIPTION + " Send a $100 fee for your training kit.",
            posted_at=now,
        ),
    ])


def service(db, router=None):
    resolver = CommuteResolver(NoGeocoder(), router or FixedRouter(25))
    return DailyPlanService(
        db,
        commute_resolver=resolver,
        message_generator=TemplateMessageGenerator(),
        settings=SETTINGS,
    )


class TestDailyPlanService:
    @pytest.mark.asyncio
    async def test_generates_and_stores_plan(self, db):
        await seed(db)

        plan, cached = await service(db).get_plan("user-1")

        assert cached is False
        assert {job.external_id for job in plan.jobs} == {"good", "ok"}
        stored = (await db.execute(select(func.count(DailyPlanRecord.id)))).scalar()
        assert stored == 1

    @pytest.mark.asyncio
    async def test_second_request_is_cached(self, db):
        await seed(db)
        first, _ = await service(db).get_plan("user-1")

        second, cached = await service(db).get_plan("user-1")

        assert cached is True
        assert second.model_dump() == first.model_dump()

    @pytest.mark.asyncio
    async def test_regenerate_overwrites_same_day(self, db):
        await seed(db)
        await service(db).get_plan("user-1")

        plan, cached = await service(db).get_plan("user-1", job_count=1, regenerate=True)

        assert cached is False
        assert len(plan.jobs) == 1
        stored = (await db.execute(select(func.count(DailyPlanRecord.id)))).scalar()
        assert stored == 1

    @pytest.mark.asyncio
    async def test_commute_and_program_attached(self, db):
        await seed(db)

        plan, _ = await service(db).get_plan("user-1")

        good = next(job for job in plan.jobs if job.external_id == "good")
        assert good.commute_minutes == 25
        assert good.program_match is True
        assert good.priority == "high"

    @pytest.mark.asyncio
    async def test_no_commute_lookup_for_danger(self, db):
        await seed(db)
        router = FixedRouter(25)

        await service(db, router=router).get_plan("user-1")

        assert router.calls == 2

    @pytest.mark.asyncio
    async def test_unknown_profile(self, db):
        with pytest.raises(ProfileNotFound):
            await service(db).get_plan("nobody")

    @pytest.mark.asyncio
    async def test_regenerate_all(self, db):
        await seed(db)
        db.add(Profile(id="user-2", name="Sam"))
        await db.commit()

        done = await service(db).regenerate_all()

        assert sorted(done) == ["user-1", "user-2"]
        stored = (await db.execute(select(func.count(DailyPlanRecord.id)))).scalar()
        assert stored == 2

    @pytest.mark.asyncio
    async def test_regenerate_all_continues_after_failure(self, db):
        await seed(db)
        db.add(Profile(id="user-2", name="Sam"))
        await db.commit()
        plans = service(db)
        real_get_plan = plans.get_plan

        async def fail_for_first_user(user_id, **kwargs):
            if user_id == "user-1":
                raise ValueError("malformed stored profile")
            return await real_get_plan(user_id, **kwargs)

        with patch.object(plans, "get_plan", new=fail_for_first_user):
            done = await plans.regenerate_all()

        assert done == ["user-2"]


class TestProgramService:
    @pytest.mark.asyncio
    async def test_lookup_by_id(self, db):
        await seed(db)

        program = await ProgramService(db).get_program(UserProfile(id="u", program_id="med-admin"))

        assert program.program_name == "Medical Office Administration"

    @pytest.mark.asyncio
    async def test_lookup_by_name(self, db):
        await seed(db)

        program = await ProgramService(db).get_program(UserProfile(id="u", program_id="medical office"))

        assert program.program_id == "med-admin"

    @pytest.mark.asyncio
    async def test_no_program(self, db):
        assert await ProgramService(db).get_program(UserProfile(id="u")) is None


class TestJobSearchService:
    @pytest.mark.asyncio
    async def test_search_from_store_with_profile(self, db):
        await seed(db)
        request = SearchRequest(query=SearchQuery(), user_id="user-1", sort_by="match")

        response = await JobSearchService(
            db, providers=[], commute_resolver=CommuteResolver(NoGeocoder(), FixedRouter(25))
        ).search(request)

        assert response.source == "database"
        assert response.sorted_by == "match"
        assert response.has_transit_data is True
        assert response.has_program_data is True
        assert "scam" not in {job.external_id for job in response.jobs}
        assert all(job.match_score is not None for job in response.jobs)
        assert response.total == 3

    @pytest.mark.asyncio
    async def test_match_sort_without_profile_reports_date(self, db):
        await seed(db)
        request = SearchRequest(query=SearchQuery(), sort_by="match")

        response = await JobSearchService(db, providers=[]).search(request)

        assert response.sorted_by == "date"
        assert response.has_transit_data is False
        assert response.has_program_data is False

    @pytest.mark.asyncio
    async def test_request_location_overrides_profile(self, db):
        await seed(db)
        request = SearchRequest(
            query=SearchQuery(),
            user_location=Coordinates(lat=28.6, lng=-81.2),
            filters=FilterParams(max_commute_minutes=20),
        )

        response = await JobSearchService(
            db, providers=[], commute_resolver=CommuteResolver(NoGeocoder(), FixedRouter(25))
        ).search(request)

        assert response.has_transit_data is True
        assert response.jobs == []

    @pytest.mark.asyncio
    async def test_unlocatable_address_keeps_listings(self, db):
        await seed(db)
        router = FixedRouter(25)
        request = SearchRequest(
            query=SearchQuery(),
            user_address="nowhere that geocodes",
            filters=FilterParams(max_commute_minutes=30, transit_only=True),
        )

        response = await JobSearchService(
            db, providers=[], commute_resolver=CommuteResolver(NoGeocoder(), router)
        ).search(request)

        assert response.has_transit_data is False
        assert {job.external_id for job in response.jobs} == {"good", "ok"}
        assert all(job.commute_minutes is None for job in response.jobs)
        assert router.calls == 0


class TestProfileService:
    @pytest.mark.asyncio
    async def test_unset_commute_limit_uses_configured_default(self, db):
        db.add(Profile(id="user-3", name="Kim"))
        await db.commit()

        with patch("jobplanner.services.profiles.get_settings", return_value=Settings(default_max_commute_minutes=60)):
            profile = await ProfileService(db).get("user-3")

        assert profile.max_commute_minutes == 60

    @pytest.mark.asyncio
    async def test_stored_commute_limit_wins(self, db):
        db.add(Profile(id="user-4", name="Lee", max_commute_minutes=20))
        await db.commit()

        profile = await ProfileService(db).get("user-4")

        assert profile.max_commute_minutes == 20
