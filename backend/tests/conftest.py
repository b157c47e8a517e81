"""Shared fixtures: listing/profile factories and an in-memory database."""

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jobplanner.database import Base
from jobplanner.schemas import Coordinates, EnrichedListing, Listing, ListingSource, ProgramProfile, UserProfile

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

CLEAN_DESCRIPTION = (
    "Join our front office team at a busy outpatient clinic. You will greet patients, "
    "schedule appointments, answer phone calls, update electronic health records, and "
    "coordinate with nurses and physicians throughout the day. We offer paid training, "
    "health benefits, tuition assistance, and a supportive team environment. Previous "
    "customer service or medical office experience is helpful but we will train the "
    "right candidate for success in this role."
)


def build_listing(**overrides) -> Listing:
    data = dict(
        source=ListingSource.JSEARCH,
        external_id="abc123",
        title="Medical Receptionist",
        company="Orlando Health",
        description=CLEAN_DESCRIPTION,
        requirements="High school diploma and one year of front desk experience.",
        location="Orlando, FL",
        city="Orlando",
        state="FL",
        coordinates=Coordinates(lat=28.5383, lng=-81.3792),
        salary_min=17.0,
        salary_max=20.0,
        salary_period="hourly",
        employment_type="full-time",
        apply_url="https://careers.orlandohealth.com/jobs/medical-receptionist",
        posted_at=NOW,
    )
    data.update(overrides)
    return Listing(**data)


def build_enriched(**overrides) -> EnrichedListing:
    enrichment = {
        key: overrides.pop(key)
        for key in list(overrides)
        if key in EnrichedListing.model_fields and key not in Listing.model_fields
    }
    return EnrichedListing.from_listing(build_listing(**overrides), **enrichment)


@pytest.fixture
def listing_factory():
    return build_listing


@pytest.fixture
def enriched_factory():
    return build_enriched


@pytest.fixture
def program():
    return ProgramProfile(
        program_id="med-admin",
        program_name="Medical Office Administration",
        program_type="certificate",
        school="Valencia College",
        career_pathway="Healthcare",
        keywords=["electronic health records", "scheduling"],
        typical_salary_min=30000,
        typical_salary_max=45000,
    )


@pytest.fixture
def profile():
    return UserProfile(
        id="user-1",
        name="Alex",
        location=Coordinates(lat=28.5383, lng=-81.3792),
        max_commute_minutes=45,
        preferred_job_types=["full-time"],
        skills=["scheduling", "customer service", "electronic health records"],
        education="certificate",
        salary_min=30000,
        program_id="med-admin",
    )


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test."""
    import jobplanner.models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
