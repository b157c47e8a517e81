import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jobplanner.config import get_settings
from jobplanner.models import Profile, Program
from jobplanner.schemas.listing import Coordinates
from jobplanner.schemas.profile import ProgramProfile, UserProfile
from jobplanner.services.errors import ProfileNotFound

logger = logging.getLogger(__name__)


def profile_to_schema(profile: Profile) -> UserProfile:
    location = None
    if profile.latitude is not None and profile.longitude is not None:
        location = Coordinates(lat=profile.latitude, lng=profile.longitude)

    return UserProfile(
        id=profile.id,
        name=profile.name or "",
        location=location,
        address=profile.address,
        max_commute_minutes=profile.max_commute_minutes or get_settings().default_max_commute_minutes,
        preferred_job_types=profile.preferred_job_types or [],
        skills=profile.skills or [],
        education=profile.education or "",
        salary_min=profile.salary_min,
        program_id=profile.program_id,
    )


class ProfileService:
    """Read-only access to user profiles owned by the profile service."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> UserProfile:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if not profile:
            raise ProfileNotFound(user_id)
        return profile_to_schema(profile)

    async def find(self, user_id: Optional[str]) -> Optional[UserProfile]:
        if not user_id:
            return None
        try:
            return await self.get(user_id)
        except ProfileNotFound:
            logger.info(f"No profile for user {user_id}, searching without one")
            return None

    async def list_ids(self) -> List[str]:
        result = await self.db.execute(select(Profile.id))
        return [row[0] for row in result.fetchall()]


class ProgramService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_program(self, profile: Optional[UserProfile]) -> Optional[ProgramProfile]:
        """
        Look up the program named by the user's credential.

        Tries an exact program_id match first, then a case-insensitive
        containment match on the program name in either direction.
        """
        if not profile or not profile.program_id:
            return None

        result = await self.db.execute(select(Program).where(Program.program_id == profile.program_id))
        program = result.scalar_one_or_none()
        if program:
            return ProgramProfile.model_validate(program)

        wanted = profile.program_id.lower()
        result = await self.db.execute(select(Program))
        for program in result.scalars().all():
            name = program.program_name.lower()
            if wanted in name or name in wanted:
                return ProgramProfile.model_validate(program)

        logger.info(f"No program matches credential {profile.program_id!r}")
        return None
