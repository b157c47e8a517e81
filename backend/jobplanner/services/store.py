"""
Job Store - persistence and identity reconciliation for listings

Provider records are keyed by (source, external_id). The first time a
record is seen it gets a UUID; every later ingestion of the same natural
key updates that row in place, so the UUID handed to callers is stable.

Each record is written in its own transaction. A record that fails to
persist is rolled back, logged and left out of the returned id mapping;
the caller keeps using its provider-native id for that listing.

Timestamps are stored as naive UTC (SQLite has no timezone support) and
returned as timezone-aware UTC on the Listing schema.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobplanner.models import Job
from jobplanner.schemas.listing import Coordinates, Listing, ListingSource, HOURS_PER_YEAR
from jobplanner.schemas.search import SearchQuery, POSTED_WITHIN_DAYS
from jobplanner.services.providers.base import canonical_job_types

logger = logging.getLogger(__name__)

KNOWN_SOURCES = {source.value for source in ListingSource}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _listing_columns(listing: Listing) -> dict:
    return {
        "title": listing.title,
        "company": listing.company,
        "company_website": listing.company_website,
        "description": listing.description,
        "requirements": listing.requirements,
        "location": listing.location,
        "city": listing.city,
        "state": listing.state,
        "latitude": listing.coordinates.lat if listing.coordinates else None,
        "longitude": listing.coordinates.lng if listing.coordinates else None,
        "salary_min": listing.salary_min,
        "salary_max": listing.salary_max,
        "salary_period": listing.salary_period,
        "employment_type": listing.employment_type,
        "apply_url": listing.apply_url,
        "posted_at": _naive_utc(listing.posted_at),
    }


def job_to_listing(job: Job) -> Listing:
    """Convert a stored row back into a Listing carrying its internal id."""
    coordinates = None
    if job.latitude is not None and job.longitude is not None:
        coordinates = Coordinates(lat=job.latitude, lng=job.longitude)

    source = ListingSource(job.source) if job.source in KNOWN_SOURCES else ListingSource.CACHE
    return Listing(
        source=source,
        external_id=job.external_id,
        internal_id=job.id,
        title=job.title,
        company=job.company or "",
        company_website=job.company_website,
        description=job.description or "",
        requirements=job.requirements or "",
        location=job.location or "",
        city=job.city,
        state=job.state,
        coordinates=coordinates,
        salary_min=job.salary_min,
        salary_max=job.salary_max,
        salary_period=job.salary_period,
        employment_type=job.employment_type,
        apply_url=job.apply_url,
        posted_at=job.posted_at,
    )


class JobStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(self, listings: Sequence[Listing]) -> Dict[str, str]:
        """
        Insert or update listings keyed by (source, external_id).

        Args:
            listings: Normalized provider listings

        Returns:
            Mapping of external_id -> internal id for every record written
        """
        mapping: Dict[str, str] = {}

        for listing in listings:
            try:
                result = await self.db.execute(
                    select(Job).where(
                        Job.source == listing.source.value,
                        Job.external_id == listing.external_id,
                    )
                )
                job = result.scalar_one_or_none()
                values = _listing_columns(listing)

                if job is None:
                    job = Job(
                        id=str(uuid.uuid4()),
                        source=listing.source.value,
                        external_id=listing.external_id,
                        **values,
                    )
                    self.db.add(job)
                else:
                    for column, value in values.items():
                        setattr(job, column, value)

                job.updated_at = _utcnow()
                job_id = job.id
                await self.db.commit()
                mapping[listing.external_id] = job_id

            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.warning(
                    f"Failed to persist {listing.source.value}:{listing.external_id}: {e}"
                )

        return mapping

    def _conditions(self, query: SearchQuery) -> list:
        conditions = [Job.deleted_at.is_(None)]

        if query.q:
            pattern = f"%{query.q}%"
            conditions.append(
                Job.title.ilike(pattern) | Job.company.ilike(pattern) | Job.description.ilike(pattern)
            )

        if query.location:
            # Match on the city part so "Orlando, FL" also finds "Orlando, Florida"
            city = query.location.split(",")[0].strip()
            if city:
                conditions.append(Job.location.ilike(f"%{city}%"))

        annual_min = case(
            (Job.salary_period == "hourly", Job.salary_min * HOURS_PER_YEAR),
            else_=Job.salary_min,
        )
        if query.salary_min is not None:
            conditions.append(annual_min >= query.salary_min)
        if query.salary_max is not None:
            conditions.append(annual_min <= query.salary_max)

        job_types = canonical_job_types(query.job_types)
        if job_types:
            conditions.append(Job.employment_type.in_(job_types))

        if query.posted_within:
            cutoff = _utcnow() - timedelta(days=POSTED_WITHIN_DAYS[query.posted_within])
            conditions.append(Job.posted_at >= cutoff)

        return conditions

    async def query(self, query: SearchQuery) -> Tuple[List[Listing], int]:
        """
        Read a page of stored listings, newest first.

        Returns:
            Tuple of (listings on the requested page, total matching rows)
        """
        conditions = self._conditions(query)

        total_result = await self.db.execute(select(func.count(Job.id)).where(*conditions))
        total = total_result.scalar() or 0

        stmt = (
            select(Job)
            .where(*conditions)
            .order_by(Job.posted_at.desc(), Job.created_at.desc())
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        result = await self.db.execute(stmt)
        return [job_to_listing(job) for job in result.scalars().all()], total

    async def recent(self, days: int = 30, limit: int = 500) -> List[Listing]:
        """Listings posted within the last `days` days, newest first."""
        cutoff = _utcnow() - timedelta(days=days)
        stmt = (
            select(Job)
            .where(
                Job.deleted_at.is_(None),
                or_(Job.posted_at >= cutoff, Job.posted_at.is_(None) & (Job.created_at >= cutoff)),
            )
            .order_by(Job.posted_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [job_to_listing(job) for job in result.scalars().all()]
