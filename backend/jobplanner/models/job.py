"""
Job Model - SQLAlchemy ORM model for job postings

Stores listings ingested from external providers (JSearch, Indeed).
Each row is identified by the natural key (source, external_id); the
UUID primary key is assigned on first ingestion and never changes when
the provider re-sends the same posting.

Soft deletion is owned by other services: rows with deleted_at set are
ignored by reads but never removed here.
"""

from sqlalchemy import Column, String, Float, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from jobplanner.database import Base
import uuid


class Job(Base):
    """
    Persisted job listing.

    Attributes:
        id: UUID primary key (the stable internal identifier)
        source: Provider that supplied the listing ("jsearch", "indeed")
        external_id: Provider-native identifier, unique within a source
        title/company/description/requirements: Listing text
        location: Free-text location ("City, ST")
        city/state/latitude/longitude: Optional structured location
        salary_min/max: Salary range in salary_period units
        salary_period: "hourly" or "annual"
        employment_type: Canonical type (full-time, part-time, ...)
        posted_at: Naive UTC posting timestamp
        deleted_at: Soft-delete marker set externally
    """

    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint("source", "external_id", name="uq_jobs_source_external_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    source = Column(String(50), nullable=False, index=True)
    external_id = Column(String(255), nullable=False)
    title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=False, default="")
    company_website = Column(String(2000), nullable=True)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=False, default="")
    location = Column(String(500), nullable=False, default="")
    city = Column(String(200), nullable=True)
    state = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    salary_period = Column(String(20), nullable=True)
    employment_type = Column(String(50), nullable=True)
    apply_url = Column(String(2000), nullable=True)
    posted_at = Column(DateTime, nullable=True, index=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
