"""
Profile Model - User job search preferences

Rows are written by the profile service; this application only reads
them to score listings and build daily plans.
"""

from sqlalchemy import Column, String, Integer, Float, Text, JSON, DateTime
from sqlalchemy.sql import func
from jobplanner.database import Base


class Profile(Base):
    """
    User profile used for ranking.

    Attributes:
        name: Display name used in plan messages
        latitude/longitude: Home coordinates (optional)
        address: Home address, geocoded when coordinates are missing
        max_commute_minutes: Longest acceptable one-way transit trip
            (unset means DEFAULT_MAX_COMMUTE_MINUTES)
        preferred_job_types: Canonical employment types the user wants
        skills: Free-text skills matched against listing text
        education: Education summary
        salary_min: Annual salary floor
        program_id: Credential program identifier or name
    """

    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    name = Column(String(200), nullable=False, default="")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(String(500), nullable=True)
    max_commute_minutes = Column(Integer, nullable=True)
    preferred_job_types = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    education = Column(Text, nullable=False, default="")
    salary_min = Column(Integer, nullable=True)
    program_id = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
