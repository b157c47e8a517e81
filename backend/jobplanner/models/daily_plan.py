"""
Daily Plan Model - one generated application plan per user per day

The plan body is stored as a JSON document so a stored plan is returned
exactly as it was generated, even if listings change afterwards.
Regeneration overwrites the row for the same (user_id, plan_date).
"""

from sqlalchemy import Column, String, JSON, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from jobplanner.database import Base
import uuid


class DailyPlanRecord(Base):
    __tablename__ = "daily_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "plan_date", name="uq_daily_plans_user_date"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    plan_date = Column(String(10), nullable=False)  # ISO date, YYYY-MM-DD
    payload = Column(JSON, nullable=False)
    generated_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
