from pydantic import BaseModel, computed_field, field_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

HOURS_PER_YEAR = 2080  # 40 hrs * 52 weeks


class ListingSource(str, Enum):
    JSEARCH = "jsearch"
    INDEED = "indeed"
    CACHE = "cache"


class Coordinates(BaseModel):
    lat: float
    lng: float


class Listing(BaseModel):
    """A job posting normalized across providers."""

    source: ListingSource
    external_id: str
    internal_id: Optional[str] = None
    title: str
    company: str = ""
    company_website: Optional[str] = None
    description: str = ""
    requirements: str = ""
    location: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_period: Optional[Literal["hourly", "annual"]] = None
    employment_type: Optional[str] = None
    apply_url: Optional[str] = None
    posted_at: Optional[datetime] = None

    @field_validator("posted_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @computed_field
    @property
    def id(self) -> str:
        # Provider-native id until the listing has been persisted
        return self.internal_id or f"{self.source.value}_{self.external_id}"

    def annual_salary_min(self) -> Optional[float]:
        if not self.salary_min:
            return None
        if self.salary_period == "hourly":
            return self.salary_min * HOURS_PER_YEAR
        return self.salary_min


class EnrichedListing(Listing):
    """Listing plus request-scoped risk, program-fit and commute data."""

    risk_severity: Literal["clean", "warning", "danger"] = "clean"
    risk_reasons: list[str] = []
    risk_score: int = 0
    program_match: bool = False
    program_match_percentage: Optional[int] = None
    commute_minutes: Optional[int] = None
    route_ids: list[str] = []
    commute_summary: Optional[str] = None

    @classmethod
    def from_listing(cls, listing: Listing, **fields):
        data = listing.model_dump(exclude={"id"})
        data.update(fields)
        return cls(**data)


class RankedListing(EnrichedListing):
    match_score: int
    match_reasons: list[str] = []
