from pydantic import BaseModel
from typing import Literal, Optional, Union
from jobplanner.schemas.listing import Coordinates, EnrichedListing, RankedListing

PostedWithin = Literal["24h", "3d", "7d", "30d"]
SortKey = Literal["date", "commute", "salary", "match"]

POSTED_WITHIN_DAYS = {"24h": 1, "3d": 3, "7d": 7, "30d": 30}


class SearchQuery(BaseModel):
    q: Optional[str] = None
    location: str = "Orlando, FL"
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    job_types: list[str] = []
    posted_within: Optional[PostedWithin] = None
    page: int = 1
    limit: int = 10


class FilterParams(BaseModel):
    max_commute_minutes: Optional[int] = None
    transit_only: bool = False
    program_matches_only: bool = False


class SearchRequest(BaseModel):
    query: SearchQuery
    filters: FilterParams = FilterParams()
    user_id: Optional[str] = None
    user_location: Optional[Coordinates] = None
    user_address: Optional[str] = None
    sort_by: SortKey = "date"
    refresh: bool = False


class SearchResponse(BaseModel):
    jobs: list[Union[RankedListing, EnrichedListing]]
    total: int
    page: int
    limit: int
    has_more: bool
    source: str
    has_transit_data: bool
    has_program_data: bool
    sorted_by: SortKey
