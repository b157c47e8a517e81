from jobplanner.schemas.listing import (
    Coordinates,
    EnrichedListing,
    Listing,
    ListingSource,
    RankedListing,
)
from jobplanner.schemas.profile import ProgramProfile, UserProfile
from jobplanner.schemas.plan import (
    DailyPlan,
    DailyPlanRequest,
    DailyPlanResponse,
    PlannedJob,
    PlanStats,
)
from jobplanner.schemas.search import (
    FilterParams,
    SearchQuery,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "Coordinates",
    "EnrichedListing",
    "Listing",
    "ListingSource",
    "RankedListing",
    "ProgramProfile",
    "UserProfile",
    "DailyPlan",
    "DailyPlanRequest",
    "DailyPlanResponse",
    "PlannedJob",
    "PlanStats",
    "FilterParams",
    "SearchQuery",
    "SearchRequest",
    "SearchResponse",
]
