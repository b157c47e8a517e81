from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from jobplanner.schemas.listing import Listing
from jobplanner.schemas.search import SearchQuery

CANONICAL_EMPLOYMENT_TYPES = ("full-time", "part-time", "contract", "internship", "temporary")


@dataclass
class ProviderPage:
    listings: List[Listing]
    has_more: bool


class ListingProvider(ABC):
    """Base class for listing providers"""

    name: str = "unknown"

    @abstractmethod
    async def search(self, query: SearchQuery) -> ProviderPage:
        """Fetch one page of listings, raising ProviderError on failure"""
        pass


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def canonical_job_types(job_types: List[str]) -> List[str]:
    """Lower-case and keep only recognised employment types, in request order."""
    result = []
    for job_type in job_types:
        value = job_type.strip().lower().replace("_", "-")
        if value in ("fulltime", "parttime"):
            value = value[:-4] + "-time"
        if value in CANONICAL_EMPLOYMENT_TYPES and value not in result:
            result.append(value)
    return result
