import httpx
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from jobplanner.services.providers.base import ListingProvider, ProviderPage, canonical_job_types
from jobplanner.services.errors import ProviderError, ProviderUnavailable
from jobplanner.schemas.listing import Coordinates, Listing, ListingSource
from jobplanner.schemas.search import SearchQuery, POSTED_WITHIN_DAYS
from jobplanner.config import get_settings

logger = logging.getLogger(__name__)

# Indeed caps results per request at 25
INDEED_MAX_LIMIT = 25

JOB_TYPES = {
    "full-time": "fulltime",
    "part-time": "parttime",
    "contract": "contract",
    "internship": "internship",
    "temporary": "temporary",
}

_AMOUNT = r"\$(\d+(?:,\d{3})*(?:\.\d{2})?)"
_HOURLY = r"\s*(?:an?\s*hour|/\s*hr|hourly)"
_YEARLY = r"\s*(?:a?\s*year|annually|/\s*yr)"

HOURLY_RANGE = re.compile(_AMOUNT + r"\s*(?:-|to)\s*" + _AMOUNT + _HOURLY, re.I)
HOURLY_SINGLE = re.compile(_AMOUNT + _HOURLY, re.I)
YEARLY_RANGE = re.compile(_AMOUNT + r"\s*(?:-|to)\s*" + _AMOUNT + _YEARLY, re.I)
YEARLY_SINGLE = re.compile(_AMOUNT + _YEARLY, re.I)
PLAIN_AMOUNT = re.compile(_AMOUNT)


def _amount(text: str) -> float:
    return float(text.replace(",", ""))


def parse_salary(salary: Optional[str]) -> Tuple[Optional[float], Optional[float], Optional[str]]:
    """
    Parse an Indeed salary string.

    Examples:
        "$15 - $18 an hour" -> (15.0, 18.0, "hourly")
        "$45,000 a year"    -> (45000.0, 45000.0, "annual")
        "$52,000"           -> (52000.0, 52000.0, "annual")  # plain amounts over $100 are yearly

    Returns:
        Tuple of (min, max, period), all None when nothing parses
    """
    if not salary:
        return None, None, None

    match = HOURLY_RANGE.search(salary)
    if match:
        return _amount(match.group(1)), _amount(match.group(2)), "hourly"

    match = HOURLY_SINGLE.search(salary)
    if match:
        rate = _amount(match.group(1))
        return rate, rate, "hourly"

    match = YEARLY_RANGE.search(salary)
    if match:
        return _amount(match.group(1)), _amount(match.group(2)), "annual"

    match = YEARLY_SINGLE.search(salary)
    if match:
        value = _amount(match.group(1))
        return value, value, "annual"

    match = PLAIN_AMOUNT.search(salary)
    if match:
        value = _amount(match.group(1))
        return value, value, "annual" if value > 100 else "hourly"

    return None, None, None


def parse_relative_time(text: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Convert "3 days ago" / "Just posted" style strings into a UTC timestamp."""
    now = now or datetime.now(timezone.utc)
    lower = (text or "").lower()

    if "just posted" in lower or "today" in lower:
        return now

    match = re.search(r"(\d+)\+?\s*days?\s*ago", lower)
    if match:
        return now - timedelta(days=int(match.group(1)))

    match = re.search(r"(\d+)\+?\s*weeks?\s*ago", lower)
    if match:
        return now - timedelta(weeks=int(match.group(1)))

    match = re.search(r"(\d+)\+?\s*months?\s*ago", lower)
    if match:
        return now - timedelta(days=30 * int(match.group(1)))

    return now


class IndeedProvider(ListingProvider):
    name = "indeed"
    base_url = "https://api.indeed.com/ads/apisearch"

    def __init__(
        self,
        publisher_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.publisher_id = settings.indeed_publisher_id if publisher_id is None else publisher_id
        self.timeout = settings.provider_timeout_seconds if timeout is None else timeout
        self.transport = transport

    def _params(self, query: SearchQuery) -> Dict[str, Any]:
        limit = min(query.limit, INDEED_MAX_LIMIT)
        params = {
            "publisher": self.publisher_id,
            "v": "2",
            "format": "json",
            "q": query.q or "",
            "l": query.location,
            "radius": 25,
            "sort": "date",
            "start": (query.page - 1) * limit,
            "limit": limit,
            "latlong": 1,
            "co": "us",
        }
        types = [JOB_TYPES[t] for t in canonical_job_types(query.job_types)]
        if types:
            # Indeed accepts a single job type
            params["jt"] = types[0]
        if query.posted_within:
            params["fromage"] = POSTED_WITHIN_DAYS[query.posted_within]
        return params

    async def search(self, query: SearchQuery) -> ProviderPage:
        if not self.publisher_id:
            raise ProviderUnavailable(self.name, "INDEED_PUBLISHER_ID not configured")

        params = self._params(query)
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON: {e}") from e

        results = data.get("results") or []
        listings = []
        for result in results:
            listing = self._parse_job(result)
            if listing:
                listings.append(listing)

        total = data.get("totalResults")
        if isinstance(total, int):
            has_more = params["start"] + len(results) < total
        else:
            has_more = len(results) >= params["limit"]
        return ProviderPage(listings=listings, has_more=has_more)

    def _parse_job(self, data: dict) -> Optional[Listing]:
        try:
            salary_min, salary_max, salary_period = parse_salary(data.get("salary"))

            coordinates = None
            if data.get("latitude") is not None and data.get("longitude") is not None:
                coordinates = Coordinates(lat=data["latitude"], lng=data["longitude"])

            return Listing(
                source=ListingSource.INDEED,
                external_id=str(data["jobkey"]),
                title=data.get("jobtitle") or "Unknown Title",
                company=data.get("company") or "",
                description=data.get("snippet") or "",
                location=data.get("formattedLocation") or "",
                city=data.get("city") or None,
                state=data.get("state") or None,
                coordinates=coordinates,
                salary_min=salary_min,
                salary_max=salary_max,
                salary_period=salary_period,
                apply_url=data.get("url"),
                posted_at=parse_relative_time(data.get("formattedRelativeTime")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Error parsing Indeed job: {e}")
            return None
