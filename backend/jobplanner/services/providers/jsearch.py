import httpx
import logging
from typing import Any, Dict, Optional
from jobplanner.services.providers.base import (
    ListingProvider,
    ProviderPage,
    canonical_job_types,
    parse_iso_datetime,
)
from jobplanner.services.errors import ProviderError, ProviderUnavailable
from jobplanner.schemas.listing import Coordinates, Listing, ListingSource
from jobplanner.schemas.search import SearchQuery
from jobplanner.config import get_settings

logger = logging.getLogger(__name__)

# JSearch returns up to 10 results per page
JSEARCH_PAGE_SIZE = 10

DATE_POSTED = {"24h": "today", "3d": "3days", "7d": "week", "30d": "month"}

EMPLOYMENT_TYPES = {
    "full-time": "FULLTIME",
    "part-time": "PARTTIME",
    "contract": "CONTRACTOR",
    "internship": "INTERN",
}
CANONICAL_TYPES = {value: key for key, value in EMPLOYMENT_TYPES.items()}


class JSearchProvider(ListingProvider):
    name = "jsearch"
    base_url = "https://jsearch.p.rapidapi.com/search"
    host = "jsearch.p.rapidapi.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = settings.rapidapi_key if api_key is None else api_key
        self.timeout = settings.provider_timeout_seconds if timeout is None else timeout
        self.transport = transport

    def _params(self, query: SearchQuery) -> Dict[str, Any]:
        text = query.q or ""
        params = {
            "query": f"{text} in {query.location}".strip(),
            "page": query.page,
            "num_pages": 1,
            "country": "us",
        }
        if query.posted_within:
            params["date_posted"] = DATE_POSTED[query.posted_within]
        types = [EMPLOYMENT_TYPES[t] for t in canonical_job_types(query.job_types) if t in EMPLOYMENT_TYPES]
        if types:
            params["employment_types"] = ",".join(types)
        return params

    async def search(self, query: SearchQuery) -> ProviderPage:
        if not self.api_key:
            raise ProviderUnavailable(self.name, "RAPIDAPI_KEY not configured")

        headers = {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.host}
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(self.base_url, params=self._params(query), headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON: {e}") from e

        results = data.get("data") or []
        listings = []
        for result in results[:query.limit]:
            listing = self._parse_job(result)
            if listing:
                listings.append(listing)

        return ProviderPage(listings=listings, has_more=len(results) >= JSEARCH_PAGE_SIZE)

    def _parse_job(self, data: dict) -> Optional[Listing]:
        try:
            salary_min = data.get("job_min_salary")
            salary_max = data.get("job_max_salary")
            period = (data.get("job_salary_period") or "").upper()
            salary_period = None
            if period == "HOUR":
                salary_period = "hourly"
            elif period == "YEAR":
                salary_period = "annual"
            elif period == "MONTH":
                salary_period = "annual"
                salary_min = salary_min * 12 if salary_min else salary_min
                salary_max = salary_max * 12 if salary_max else salary_max

            coordinates = None
            if data.get("job_latitude") is not None and data.get("job_longitude") is not None:
                coordinates = Coordinates(lat=data["job_latitude"], lng=data["job_longitude"])

            city = data.get("job_city") or None
            state = data.get("job_state") or None
            location = ", ".join(part for part in (city, state) if part)

            highlights = data.get("job_highlights") or {}
            requirements = "\n".join(highlights.get("Qualifications") or [])

            raw_type = (data.get("job_employment_type") or "FULLTIME").upper()

            return Listing(
                source=ListingSource.JSEARCH,
                external_id=str(data["job_id"]),
                title=data.get("job_title") or "Unknown Title",
                company=data.get("employer_name") or "",
                company_website=data.get("employer_website"),
                description=data.get("job_description") or "",
                requirements=requirements,
                location=location,
                city=city,
                state=state,
                coordinates=coordinates,
                salary_min=salary_min,
                salary_max=salary_max,
                salary_period=salary_period,
                employment_type=CANONICAL_TYPES.get(raw_type),
                apply_url=data.get("job_apply_link"),
                posted_at=parse_iso_datetime(data.get("job_posted_at_datetime_utc")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Error parsing JSearch job: {e}")
            return None
