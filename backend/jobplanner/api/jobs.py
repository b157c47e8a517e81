from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging
from jobplanner.api.deps import get_commute_resolver, get_providers
from jobplanner.config import get_settings
from jobplanner.database import get_db
from jobplanner.schemas import Coordinates, FilterParams, SearchQuery, SearchRequest, SearchResponse
from jobplanner.schemas.search import PostedWithin, SortKey
from jobplanner.services.commute import CommuteResolver
from jobplanner.services.errors import SearchError
from jobplanner.services.providers import ListingProvider
from jobplanner.services.search import JobSearchService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search_jobs(
    q: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    salary_min: Optional[int] = Query(None, ge=0),
    salary_max: Optional[int] = Query(None, ge=0),
    job_type: Optional[str] = Query(None, description="Comma-separated employment types"),
    posted_within: Optional[PostedWithin] = Query(None),
    transit_only: bool = Query(False),
    program_matches_only: bool = Query(False),
    max_commute: Optional[int] = Query(None, ge=1),
    user_lat: Optional[float] = Query(None, ge=-90, le=90),
    user_lng: Optional[float] = Query(None, ge=-180, le=180),
    user_address: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    sort_by: SortKey = Query("date"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    refresh: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    providers: List[ListingProvider] = Depends(get_providers),
    commute_resolver: CommuteResolver = Depends(get_commute_resolver),
):
    user_location = None
    if user_lat is not None and user_lng is not None:
        user_location = Coordinates(lat=user_lat, lng=user_lng)

    request = SearchRequest(
        query=SearchQuery(
            q=q.strip() if q and q.strip() else None,
            location=location or get_settings().default_location,
            salary_min=salary_min,
            salary_max=salary_max,
            job_types=[t.strip() for t in (job_type or "").split(",") if t.strip()],
            posted_within=posted_within,
            page=page,
            limit=limit,
        ),
        filters=FilterParams(
            max_commute_minutes=max_commute,
            transit_only=transit_only,
            program_matches_only=program_matches_only,
        ),
        user_id=user_id,
        user_location=user_location,
        user_address=user_address or None,
        sort_by=sort_by,
        refresh=refresh,
    )

    service = JobSearchService(db, providers=providers, commute_resolver=commute_resolver)
    try:
        return await service.search(request)
    except SearchError as e:
        logger.error(f"Job search failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to search jobs")
