"""
Job Search - the request pipeline behind GET /jobs/search

Pipeline:
    1. SourceAggregator: provider fallback chain, upsert, store fallback
    2. Enrichment: risk + program fit always, commute when an origin is known
    3. Filter & Sort: danger exclusion, commute/program filters, sort key
    4. Ranking (sort_by=match, only when a user profile is available)

The commute origin is the request's coordinates, then the request's
address, then the location stored on the user's profile.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from jobplanner.schemas.search import SearchRequest, SearchResponse
from jobplanner.services.aggregator import SourceAggregator
from jobplanner.services.commute import CommuteResolver
from jobplanner.services.enrichment import enrich_listings
from jobplanner.services.filtering import apply_filters, sort_listings
from jobplanner.services.profiles import ProfileService, ProgramService
from jobplanner.services.providers import ListingProvider, default_providers
from jobplanner.services.ranking import rank_listings
from jobplanner.services.store import JobStore

logger = logging.getLogger(__name__)


class JobSearchService:
    def __init__(
        self,
        db: AsyncSession,
        providers: Optional[Sequence[ListingProvider]] = None,
        commute_resolver: Optional[CommuteResolver] = None,
    ):
        self.db = db
        self.providers = default_providers() if providers is None else list(providers)
        self.commute_resolver = commute_resolver

    async def search(self, request: SearchRequest, now: Optional[datetime] = None) -> SearchResponse:
        """
        Run a search request end to end.

        Raises:
            SearchError: No provider returned results and the store failed
        """
        aggregator = SourceAggregator(self.providers, JobStore(self.db))
        result = await aggregator.fetch(request.query, refresh=request.refresh)

        profile = await ProfileService(self.db).find(request.user_id)
        program = await ProgramService(self.db).get_program(profile)
        if profile and program:
            profile = profile.model_copy(update={"program_name": program.program_name})

        origin = request.user_location or request.user_address
        if origin is None and profile:
            origin = profile.location or profile.address

        enrichment = await enrich_listings(
            result.listings,
            program=program,
            commute_resolver=self.commute_resolver if origin else None,
            origin=origin,
        )
        listings = apply_filters(enrichment.listings, request.filters, enrichment.has_transit_data)

        sorted_by = request.sort_by
        if sorted_by == "match":
            if profile:
                jobs = rank_listings(listings, profile, now=now)
            else:
                sorted_by = "date"
                jobs = listings
        else:
            jobs = sort_listings(listings, sorted_by)

        logger.info(
            f"Search q={request.query.q!r} source={result.source} "
            f"returned {len(jobs)} of {len(result.listings)} listings"
        )
        return SearchResponse(
            jobs=jobs,
            total=result.total,
            page=request.query.page,
            limit=request.query.limit,
            has_more=result.has_more,
            source=result.source,
            has_transit_data=enrichment.has_transit_data,
            has_program_data=enrichment.has_program_data,
            sorted_by=sorted_by,
        )
