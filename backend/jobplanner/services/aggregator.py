"""
Source Aggregator - Provider fallback chain for listing search

Fallback order:
    1. Remote providers in priority order (JSearch, then Indeed). Only
       consulted when the query has free text or a refresh is forced.
       The first provider returning at least one listing wins; its
       results are upserted so every listing carries a stable id.
    2. The job store ("database"), when every remote provider failed,
       returned nothing, or was skipped.

Provider failures are never fatal; each attempt is recorded as a
ProviderOutcome. Only a failing store read at the end of the chain
raises SearchError.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from jobplanner.middleware.metrics import record_provider_outcome
from jobplanner.schemas.listing import Listing
from jobplanner.schemas.search import SearchQuery
from jobplanner.services.errors import ProviderUnavailable, SearchError
from jobplanner.services.providers.base import ListingProvider, ProviderPage
from jobplanner.services.store import JobStore

logger = logging.getLogger(__name__)

DATABASE_SOURCE = "database"


@dataclass
class ProviderOutcome:
    provider: str
    page: Optional[ProviderPage] = None
    error: Optional[Exception] = None

    @property
    def listings(self) -> List[Listing]:
        return self.page.listings if self.page else []


@dataclass
class AggregateResult:
    listings: List[Listing]
    source: str
    total: int
    has_more: bool
    remote: bool
    attempts: List[ProviderOutcome] = field(default_factory=list)


class SourceAggregator:
    def __init__(self, providers: Sequence[ListingProvider], store: JobStore):
        self.providers = list(providers)
        self.store = store

    async def _attempt(self, provider: ListingProvider, query: SearchQuery) -> ProviderOutcome:
        try:
            page = await provider.search(query)
        except ProviderUnavailable as e:
            logger.info(f"Provider {provider.name} skipped: {e}")
            record_provider_outcome(provider.name, "unavailable")
            return ProviderOutcome(provider=provider.name, error=e)
        except Exception as e:
            logger.warning(f"Provider {provider.name} failed: {e}")
            record_provider_outcome(provider.name, "error")
            return ProviderOutcome(provider=provider.name, error=e)

        record_provider_outcome(provider.name, "success" if page.listings else "empty")
        return ProviderOutcome(provider=provider.name, page=page)

    async def _reconcile(self, listings: List[Listing]) -> List[Listing]:
        mapping = await self.store.upsert(listings)
        return [
            listing.model_copy(update={"internal_id": mapping[listing.external_id]})
            if listing.external_id in mapping else listing
            for listing in listings
        ]

    async def fetch(self, query: SearchQuery, refresh: bool = False) -> AggregateResult:
        """
        Return one page of listings from the first source that has any.

        Args:
            query: Search parameters
            refresh: Consult remote providers even without free text

        Returns:
            AggregateResult naming the provider (or "database") that
            satisfied the request

        Raises:
            SearchError: The store could not be read at the end of the chain
        """
        attempts: List[ProviderOutcome] = []

        if query.q or refresh:
            for provider in self.providers:
                outcome = await self._attempt(provider, query)
                attempts.append(outcome)
                if outcome.listings:
                    listings = await self._reconcile(outcome.listings)
                    return AggregateResult(
                        listings=listings,
                        source=provider.name,
                        total=len(listings),
                        has_more=outcome.page.has_more,
                        remote=True,
                        attempts=attempts,
                    )

        try:
            listings, total = await self.store.query(query)
        except SQLAlchemyError as e:
            logger.error(f"Job store query failed: {e}")
            raise SearchError("Failed to search jobs") from e

        return AggregateResult(
            listings=listings,
            source=DATABASE_SOURCE,
            total=total,
            has_more=query.page * query.limit < total,
            remote=False,
            attempts=attempts,
        )
