"""
Listing Enrichment - attach request-scoped risk, program-fit and commute data

Risk and program fit are computed for every listing; commute only when the
origin (user coordinates or address) can be located. Listings already rated
`danger` are never shown, so no commute lookup is spent on them.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from jobplanner.schemas.listing import EnrichedListing, Listing
from jobplanner.schemas.profile import ProgramProfile
from jobplanner.services.commute import CommuteResolver, CommuteResult, Place
from jobplanner.services.program_fit import score_program_fit
from jobplanner.services.risk import score_risk

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    listings: List[EnrichedListing]
    has_transit_data: bool
    has_program_data: bool


async def enrich_listings(
    listings: Sequence[Listing],
    program: Optional[ProgramProfile] = None,
    commute_resolver: Optional[CommuteResolver] = None,
    origin: Place = None,
) -> EnrichmentResult:
    risks = [score_risk(listing) for listing in listings]

    origin_coords = None
    if commute_resolver and origin:
        origin_coords = await commute_resolver.locate_origin(origin)
        if origin_coords is None:
            logger.info(f"User location {origin!r} could not be located, skipping commutes")

    has_transit_data = origin_coords is not None
    commutes: List[Optional[CommuteResult]] = [None] * len(listings)
    if has_transit_data:
        positions = [i for i, risk in enumerate(risks) if risk.severity != "danger"]
        resolved = await commute_resolver.resolve_batch(origin_coords, [listings[i] for i in positions])
        for position, result in zip(positions, resolved):
            commutes[position] = result

    enriched = []
    for listing, risk, commute in zip(listings, risks, commutes):
        fields = {
            "risk_severity": risk.severity,
            "risk_reasons": risk.reasons,
            "risk_score": risk.score,
        }
        if program:
            fit = score_program_fit(listing, program)
            fields["program_match"] = fit.is_match
            fields["program_match_percentage"] = fit.match_percentage
        if commute:
            fields["commute_minutes"] = commute.minutes
            fields["route_ids"] = commute.route_ids
            fields["commute_summary"] = commute.summary
        enriched.append(EnrichedListing.from_listing(listing, **fields))

    logger.debug(
        f"Enriched {len(enriched)} listings (transit={has_transit_data}, program={program is not None})"
    )
    return EnrichmentResult(
        listings=enriched,
        has_transit_data=has_transit_data,
        has_program_data=program is not None,
    )
