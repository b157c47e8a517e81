"""
Filter & Sort Stage

Exclusion (always first, not configurable):
    - risk_severity == "danger"

Inclusion filters:
    - max_commute_minutes: known commute <= ceiling (only when commute
      data was computed for the request)
    - transit_only: known commute with at least one route (same condition)
    - program_matches_only: program_match is set

Sort keys (all stable):
    - date: provider/store order, already newest first
    - commute: ascending minutes, unknown commutes last
    - salary: descending max(salary_max, salary_min, 0), no salary last
"""

from typing import List, Sequence

from jobplanner.schemas.listing import EnrichedListing
from jobplanner.schemas.search import FilterParams


def exclude_dangerous(listings: Sequence[EnrichedListing]) -> List[EnrichedListing]:
    return [listing for listing in listings if listing.risk_severity != "danger"]


def apply_filters(
    listings: Sequence[EnrichedListing],
    params: FilterParams,
    has_transit_data: bool = True,
) -> List[EnrichedListing]:
    result = exclude_dangerous(listings)

    if has_transit_data and params.max_commute_minutes is not None:
        result = [
            listing for listing in result
            if listing.commute_minutes is not None
            and listing.commute_minutes <= params.max_commute_minutes
        ]

    if has_transit_data and params.transit_only:
        result = [
            listing for listing in result
            if listing.commute_minutes is not None and listing.route_ids
        ]

    if params.program_matches_only:
        result = [listing for listing in result if listing.program_match]

    return result


def _salary_value(listing: EnrichedListing) -> float:
    return max(listing.salary_max or 0, listing.salary_min or 0, 0)


def sort_listings(listings: Sequence[EnrichedListing], sort_by: str = "date") -> List[EnrichedListing]:
    if sort_by == "commute":
        known = [listing for listing in listings if listing.commute_minutes is not None]
        unknown = [listing for listing in listings if listing.commute_minutes is None]
        return sorted(known, key=lambda listing: listing.commute_minutes) + unknown

    if sort_by == "salary":
        paid = [listing for listing in listings if _salary_value(listing) > 0]
        unpaid = [listing for listing in listings if _salary_value(listing) <= 0]
        return sorted(paid, key=_salary_value, reverse=True) + unpaid

    return list(listings)


def filter_and_sort(
    listings: Sequence[EnrichedListing],
    params: FilterParams,
    sort_by: str = "date",
    has_transit_data: bool = True,
) -> List[EnrichedListing]:
    return sort_listings(apply_filters(listings, params, has_transit_data), sort_by)
