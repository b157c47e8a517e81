"""
Tests for the Filter & Sort Stage

Tests cover:
- Danger listings always excluded
- Commute / transit / program filters (and skipping commute filters without transit data)
- Stable commute and salary sorts with unknowns last
"""

from conftest import build_enriched
from jobplanner.schemas import FilterParams
from jobplanner.services.filtering import apply_filters, exclude_dangerous, filter_and_sort, sort_listings


def _ids(listings):
    return [listing.external_id for listing in listings]


class TestDangerExclusion:
    def test_danger_removed_without_filters(self):
        listings = [
            build_enriched(external_id="ok"),
            build_enriched(external_id="bad", risk_severity="danger"),
            build_enriched(external_id="meh", risk_severity="warning"),
        ]

        assert _ids(apply_filters(listings, FilterParams())) == ["ok", "meh"]

    def test_danger_removed_even_when_it_passes_every_filter(self):
        listings = [
            build_enriched(external_id="bad", risk_severity="danger", commute_minutes=5,
                           route_ids=["8"], program_match=True),
        ]
        params = FilterParams(max_commute_minutes=60, transit_only=True, program_matches_only=True)

        assert apply_filters(listings, params) == []
        assert exclude_dangerous(listings) == []


class TestFilters:
    def test_max_commute_excludes_unknown_and_long(self):
        listings = [
            build_enriched(external_id="short", commute_minutes=20),
            build_enriched(external_id="long", commute_minutes=70),
            build_enriched(external_id="unknown"),
        ]

        result = apply_filters(listings, FilterParams(max_commute_minutes=45))

        assert _ids(result) == ["short"]

    def test_commute_filters_skipped_without_transit_data(self):
        listings = [build_enriched(external_id="unknown")]
        params = FilterParams(max_commute_minutes=45, transit_only=True)

        assert _ids(apply_filters(listings, params, has_transit_data=False)) == ["unknown"]

    def test_transit_only_requires_route(self):
        listings = [
            build_enriched(external_id="bus", commute_minutes=30, route_ids=["21"]),
            build_enriched(external_id="walk", commute_minutes=12, route_ids=[]),
        ]

        assert _ids(apply_filters(listings, FilterParams(transit_only=True))) == ["bus"]

    def test_program_matches_only(self):
        listings = [
            build_enriched(external_id="fit", program_match=True, program_match_percentage=72),
            build_enriched(external_id="other"),
        ]

        assert _ids(apply_filters(listings, FilterParams(program_matches_only=True))) == ["fit"]


class TestSort:
    def test_commute_sort_unknowns_last_in_original_order(self):
        listings = [
            build_enriched(external_id="a"),
            build_enriched(external_id="b", commute_minutes=10),
            build_enriched(external_id="c"),
            build_enriched(external_id="d", commute_minutes=5),
        ]

        result = sort_listings(listings, "commute")

        assert [listing.commute_minutes for listing in result] == [5, 10, None, None]
        assert _ids(result) == ["d", "b", "a", "c"]

    def test_salary_sort_descending_unpaid_last(self):
        listings = [
            build_enriched(external_id="none", salary_min=None, salary_max=None),
            build_enriched(external_id="low", salary_min=30000.0, salary_max=None, salary_period="annual"),
            build_enriched(external_id="high", salary_min=50000.0, salary_max=60000.0, salary_period="annual"),
        ]

        assert _ids(sort_listings(listings, "salary")) == ["high", "low", "none"]

    def test_salary_sort_is_stable(self):
        listings = [
            build_enriched(external_id="first", salary_min=40000.0, salary_max=40000.0, salary_period="annual"),
            build_enriched(external_id="second", salary_min=40000.0, salary_max=40000.0, salary_period="annual"),
        ]

        assert _ids(sort_listings(listings, "salary")) == ["first", "second"]

    def test_date_sort_keeps_order(self):
        listings = [build_enriched(external_id=str(i)) for i in range(3)]

        assert _ids(sort_listings(listings, "date")) == ["0", "1", "2"]

    def test_filter_and_sort(self):
        listings = [
            build_enriched(external_id="far", commute_minutes=40),
            build_enriched(external_id="bad", risk_severity="danger", commute_minutes=1),
            build_enriched(external_id="near", commute_minutes=15),
        ]

        result = filter_and_sort(listings, FilterParams(max_commute_minutes=45), sort_by="commute")

        assert _ids(result) == ["near", "far"]
