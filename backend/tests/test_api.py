"""
Tests for the HTTP API

Runs the FastAPI app in-process over httpx.ASGITransport with the
database, providers, commute resolver and message generator overridden.
"""

import httpx
import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from conftest import build_listing
from jobplanner.api.deps import get_commute_resolver, get_messages, get_providers
from jobplanner.database import get_db
from jobplanner.main import app
from jobplanner.models import Profile
from jobplanner.services.cache import CommuteCache
from jobplanner.services.commute import CommuteResolver, CommuteResult, Geocoder, TransitRouter
from jobplanner.services.errors import ProviderError
from jobplanner.services.messages import TemplateMessageGenerator
from jobplanner.services.providers import ListingProvider, ProviderPage
from jobplanner.services.store import JobStore


class StubProvider(ListingProvider):
    def __init__(self, name, listings=None, error=None):
        self.name = name
        self.listings = listings or []
        self.error = error
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return ProviderPage(listings=self.listings, has_more=False)


class NoGeocoder(Geocoder):
    async def geocode(self, address):
        return None


class MinutesByExternalId(TransitRouter):
    def __init__(self, minutes):
        self.minutes = minutes

    async def route(self, origin, destination):
        minutes = self.minutes.get((destination.lat, destination.lng))
        if minutes is None:
            return None
        return CommuteResult(minutes=minutes, route_ids=["21"], summary="Route 21")


@pytest_asyncio.fixture
async def client(db):
    state = {"providers": [], "router": MinutesByExternalId({})}

    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_providers] = lambda: state["providers"]
    app.dependency_overrides[get_commute_resolver] = lambda: CommuteResolver(NoGeocoder(), state["router"])
    app.dependency_overrides[get_messages] = lambda: TemplateMessageGenerator()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        http.state = state
        yield http

    app.dependency_overrides.clear()


class TestSearchEndpoint:
    @pytest.mark.asyncio
    async def test_remote_provider_results(self, client):
        provider = StubProvider("jsearch", [build_listing(external_id="j1")])
        client.state["providers"] = [provider]

        response = await client.get("/jobs/search", params={"q": "receptionist", "job_type": "full-time,part-time"})

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "jsearch"
        assert body["jobs"][0]["external_id"] == "j1"
        assert body["jobs"][0]["risk_severity"] == "clean"
        assert body["has_transit_data"] is False
        assert provider.queries[0].job_types == ["full-time", "part-time"]
        assert provider.queries[0].location == "Orlando, FL"

    @pytest.mark.asyncio
    async def test_falls_back_to_database(self, client, db):
        await JobStore(db).upsert([build_listing(external_id="stored")])
        client.state["providers"] = [
            StubProvider("jsearch", error=ProviderError("jsearch", "timeout")),
            StubProvider("indeed", error=ProviderError("indeed", "timeout")),
        ]

        response = await client.get("/jobs/search", params={"q": "receptionist"})

        body = response.json()
        assert body["source"] == "database"
        assert [job["external_id"] for job in body["jobs"]] == ["stored"]

    @pytest.mark.asyncio
    async def test_commute_sort_with_user_location(self, client, db):
        now = datetime.now(timezone.utc)
        await JobStore(db).upsert([
            build_listing(external_id="a", coordinates={"lat": 28.1, "lng": -81.1}, posted_at=now),
            build_listing(external_id="b", coordinates={"lat": 28.2, "lng": -81.2}, posted_at=now - timedelta(hours=1)),
            build_listing(external_id="c", coordinates={"lat": 28.3, "lng": -81.3}, posted_at=now - timedelta(hours=2)),
        ])
        client.state["router"] = MinutesByExternalId({(28.1, -81.1): 40, (28.2, -81.2): 12})

        response = await client.get(
            "/jobs/search",
            params={"user_lat": 28.5, "user_lng": -81.4, "sort_by": "commute"},
        )

        body = response.json()
        assert body["has_transit_data"] is True
        assert body["sorted_by"] == "commute"
        assert [job["external_id"] for job in body["jobs"]] == ["b", "a", "c"]
        assert body["jobs"][2]["commute_minutes"] is None

    @pytest.mark.asyncio
    async def test_invalid_limit_rejected(self, client):
        response = await client.get("/jobs/search", params={"limit": 500})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_store_failure_is_500(self, client, db):
        await db.close()
        await db.bind.dispose()
        client.state["providers"] = []

        response = await client.get("/jobs/search")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to search jobs"


class TestDailyPlanEndpoint:
    async def _seed(self, db):
        db.add(Profile(id="user-1", name="Alex", latitude=28.5, longitude=-81.4, skills=["scheduling"]))
        await db.commit()
        await JobStore(db).upsert([
            build_listing(external_id=str(i), posted_at=datetime.now(timezone.utc) - timedelta(days=i))
            for i in range(3)
        ])

    @pytest.mark.asyncio
    async def test_post_then_get_cached(self, client, db):
        await self._seed(db)

        created = await client.post("/daily-plan", json={"user_id": "user-1", "job_count": 8})
        fetched = await client.get("/daily-plan", params={"user_id": "user-1"})

        assert created.status_code == 200
        assert created.json()["cached"] is False
        assert len(created.json()["plan"]["jobs"]) == 3
        assert fetched.json()["cached"] is True
        assert fetched.json()["plan"]["date"] == created.json()["plan"]["date"]

    @pytest.mark.asyncio
    async def test_force_regenerate(self, client, db):
        await self._seed(db)
        await client.post("/daily-plan", json={"user_id": "user-1"})

        response = await client.post("/daily-plan", json={"user_id": "user-1", "job_count": 2, "force_regenerate": True})

        assert response.json()["cached"] is False
        assert len(response.json()["plan"]["jobs"]) == 2

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, client):
        response = await client.get("/daily-plan", params={"user_id": "nobody"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_job_count_validated(self, client):
        response = await client.post("/daily-plan", json={"user_id": "user-1", "job_count": 50})

        assert response.status_code == 422


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client):
        await client.get("/jobs/search", params={"limit": 500})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_reports_cache_state(self, client):
        cache = CommuteCache(redis_url="redis://localhost:6379")
        cache.redis = AsyncMock()
        cache.redis.get = AsyncMock(return_value=None)
        await cache.get_geocode("Orlando, FL")

        with patch("jobplanner.main.get_cache", AsyncMock(return_value=cache)):
            response = await client.get("/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["cache"] is True
        assert body["cache_stats"]["geocode"]["misses"] == 1
        assert body["cache_stats"]["transit"]["hit_rate"] == 0.0
