"""
Commute Resolution - Transit time between a user and job listings

Geocodes free-text addresses and asks the Google Directions API for a
bus route between two points.

Contract:
    resolve(origin, destination) -> CommuteResult | None

    None means "commute unknown" (address not geocodable or no transit
    path). Transport errors propagate from resolve() and are turned into
    None per listing by resolve_batch(), so one failing listing never
    aborts a page.

Batching:
    resolve_batch() works through the listings in fixed windows of
    `concurrency` (default 5) concurrent lookups and waits for each
    window to finish before starting the next. Output is index-aligned
    with the input.

Without a Google Maps API key the router returns a distance-based
estimate (haversine distance at 12 mph bus speed plus 10 minutes of
walking and waiting) so local development still gets commute data.
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from jobplanner.config import get_settings
from jobplanner.middleware.metrics import record_commute_batch_latency, record_enrichment_failure
from jobplanner.schemas.listing import Coordinates, Listing
from jobplanner.services.cache import CommuteCache

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

EARTH_RADIUS_MILES = 3959
BUS_SPEED_MPH = 12
WALK_AND_WAIT_MINUTES = 10

# Bus corridors used to label estimated routes, by region
REGION_ROUTES = {
    "west": ["21", "37", "50"],
    "east": ["13", "30", "104"],
    "south": ["18", "55", "306"],
    "downtown": ["21", "37", "40", "42", "51"],
}

Place = Union[Coordinates, str, None]


@dataclass
class CommuteResult:
    minutes: int
    route_ids: List[str] = field(default_factory=list)
    summary: str = ""
    estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommuteResult":
        return cls(
            minutes=data["minutes"],
            route_ids=list(data.get("route_ids", [])),
            summary=data.get("summary", ""),
            estimated=data.get("estimated", False),
        )


def haversine_miles(origin: Coordinates, destination: Coordinates) -> float:
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat))
        * math.cos(math.radians(destination.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _region(origin: Coordinates, destination: Coordinates) -> str:
    avg_lat = (origin.lat + destination.lat) / 2
    avg_lng = (origin.lng + destination.lng) / 2
    if avg_lng < -81.5:
        return "west"
    if avg_lng > -81.2:
        return "east"
    if avg_lat < 28.4:
        return "south"
    return "downtown"


def estimate_commute(origin: Coordinates, destination: Coordinates) -> CommuteResult:
    """
    Estimate a bus commute from straight-line distance.

    The route label is picked deterministically from the region's
    corridors so repeated estimates for the same trip agree.
    """
    miles = haversine_miles(origin, destination)
    minutes = int(miles / BUS_SPEED_MPH * 60 + 0.5) + WALK_AND_WAIT_MINUTES
    routes = REGION_ROUTES[_region(origin, destination)]
    route_id = routes[int(miles) % len(routes)]
    return CommuteResult(
        minutes=minutes,
        route_ids=[route_id],
        summary=f"Route {route_id} (estimated)",
        estimated=True,
    )


def parse_directions_leg(leg: Dict[str, Any]) -> CommuteResult:
    """Convert a Google Directions leg into a CommuteResult."""
    route_ids = []
    for step in leg.get("steps", []):
        details = step.get("transit_details")
        if step.get("travel_mode") == "TRANSIT" and details:
            line = details.get("line", {})
            route_id = line.get("short_name") or line.get("name")
            if route_id:
                route_ids.append(route_id)

    summary = " → ".join(f"Route {r}" for r in route_ids) if route_ids else "Walking only"
    seconds = leg.get("duration", {}).get("value", 0)
    return CommuteResult(minutes=int(seconds / 60 + 0.5), route_ids=route_ids, summary=summary)


class Geocoder(ABC):
    @abstractmethod
    async def geocode(self, address: str) -> Optional[Coordinates]:
        """Return coordinates for an address, or None if it cannot be located"""
        pass


class TransitRouter(ABC):
    @abstractmethod
    async def route(self, origin: Coordinates, destination: Coordinates) -> Optional[CommuteResult]:
        """Return the best transit trip, or None when no path exists"""
        pass


class GoogleGeocoder(Geocoder):
    def __init__(
        self,
        api_key: str,
        cache: Optional[CommuteCache] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    async def geocode(self, address: str) -> Optional[Coordinates]:
        if not self.api_key:
            return None

        if self.cache:
            cached = await self.cache.get_geocode(address)
            if cached:
                return cached

        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.get(GEOCODE_URL, params={"address": address, "key": self.api_key})
            response.raise_for_status()
            data = response.json()

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.info(f"Geocoding returned {data.get('status')} for {address!r}")
            return None

        location = results[0]["geometry"]["location"]
        coords = Coordinates(lat=location["lat"], lng=location["lng"])
        if self.cache:
            await self.cache.set_geocode(address, coords)
        return coords


class GoogleTransitRouter(TransitRouter):
    def __init__(
        self,
        api_key: str,
        cache: Optional[CommuteCache] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    async def route(self, origin: Coordinates, destination: Coordinates) -> Optional[CommuteResult]:
        if not self.api_key:
            return estimate_commute(origin, destination)

        if self.cache:
            cached = await self.cache.get_route(origin, destination)
            if cached:
                return CommuteResult.from_dict(cached)

        params = {
            "origin": f"{origin.lat},{origin.lng}",
            "destination": f"{destination.lat},{destination.lng}",
            "mode": "transit",
            "transit_mode": "bus",
            "departure_time": "now",
            "key": self.api_key,
        }
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.get(DIRECTIONS_URL, params=params)
            response.raise_for_status()
            data = response.json()

        status = data.get("status")
        if status != "OK":
            if status != "ZERO_RESULTS":
                logger.warning(f"Directions API error: {status} {data.get('error_message', '')}")
            return None

        routes = data.get("routes") or []
        if not routes or not routes[0].get("legs"):
            return None

        result = parse_directions_leg(routes[0]["legs"][0])
        if self.cache:
            await self.cache.set_route(origin, destination, result.to_dict())
        return result


class CommuteResolver:
    """
    Resolves commutes between a user and listings.

    Attributes:
        geocoder: Address -> coordinates lookup
        router: Transit routing between coordinates
        concurrency: Maximum lookups in flight at once
    """

    def __init__(self, geocoder: Geocoder, router: TransitRouter, concurrency: int = 5):
        self.geocoder = geocoder
        self.router = router
        self.concurrency = max(1, concurrency)

    async def _locate(self, place: Place) -> Optional[Coordinates]:
        if isinstance(place, Coordinates):
            return place
        if not place or not place.strip():
            return None
        return await self.geocoder.geocode(place)

    async def resolve(self, origin: Place, destination: Place) -> Optional[CommuteResult]:
        """
        Compute the transit commute between two places.

        Args:
            origin: Coordinates or address
            destination: Coordinates or address

        Returns:
            CommuteResult, or None when either end cannot be located or
            there is no transit path
        """
        origin_coords = await self._locate(origin)
        if origin_coords is None:
            return None

        destination_coords = await self._locate(destination)
        if destination_coords is None:
            return None

        return await self.router.route(origin_coords, destination_coords)

    async def locate_origin(self, origin: Place) -> Optional[Coordinates]:
        """Coordinates of the user's origin, or None when it cannot be located."""
        try:
            return await self._locate(origin)
        except Exception as e:
            logger.warning(f"Could not geocode user location: {e}")
            record_enrichment_failure("geocode")
            return None

    async def _resolve_listing(self, origin: Coordinates, listing: Listing) -> Optional[CommuteResult]:
        destination = listing.coordinates or listing.location
        try:
            return await self.resolve(origin, destination)
        except Exception as e:
            logger.warning(f"Commute lookup failed for listing {listing.id}: {e}")
            record_enrichment_failure("commute")
            return None

    async def resolve_batch(
        self,
        origin: Place,
        listings: Sequence[Listing],
    ) -> List[Optional[CommuteResult]]:
        """
        Resolve commutes for many listings, `concurrency` at a time.

        Args:
            origin: The user's coordinates or address
            listings: Listings whose location is the destination

        Returns:
            One entry per listing, in input order (None when unknown)
        """
        if not listings:
            return []

        origin_coords = await self.locate_origin(origin)
        if origin_coords is None:
            return [None] * len(listings)

        start_time = time.perf_counter()
        results: List[Optional[CommuteResult]] = []
        for start in range(0, len(listings), self.concurrency):
            window = listings[start:start + self.concurrency]
            results.extend(
                await asyncio.gather(*(self._resolve_listing(origin_coords, listing) for listing in window))
            )
        record_commute_batch_latency(time.perf_counter() - start_time)
        return results


def build_commute_resolver(cache: Optional[CommuteCache] = None) -> CommuteResolver:
    settings = get_settings()
    return CommuteResolver(
        geocoder=GoogleGeocoder(
            settings.google_maps_api_key, cache=cache, timeout=settings.provider_timeout_seconds
        ),
        router=GoogleTransitRouter(
            settings.google_maps_api_key, cache=cache, timeout=settings.provider_timeout_seconds
        ),
        concurrency=settings.commute_concurrency,
    )
