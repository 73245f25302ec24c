import googlemaps
from googlemaps import exceptions as gm_exceptions
from typing import Dict, List, Optional
import asyncio
import concurrent.futures
import logging

from .errors import ConfigurationError, DiscoveryUnavailable, RoutingUnavailable
from .models import CandidateVenue, Point, TravelMode
from .scoring import seconds_to_minutes


logger = logging.getLogger(__name__)

# --- Module-level constants ---
DEFAULT_SEARCH_RADIUS_M = 3000
MAX_CANDIDATES = 10
DEFAULT_MAX_WORKERS = 10
CLIENT_RETRY_TIMEOUT_S = 1  # stop googlemaps' internal retry loop almost immediately

PROVIDER_ERRORS = (
    gm_exceptions.ApiError,
    gm_exceptions.HTTPError,
    gm_exceptions.Timeout,
    gm_exceptions.TransportError,
)


def _fmt(point: Point) -> str:
    return f"{point.lat},{point.lng}"


def _error_details(error: Exception) -> Dict:
    if isinstance(error, gm_exceptions.ApiError):
        return {'status': error.status, 'message': error.message}
    if isinstance(error, gm_exceptions.HTTPError):
        return {'status': 'HTTP_ERROR', 'message': str(error)}
    return {'status': type(error).__name__, 'message': str(error)}


class GoogleMapsService:
    """Service for interacting with Google Maps APIs"""

    def __init__(self, api_key: Optional[str], max_workers: int = DEFAULT_MAX_WORKERS,
                 timeout: Optional[float] = None, client=None):
        if client is None:
            if not api_key or api_key == "your_api_key_here":
                raise ConfigurationError("Valid Google Maps server API key is required")
            # A failed pair is recorded as unreachable, never re-asked. googlemaps still
            # retries a 5xx answer internally while retry_timeout has not elapsed.
            client = googlemaps.Client(
                key=api_key,
                timeout=timeout,
                retry_timeout=CLIENT_RETRY_TIMEOUT_S,
                retry_over_query_limit=False,
            )
        self.client = client
        self.max_workers = max_workers
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def cleanup(self):
        """Clean up resources"""
        if hasattr(self, 'executor'):
            self.executor.shutdown(wait=False, cancel_futures=True)

    def find_places_nearby(self, location: Point, radius: int = DEFAULT_SEARCH_RADIUS_M,
                           place_type: str = "cafe", limit: int = MAX_CANDIDATES) -> List[CandidateVenue]:
        """
        Find candidate venues of one category around a point.
        Keeps the provider's (relevance) order and truncates to `limit`.
        """
        try:
            places_result = self.client.places_nearby(
                location=(location.lat, location.lng),
                radius=radius,
                type=place_type
            )
        except PROVIDER_ERRORS as e:
            logger.error("Places search failed near %s (%s): %s", _fmt(location), place_type, e)
            raise DiscoveryUnavailable("Failed to find places", details=_error_details(e)) from e

        status = (places_result or {}).get('status')
        if status != 'OK':
            logger.error("Places search returned status %s near %s (%s)", status, _fmt(location), place_type)
            raise DiscoveryUnavailable("Failed to find places", details={
                'status': status,
                'message': (places_result or {}).get('error_message'),
            })

        places = []
        for place in places_result.get('results', [])[:limit]:
            try:
                geometry = place['geometry']['location']
                places.append(CandidateVenue(
                    place_id=place.get('place_id', ''),
                    name=place.get('name', ''),
                    address=place.get('vicinity') or '',
                    rating=place.get('rating') or 0,
                    price_level=place.get('price_level') or 0,
                    location=Point(geometry['lat'], geometry['lng']),
                    open_now=bool((place.get('opening_hours') or {}).get('open_now', False)),
                ))
            except (KeyError, TypeError) as e:
                raise DiscoveryUnavailable("Malformed place in search results",
                                           details={'place_id': place.get('place_id'), 'message': str(e)}) from e

        logger.info("Places search near %s (%s) returned %d candidates", _fmt(location), place_type, len(places))
        return places

    def get_travel_time(self, origin: Point, destination: Point, mode: TravelMode) -> int:
        """
        Travel time in whole minutes for the first route's first leg.
        Raises RoutingUnavailable when no duration can be obtained.
        """
        try:
            directions_result = self.client.directions(
                origin=_fmt(origin),
                destination=_fmt(destination),
                mode=mode.google_mode,
                alternatives=False
            )
        except PROVIDER_ERRORS as e:
            raise RoutingUnavailable("Directions request failed", details=_error_details(e)) from e
        except ValueError as e:
            # googlemaps decodes the body without a guard; non-JSON replies land here
            raise RoutingUnavailable("Unreadable directions response", details={'message': str(e)}) from e

        if not directions_result:
            raise RoutingUnavailable("No route found", details={'status': 'ZERO_RESULTS'})

        try:
            seconds = directions_result[0]['legs'][0]['duration']['value']
            return seconds_to_minutes(seconds)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RoutingUnavailable("Malformed directions response", details={'message': str(e)}) from e

    # Async wrapper methods for parallel execution
    async def find_places_nearby_async(self, location: Point, radius: int = DEFAULT_SEARCH_RADIUS_M,
                                       place_type: str = "cafe", limit: int = MAX_CANDIDATES) -> List[CandidateVenue]:
        """Async wrapper for find_places_nearby"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.find_places_nearby, location, radius, place_type, limit)

    async def get_travel_time_async(self, origin: Point, destination: Point, mode: TravelMode) -> int:
        """Async wrapper for get_travel_time"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.get_travel_time, origin, destination, mode)
