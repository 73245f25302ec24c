from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import asyncio
import logging

from .errors import InvalidInput, RoutingUnavailable
from .maps_service import DEFAULT_SEARCH_RADIUS_M, MAX_CANDIDATES, GoogleMapsService
from .models import CandidateVenue, Participant, Point, RankedVenue
from .scoring import (
    RESULT_LIMIT,
    UNREACHABLE_MINUTES,
    build_ranked_venue,
    compute_centroid,
    rank_venues,
)


logger = logging.getLogger(__name__)

DEFAULT_ROUTING_TIMEOUT_S = 10.0


@dataclass
class VenueRecommendation:
    center: Point
    venues: List[RankedVenue]
    candidates_evaluated: int = 0

    def to_dict(self) -> Dict:
        return {
            'success': True,
            'venues': [v.to_dict() for v in self.venues],
            'center': self.center.to_dict(),
        }


class VenueFinder:
    """Finds venues that keep the group's travel time low"""

    def __init__(self, maps_service: GoogleMapsService,
                 routing_timeout: Optional[float] = DEFAULT_ROUTING_TIMEOUT_S,
                 max_candidates: int = MAX_CANDIDATES,
                 result_limit: int = RESULT_LIMIT):
        self.maps_service = maps_service
        self.routing_timeout = routing_timeout
        self.max_candidates = max_candidates
        self.result_limit = result_limit

    def find_venues(self, participants: Sequence[Participant], venue_type: str) -> VenueRecommendation:
        """
        Rank venues of `venue_type` around the participants' centroid.
        Runs the async pipeline on a private event loop so it can be called from Flask.
        """
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(self.find_venues_async(participants, venue_type))
        finally:
            loop.close()

    async def find_venues_async(self, participants: Sequence[Participant], venue_type: str) -> VenueRecommendation:
        if not venue_type or not str(venue_type).strip():
            raise InvalidInput("venueType is required")
        ids = [p.id for p in participants]
        if len(set(ids)) != len(ids):
            raise InvalidInput("Participant ids must be unique", details={'ids': ids})

        center = compute_centroid(participants)
        logger.info("Center point: %s, %s", center.lat, center.lng)

        # DiscoveryUnavailable propagates: nothing to evaluate without candidates
        candidates = await self.maps_service.find_places_nearby_async(
            center,
            radius=DEFAULT_SEARCH_RADIUS_M,
            place_type=venue_type,
            limit=self.max_candidates,
        )

        matrix = await self.build_travel_time_matrix(candidates, participants)
        evaluated = [build_ranked_venue(venue, times, center) for venue, times in zip(candidates, matrix)]
        ranked = rank_venues(evaluated, limit=self.result_limit)

        return VenueRecommendation(center=center, venues=ranked, candidates_evaluated=len(evaluated))

    async def build_travel_time_matrix(self, candidates: Sequence[CandidateVenue],
                                       participants: Sequence[Participant]) -> List[Dict[str, int]]:
        """One {participant id: minutes} entry per candidate, in candidate order.
        All (participant, candidate) queries are issued concurrently, at most one per
        pool worker in flight so the per-query timeout only runs while the call does."""
        slots = asyncio.Semaphore(max(1, getattr(self.maps_service, 'max_workers', 1)))
        tasks = [
            self._route_pair(participant, venue, slots)
            for venue in candidates
            for participant in participants
        ]
        durations = await asyncio.gather(*tasks)

        matrix: List[Dict[str, int]] = []
        width = len(participants)
        for i, _ in enumerate(candidates):
            row = durations[i * width:(i + 1) * width]
            matrix.append({p.id: minutes for p, minutes in zip(participants, row)})
        return matrix

    async def _route_pair(self, participant: Participant, venue: CandidateVenue,
                          slots: asyncio.Semaphore) -> int:
        async with slots:
            try:
                return await asyncio.wait_for(
                    self.maps_service.get_travel_time_async(participant.location, venue.location, participant.mode),
                    timeout=self.routing_timeout,
                )
            except RoutingUnavailable as e:
                logger.warning("Directions failed for %s to %s: %s %s",
                               participant.name, venue.name, e.message, e.details or '')
            except asyncio.TimeoutError:
                logger.warning("Directions timed out for %s to %s after %ss",
                               participant.name, venue.name, self.routing_timeout)
            except Exception as e:
                logger.warning("Directions error for %s to %s: %r", participant.name, venue.name, e)
        return UNREACHABLE_MINUTES
