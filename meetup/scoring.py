"""
Pure scoring helpers: centroid, per-venue travel-time statistics, fairness
classification and the balanced ranking.
"""
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from geopy.distance import geodesic

from .errors import InvalidInput
from .models import CandidateVenue, Participant, Point, RankedVenue


# --- Module-level constants ---
UNREACHABLE_MINUTES = 999    # recorded when routing fails for a (participant, venue) pair
FAIRNESS_SPREAD_MINUTES = 5  # max - min at or below this counts as "fair"
RESULT_LIMIT = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (round() would bank to even)."""
    return int(math.floor(value + 0.5))


def seconds_to_minutes(seconds: float) -> int:
    return round_half_up(seconds / 60.0)


def compute_centroid(participants: Sequence[Participant]) -> Point:
    """Unweighted mean of participant coordinates. No geodesic correction, the
    participants are expected to be within one metropolitan area."""
    if not participants:
        raise InvalidInput("At least one participant is required to compute a center point")
    count = len(participants)
    lat = sum(p.lat for p in participants) / count
    lng = sum(p.lng for p in participants) / count
    return Point(lat, lng)


def summarize_times(times: Iterable[int]) -> Tuple[int, int]:
    """Return (average_time, max_time). Unreachable sentinels are included in both."""
    values = list(times)
    if not values:
        raise InvalidInput("Cannot summarize an empty set of travel times")
    return round_half_up(sum(values) / len(values)), max(values)


def min_valid_time(times: Iterable[int]) -> Optional[int]:
    valid = [t for t in times if t < UNREACHABLE_MINUTES]
    return min(valid) if valid else None


def is_fair(times: Iterable[int]) -> bool:
    values = list(times)
    lowest = min_valid_time(values)
    if lowest is None:
        return False
    return max(values) - lowest <= FAIRNESS_SPREAD_MINUTES


def distance_from_center_m(center: Point, location: Point) -> float:
    return geodesic((center.lat, center.lng), (location.lat, location.lng)).meters


def build_ranked_venue(venue: CandidateVenue, participant_times: Dict[str, int],
                       center: Optional[Point] = None) -> RankedVenue:
    times = list(participant_times.values())
    average_time, max_time = summarize_times(times)
    distance = round(distance_from_center_m(center, venue.location)) if center is not None else None
    return RankedVenue(
        venue=venue,
        participant_times=dict(participant_times),
        average_time=average_time,
        max_time=max_time,
        min_time=min_valid_time(times),
        is_fair=is_fair(times),
        unreachable_participants=[
            pid for pid, t in participant_times.items() if t >= UNREACHABLE_MINUTES
        ],
        distance_from_center_m=distance,
    )


def rank_venues(venues: Sequence[RankedVenue], limit: int = RESULT_LIMIT) -> List[RankedVenue]:
    """Balanced ranking: ascending average time, ties keep discovery order.
    Fairness is reported alongside but never used as a sort key."""
    return sorted(venues, key=lambda v: v.average_time)[:limit]
