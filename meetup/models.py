from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class TravelMode(Enum):
    DRIVE = 'drive'
    TRANSIT = 'transit'
    WALK = 'walk'

    @property
    def google_mode(self) -> str:
        """Mode string understood by the Directions API"""
        return _GOOGLE_MODES[self]

    @classmethod
    def parse(cls, value) -> 'TravelMode':
        """Accept our own tokens (drive/transit/walk) as well as Google's
        (DRIVING/TRANSIT/WALKING), case-insensitively."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown travel mode: {value!r}")
        token = value.strip().lower()
        for mode in cls:
            if token == mode.value or token == mode.google_mode:
                return mode
        raise ValueError(f"Unknown travel mode: {value!r}")


_GOOGLE_MODES = {
    TravelMode.DRIVE: 'driving',
    TravelMode.TRANSIT: 'transit',
    TravelMode.WALK: 'walking',
}


@dataclass(frozen=True)
class Point:
    lat: float
    lng: float

    def to_dict(self) -> Dict:
        return {'lat': self.lat, 'lng': self.lng}


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    lat: float
    lng: float
    mode: TravelMode

    @property
    def location(self) -> Point:
        return Point(self.lat, self.lng)


@dataclass(frozen=True)
class CandidateVenue:
    """A place returned by venue discovery, not yet evaluated for travel time"""
    place_id: str
    name: str
    address: str
    rating: float
    price_level: int
    location: Point
    open_now: bool


@dataclass
class RankedVenue:
    venue: CandidateVenue
    participant_times: Dict[str, int]
    average_time: int
    max_time: int
    min_time: Optional[int]
    is_fair: bool
    unreachable_participants: List[str] = field(default_factory=list)
    distance_from_center_m: Optional[int] = None

    @property
    def slowest_participants(self) -> List[str]:
        return [pid for pid, t in self.participant_times.items() if t == self.max_time]

    def to_dict(self) -> Dict:
        return {
            'placeId': self.venue.place_id,
            'name': self.venue.name,
            'address': self.venue.address,
            'rating': self.venue.rating,
            'priceLevel': self.venue.price_level,
            'lat': self.venue.location.lat,
            'lng': self.venue.location.lng,
            'openNow': self.venue.open_now,
            'participantTimes': dict(self.participant_times),
            'averageTime': self.average_time,
            'maxTime': self.max_time,
            'minTime': self.min_time,
            'isFair': self.is_fair,
            'unreachableParticipants': list(self.unreachable_participants),
            'slowestParticipants': self.slowest_participants,
            'distanceFromCenter': self.distance_from_center_m,
        }
