from typing import Any, Dict, Optional


class MeetupError(Exception):
    """Base error for the venue-scoring pipeline"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict:
        payload = {'error': self.message}
        if self.details is not None:
            payload['details'] = self.details
        return payload


class ConfigurationError(MeetupError):
    """A required external credential is missing"""


class InvalidInput(MeetupError):
    """Participant list or venue category is empty or malformed"""


class DiscoveryUnavailable(MeetupError):
    """Places search failed or returned a non-success status"""


class RoutingUnavailable(MeetupError):
    """Directions lookup failed for a single (participant, venue) pair"""
