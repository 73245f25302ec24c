import os
from unittest.mock import MagicMock

import pytest

# app.py configures logging and reads keys at import time
os.environ.setdefault('LOG_FILE', os.devnull)

from meetup.maps_service import GoogleMapsService
from meetup.models import Participant, TravelMode


def place(place_id, lat=49.285, lng=-123.11, **extra):
    result = {
        'place_id': place_id,
        'name': f"Place {place_id}",
        'vicinity': f"{place_id} Main St",
        'geometry': {'location': {'lat': lat, 'lng': lng}},
    }
    result.update(extra)
    return result


def route(seconds):
    return [{'legs': [{'duration': {'value': seconds, 'text': f"{seconds // 60} mins"}}]}]


@pytest.fixture
def participants():
    return [
        Participant('a', 'Ana', 49.28, -123.12, TravelMode.DRIVE),
        Participant('b', 'Ben', 49.29, -123.10, TravelMode.TRANSIT),
    ]


@pytest.fixture
def gm_client():
    return MagicMock()


@pytest.fixture
def maps_service(gm_client):
    service = GoogleMapsService(None, max_workers=4, client=gm_client)
    yield service
    service.cleanup()
