import pytest

from meetup import app as app_module
from meetup.errors import ConfigurationError
from meetup.venue_finder import VenueFinder

from .conftest import place, route


PAYLOAD = {
    'participants': [
        {'id': '1', 'name': 'Ana', 'lat': 49.28, 'lng': -123.12, 'mode': 'DRIVING'},
        {'id': '2', 'name': 'Ben', 'lat': 49.29, 'lng': -123.10, 'mode': 'walk'},
    ],
    'venueType': 'cafe',
}


@pytest.fixture
def client(monkeypatch, maps_service):
    monkeypatch.setattr(app_module, 'venue_finder', VenueFinder(maps_service))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as test_client:
        yield test_client


def test_health_check(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert 'X-Process-Time-ms' in response.headers


def test_find_places_success(client, gm_client):
    gm_client.places_nearby.return_value = {
        'status': 'OK',
        'results': [place('a', rating=4.2, opening_hours={'open_now': True}), place('b')],
    }
    gm_client.directions.return_value = route(600)

    response = client.post('/api/find-places', json=PAYLOAD)

    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['center']['lat'] == pytest.approx(49.285)
    assert data['center']['lng'] == pytest.approx(-123.11)
    first = data['venues'][0]
    assert first['placeId'] == 'a'
    assert first['rating'] == 4.2
    assert first['openNow'] is True
    assert first['participantTimes'] == {'1': 10, '2': 10}
    assert first['averageTime'] == 10
    assert first['maxTime'] == 10
    assert first['isFair'] is True
    assert 'X-Compute-Time-ms' in response.headers


def test_discovery_failure_is_reported(client, gm_client):
    gm_client.places_nearby.return_value = {'status': 'OVER_QUERY_LIMIT', 'error_message': 'quota'}

    response = client.post('/api/find-places', json=PAYLOAD)

    assert response.status_code == 502
    data = response.get_json()
    assert data['error'] == 'Failed to find places'
    assert data['details']['status'] == 'OVER_QUERY_LIMIT'
    gm_client.directions.assert_not_called()


@pytest.mark.parametrize('mutate', [
    lambda p: p.update(participants=p['participants'][:1]),
    lambda p: p.update(venueType=''),
    lambda p: p['participants'][1].update(id='1'),
    lambda p: p['participants'][0].update(lat='49.28'),
    lambda p: p['participants'][0].update(lng=200),
    lambda p: p['participants'][1].update(mode='bicycle'),
])
def test_invalid_requests_are_rejected(client, gm_client, mutate):
    payload = {
        'participants': [dict(p) for p in PAYLOAD['participants']],
        'venueType': PAYLOAD['venueType'],
    }
    mutate(payload)

    response = client.post('/api/find-places', json=payload)

    assert response.status_code == 400
    assert 'error' in response.get_json()
    gm_client.places_nearby.assert_not_called()


def test_non_json_body_is_rejected(client):
    response = client.post('/api/find-places', data='not json', content_type='text/plain')
    assert response.status_code == 400


def test_missing_key_is_a_server_error(client, monkeypatch):
    monkeypatch.setattr(app_module, 'venue_finder', None)
    monkeypatch.setattr(app_module, 'config_error', ConfigurationError("API key not configured"))

    response = client.post('/api/find-places', json=PAYLOAD)

    assert response.status_code == 500
    assert response.get_json()['error'] == 'API key not configured'


def test_config_exposes_browser_key_only(client, monkeypatch):
    monkeypatch.setattr(app_module, 'browser_key', 'browser-key')
    data = client.get('/api/config').get_json()['data']
    assert data['googleMapsApiKey'] == 'browser-key'


def test_unknown_endpoint(client):
    response = client.get('/api/nope')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Endpoint not found'}
