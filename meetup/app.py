from flask import Flask, request, jsonify, g
from flask_cors import CORS
from dotenv import load_dotenv
from numbers import Real
import os
import logging
import math
from time import perf_counter

from .errors import ConfigurationError, DiscoveryUnavailable, InvalidInput, MeetupError
from .maps_service import DEFAULT_MAX_WORKERS, GoogleMapsService
from .models import Participant, TravelMode
from .venue_finder import DEFAULT_ROUTING_TIMEOUT_S, VenueFinder

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.getenv('LOG_FILE', 'app.log')),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2
PLACEHOLDER_KEY = "your_api_key_here"

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes


# Per-request timing: record start time and log duration on completion
@app.before_request
def _start_timer():
    g._start_time = perf_counter()


@app.after_request
def _log_request_duration(response):
    start = getattr(g, '_start_time', None)
    if start is not None:
        duration_ms = (perf_counter() - start) * 1000.0
        response.headers['X-Process-Time-ms'] = f"{duration_ms:.1f}"
        logger.info(
            "request completed: method=%s path=%s status=%s duration_ms=%.1f remote_addr=%s",
            request.method,
            request.full_path if request.query_string else request.path,
            response.status_code,
            duration_ms,
            request.remote_addr,
        )
    return response


@app.teardown_request
def _teardown_request_log(error=None):
    # If an unhandled exception occurred, still log duration
    if error is not None:
        start = getattr(g, '_start_time', None)
        duration_ms = (perf_counter() - start) * 1000.0 if start is not None else None
        logger.error(
            "request error: method=%s path=%s duration_ms=%s error=%s",
            request.method,
            request.path,
            f"{duration_ms:.1f}" if duration_ms is not None else 'unknown',
            repr(error),
        )


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


# Initialize services
server_key = os.getenv('GOOGLE_MAPS_SERVER_KEY') or os.getenv('GOOGLE_MAPS_API_KEY')
browser_key = os.getenv('GOOGLE_MAPS_BROWSER_KEY')
logger.info(f"Server API key found: {'Yes' if server_key and server_key != PLACEHOLDER_KEY else 'No'}")

maps_service = None
venue_finder = None
config_error = None
try:
    logger.info("Initializing Google Maps service...")
    maps_service = GoogleMapsService(
        server_key,
        max_workers=_env_number('MAPS_MAX_WORKERS', DEFAULT_MAX_WORKERS),
        timeout=_env_number('ROUTING_TIMEOUT_SECONDS', DEFAULT_ROUTING_TIMEOUT_S, float),
    )
    venue_finder = VenueFinder(
        maps_service,
        routing_timeout=_env_number('ROUTING_TIMEOUT_SECONDS', DEFAULT_ROUTING_TIMEOUT_S, float),
    )
    logger.info("Google Maps service initialized successfully")
except (ConfigurationError, ValueError) as e:
    # googlemaps.Client raises ValueError for malformed keys
    config_error = e if isinstance(e, ConfigurationError) else ConfigurationError(str(e))
    logger.warning(f"Google Maps service not available: {config_error.message}")


def _parse_coordinate(value, name: str, limit: float, index: int) -> float:
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidInput(f"participants[{index}].{name} must be a number")
    if abs(value) > limit:
        raise InvalidInput(f"participants[{index}].{name} must be between -{limit:g} and {limit:g}")
    return float(value)


def parse_find_places_request(data) -> tuple:
    """Validate the inbound JSON and return (participants, venue_type)."""
    if not isinstance(data, dict):
        raise InvalidInput("JSON object body is required")

    raw_participants = data.get('participants')
    if not isinstance(raw_participants, list) or len(raw_participants) < MIN_PARTICIPANTS:
        raise InvalidInput(f"At least {MIN_PARTICIPANTS} participants are required")

    venue_type = data.get('venueType')
    if not isinstance(venue_type, str) or not venue_type.strip():
        raise InvalidInput("venueType is required")

    participants = []
    seen_ids = set()
    for i, raw in enumerate(raw_participants):
        if not isinstance(raw, dict):
            raise InvalidInput(f"participants[{i}] must be an object")
        pid = raw.get('id')
        if pid is None or str(pid).strip() == '':
            raise InvalidInput(f"participants[{i}].id is required")
        pid = str(pid)
        if pid in seen_ids:
            raise InvalidInput(f"Duplicate participant id: {pid}")
        seen_ids.add(pid)
        try:
            mode = TravelMode.parse(raw.get('mode'))
        except ValueError as e:
            raise InvalidInput(f"participants[{i}].mode: {e}") from e
        participants.append(Participant(
            id=pid,
            name=str(raw.get('name') or pid),
            lat=_parse_coordinate(raw.get('lat'), 'lat', 90, i),
            lng=_parse_coordinate(raw.get('lng'), 'lng', 180, i),
            mode=mode,
        ))
    return participants, venue_type.strip()


@app.route('/', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'message': 'Fair Meetup API is running!',
        'endpoints': {
            'find_places': '/api/find-places',
            'config': '/api/config',
            'health': '/'
        },
        'status': 'healthy'
    })


@app.route('/api/find-places', methods=['POST'])
def find_places():
    """
    Rank venues that balance travel time for all participants
    Expected JSON: {
        "participants": [{"id": "1", "name": "Ana", "lat": 49.28, "lng": -123.12, "mode": "drive"}, ...],
        "venueType": "cafe"
    }
    """
    logger.info("=== FIND PLACES REQUEST ===")

    try:
        if not venue_finder:
            raise config_error or ConfigurationError("API key not configured")

        participants, venue_type = parse_find_places_request(request.get_json(silent=True))
        logger.info("Finding %s venues for %d participants", venue_type, len(participants))

        _algo_start = perf_counter()
        result = venue_finder.find_venues(participants, venue_type)
        _compute_ms = (perf_counter() - _algo_start) * 1000.0
        logger.info(
            "Time to rank venues = %.1f ms (candidates=%d, returned=%d)",
            _compute_ms, result.candidates_evaluated, len(result.venues)
        )

        response = jsonify(result.to_dict())
        response.headers['X-Compute-Time-ms'] = f"{_compute_ms:.1f}"
        return response

    except InvalidInput as e:
        logger.error(f"Invalid request: {e.message}")
        return jsonify(e.to_dict()), 400
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        return jsonify(e.to_dict()), 500
    except DiscoveryUnavailable as e:
        logger.error(f"Venue discovery failed: {e.message} {e.details}")
        return jsonify(e.to_dict()), 502
    except MeetupError as e:
        logger.error(f"Unhandled pipeline error: {e.message}", exc_info=True)
        return jsonify(e.to_dict()), 500
    except Exception as e:
        logger.error(f"Exception in find_places: {str(e)}", exc_info=True)
        return jsonify({'error': 'Internal server error', 'details': str(e)}), 500


@app.route('/api/config', methods=['GET'])
def get_config():
    """
    Get frontend configuration including the browser Google Maps API key
    """
    return jsonify({
        'success': True,
        'data': {
            'googleMapsApiKey': browser_key if browser_key and browser_key != PLACEHOLDER_KEY else None,
            'apiBaseUrl': request.host_url.rstrip('/')
        }
    })


@app.errorhandler(404)
def not_found(error):
    return jsonify({'error': 'Endpoint not found'}), 404


@app.errorhandler(500)
def internal_error(error):
    return jsonify({'error': 'Internal server error'}), 500
