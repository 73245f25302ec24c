#!/usr/bin/env python3
"""
Production runner for Fair Meetup
- Serves the Flask API (meetup.app) with waitress
- Loads .env for GOOGLE_MAPS_SERVER_KEY / GOOGLE_MAPS_BROWSER_KEY and other settings

Usage:
  python3 run_prod.py

Environment:
  PORT=8000 (default)           # Port to bind
  HOST=0.0.0.0 (default)        # Host interface
  GOOGLE_MAPS_SERVER_KEY=...    # Required: Places + Directions
  GOOGLE_MAPS_BROWSER_KEY=...   # Optional: handed to the map UI via /api/config
  WSGI_THREADS=8                # waitress worker threads
"""

import os
from pathlib import Path
from dotenv import load_dotenv

from waitress import serve
from werkzeug.middleware.proxy_fix import ProxyFix

PROJECT_ROOT = Path(__file__).resolve().parent

# Load env from .env if present, before the app reads its configuration
load_dotenv(dotenv_path=PROJECT_ROOT / '.env')

from meetup.app import app  # noqa: E402

application = app

# Respect reverse proxy headers (X-Forwarded-*) when behind a proxy/HTTPS terminator
if os.getenv('TRUST_PROXY_HEADERS', '1') not in ('0', 'false', 'False', 'no', 'off'):
    application = ProxyFix(
        application,
        x_for=int(os.getenv('PROXY_FIX_X_FOR', '1')),
        x_proto=int(os.getenv('PROXY_FIX_X_PROTO', '1')),
        x_host=int(os.getenv('PROXY_FIX_X_HOST', '1')),
        x_port=int(os.getenv('PROXY_FIX_X_PORT', '1')),
        x_prefix=int(os.getenv('PROXY_FIX_X_PREFIX', '1')),
    )


def main():
    host = os.getenv('HOST', '0.0.0.0')
    try:
        port = int(os.getenv('PORT', '8000'))
    except ValueError:
        port = 8000

    server_key = os.getenv('GOOGLE_MAPS_SERVER_KEY') or os.getenv('GOOGLE_MAPS_API_KEY')
    if not server_key or server_key == 'your_api_key_here':
        print("\n" + "="*60)
        print("Warning: GOOGLE_MAPS_SERVER_KEY is not configured.")
        print("The API will start, but /api/find-places will return errors.")
        print("Set it in your environment or .env file.")
        print("="*60 + "\n")

    print(f"\n🚀 Starting Fair Meetup (prod) on http://{host}:{port}")
    print(" - API: /api/find-places, /api/config")
    serve(application, host=host, port=port, threads=int(os.getenv('WSGI_THREADS', '8')))


if __name__ == '__main__':
    main()
