#!/usr/bin/env python3
"""
Development entry point for the Fair Meetup API
"""

import os

from meetup.app import app

if __name__ == '__main__':
    app.run(debug=True, host=os.getenv('HOST', '0.0.0.0'), port=int(os.getenv('PORT', '5001')))
