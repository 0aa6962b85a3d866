#!/usr/bin/env python3
"""Local development server for SparkQuote Python functions.

Mimics the Firebase Functions emulator endpoints with Flask.

Usage:
    cd functions
    source venv/bin/activate
    python serve_local.py

This starts a Flask server that handles:
- POST /sparkquote-dev/europe-west2/clarify_job -> clarify_job function
- POST /sparkquote-dev/europe-west2/estimate_job -> estimate_job function
- POST /sparkquote-dev/europe-west2/estimate_time -> estimate_time function
- GET  /health
"""

import os

# Set environment for local development
os.environ.setdefault('FUNCTIONS_EMULATOR', 'true')
os.environ.setdefault('GCLOUD_PROJECT', 'sparkquote-dev')

from flask import Flask, request, jsonify
from flask_cors import CORS

# Import the main module after setting env vars
from main import clarify_job, estimate_job, estimate_time
from config.logging_config import configure_logging
from config.settings import settings

configure_logging(settings.log_level, json_output=False)

ROUTE_PREFIX = '/sparkquote-dev/europe-west2'

app = Flask(__name__)
CORS(app)


def wrap_firebase_function(firebase_fn):
    """Wrap a Firebase function to work with Flask.

    Firebase HTTP functions receive a Flask request already, so the
    current request is passed straight through.
    """
    def wrapper():
        response = firebase_fn(request)
        return response.get_data(), response.status_code, dict(response.headers)
    wrapper.__name__ = f"handle_{firebase_fn.__name__}"
    return wrapper


for _fn in (clarify_job, estimate_job, estimate_time):
    app.add_url_rule(
        f'{ROUTE_PREFIX}/{_fn.__name__}',
        view_func=wrap_firebase_function(_fn),
        methods=['POST', 'OPTIONS']
    )


@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'service': 'sparkquote-python-functions'})


if __name__ == '__main__':
    settings.validate()
    port = int(os.environ.get('PORT', 5002))
    print(f"""
╔════════════════════════════════════════════════════════════════╗
║  SparkQuote Python Functions - Local Development Server        ║
╠════════════════════════════════════════════════════════════════╣
║  Server running on: http://127.0.0.1:{port}
║                                                                ║
║  Endpoints:                                                    ║
║  • POST {ROUTE_PREFIX}/clarify_job
║  • POST {ROUTE_PREFIX}/estimate_job
║  • POST {ROUTE_PREFIX}/estimate_time
║  • GET  /health                                                ║
╚════════════════════════════════════════════════════════════════╝
""")
    app.run(host='127.0.0.1', port=port, debug=True, threaded=True)
