"""
main.py

Flask backend for OnceDrop: one-time, expiring transfer of client-side
encrypted files.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery,
    google-cloud-storage
  - Infrastructure: Redis server; a GCS bucket when STORAGE_BACKEND=gcs

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Housekeeping runs in a separate Celery worker + beat (celery_app.py)
  - Uses application factory pattern for better testability
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    try:
        app.run(host=host, port=port, debug=debug)
    finally:
        if app.container is not None:
            app.container.shutdown()
