"""
main.py

Flask entry point for the FreeShare API.

Dependencies:
  - Python packages: Flask, Flask-RESTX, flask-cors, redis, celery, cryptography
  - Infrastructure: Redis server (share metadata, Celery broker)

Notes:
  - API v1 endpoints at /api/v1/ with Swagger docs at /api/v1/docs
  - Expired shares are swept by the Celery beat schedule (freeshare.celery_app)
"""

import logging
import os

from freeshare.app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
