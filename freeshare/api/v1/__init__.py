"""
API v1 - FreeShare REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")

# Create blueprint for API v1
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="FreeShare API",
    description="Anonymous file sharing with 5-digit share codes and optional passwords",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
    license="MIT",
    # No authentication required
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import blob_ns, share_ns, stats_ns, system_ns  # noqa: E402

# Register namespaces
api.add_namespace(share_ns, path="/shares")
api.add_namespace(blob_ns, path="/blobs")
api.add_namespace(stats_ns, path="/stats")
api.add_namespace(system_ns, path="/system")
