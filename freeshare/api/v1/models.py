"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields
from werkzeug.datastructures import FileStorage

from freeshare.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

upload_parser = api.parser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to share"
)
upload_parser.add_argument(
    "password", location="form", required=False, help="Optional share password"
)
upload_parser.add_argument(
    "code", location="form", required=False, help="Optional 5-digit share code"
)

password_request = api.model(
    "PasswordRequest",
    {
        "password": fields.String(
            required=False,
            description="Share password (protected shares only)",
            example="abc123",
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

share_record = api.model(
    "ShareRecord",
    {
        "share_code": fields.String(description="5-digit share code", example="54321"),
        "file_name": fields.String(description="Original file name"),
        "file_size": fields.Integer(description="Original size in bytes"),
        "mime_type": fields.String(description="Original content type"),
        "created_at": fields.DateTime(description="Upload time (ISO 8601)"),
        "expires_at": fields.DateTime(description="Expiry time (ISO 8601)"),
        "is_password_protected": fields.Boolean(),
        "downloads_count": fields.Integer(min=0),
    },
)

upload_response = api.model(
    "UploadResponse",
    {
        "share_code": fields.String(description="Code to give to the recipient"),
        "record": fields.Nested(share_record),
        "download_url": fields.String(description="Signed URL, valid for one hour"),
    },
)

fetch_response = api.model(
    "FetchResponse",
    {
        "record": fields.Nested(share_record),
        "download_url": fields.String(description="Fresh signed URL, valid for one hour"),
    },
)

stats_response = api.model(
    "StatsResponse",
    {
        "time_range": fields.String(enum=["all", "week", "month"]),
        "total_files": fields.Integer(),
        "total_size": fields.Integer(description="Total original bytes"),
        "total_size_mb": fields.Float(),
        "total_downloads": fields.Integer(),
        "protected_files": fields.Integer(),
        "storage_limit_mb": fields.Float(),
        "storage_used_percent": fields.Float(),
        "is_near_limit": fields.Boolean(description="Usage at or above 90% of the limit"),
        "recent_files": fields.List(fields.Nested(share_record)),
        "popular_files": fields.List(fields.Nested(share_record)),
        "file_types": fields.Raw(description="Extension -> file count"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category", example="share_not_found"),
        "title": fields.String(description="Short title"),
        "message": fields.String(description="Human-readable message"),
        "action": fields.String(description="What the user can do next"),
    },
)

health_response = api.model(
    "HealthResponse",
    {
        "status": fields.String(enum=["ok", "degraded"]),
        "message": fields.String(),
        "redis": fields.String(),
        "celery": fields.String(),
    },
)
