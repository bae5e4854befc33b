"""
API Namespaces - Organized endpoint groups
"""

from io import BytesIO

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from freeshare.api.v1.models import (
    error_response,
    fetch_response,
    health_response,
    password_request,
    stats_response,
    upload_parser,
    upload_response,
)
from freeshare.application.share_requests import DownloadRequest, UploadRequest
from freeshare.application.share_service import ShareService
from freeshare.application.stats_service import StatsService
from freeshare.domain.errors import (
    ErrorCategory,
    ShareError,
    create_error_response,
    share_error_response,
)
from freeshare.domain.sharing.blob_store import IBlobStore
from freeshare.domain.sharing.signed_url_service import SignedUrlService


def _share_error(error: ShareError, context: str):
    """Log and convert a ShareError into its API response."""
    if error.http_status_code >= 500:
        current_app.logger.error(f"{context}: {error}")
    else:
        current_app.logger.info(f"{context}: {error.kind}: {error}")
    return share_error_response(error)


def _unexpected_error(error: Exception, context: str):
    current_app.logger.exception(f"Unexpected error in {context}: {error}")
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR, f"Unexpected error: {error}", status_code=500
    )


def _request_password():
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    return password if isinstance(password, str) else None


# =============================================================================
# Share Namespace - Upload and code lookup
# =============================================================================

share_ns = Namespace("shares", description="Share upload and retrieval")


@share_ns.route("/")
class ShareList(Resource):
    """Upload a file"""

    @share_ns.doc("create_share")
    @share_ns.expect(upload_parser)
    @share_ns.response(201, "Share created", upload_response)
    @share_ns.response(400, "Bad Request", error_response)
    @share_ns.response(413, "File Too Large", error_response)
    @share_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Upload a file and get a share code

        Multipart form with 'file', an optional 'password' (encrypts the file)
        and an optional 5-digit 'code'. Shares expire after 7 days.
        """
        try:
            upload = request.files.get("file")
            password = request.form.get("password") or None
            code = request.form.get("code") or None
        except RequestEntityTooLarge:
            return create_error_response(
                ErrorCategory.FILE_TOO_LARGE,
                "Request body exceeds the upload limit",
                status_code=413,
            )

        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "Missing 'file' in multipart form",
                status_code=400,
            )

        try:
            share_service = current_app.container.resolve(ShareService)
            result = share_service.upload(
                UploadRequest(
                    file_bytes=upload.read(),
                    file_name=upload.filename,
                    mime_type=upload.mimetype or "application/octet-stream",
                    password=password,
                    share_code=code,
                )
            )
            return result.to_dict(), 201

        except ShareError as e:
            return _share_error(e, "Upload failed")
        except Exception as e:
            return _unexpected_error(e, "share upload")


@share_ns.route("/<string:code>")
@share_ns.param("code", "The 5-digit share code")
class Share(Resource):
    """Resolve a share code"""

    @share_ns.doc("fetch_share")
    @share_ns.expect(password_request, validate=False)
    @share_ns.response(200, "Success", fetch_response)
    @share_ns.response(400, "Invalid Share Code", error_response)
    @share_ns.response(401, "Password Required", error_response)
    @share_ns.response(403, "Incorrect Password", error_response)
    @share_ns.response(404, "Share Not Found", error_response)
    @share_ns.response(410, "Share Expired", error_response)
    def post(self, code):
        """
        Look up a share and get a fresh download link

        POST rather than GET so the password stays out of URLs and logs.
        """
        try:
            share_service = current_app.container.resolve(ShareService)
            result = share_service.fetch(code, _request_password())
            return result.to_dict(), 200

        except ShareError as e:
            return _share_error(e, f"Fetch of share {code} failed")
        except Exception as e:
            return _unexpected_error(e, f"fetch of share {code}")


@share_ns.route("/<string:code>/content")
@share_ns.param("code", "The 5-digit share code")
class ShareContent(Resource):
    """Download the original file"""

    @share_ns.doc("download_share")
    @share_ns.expect(password_request, validate=False)
    @share_ns.response(200, "File content")
    @share_ns.response(401, "Password Required", error_response)
    @share_ns.response(403, "Incorrect Password", error_response)
    @share_ns.response(404, "Share Not Found", error_response)
    @share_ns.response(410, "Share Expired", error_response)
    @share_ns.response(500, "Decryption or Storage Error", error_response)
    def post(self, code):
        """
        Download the original (decrypted) file

        Counts as one download.
        """
        password = _request_password()
        try:
            share_service = current_app.container.resolve(ShareService)
            record, data = share_service.download(DownloadRequest(code, password))

        except ShareError as e:
            return _share_error(e, f"Download of share {code} failed")
        except Exception as e:
            return _unexpected_error(e, f"download of share {code}")

        current_app.logger.info(
            f"[SHARES_V1] Serving {len(data)} bytes for share {code}"
        )
        return send_file(
            BytesIO(data),
            mimetype=record.mime_type,
            as_attachment=True,
            download_name=record.file_name,
        )


# =============================================================================
# Blob Namespace - Signed URL access
# =============================================================================

blob_ns = Namespace("blobs", description="Signed blob access")


@blob_ns.route("/<path:key>")
@blob_ns.param("key", "Blob key")
class Blob(Resource):
    """Serve a blob through a signed URL"""

    @blob_ns.doc("get_blob", params={"expires": "Unix expiry", "signature": "HMAC signature"})
    @blob_ns.response(200, "Raw blob bytes (encrypted for protected shares)")
    @blob_ns.response(403, "Invalid Signature", error_response)
    @blob_ns.response(404, "Blob Not Found", error_response)
    @blob_ns.response(410, "Link Expired", error_response)
    def get(self, key):
        """
        Read raw blob bytes

        Valid only with the expires/signature pair from a signed URL.
        """
        try:
            signed_url_service = current_app.container.resolve(SignedUrlService)
            signed_url_service.verify(
                key, request.args.get("expires"), request.args.get("signature")
            )
        except ShareError as e:
            current_app.logger.warning(f"[BLOBS_V1] Rejected signed URL for {key}: {e}")
            status = 410 if e.category is ErrorCategory.LINK_EXPIRED else 403
            return create_error_response(e.category, str(e), status_code=status)

        try:
            blob_store = current_app.container.resolve(IBlobStore)
            data = blob_store.get(key)
            if data is None:
                return create_error_response(
                    ErrorCategory.SHARE_NOT_FOUND,
                    f"Blob {key} not found",
                    status_code=404,
                )
            content_type = blob_store.get_content_type(key) or "application/octet-stream"

        except ShareError as e:
            return _share_error(e, f"Blob read of {key} failed")
        except Exception as e:
            return _unexpected_error(e, f"blob read of {key}")

        return send_file(
            BytesIO(data),
            mimetype=content_type,
            as_attachment=True,
            download_name=key.rsplit("/", 1)[-1],
        )


# =============================================================================
# Stats Namespace
# =============================================================================

stats_ns = Namespace("stats", description="Usage statistics")


@stats_ns.route("/")
class Stats(Resource):
    """Usage statistics"""

    @stats_ns.doc("get_stats", params={"range": "all, week or month"})
    @stats_ns.response(200, "Success", stats_response)
    @stats_ns.response(400, "Bad Request", error_response)
    def get(self):
        """Get storage usage, download totals and top shares"""
        try:
            stats_service = current_app.container.resolve(StatsService)
            return stats_service.get_stats(request.args.get("range", "all")), 200

        except ShareError as e:
            return _share_error(e, "Stats failed")
        except Exception as e:
            return _unexpected_error(e, "stats")


# =============================================================================
# System Namespace
# =============================================================================

system_ns = Namespace("system", description="System status")


@system_ns.route("/health")
class Health(Resource):
    """Health check"""

    @system_ns.doc("health")
    @system_ns.response(200, "Healthy", health_response)
    @system_ns.response(503, "Degraded", health_response)
    def get(self):
        """Redis and Celery availability"""
        from freeshare.app_factory import get_health_status

        return get_health_status(current_app)
