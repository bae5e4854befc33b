"""
Unit tests for API REST endpoints.

The app is built by the real factory; the container's share services are
overridden with ones backed by the in-memory stores, so requests run the
full workflow without Redis.
"""

from datetime import datetime, timedelta, timezone
from io import BytesIO
from unittest.mock import Mock, patch
from urllib.parse import urlsplit

import pytest

from freeshare.app_factory import AppConfig, create_app
from freeshare.application.share_requests import DownloadRequest
from freeshare.application.share_service import ShareService
from freeshare.application.stats_service import StatsService
from freeshare.config.share_config import ShareConfig
from freeshare.domain.errors import StorageError, TransientError
from freeshare.domain.sharing.blob_store import IBlobStore
from freeshare.domain.sharing.signed_url_service import SignedUrlService
from freeshare.infrastructure.redis_repository import RedisConnectionManager

PAYLOAD = b"%PDF-1.7 quarterly numbers\n" * 10


@pytest.fixture
def flask_app(tmp_path, share_service, signed_url_service, blob_store, share_repository, clock):
    app = create_app(
        AppConfig(
            share=ShareConfig(blob_storage_dir=str(tmp_path), max_file_size_bytes=1024 * 1024)
        )
    )
    app.config["TESTING"] = True
    app.container.override(ShareService, share_service)
    app.container.override(SignedUrlService, signed_url_service)
    app.container.override(IBlobStore, blob_store)
    app.container.override(
        StatsService, StatsService(share_repository, storage_limit_mb=10, clock=clock)
    )
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


def _upload(client, data=PAYLOAD, name="report.pdf", mime="application/pdf", **form):
    form["file"] = (BytesIO(data), name, mime)
    return client.post("/api/v1/shares/", data=form, content_type="multipart/form-data")


def _relative(url):
    parts = urlsplit(url)
    return f"{parts.path}?{parts.query}"


# =============================================================================
# Upload
# =============================================================================

class TestUploadEndpoint:
    def test_upload_returns_code_and_link(self, client):
        response = _upload(client)

        assert response.status_code == 201
        body = response.get_json()
        assert len(body["share_code"]) == 5
        assert body["record"]["file_name"] == "report.pdf"
        assert body["record"]["file_size"] == len(PAYLOAD)
        assert body["record"]["is_password_protected"] is False
        assert "password_hash" not in body["record"]
        assert "encryption_key" not in body["record"]
        assert body["download_url"].startswith("http://testserver/api/v1/blobs/files/")

    def test_requested_code(self, client):
        response = _upload(client, code="54321", password="abc123")

        assert response.status_code == 201
        assert response.get_json()["share_code"] == "54321"
        assert response.get_json()["record"]["is_password_protected"] is True

    def test_code_already_in_use(self, client):
        _upload(client, code="54321")
        response = _upload(client, code="54321")

        assert response.status_code == 400
        assert response.get_json()["error"] == "code_unavailable"

    def test_malformed_requested_code(self, client):
        response = _upload(client, code="123")
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_share_code"

    def test_missing_file(self, client):
        response = client.post(
            "/api/v1/shares/", data={"password": "x"}, content_type="multipart/form-data"
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    def test_empty_file(self, client):
        response = _upload(client, data=b"")
        assert response.status_code == 400

    def test_file_over_limit(self, client):
        response = _upload(client, data=b"x" * (1024 * 1024 + 1))

        assert response.status_code == 413
        assert response.get_json()["error"] == "file_too_large"

    def test_request_body_over_limit(self, client):
        response = _upload(client, data=b"x" * (3 * 1024 * 1024))
        assert response.status_code == 413

    def test_storage_failure(self, client, share_repository):
        share_repository.fail_on("insert")
        response = _upload(client)

        assert response.status_code == 500
        assert response.get_json()["error"] == "storage_error"

    def test_store_timeout(self, client, share_repository):
        share_repository.fail_on("find_by_code", TransientError("redis timed out"))
        response = _upload(client)

        assert response.status_code == 503
        assert response.get_json()["error"] == "service_unavailable"

    def test_unexpected_error(self, client, flask_app):
        broken = Mock()
        broken.upload.side_effect = RuntimeError("boom")
        flask_app.container.override(ShareService, broken)

        response = _upload(client)

        assert response.status_code == 500
        body = response.get_json()
        assert body["error"] == "system_error"
        assert {"title", "message", "action"} <= set(body)


# =============================================================================
# Fetch and download
# =============================================================================

class TestFetchEndpoint:
    def test_password_flow(self, client):
        _upload(client, code="54321", password="abc123")

        missing = client.post("/api/v1/shares/54321")
        assert missing.status_code == 401
        assert missing.get_json()["error"] == "password_required"

        wrong = client.post("/api/v1/shares/54321", json={"password": "nope"})
        assert wrong.status_code == 403
        assert wrong.get_json()["error"] == "invalid_password"

        ok = client.post("/api/v1/shares/54321", json={"password": "abc123"})
        assert ok.status_code == 200
        assert ok.get_json()["record"]["share_code"] == "54321"
        assert ok.get_json()["download_url"]

    def test_unknown_code(self, client):
        response = client.post("/api/v1/shares/99999")
        assert response.status_code == 404
        assert response.get_json()["error"] == "share_not_found"

    def test_malformed_code(self, client):
        response = client.post("/api/v1/shares/12ab5")
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_share_code"

    def test_expired_share(self, client, share_repository, make_record):
        share_repository.put_record(
            make_record(share_code="54321", created_ago=timedelta(days=7, seconds=1))
        )

        response = client.post("/api/v1/shares/54321")

        assert response.status_code == 410
        assert response.get_json()["error"] == "share_expired"
        assert share_repository.find_by_code("54321") is None

    def test_non_json_body_is_treated_as_no_password(self, client):
        _upload(client, code="54321", password="abc123")
        response = client.post("/api/v1/shares/54321", data="abc123", content_type="text/plain")
        assert response.status_code == 401


class TestContentEndpoint:
    def test_download_original_bytes(self, client, share_repository):
        _upload(client, code="54321", password="abc123")

        response = client.post("/api/v1/shares/54321/content", json={"password": "abc123"})

        assert response.status_code == 200
        assert response.data == PAYLOAD
        assert response.mimetype == "application/pdf"
        assert "attachment" in response.headers["Content-Disposition"]
        assert "report.pdf" in response.headers["Content-Disposition"]
        assert share_repository.find_by_code("54321").downloads_count == 1

    def test_goes_through_service_download(self, client, share_service):
        _upload(client, code="54321", password="abc123")

        with patch.object(share_service, "download", wraps=share_service.download) as download:
            response = client.post("/api/v1/shares/54321/content", json={"password": "abc123"})

        assert response.status_code == 200
        download.assert_called_once_with(DownloadRequest("54321", "abc123"))

    def test_wrong_password(self, client, share_repository):
        _upload(client, code="54321", password="abc123")

        response = client.post("/api/v1/shares/54321/content", json={"password": "x"})

        assert response.status_code == 403
        assert share_repository.find_by_code("54321").downloads_count == 0

    def test_blob_lost(self, client, blob_store, share_repository):
        _upload(client, code="54321")
        blob_store.clear()

        response = client.post("/api/v1/shares/54321/content")

        assert response.status_code == 500
        assert response.get_json()["error"] == "storage_error"


# =============================================================================
# Signed blob access
# =============================================================================

class TestBlobEndpoint:
    def test_signed_url_serves_raw_bytes(self, client):
        url = _upload(client).get_json()["download_url"]

        response = client.get(_relative(url))

        assert response.status_code == 200
        assert response.data == PAYLOAD
        assert response.mimetype == "application/pdf"

    def test_protected_share_serves_ciphertext(self, client):
        url = _upload(client, password="abc123").get_json()["download_url"]

        response = client.get(_relative(url))

        assert response.status_code == 200
        assert response.data != PAYLOAD
        assert response.mimetype == "application/encrypted"

    def test_bad_signature(self, client):
        url = _upload(client).get_json()["download_url"]

        response = client.get(_relative(url) + "0")

        assert response.status_code == 403
        assert response.get_json()["error"] == "invalid_signature"

    def test_missing_signature(self, client):
        url = _upload(client).get_json()["download_url"]

        response = client.get(urlsplit(url).path)

        assert response.status_code == 403

    def test_expired_link(self, client, signed_url_service):
        record = _upload(client).get_json()["record"]
        key = f"files/{record['share_code']}/whatever.pdf"
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        url = signed_url_service.generate_signed_url(key, 3600, now=issued).url

        response = client.get(_relative(url))

        assert response.status_code == 410
        assert response.get_json()["error"] == "link_expired"

    def test_signed_but_missing_blob(self, client, signed_url_service):
        url = signed_url_service.generate_signed_url("files/54321/1_gone.txt", 60).url

        response = client.get(_relative(url))

        assert response.status_code == 404


# =============================================================================
# Stats and health
# =============================================================================

class TestStatsEndpoint:
    def test_stats(self, client):
        _upload(client)
        _upload(client, data=b"abc", name="notes.txt", mime="text/plain", password="pw")

        response = client.get("/api/v1/stats/")

        assert response.status_code == 200
        body = response.get_json()
        assert body["total_files"] == 2
        assert body["protected_files"] == 1
        assert body["file_types"] == {"pdf": 1, "txt": 1}

    def test_week_range(self, client):
        response = client.get("/api/v1/stats/?range=week")
        assert response.status_code == 200
        assert response.get_json()["time_range"] == "week"

    def test_unknown_range(self, client):
        response = client.get("/api/v1/stats/?range=decade")
        assert response.status_code == 400


class TestHealth:
    def test_healthy(self, client, flask_app):
        with patch.object(flask_app.redis_manager, "health_check", return_value=True):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["redis"] == "connected"
        assert response.get_json()["celery"] == "available"

    def test_redis_down(self, client, flask_app):
        with patch.object(flask_app.redis_manager, "health_check", return_value=False):
            response = client.get("/api/v1/system/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "degraded"

    def test_redis_error(self, client, flask_app):
        with patch.object(
            flask_app.redis_manager, "health_check", side_effect=StorageError("boom")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["redis"].startswith("error:")

    def test_each_app_checks_its_own_redis(self, flask_app, tmp_path):
        other = create_app(AppConfig(share=ShareConfig(blob_storage_dir=str(tmp_path / "other"))))

        assert other.redis_manager is not flask_app.redis_manager
        assert flask_app.container.resolve(RedisConnectionManager) is flask_app.redis_manager

        with patch.object(flask_app.redis_manager, "health_check", return_value=True), \
                patch.object(other.redis_manager, "health_check", return_value=False):
            assert flask_app.test_client().get("/health").status_code == 200
            assert other.test_client().get("/health").status_code == 503
