"""
Application Factory

Creates and configures the Flask application with all dependencies.
Store clients are built here once and injected into the services through
the DependencyContainer; nothing else constructs them.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from freeshare.application.dependency_container import DependencyContainer
from freeshare.application.event_publisher import EventPublisher
from freeshare.application.retention_sweeper import RetentionSweeper
from freeshare.application.share_service import ShareService
from freeshare.application.stats_service import StatsService
from freeshare.config.celery_config import make_celery
from freeshare.config.redis_config import RedisConfig, create_redis_manager
from freeshare.config.share_config import ShareConfig
from freeshare.domain.sharing import (
    CodeGenerator,
    CryptoHelper,
    IBlobStore,
    ShareRepository,
    SignedUrlService,
)
from freeshare.infrastructure.local_blob_store import LocalBlobStore
from freeshare.infrastructure.redis_repository import RedisConnectionManager, RedisRepository
from freeshare.infrastructure.redis_share_repository import RedisShareRepository

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(
        self,
        share: Optional[ShareConfig] = None,
        redis: Optional[RedisConfig] = None,
    ):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.share = share or ShareConfig()
        self.redis = redis or RedisConfig()


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    app = Flask(__name__)
    # Room for multipart framing around a maximum-size file
    app.config["MAX_CONTENT_LENGTH"] = config.share.max_file_size_bytes + 1024 * 1024

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type"],
                "expose_headers": ["Content-Type", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app, config)
    _initialize_services(app, config)
    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask, config: AppConfig) -> None:
    """
    Initialize Redis and Celery.

    Each app owns its Redis connection manager. Neither opens a connection
    here, so the app starts even when Redis is down; the health endpoint
    reports it as degraded.
    """
    app.redis_manager = create_redis_manager(config.redis)
    logger.info(f"Redis configured for {config.redis.host}:{config.redis.port}/{config.redis.db}")

    app.celery = make_celery(app, sweep_interval_seconds=config.share.sweep_interval_seconds)
    logger.info("Celery initialized")


def _initialize_services(app: Flask, config: AppConfig) -> None:
    """
    Build the stores and services and register them in a DependencyContainer.

    API handlers and Celery tasks resolve everything through app.container.
    """
    container = DependencyContainer()
    share_config = config.share

    container.register_singleton(RedisConnectionManager, app.redis_manager)
    redis_repo = RedisRepository(app.redis_manager.client, config.redis.key_prefix)
    container.register_singleton(RedisRepository, redis_repo)

    share_repository = RedisShareRepository(redis_repo)
    signed_url_service = SignedUrlService()
    blob_store = LocalBlobStore(share_config.blob_storage_dir, signed_url_service)

    container.register_singleton(ShareRepository, share_repository)
    container.register_singleton(SignedUrlService, signed_url_service)
    container.register_singleton(IBlobStore, blob_store)

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    retention_sweeper = RetentionSweeper(share_repository, blob_store, event_publisher)
    share_service = ShareService(
        share_repository,
        blob_store,
        crypto=CryptoHelper(),
        code_generator=CodeGenerator(),
        event_publisher=event_publisher,
        config=share_config,
        retention_sweeper=retention_sweeper,
    )
    stats_service = StatsService(share_repository, share_config.storage_limit_mb)

    container.register_singleton(RetentionSweeper, retention_sweeper)
    container.register_singleton(ShareService, share_service)
    container.register_singleton(StatsService, stats_service)

    app.container = container
    logger.info(
        f"Application services initialized ({event_publisher.handler_count()} event handlers)"
    )


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    from freeshare.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)
    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "redis": "unknown",
        "celery": "unknown",
    }

    try:
        redis_manager = getattr(app, "redis_manager", None)
        if redis_manager is not None and redis_manager.health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["redis"] = f"error: {e}"
        health_status["status"] = "degraded"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the application and its dependencies."""
        health_status, status_code = get_health_status(app)
        return jsonify(health_status), status_code
