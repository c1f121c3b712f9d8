"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from oncedrop.application.dependency_container import DependencyContainer
from oncedrop.application.housekeeping_service import HousekeepingService
from oncedrop.config.redis_config import (
    RedisConfig,
    create_redis_manager,
    create_redis_repository,
)
from oncedrop.domain.object_storage import IObjectStore
from oncedrop.domain.transfers import (
    TokenLifecycleController,
    TokenRecordRepository,
    TransferPolicy,
)
from oncedrop.infrastructure.redis_repository import RedisConnectionManager
from oncedrop.infrastructure.redis_token_record_repository import (
    RedisTokenRecordRepository,
)

logger = logging.getLogger(__name__)

# Slack on top of the payload ceiling so oversize bodies still reach the
# validator and get the regular file_too_large answer
REQUEST_OVERHEAD_BYTES = 1024 * 1024


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.celery_enabled = os.getenv("CELERY_ENABLED", "true").lower() == "true"
        self.reveal_consumed_metadata = (
            os.getenv("REVEAL_CONSUMED_METADATA", "false").lower() == "true"
        )
        self.cors_origins = os.getenv("CORS_ORIGINS", "*")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    root.setLevel(level)


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[DependencyContainer] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Prebuilt dependency container. When given, Redis,
            storage and Celery are not initialized (used by tests).

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    configure_logging(config.log_level)

    # Create Flask app
    app = Flask(__name__)
    app.config["PUBLIC_BASE_URL"] = config.public_base_url
    app.config["MAX_CONTENT_LENGTH"] = (
        TransferPolicy.MAX_PAYLOAD_BYTES + REQUEST_OVERHEAD_BYTES
    )

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": config.cors_origins,
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "X-Mime", "X-Filename"],
                "expose_headers": ["Content-Type", "Location"],
                "max_age": 3600,
            }
        },
    )

    if container is not None:
        app.container = container
        app.celery = None
    else:
        _initialize_services(app, config)
        _initialize_celery(app, config)

    # Register blueprints
    _register_blueprints(app, config)

    # Register health check endpoint
    _register_health_endpoint(app)

    return app


def build_container(config: AppConfig) -> DependencyContainer:
    """
    Wire adapters, the lifecycle controller and housekeeping.

    Args:
        config: Application configuration

    Returns:
        Populated DependencyContainer
    """
    # Imported here so google-cloud-storage loads only when the app is wired
    from oncedrop.infrastructure.storage_factory import StorageFactory

    container = DependencyContainer()

    # Infrastructure
    redis_config = RedisConfig()
    redis_manager = create_redis_manager(redis_config)
    redis_repo = create_redis_repository(redis_manager, redis_config.key_prefix)
    container.register_singleton(RedisConnectionManager, redis_manager)

    record_repository = RedisTokenRecordRepository(
        redis_repo, retention=redis_config.record_retention
    )
    container.register_singleton(TokenRecordRepository, record_repository)

    object_store = StorageFactory.create_storage()
    container.register_singleton(IObjectStore, object_store)

    # Domain and application services
    controller = TokenLifecycleController(
        record_repository,
        object_store,
        reveal_consumed_metadata=config.reveal_consumed_metadata,
    )
    container.register_singleton(TokenLifecycleController, controller)

    housekeeping = HousekeepingService(record_repository, object_store)
    container.register_singleton(HousekeepingService, housekeeping)

    return container


def _initialize_services(app: Flask, config: AppConfig) -> None:
    """
    Initialize application services and attach the container to the app.

    A failure leaves ``app.container`` as None; API endpoints then answer
    503 and /health reports the problem.

    Args:
        app: Flask application
        config: Application configuration
    """
    try:
        container = build_container(config)
        app.container = container
        logger.info(
            "Application services initialized (%d singletons)",
            len(container._singletons),
        )
    except Exception as e:
        logger.exception(f"Could not initialize services: {e}")
        app.container = None


def _initialize_celery(app: Flask, config: AppConfig) -> None:
    """
    Initialize Celery for housekeeping (optional).

    Args:
        app: Flask application
        config: Application configuration
    """
    app.celery = None
    if not config.celery_enabled:
        logger.info("Celery disabled - housekeeping will not be scheduled")
        return

    try:
        from oncedrop.config.celery_config import make_celery

        app.celery = make_celery(app)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Application configuration
    """
    from oncedrop.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Checks Redis, the object store and Celery and returns a health
    status dictionary with the matching HTTP status code.

    Args:
        app: Flask application instance

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "redis": "unknown",
        "storage": "unknown",
        "celery": "unknown",
    }

    container = getattr(app, "container", None)
    if container is None:
        health_status.update(
            status="degraded", redis="unavailable", storage="unavailable"
        )
    else:
        # Check Redis connectivity
        if container.is_registered(RedisConnectionManager):
            try:
                if container.resolve(RedisConnectionManager).health_check():
                    health_status["redis"] = "connected"
                else:
                    health_status["redis"] = "disconnected"
                    health_status["status"] = "degraded"
            except Exception as e:
                health_status["redis"] = f"error: {str(e)}"
                health_status["status"] = "degraded"
        else:
            health_status["redis"] = "not_configured"

        if container.is_registered(IObjectStore):
            health_status["storage"] = container.resolve(IObjectStore).name
        else:
            health_status["storage"] = "unavailable"
            health_status["status"] = "degraded"

    # Housekeeping is not on the request path; a missing worker is reported only
    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
