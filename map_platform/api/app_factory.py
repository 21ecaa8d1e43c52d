"""Flask application factory."""

from __future__ import annotations

import logging
from flask import Flask
from flask_cors import CORS
from redis import Redis
from rq import Queue

from ..config import APP_CONFIG, QUEUE_CONFIG
from ..pipelines import ExportPipeline
from ..services import RedisProjectStore
from .routes import api_bp

logger = logging.getLogger(__name__)


def create_app(
    *,
    store: RedisProjectStore | None = None,
    pipeline: ExportPipeline | None = None,
    queue: Queue | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Collaborators default to Redis-backed instances built from
    :data:`QUEUE_CONFIG`; tests pass their own.
    """

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = APP_CONFIG.max_upload_bytes

    CORS(app)
    app.register_blueprint(api_bp, url_prefix="/api")

    redis_connection = Redis.from_url(QUEUE_CONFIG.redis_url)
    store = store or RedisProjectStore(redis_connection)
    queue = queue or Queue(
        name=QUEUE_CONFIG.queue_name,
        connection=redis_connection,
        default_timeout=QUEUE_CONFIG.default_timeout,
    )
    app.extensions["map_platform"] = {
        "store": store,
        "pipeline": pipeline or ExportPipeline.default(store),
        "queue": queue,
        "connection": redis_connection,
    }

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    logger.info("Flask application initialised")
    return app
