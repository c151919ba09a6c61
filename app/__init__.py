"""Status monitor web app: serves the last polled server status for health checks."""

import logging

from flask import Flask
from flask_cors import CORS
from .monitor.blueprint import monitor_bp
from .utils.config import get_config

log = logging.getLogger(__name__)


def create_app(config=None, poller=None):
    """
    Build the monitor app around a ``StatusPoller``.

    The poller is owned by the caller (``run.py monitor`` starts and stops it);
    the app only reads ``poller.last_status``. Without a poller ``/api/check``
    answers ``null``.
    """
    app = Flask(__name__)

    # Health checks are polled cross-origin from dashboards
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.config.update(config if config is not None else get_config())
    app.config["STATUS_POLLER"] = poller

    app.register_blueprint(monitor_bp)

    @app.errorhandler(404)
    def not_found(error):
        return {"error": "Not found", "status_endpoint": "/api/check"}, 404

    @app.errorhandler(500)
    def internal_error(error):
        log.error(f"[MONITOR] Status request failed: {error}")
        return {"error": "Could not read server status"}, 500

    return app
