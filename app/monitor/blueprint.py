"""Status monitor endpoint."""

from flask import Blueprint, current_app, jsonify

monitor_bp = Blueprint('monitor', __name__)


@monitor_bp.route('/api/check')
def api_check():
    """Last polled server status."""
    poller = current_app.config.get("STATUS_POLLER")
    status = poller.last_status if poller is not None else None
    return jsonify(status)
