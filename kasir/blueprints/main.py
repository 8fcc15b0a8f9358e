"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify
from sqlalchemy import text

from kasir.database import get_session
from kasir.services.cache_service import get_cache

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates the database connection.

    Returns:
        200: Healthy (DB connected)
        503: Unhealthy (DB error)

    Cache state is reported but never makes the check fail.
    """
    cache_state = 'connected' if get_cache().is_available() else 'unavailable'
    try:
        row = get_session().execute(text("SELECT 1 as health_check")).fetchone()
        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'cache': cache_state,
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'cache': cache_state,
            'message': 'Unexpected query result',
        }), 503
    except Exception as e:
        get_session().rollback()
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'cache': cache_state,
            'error': str(e),
        }), 503
