"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify
from sqlalchemy import text

from estimator.database import get_database
from estimator.services.cloud_sync_service import get_cloud_sync

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        with get_database().session_scope() as session:
            row = session.execute(text("SELECT 1 as health_check")).fetchone()

        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'message': 'Database connection successful'
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    except Exception as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500


@main_bp.route('/health/sync')
def health_sync():
    """
    Cloud sync reachability.

    Never returns 500: sync is optional and the app works without it.
    """
    client = get_cloud_sync()
    if not client.enabled:
        return jsonify({'status': 'disabled', 'cloud': 'not configured'}), 200
    if client.is_available():
        return jsonify({'status': 'ok', 'cloud': 'reachable'}), 200
    return jsonify({'status': 'degraded', 'cloud': 'unreachable'}), 200
