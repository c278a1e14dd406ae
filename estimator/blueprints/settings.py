"""Settings blueprint - company settings (single row)."""
from flask import Blueprint, current_app, jsonify, request

from estimator.exceptions import ValidationError
from estimator.services.store_service import get_store

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('', methods=['GET'])
def get_settings():
    settings = get_store().get_company_settings()
    return jsonify({'status': 'ok', 'settings': settings.to_dict()})


@settings_bp.route('', methods=['PUT', 'PATCH'])
def update_settings():
    """
    Update company settings.

    New defaults apply to rows and projects created afterwards; existing line
    items keep their own rates.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        raise ValidationError('Request body must be a non-empty JSON object.')

    settings = get_store().update_company_settings(data)
    current_app.logger.info("Company settings updated")
    return jsonify({'status': 'ok', 'settings': settings.to_dict()})
