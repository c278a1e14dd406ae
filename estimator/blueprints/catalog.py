"""Catalog blueprint - materials library and categories."""
from flask import Blueprint, jsonify, request

from estimator.exceptions import ValidationError
from estimator.services.store_service import SEARCH_LIMIT, get_store

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('/materials', methods=['GET'])
def list_materials():
    category = request.args.get('category', '').strip() or None
    materials = get_store().get_materials_catalog(category)
    return jsonify({'status': 'ok', 'materials': [m.to_dict() for m in materials]})


@catalog_bp.route('/materials/search', methods=['GET'])
def search_materials():
    """Search by name, description or category; name prefix matches first."""
    query = request.args.get('q', '').strip()
    try:
        limit = int(request.args.get('limit', SEARCH_LIMIT))
    except ValueError:
        raise ValidationError("'limit' must be an integer.")
    limit = max(1, min(limit, 100))

    materials = get_store().search_materials_catalog(query, limit=limit)
    return jsonify({'status': 'ok', 'query': query, 'materials': [m.to_dict() for m in materials]})


@catalog_bp.route('/materials', methods=['POST'])
def add_material():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    store = get_store()
    material_id = store.add_material(data)
    return jsonify({'status': 'ok', 'material': store.get_material(material_id).to_dict()}), 201


@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    categories = get_store().get_categories()
    return jsonify({
        'status': 'ok',
        'categories': [{'id': c.id, 'name': c.name, 'sort_order': c.sort_order} for c in categories],
    })
