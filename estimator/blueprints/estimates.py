"""Estimates blueprint - the editable line item grid of one project."""
import io

from flask import Blueprint, current_app, jsonify, request

from estimator.exceptions import ValidationError
from estimator.services.estimate_session import ADD_ROWS_BATCH, get_session
from estimator.services.import_service import read_records
from estimator.services.store_service import get_store

estimates_bp = Blueprint('estimates', __name__, url_prefix='/projects/<int:project_id>/estimate')


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def _row_response(session, row, status_code=200, **extra):
    body = {
        'status': 'ok',
        'row': row.to_dict(),
        'row_count': len(session),
        'rollup': session.rollup().to_dict(),
        'errors': [e.to_dict() for e in session.pop_errors()],
    }
    body.update(extra)
    return jsonify(body), status_code


@estimates_bp.route('', methods=['GET'])
def get_estimate(project_id):
    """Working set, per-row totals and the rollup."""
    session = get_session(project_id)
    data = session.to_dict()
    data['status'] = 'ok'
    data['errors'] = [e.to_dict() for e in session.pop_errors()]
    return jsonify(data)


@estimates_bp.route('/reload', methods=['POST'])
def reload_estimate(project_id):
    session = get_session(project_id)
    session.flush()
    session.load()
    return jsonify({'status': 'ok', 'row_count': len(session)})


@estimates_bp.route('/rows/<int:index>', methods=['PATCH'])
def update_cell(project_id, index):
    """
    Edit one row.

    Body is either {"field": ..., "value": ...} or {"fields": {...}}; fields
    are applied in the order given.
    """
    data = _json_body()
    if 'fields' in data:
        changes = data['fields']
        if not isinstance(changes, dict) or not changes:
            raise ValidationError("'fields' must be a non-empty object.")
        changes = list(changes.items())
    elif 'field' in data:
        changes = [(data['field'], data.get('value'))]
    else:
        raise ValidationError("Provide 'field' and 'value', or 'fields'.")

    session = get_session(project_id)
    row = None
    for key, value in changes:
        row = session.set_cell(index, key, value)
    return _row_response(session, row)


@estimates_bp.route('/rows/<int:index>', methods=['DELETE'])
def delete_row(project_id, index):
    session = get_session(project_id)
    removed = session.delete_row(index)
    return _row_response(session, removed)


@estimates_bp.route('/rows/<int:index>/duplicate', methods=['POST'])
def duplicate_row(project_id, index):
    session = get_session(project_id)
    copy = session.duplicate_row(index)
    return _row_response(session, copy, 201, index=index + 1)


@estimates_bp.route('/rows/<int:index>/material', methods=['POST'])
def insert_material(project_id, index):
    """Quick insert a catalog entry into the row."""
    data = _json_body()
    material_id = data.get('material_id')
    if material_id is None:
        raise ValidationError("'material_id' is required.")
    try:
        material_id = int(material_id)
    except (TypeError, ValueError):
        raise ValidationError("'material_id' must be an integer.")

    material = get_store().get_material(material_id)
    session = get_session(project_id)
    row = session.apply_material(index, material)
    return _row_response(session, row)


@estimates_bp.route('/rows', methods=['POST'])
def add_rows(project_id):
    data = _json_body()
    try:
        count = int(data.get('count', current_app.config.get('ADD_ROWS_BATCH', ADD_ROWS_BATCH)))
    except (TypeError, ValueError):
        raise ValidationError("'count' must be an integer.")
    if count < 1 or count > 500:
        raise ValidationError("'count' must be between 1 and 500.")

    session = get_session(project_id)
    return jsonify({'status': 'ok', 'row_count': session.add_rows(count)})


@estimates_bp.route('/clear', methods=['POST'])
def clear_all(project_id):
    """Delete every line item. Requires {"confirm": true}."""
    data = _json_body()
    session = get_session(project_id)
    result = session.clear_all(confirm=data.get('confirm') is True)
    return jsonify({
        'status': 'ok' if result.ok else 'partial',
        'result': result.to_dict(),
        'row_count': len(session),
        'rollup': session.rollup().to_dict(),
    }), 200 if result.ok else 207


@estimates_bp.route('/import', methods=['POST'])
def bulk_import(project_id):
    """Import JSON {"records": [...]} or an uploaded CSV / XLSX file."""
    upload = request.files.get('file')
    if upload is not None:
        if not upload.filename:
            raise ValidationError('No file selected.')
        allowed = current_app.config.get('ALLOWED_IMPORT_EXTENSIONS', {'csv', 'xlsx'})
        records = read_records(upload.filename, io.BytesIO(upload.read()), allowed)
    else:
        records = _json_body().get('records')
        if not isinstance(records, list):
            raise ValidationError("'records' must be a list.")

    session = get_session(project_id)
    result = session.bulk_import(records)
    return jsonify({
        'status': 'ok' if result.ok else 'partial',
        'result': result.to_dict(),
        'created': result.succeeded,
        'skipped': result.skipped,
        'row_count': len(session),
        'rollup': session.rollup().to_dict(),
    }), 200 if result.ok else 207


@estimates_bp.route('/flush', methods=['POST'])
def flush(project_id):
    """Run pending autosave writes now."""
    session = get_session(project_id)
    written = session.flush()
    return jsonify({
        'status': 'ok',
        'written': written,
        'errors': [e.to_dict() for e in session.pop_errors()],
    })
