"""Projects blueprint - project CRUD, explicit save and document export."""
import re

from flask import Blueprint, current_app, jsonify, request, send_file

from estimator.exceptions import ValidationError
from estimator.services.estimate_session import get_session, get_sessions
from estimator.services.export_service import EXPORT_FORMATS, business_info_from, export_document
from estimator.services.pricing_service import compute_rollup
from estimator.services.store_service import get_store

projects_bp = Blueprint('projects', __name__, url_prefix='/projects')


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


@projects_bp.route('', methods=['GET'])
def list_projects():
    """All projects, newest first, with their cached totals."""
    store = get_store()
    projects = store.list_projects()
    return jsonify({
        'status': 'ok',
        'projects': [p.to_dict() for p in projects],
    })


@projects_bp.route('', methods=['POST'])
def create_project():
    store = get_store()
    project_id = store.create_project(_json_body())
    project = store.get_project(project_id)
    current_app.logger.info(f"Project created: {project.project_number}")
    return jsonify({'status': 'ok', 'project': project.to_dict()}), 201


@projects_bp.route('/<int:project_id>', methods=['GET'])
def get_project(project_id):
    store = get_store()
    project = store.get_project(project_id)
    items = store.get_line_items(project_id)
    return jsonify({
        'status': 'ok',
        'project': project.to_dict(),
        'line_items': [item.to_dict() for item in items],
        'rollup': compute_rollup(items, project).to_dict(),
    })


@projects_bp.route('/<int:project_id>', methods=['PUT', 'PATCH'])
def update_project(project_id):
    """Update descriptive fields and rates; the total is refreshed with them."""
    session = get_session(project_id)
    rollup = session.save(_json_body())
    return jsonify({
        'status': 'ok',
        'project': session.project.to_dict(),
        'rollup': rollup.to_dict(),
    })


@projects_bp.route('/<int:project_id>', methods=['DELETE'])
def delete_project(project_id):
    store = get_store()
    store.get_project(project_id)
    get_sessions().discard(project_id)
    store.delete_project(project_id)
    return jsonify({'status': 'ok', 'deleted': project_id})


@projects_bp.route('/<int:project_id>/save', methods=['POST'])
def save_project(project_id):
    """Flush pending edits and persist the recomputed total."""
    session = get_session(project_id)
    rollup = session.save()
    return jsonify({
        'status': 'ok',
        'project': session.project.to_dict(),
        'rollup': rollup.to_dict(),
        'errors': [e.to_dict() for e in session.pop_errors()],
    })


@projects_bp.route('/<int:project_id>/export/<fmt>', methods=['GET'])
def export_project(project_id, fmt):
    """Download the proposal as PDF or Word, or the estimate as Excel."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Unknown export format '{fmt}'.", payload={'allowed': sorted(EXPORT_FORMATS)})

    session = get_session(project_id)
    payload = session.export_payload()
    settings = get_store().get_company_settings()
    business_info = business_info_from(settings, current_app.config)

    buffer = export_document(fmt, payload['project'], payload['rows'], business_info, payload['rollup'])

    project = payload['project']
    safe_name = re.sub(r'[^A-Za-z0-9_-]+', '_', project.name or 'estimate').strip('_') or 'estimate'
    filename = f"{project.project_number or project.id}_{safe_name}.{fmt}"

    return send_file(
        buffer,
        mimetype=EXPORT_FORMATS[fmt],
        as_attachment=True,
        download_name=filename,
    )
