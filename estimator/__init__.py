"""Flask application factory."""
import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from estimator.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.testing:
        logging.basicConfig(
            level=logging.DEBUG if app.debug else logging.INFO,
            format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
        )

    app.config['MAX_CONTENT_LENGTH'] = app.config.get('MAX_UPLOAD_SIZE')

    # Initialize database, store (seeded lookup tables) and editing sessions
    database = init_db(app)

    from estimator.services.store_service import init_store
    store = init_store(app, database)

    from estimator.services.estimate_session import init_sessions
    init_sessions(app, store)

    from estimator.services.cloud_sync_service import init_cloud_sync
    init_cloud_sync(app)

    # Error Handlers
    from estimator.exceptions import EstimatorError

    @app.errorhandler(EstimatorError)
    def handle_estimator_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"EstimatorError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"EstimatorError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({'status': 'error', 'message': 'Upload too large'}), 413

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from estimator.blueprints.main import main_bp
    from estimator.blueprints.projects import projects_bp
    from estimator.blueprints.estimates import estimates_bp
    from estimator.blueprints.catalog import catalog_bp
    from estimator.blueprints.settings import settings_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(estimates_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(settings_bp)

    # Register CLI commands
    from estimator.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"DATABASE={app.config.get('SQLALCHEMY_DATABASE_URI')}")

    return app


def shutdown_app(app):
    """Flush pending autosaves and close the database."""
    registry = app.extensions.get('sessions')
    if registry is not None:
        registry.close_all()
    database = app.extensions.get('database')
    if database is not None:
        database.close()
