"""Flask application factory."""
import traceback

from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFError, CSRFProtect
from werkzeug.exceptions import HTTPException

from rebath.database import init_db

HTTP_ERROR_KINDS = {
    400: 'ValidationError',
    401: 'Unauthenticated',
    403: 'Forbidden',
    404: 'NotFound',
    405: 'ValidationError',
    413: 'ValidationError',
}


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    from rebath.logging_config import setup_logging
    setup_logging(app)

    # Session-cookie auth: every write must carry the X-CSRFToken header
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({
            'status': 'error',
            'kind': 'ValidationError',
            'message': 'CSRF token missing or invalid. Fetch /auth/csrf-token and retry.'
        }), 400

    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
        )

    init_db(app)

    from rebath.services.email_service import init_mail
    init_mail(app)

    from rebath.services.storage_service import init_storage
    init_storage(app)

    from rebath.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind Nginx in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    from rebath.middleware import load_user

    @app.before_request
    def before_request_handler():
        """Load the current user for each request."""
        load_user()

    # Error Handlers
    from rebath.exceptions import RebathError, Unknown

    @app.errorhandler(RebathError)
    def handle_rebath_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.kind} [{error.status_code}] {request.method} {request.path}: {error.message}")
        else:
            app.logger.info(f"{error.kind} [{error.status_code}] {request.method} {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'status': 'error',
            'kind': HTTP_ERROR_KINDS.get(error.code, 'Unknown'),
            'message': error.description,
        }), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify(Unknown().to_dict()), 500

    # Register blueprints
    from rebath.blueprints.auth import auth_bp
    from rebath.blueprints.catalog import catalog_bp
    from rebath.blueprints.projects import projects_bp
    from rebath.blueprints.assessments import assessments_bp
    from rebath.blueprints.quotes import quotes_bp
    from rebath.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(assessments_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(metrics_bp)

    # Scraped by Prometheus, never posted to
    csrf.exempt(metrics_bp)

    from rebath.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
