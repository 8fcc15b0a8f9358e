"""Flask application factory."""
import logging
import traceback

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from kasir.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize CSRF protection
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'Sesi kedaluwarsa. Muat ulang token CSRF.'}), 400

    # Sentry error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
        )

    # Redis cache
    from kasir.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from kasir.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    db_session = init_db(app)

    from kasir.middleware import load_user

    @app.before_request
    def before_request_handler():
        """Load the logged-in user for each request."""
        load_user()

    # Error Handlers
    from kasir.exceptions import PosError, ServiceUnavailableError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle custom application exceptions."""
        log = app.logger.error if error.status_code >= 500 else app.logger.warning
        log(f"PosError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(OperationalError)
    def handle_database_unavailable(error):
        app.logger.error(f"Database unavailable: {error}")
        db_session.rollback()
        unavailable = ServiceUnavailableError()
        return jsonify(unavailable.to_dict()), unavailable.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Terjadi kesalahan internal'}), 500

    # Register blueprints
    from kasir.blueprints.auth import auth_bp
    from kasir.blueprints.main import main_bp
    from kasir.blueprints.catalog import catalog_bp
    from kasir.blueprints.stock import stock_bp
    from kasir.blueprints.sales import sales_bp
    from kasir.blueprints.reports import reports_bp
    from kasir.blueprints.finance import finance_bp
    from kasir.blueprints.settings import settings_bp
    from kasir.blueprints.public_catalog import public_catalog_bp
    from kasir.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(finance_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(public_catalog_bp)
    app.register_blueprint(metrics_bp)

    # Read-only probes never carry a CSRF token
    csrf.exempt(metrics_bp)
    csrf.exempt(main_bp)

    from kasir.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
