"""
Translation Assistant Application
=================================
Flask application factory and main entry point.
"""
from flask import Flask
from flask_cors import CORS

from translation_assistant.config import config
from translation_assistant.database.connection import get_database
from translation_assistant.api.routes import (
    create_auth_blueprint,
    create_translation_blueprint,
    create_user_blueprint,
    create_health_blueprint
)
from translation_assistant.api.middleware import (
    apply_general_rate_limit,
    release_successful_requests,
    add_rate_limit_headers,
    log_request
)
from translation_assistant.utils.logging import get_logger


def create_app(testing: bool = False) -> Flask:
    """
    Application factory for Flask app.

    Args:
        testing: If True, configure for testing

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Configuration
    app.config.update(
        MAX_CONTENT_LENGTH=1024 * 1024,
        JSON_SORT_KEYS=False,
        TESTING=testing
    )

    # CORS configuration
    cors_origins = config.server.cors_origins
    if testing:
        cors_origins = ['*']

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        supports_credentials=True
    )

    # Initialize database
    if not testing:
        get_database()

    # Register blueprints
    app.register_blueprint(create_auth_blueprint())
    app.register_blueprint(create_translation_blueprint())
    app.register_blueprint(create_user_blueprint())
    app.register_blueprint(create_health_blueprint())

    # Add middleware
    app.before_request(apply_general_rate_limit)
    app.after_request(release_successful_requests)
    app.after_request(add_rate_limit_headers)
    app.after_request(log_request)

    # Error handlers
    @app.errorhandler(400)
    def bad_request(e):
        return {'success': False, 'message': 'Bad request'}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'success': False, 'message': 'Route not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'success': False, 'message': 'Method not allowed'}, 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return {'success': False, 'message': 'Request body too large'}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {'success': False, 'message': 'Too many requests, please try again later'}, 429

    @app.errorhandler(500)
    def internal_error(e):
        logger = get_logger().api_logger
        logger.error(f"Internal error: {getattr(e, 'original_exception', None) or e}")
        return {'success': False, 'message': 'Internal server error'}, 500

    # Log startup
    logger = get_logger()
    for warning in config.warnings():
        logger.app_logger.warning(warning)
    logger.api_logger.info(
        f"Translation Assistant started on {config.server.host}:{config.server.port} "
        f"({config.server.environment})"
    )

    return app


def run_server():
    """Run the Flask development server."""
    app = create_app()

    print(f"""
Translation Assistant v1.0
  Server:      http://{config.server.host}:{config.server.port}
  Model:       {config.openai.model}
  Environment: {config.server.environment}
    """)

    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
        threaded=True
    )


if __name__ == '__main__':
    run_server()
