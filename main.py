"""
SiteCraft - Website Generation Service

Turns a prompt into a component-based React/Vite website that can be
previewed in the browser and downloaded.
"""

import os
import secrets

from flask import Flask, jsonify, request, session
from flask_session import Session

from auth import init_oauth
from auth_routes import auth_bp, init_auth_routes
from sitecraft import __version__
from sitecraft.logging_config import setup_logging
from website import prompts_bp, website_bp

logger = setup_logging('sitecraft', log_level=os.environ.get('LOG_LEVEL', 'INFO'))

# Configuration
SESSION_TYPE = os.getenv('SESSION_TYPE', 'filesystem')
SESSION_FILE_DIR = os.getenv('SESSION_FILE_DIR')
SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'true').lower() in ('1', 'true', 'yes')


def create_app(config=None):
    """
    Build the Flask application

    Args:
        config: Optional overrides applied after the environment defaults

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Session configuration
    app.config['SECRET_KEY'] = os.getenv('FLASK_SECRET_KEY', secrets.token_hex(32))
    app.config['SESSION_TYPE'] = SESSION_TYPE
    if SESSION_FILE_DIR:
        app.config['SESSION_FILE_DIR'] = SESSION_FILE_DIR
    app.config['SESSION_COOKIE_SECURE'] = SESSION_COOKIE_SECURE
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    if config:
        app.config.update(config)
    Session(app)

    # Initialize OAuth
    oauth, github = init_oauth(app)
    init_auth_routes(github)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(website_bp)
    app.register_blueprint(prompts_bp)

    @app.before_request
    def log_request():
        if request.method == 'OPTIONS':
            return _cors_response()
        logger.info(f"{request.method} {request.path} (session: {'yes' if 'user' in session else 'no'})")

    @app.after_request
    def add_cors_headers(response):
        response.headers.setdefault('Access-Control-Allow-Origin', '*')
        return response

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint"""
        return jsonify({'status': 'healthy', 'service': 'sitecraft', 'version': __version__}), 200

    return app


def _cors_response():
    """Handle CORS preflight requests"""
    headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Methods': 'GET, POST, DELETE, OPTIONS',
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Max-Age': '3600'
    }
    return ('', 204, headers)


app = create_app()


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 8080)))
