"""
GitHub OAuth Authentication for SiteCraft
Provides the signed-in user for the website and prompt-history API.
"""

import os
from functools import wraps
from typing import Optional

from flask import jsonify, session
from authlib.integrations.flask_client import OAuth

GITHUB_OAUTH_CLIENT_ID = os.getenv('GITHUB_OAUTH_CLIENT_ID')
GITHUB_OAUTH_CLIENT_SECRET = os.getenv('GITHUB_OAUTH_CLIENT_SECRET')


def init_oauth(app):
    """
    Initialize OAuth with the Flask app

    Args:
        app: Flask application instance

    Returns:
        (OAuth instance, GitHub client)
    """
    oauth = OAuth(app)

    github = oauth.register(
        name='github',
        client_id=GITHUB_OAUTH_CLIENT_ID,
        client_secret=GITHUB_OAUTH_CLIENT_SECRET,
        access_token_url='https://github.com/login/oauth/access_token',
        authorize_url='https://github.com/login/oauth/authorize',
        api_base_url='https://api.github.com/',
        client_kwargs={
            'scope': 'read:user user:email'
        }
    )

    return oauth, github


def current_user_id() -> Optional[str]:
    """Id of the signed-in user, or None"""
    user = session.get('user')
    if not user or not user.get('id'):
        return None
    return str(user['id'])


def login_required(f):
    """
    Decorator to require authentication for an API route
    Responds 401 JSON when there is no signed-in user
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user_id() is None:
            return jsonify({
                'success': False,
                'error': 'Authentication required',
                'login_url': '/auth/login'
            }), 401

        return f(*args, **kwargs)

    return decorated_function
