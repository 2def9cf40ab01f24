"""
Authentication Routes for GitHub OAuth
Handles login, logout, the OAuth callback and the current-user lookup
"""

from flask import Blueprint, jsonify, redirect, render_template_string, request, session, url_for

from auth import current_user_id
from sitecraft.logging_config import get_logger

logger = get_logger(__name__)

# Create auth blueprint
auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

# OAuth client will be injected by main.py
github = None

ERROR_PAGE = '''
<!DOCTYPE html>
<html>
<head><title>Authentication Error</title></head>
<body>
    <h1>Authentication Error</h1>
    <p>{{ error }}</p>
    <a href="{{ url_for('auth.login') }}">Try Again</a>
</body>
</html>
'''


def init_auth_routes(github_oauth):
    """
    Initialize auth routes with the GitHub OAuth client

    Args:
        github_oauth: Authlib GitHub OAuth client
    """
    global github
    github = github_oauth


def _primary_email(token):
    resp = github.get('user/emails', token=token)
    if resp.status_code != 200:
        return None
    for entry in resp.json():
        if entry.get('primary') and entry.get('verified'):
            return entry.get('email')
    return None


@auth_bp.route('/login')
def login():
    """Redirect to GitHub Sign-In"""
    next_url = request.args.get('next')
    if next_url and next_url.startswith('/'):
        session['next_url'] = next_url
    redirect_uri = url_for('auth.callback', _external=True)
    return github.authorize_redirect(redirect_uri)


@auth_bp.route('/callback')
def callback():
    """Handle OAuth callback from GitHub"""
    try:
        token = github.authorize_access_token()

        resp = github.get('user', token=token)
        profile = resp.json() if resp.status_code == 200 else None

        if not profile or not profile.get('id'):
            return render_template_string(
                ERROR_PAGE, error='Failed to retrieve user information from GitHub.'
            ), 400

        session['user'] = {
            'id': str(profile['id']),
            'login': profile.get('login'),
            'name': profile.get('name') or profile.get('login'),
            'email': profile.get('email') or _primary_email(token),
        }
        logger.info(f"   ✅ Signed in GitHub user {profile.get('login')}")

        next_url = session.pop('next_url', '/')
        return redirect(next_url)

    except Exception as e:
        logger.error(f"OAuth callback error: {e}")
        return render_template_string(ERROR_PAGE, error=str(e)), 500


@auth_bp.route('/logout')
def logout():
    """Log out the current user"""
    session.clear()
    return jsonify({'success': True})


@auth_bp.route('/me')
def me():
    """The signed-in user, or 401"""
    if current_user_id() is None:
        return jsonify({'success': False, 'authenticated': False}), 401
    return jsonify({'success': True, 'authenticated': True, 'user': session['user']})
