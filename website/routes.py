"""
Website API Routes
Generate, list, fetch, delete, preview and download websites; prompt history.
"""

import io
import time

from flask import Blueprint, Response, jsonify, request, send_file

from auth import current_user_id, login_required
from sitecraft import service
from sitecraft.clients import store
from sitecraft.codegen import (
    GenerationError,
    PersistenceFault,
    archive_project,
    project_files,
    project_from_record,
    remove_project,
    render_preview,
)
from sitecraft.codegen.defaults import package_slug
from sitecraft.logging_config import get_logger
from .validation import resolve_website_name, validate_generation_request

logger = get_logger(__name__)

# Create Blueprints
website_bp = Blueprint('website', __name__, url_prefix='/website')
prompts_bp = Blueprint('prompts', __name__, url_prefix='/prompts')

# The preview runs generated scripts; keep it in an opaque sandbox
PREVIEW_CSP = 'sandbox allow-scripts allow-same-origin allow-forms allow-popups'


def _store_error(result: dict):
    status = 404 if result.get('not_found') else 500
    return jsonify({'success': False, 'error': result.get('error')}), status


@website_bp.route('/generate', methods=['POST'])
@login_required
def generate():
    """
    Generate a website from a prompt.

    Request body:
    {
        "prompt": "a bakery website with online ordering",
        "websiteName": "Sweet Crumbs"
    }

    Returns:
    {
        "success": true,
        "website": {id, name, prompt, components, vite_config, generated_path, ...}
    }
    """
    data = request.get_json(silent=True)
    is_valid, errors = validate_generation_request(data)
    if not is_valid:
        logger.warning(f"❌ Validation error: {errors}")
        return jsonify({'success': False, 'error': '; '.join(errors), 'errors': errors}), 400

    user_id = current_user_id()
    website_name = resolve_website_name(data)
    start_time = time.time()

    try:
        website = service.generate_website(user_id, data['prompt'], website_name)
        return jsonify({
            'success': True,
            'website': website,
            'generation_time': time.time() - start_time
        }), 201

    except GenerationError as e:
        logger.error(f"❌ Generation failed: {e}")
        return jsonify({
            'success': False,
            'error': str(e),
            'error_type': type(e).__name__,
            'website_name': website_name
        }), 502

    except PersistenceFault as e:
        logger.error(f"❌ Project files could not be written: {e}")
        return jsonify({
            'success': False,
            'error': str(e),
            'error_type': type(e).__name__,
            'website': e.website
        }), 500

    except Exception as e:
        logger.exception(f"❌ Unexpected error during generation: {e}")
        return jsonify({
            'success': False,
            'error': str(e),
            'error_type': type(e).__name__,
            'website_name': website_name
        }), 500


@website_bp.route('/list', methods=['GET'])
@login_required
def list_websites():
    """The signed-in user's websites, newest first"""
    result = store.list_websites(current_user_id())
    if not result.get('success'):
        return _store_error(result)
    return jsonify(result), 200


@website_bp.route('/<website_id>', methods=['GET'])
@login_required
def get_website(website_id):
    result = store.get_website(website_id, current_user_id())
    if not result.get('success'):
        return _store_error(result)
    return jsonify(result), 200


@website_bp.route('/<website_id>', methods=['DELETE'])
@login_required
def delete_website(website_id):
    """Delete the stored website and its materialized project files"""
    user_id = current_user_id()
    found = store.get_website(website_id, user_id)
    if not found.get('success'):
        return _store_error(found)

    result = store.delete_website(website_id, user_id)
    if not result.get('success'):
        return _store_error(result)

    files_removed = remove_project(found['website'].get('generated_path'))
    return jsonify({
        'success': True,
        'message': 'Website deleted successfully',
        'files_removed': files_removed
    }), 200


@website_bp.route('/<website_id>/preview', methods=['GET'])
@login_required
def preview_website(website_id):
    """
    Self-contained preview document for the website.

    Render failures come back as a diagnostic document, not an HTTP error.
    """
    result = store.get_website(website_id, current_user_id())
    if not result.get('success'):
        return _store_error(result)

    website = result['website']
    document = render_preview(website, website.get('name'))

    response = Response(document, mimetype='text/html')
    response.headers['Content-Security-Policy'] = PREVIEW_CSP
    response.headers['X-Content-Type-Options'] = 'nosniff'
    return response


@website_bp.route('/<website_id>/download', methods=['GET'])
@login_required
def download_website(website_id):
    """Zip archive of the project files"""
    result = store.get_website(website_id, current_user_id())
    if not result.get('success'):
        return _store_error(result)

    website = result['website']
    name = website.get('name') or 'Generated Website'
    files = project_files(project_from_record(website), name)
    archive = archive_project(files)

    return send_file(
        io.BytesIO(archive),
        mimetype='application/zip',
        as_attachment=True,
        download_name=f'{package_slug(name)}.zip'
    )


@prompts_bp.route('', methods=['GET'])
@login_required
def list_prompts():
    """The signed-in user's prompt history (?limit=N, default 50)"""
    limit = request.args.get('limit', default=store.DEFAULT_HISTORY_LIMIT, type=int)
    result = store.list_prompts(current_user_id(), limit=limit)
    if not result.get('success'):
        return _store_error(result)
    return jsonify(result), 200


@prompts_bp.route('/<prompt_id>', methods=['DELETE'])
@login_required
def delete_prompt(prompt_id):
    result = store.delete_prompt(prompt_id, current_user_id())
    if not result.get('success'):
        return _store_error(result)
    return jsonify({'success': True, 'message': 'Prompt history deleted successfully'}), 200
