"""
Supabase persistence: websites and prompt history
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional

from supabase import create_client

from sitecraft.codegen.models import Project, project_to_record
from sitecraft.logging_config import get_logger

logger = get_logger(__name__)

# Configuration
SUPABASE_URL = os.getenv('SUPABASE_URL')
SUPABASE_KEY = os.getenv('SUPABASE_KEY')

WEBSITES_TABLE = 'websites'
PROMPTS_TABLE = 'prompt_history'
GENERATION_LOGS_TABLE = 'generation_logs'

DEFAULT_HISTORY_LIMIT = 50

_client = None


def get_supabase():
    """Get or create the Supabase client"""
    global _client
    if _client is None:
        if not SUPABASE_URL or not SUPABASE_KEY:
            raise ValueError("Supabase credentials not configured (SUPABASE_URL, SUPABASE_KEY)")
        _client = create_client(SUPABASE_URL, SUPABASE_KEY)
    return _client


def save_website(user_id: str, name: str, prompt: str, project: Project) -> Dict[str, Any]:
    """
    Insert a generated website.

    Returns:
        {
            'success': bool,
            'website': dict (the stored row, with id and timestamps),
            'error': str (if failed)
        }
    """
    record = {
        'user_id': user_id,
        'name': name,
        'prompt': prompt,
    }
    record.update(project_to_record(project))

    try:
        result = get_supabase().table(WEBSITES_TABLE).insert(record).execute()
        if not result.data:
            return {'success': False, 'error': 'Failed to create website record'}

        website = result.data[0]
        logger.info(f"   ✅ Saved website {website.get('id')} for user {user_id}")
        return {'success': True, 'website': website}

    except Exception as e:
        logger.error(f"   ❌ Failed to save website: {e}")
        return {'success': False, 'error': f'Database error: {e}'}


def update_website(website_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Update columns of a website row (e.g. generated_path)"""
    fields = dict(fields, updated_at=datetime.utcnow().isoformat())
    try:
        result = get_supabase().table(WEBSITES_TABLE)\
            .update(fields)\
            .eq('id', website_id)\
            .execute()
        website = result.data[0] if result.data else None
        return {'success': True, 'website': website}

    except Exception as e:
        logger.error(f"   ❌ Failed to update website {website_id}: {e}")
        return {'success': False, 'error': f'Database error: {e}'}


def list_websites(user_id: str) -> Dict[str, Any]:
    """A user's websites, newest first"""
    try:
        result = get_supabase().table(WEBSITES_TABLE)\
            .select('*')\
            .eq('user_id', user_id)\
            .order('created_at', desc=True)\
            .execute()
        websites = result.data or []
        return {'success': True, 'websites': websites, 'count': len(websites)}

    except Exception as e:
        logger.error(f"   ❌ Failed to list websites: {e}")
        return {'success': False, 'error': f'Database error: {e}'}


def get_website(website_id: str, user_id: str) -> Dict[str, Any]:
    """
    Fetch one website owned by user_id.

    Returns:
        {'success': True, 'website': dict} or
        {'success': False, 'not_found': bool, 'error': str}
    """
    try:
        result = get_supabase().table(WEBSITES_TABLE)\
            .select('*')\
            .eq('id', website_id)\
            .eq('user_id', user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            return {'success': False, 'not_found': True, 'error': 'Website not found or access denied'}
        return {'success': True, 'website': result.data[0]}

    except Exception as e:
        logger.error(f"   ❌ Failed to fetch website {website_id}: {e}")
        return {'success': False, 'not_found': False, 'error': f'Database error: {e}'}


def delete_website(website_id: str, user_id: str) -> Dict[str, Any]:
    """Delete a website row owned by user_id"""
    try:
        result = get_supabase().table(WEBSITES_TABLE)\
            .delete()\
            .eq('id', website_id)\
            .eq('user_id', user_id)\
            .execute()
        if not result.data:
            return {'success': False, 'not_found': True, 'error': 'Website not found or access denied'}
        logger.info(f"   ✅ Deleted website {website_id}")
        return {'success': True}

    except Exception as e:
        logger.error(f"   ❌ Failed to delete website {website_id}: {e}")
        return {'success': False, 'not_found': False, 'error': f'Database error: {e}'}


def save_prompt_history(
    user_id: str,
    prompt: str,
    ai_response: str,
    website_id: Optional[str] = None
) -> Dict[str, Any]:
    """Record a prompt the user submitted and the raw model response"""
    entry = {
        'user_id': user_id,
        'prompt': prompt,
        'ai_response': ai_response,
        'website_id': website_id,
    }
    try:
        result = get_supabase().table(PROMPTS_TABLE).insert(entry).execute()
        return {'success': True, 'prompt': result.data[0] if result.data else entry}

    except Exception as e:
        logger.warning(f"   ⚠️  Failed to save prompt history: {e}")
        return {'success': False, 'error': f'Database error: {e}'}


def list_prompts(user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> Dict[str, Any]:
    """A user's prompt history, newest first"""
    try:
        result = get_supabase().table(PROMPTS_TABLE)\
            .select('*')\
            .eq('user_id', user_id)\
            .order('created_at', desc=True)\
            .limit(limit)\
            .execute()
        prompts = result.data or []
        return {'success': True, 'prompts': prompts, 'count': len(prompts)}

    except Exception as e:
        logger.error(f"   ❌ Failed to list prompts: {e}")
        return {'success': False, 'error': f'Database error: {e}'}


def delete_prompt(prompt_id: str, user_id: str) -> Dict[str, Any]:
    """Delete one prompt history entry owned by user_id"""
    try:
        result = get_supabase().table(PROMPTS_TABLE)\
            .delete()\
            .eq('id', prompt_id)\
            .eq('user_id', user_id)\
            .execute()
        if not result.data:
            return {'success': False, 'not_found': True, 'error': 'Prompt not found or access denied'}
        return {'success': True}

    except Exception as e:
        logger.error(f"   ❌ Failed to delete prompt {prompt_id}: {e}")
        return {'success': False, 'not_found': False, 'error': f'Database error: {e}'}
