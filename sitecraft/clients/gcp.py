"""
GCP operations: Cloud Storage backup and generation logging
"""

import io
import json
import os
from datetime import datetime
from typing import Any, Dict, Optional

from google.cloud import storage

from sitecraft.logging_config import get_logger
from .store import GENERATION_LOGS_TABLE, get_supabase

logger = get_logger(__name__)

# Configuration
PROJECT_ID = os.getenv('GCP_PROJECT')
BUCKET_NAME = os.getenv('GCS_BUCKET')


def backup_enabled() -> bool:
    return bool(BUCKET_NAME)


def store_backup(user_id: str, website_id: str, archive: bytes) -> Dict[str, Any]:
    """
    Store a project archive in Cloud Storage.

    Args:
        user_id: Owner of the website
        website_id: Website id
        archive: Zip archive bytes (see codegen.archive_project)

    Returns:
        {
            'success': bool,
            'backup_url': str,
            'skipped': bool (no bucket configured),
            'error': str (if failed)
        }
    """
    if not backup_enabled():
        logger.info("   ℹ️  GCS_BUCKET not set, skipping backup")
        return {'success': False, 'skipped': True}

    try:
        storage_client = storage.Client(project=PROJECT_ID)
        bucket = storage_client.bucket(BUCKET_NAME)

        # projects/{user}/{website}/generation-{timestamp}.zip
        timestamp = datetime.utcnow().strftime('%Y%m%d-%H%M%S')
        blob_name = f"projects/{user_id}/{website_id}/generation-{timestamp}.zip"

        blob = bucket.blob(blob_name)
        blob.upload_from_file(io.BytesIO(archive), content_type='application/zip')

        backup_url = f"gs://{BUCKET_NAME}/{blob_name}"
        logger.info(f"   ✅ Backup stored: {backup_url}")

        return {
            'success': True,
            'backup_url': backup_url
        }

    except Exception as e:
        logger.warning(f"   ⚠️  Backup failed: {e}")
        return {
            'success': False,
            'error': str(e)
        }


def log_generation(
    user_id: str,
    website_name: str,
    model: str,
    components: int,
    files: int,
    generation_time: float,
    success: bool,
    shape: Optional[str] = None,
    website_id: Optional[str] = None,
    error: Optional[str] = None
):
    """
    Log generation metrics to stdout and Supabase.

    Args:
        user_id: Requesting user
        website_name: Name given to the website
        model: Generation model identifier
        components: Number of components in the normalized project
        files: Number of files materialized
        generation_time: Time taken to generate (seconds)
        success: Whether generation succeeded
        shape: 'generated' or 'legacy'
        website_id: Stored website id, when one was saved
        error: Error message if failed
    """
    log_entry = {
        'created_at': datetime.utcnow().isoformat(),
        'user_id': user_id,
        'website_id': website_id,
        'website_name': website_name,
        'model': model,
        'project_shape': shape,
        'components_generated': components,
        'files_generated': files,
        'generation_time_seconds': round(generation_time, 2),
        'success': success,
        'error_message': error,
    }

    logger.info(f"📊 Generation Metrics: {json.dumps(log_entry)}")

    try:
        get_supabase().table(GENERATION_LOGS_TABLE).insert(log_entry).execute()
        logger.info("   ✅ Logged to Supabase")
    except Exception as e:
        logger.warning(f"   ⚠️  Failed to log to Supabase: {e}")
