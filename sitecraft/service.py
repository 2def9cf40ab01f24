"""
Website generation orchestration

prompt -> model response -> canonical project -> sanitized project
-> stored record + prompt history -> materialized Vite project -> backup
"""

import time
from typing import Any, Dict, Optional

from sitecraft.clients import gcp, generator, store
from sitecraft.codegen import (
    GeneratedProject,
    GenerationError,
    PersistenceFault,
    archive_project,
    materialize_project,
    normalize_response,
    project_files,
    sanitize_project,
)
from sitecraft.logging_config import get_logger

logger = get_logger(__name__)


def _shape(project) -> str:
    return 'generated' if isinstance(project, GeneratedProject) else 'legacy'


def _component_count(project) -> int:
    return len(project.components) if isinstance(project, GeneratedProject) else 0


def generate_website(
    user_id: str,
    prompt: str,
    website_name: str,
    model: Optional[str] = None
) -> Dict[str, Any]:
    """
    Generate, store and materialize a website for a user.

    Returns:
        The stored website record, with generated_path set

    Raises:
        GenerationError: The model call or the initial save failed
        PersistenceFault: Writing project files failed; .website holds
            the already-saved record
    """
    start_time = time.time()
    logger.info(f"\n🚀 Generating website {website_name!r} for user {user_id}")

    # Step 1: Generate
    logger.info("🤖 Step 1: Calling generation model...")
    result = generator.generate_website_code(prompt, model=model)
    model = result.get('model') or model
    if not result.get('success'):
        error = result.get('error') or 'Generation failed'
        gcp.log_generation(
            user_id=user_id,
            website_name=website_name,
            model=model,
            components=0,
            files=0,
            generation_time=time.time() - start_time,
            success=False,
            error=error
        )
        raise GenerationError(error)

    # Step 2: Normalize and sanitize
    logger.info("🧩 Step 2: Normalizing response...")
    project = sanitize_project(normalize_response(result['response_text']))
    logger.info(f"   ✅ {_shape(project)} project with {_component_count(project)} components")

    # Step 3: Persist
    logger.info("💾 Step 3: Saving website...")
    saved = store.save_website(user_id, website_name, prompt, project)
    if not saved.get('success'):
        raise GenerationError(saved.get('error') or 'Failed to save website')
    website = saved['website']
    website_id = website['id']

    store.save_prompt_history(user_id, prompt, result['response_text'], website_id)

    # Step 4: Materialize
    logger.info("📁 Step 4: Writing project files...")
    files = project_files(project, website_name)
    try:
        path = materialize_project(project, user_id, website_id, website_name)
    except PersistenceFault as e:
        logger.error(f"   ❌ Materialization failed: {e}")
        e.website = website
        gcp.log_generation(
            user_id=user_id,
            website_name=website_name,
            model=model,
            components=_component_count(project),
            files=0,
            generation_time=time.time() - start_time,
            success=False,
            shape=_shape(project),
            website_id=website_id,
            error=str(e)
        )
        raise

    updated = store.update_website(website_id, {'generated_path': path})
    website = updated.get('website') or dict(website, generated_path=path)

    # Step 5: Backup (non-fatal)
    if gcp.backup_enabled():
        logger.info("☁️  Step 5: Storing backup...")
        archive = archive_project(files, metadata={
            'website_id': website_id,
            'website_name': website_name,
            'prompt': prompt,
            'model': model,
            'shape': _shape(project),
        })
        gcp.store_backup(user_id, website_id, archive)

    generation_time = time.time() - start_time
    gcp.log_generation(
        user_id=user_id,
        website_name=website_name,
        model=model,
        components=_component_count(project),
        files=len(files),
        generation_time=generation_time,
        success=True,
        shape=_shape(project),
        website_id=website_id
    )

    logger.info(f"✅ Website {website_id} ready ({generation_time:.2f}s)")
    return website
