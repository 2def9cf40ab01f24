"""
Project materialization: write a generated project to disk as a runnable
Vite skeleton (or three flat files for a legacy project), and pack it as a
zip archive for download and backup.
"""

import io
import json
import os
import posixpath
import re
import shutil
import zipfile
from typing import Any, Dict, List, Optional

from sitecraft.logging_config import get_logger
from . import defaults
from .errors import PersistenceFault
from .models import Component, GeneratedProject, LegacyProject, Project, exposed_identifier

logger = get_logger(__name__)

GENERATED_SITES_DIR = os.getenv('GENERATED_SITES_DIR', os.path.join(os.getcwd(), 'generated_sites'))

LOCK_FILE = '.materializing'

_MAIN_JS_REF_RE = re.compile(r'src/main\.js(?![\w])')
_SAFE_SEGMENT_RE = re.compile(r'^[\w.-]+$')


def component_file_path(component: Component) -> str:
    """Project-relative path for a component, always under src/"""
    raw = (component.path or '').replace('\\', '/').lstrip('/')
    path = posixpath.normpath(raw) if raw else ''

    if not path or path == '.' or path.startswith('../') or path == '..':
        path = f'src/components/{exposed_identifier(component.name)}.jsx'
        logger.warning(f"   ⚠️  Component {component.name!r} path {component.path!r} re-homed to {path}")
    elif not path.startswith('src/'):
        path = f'src/{path}'

    if (component.language or '').lower() == 'jsx' and path.endswith('.js'):
        path += 'x'
    return path


def _vite_files(project: GeneratedProject, website_name: str) -> List[Dict[str, str]]:
    entry = project.entry_config
    index_html = (entry.index_html if entry else None) or defaults.index_html(website_name)

    files = {
        'index.html': _MAIN_JS_REF_RE.sub('src/main.jsx', index_html),
        'package.json': (entry.package_json if entry else None) or defaults.package_json(website_name),
        'vite.config.js': (entry.vite_config if entry else None) or defaults.VITE_CONFIG_JS,
        'src/main.jsx': project.entry_source or defaults.main_jsx(project.components, component_file_path),
        'src/style.css': project.style_css or defaults.STYLE_CSS,
    }

    for component in project.components:
        path = component_file_path(component)
        if path in files:
            logger.warning(f"   ⚠️  Component {component.name!r} overwrites {path}")
        files[path] = component.code

    files['.gitignore'] = defaults.GITIGNORE
    return [{'path': path, 'content': content} for path, content in files.items()]


def project_files(project: Project, website_name: str) -> List[Dict[str, str]]:
    """
    Files of the materialized project.

    Args:
        project: GeneratedProject or LegacyProject
        website_name: Used for default index.html title and package name

    Returns:
        List of {path, content} dicts with project-relative paths
    """
    if isinstance(project, GeneratedProject):
        return _vite_files(project, website_name)
    if isinstance(project, LegacyProject):
        return [
            {'path': 'index.html', 'content': project.html},
            {'path': 'styles.css', 'content': project.css},
            {'path': 'app.js', 'content': project.js},
        ]
    raise TypeError(f"Cannot materialize {type(project).__name__}")


def project_dir(user_id: str, website_id: str, base_dir: Optional[str] = None) -> str:
    for segment in (user_id, website_id):
        if not _SAFE_SEGMENT_RE.match(str(segment)) or str(segment) in ('.', '..'):
            raise PersistenceFault(f"Unsafe directory name: {segment!r}")
    return os.path.join(base_dir or GENERATED_SITES_DIR, str(user_id), str(website_id))


def materialize_project(
    project: Project,
    user_id: str,
    website_id: str,
    website_name: str,
    base_dir: Optional[str] = None
) -> str:
    """
    Write the project under <base>/<user_id>/<website_id>/.

    Returns:
        The project directory

    Raises:
        PersistenceFault: A write failed or another write to the same
            directory is in progress
    """
    target = project_dir(user_id, website_id, base_dir)
    files = project_files(project, website_name)

    try:
        os.makedirs(target, exist_ok=True)
    except OSError as e:
        raise PersistenceFault(f"Could not create {target}: {e}", path=target) from e

    lock_path = os.path.join(target, LOCK_FILE)
    try:
        lock_fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as e:
        raise PersistenceFault(f"Another write to {target} is in progress", path=target) from e
    except OSError as e:
        raise PersistenceFault(f"Could not lock {target}: {e}", path=target) from e

    try:
        os.close(lock_fd)
        for file in files:
            path = os.path.join(target, *file['path'].split('/'))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(file['content'] or '')
    except OSError as e:
        raise PersistenceFault(f"Failed writing project files: {e}", path=target) from e
    finally:
        try:
            os.remove(lock_path)
        except FileNotFoundError:
            pass

    logger.info(f"   ✅ Materialized {len(files)} files to {target}")
    return target


def archive_project(files: List[Dict[str, str]], metadata: Optional[Dict[str, Any]] = None) -> bytes:
    """
    Pack project files into a zip archive.

    Args:
        files: List of {path, content} dicts
        metadata: Optional generation metadata, stored as metadata.json

    Returns:
        Zip archive bytes
    """
    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, 'w', zipfile.ZIP_DEFLATED) as zip_file:
        for file in files:
            zip_file.writestr(file['path'], file['content'] or '')

        if metadata is not None:
            zip_file.writestr('metadata.json', json.dumps(metadata, indent=2, default=str))

    return zip_buffer.getvalue()


def remove_project(path: Optional[str]) -> bool:
    """Delete a materialized project directory; failures are logged, not raised"""
    if not path or not os.path.isdir(path):
        return False
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"   ⚠️  Failed to delete project files at {path}: {e}")
        return False
    logger.info(f"   ✅ Deleted project files at {path}")
    return True
