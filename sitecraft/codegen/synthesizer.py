"""
Preview document synthesis.

Builds one self-contained HTML document for a project: the React path
(React 18 UMD + Babel standalone), the vanilla path (a small jsx DOM
helper) or the legacy html/css/js path. Rendering a persisted website goes
through PreviewRender, which never raises: a failed render still yields a
readable error document.
"""

import json
import os
import re
import traceback
from enum import Enum
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from sitecraft.logging_config import get_logger
from .errors import RenderFault
from .models import GeneratedProject, LegacyProject, Project, project_from_record
from .rewriter import (
    PREVIEW_DATA_NAMES,
    REACT_HOOKS,
    RewriteResult,
    rewrite_project,
    rewrite_vanilla_project,
    uses_react,
)
from .sanitizer import replace_broken_image_urls, sanitize_project

logger = get_logger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), 'templates')
DEFAULT_TITLE = 'Generated Website'

# Final image pass looks further back than ahead: attributes precede src
FINAL_IMAGE_CONTEXT_BEFORE = 500
FINAL_IMAGE_CONTEXT_AFTER = 100

STYLESHEET_LANGUAGES = ('css', 'scss')

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=False,
    keep_trailing_newline=True,
)

_SCRIPT_CLOSE_RE = re.compile(r'</(script)', re.I)


def escape_script(code: str) -> str:
    """Keep user code from closing the surrounding script element"""
    return _SCRIPT_CLOSE_RE.sub(r'<\\/\1', code or '')


def data_fallbacks(script: str) -> List[str]:
    """Fallback declarations for shared sample-data names the script never declares"""
    lines = []
    for name in PREVIEW_DATA_NAMES:
        if re.search(r'\b(?:const|let|var)\s+' + name + r'\b', script):
            continue
        lines.append(f"if (typeof {name} === 'undefined') {{ var {name} = []; }}")
    return lines


def _project_stylesheet(project: GeneratedProject) -> str:
    sheets = [project.style_css]
    sheets += [c.code for c in project.components if (c.language or '').lower() in STYLESHEET_LANGUAGES]
    return '\n\n'.join(s for s in sheets if s)


def _component_document(project: GeneratedProject, title: str, rewrite: Optional[RewriteResult]) -> str:
    if rewrite is None:
        rewrite = rewrite_project(project) if uses_react(project.components) else rewrite_vanilla_project(project)

    script = rewrite.script
    template = _env.get_template('preview_react.html.j2' if rewrite.mode == 'react' else 'preview_vanilla.html.j2')
    return template.render(
        title=title,
        style_css=_project_stylesheet(project),
        mount_id=rewrite.mount_id,
        hooks=REACT_HOOKS,
        data_fallbacks=data_fallbacks(script),
        units=[escape_script(u.body) for u in rewrite.units],
        entry=escape_script(rewrite.entry_source),
    )


def _inject(document: str, marker: str, block: str) -> str:
    index = document.lower().rfind(marker)
    if index < 0:
        return block + document if marker == '</head>' else document + block
    return document[:index] + block + document[index:]


def _legacy_document(project: LegacyProject, title: str) -> str:
    html = project.html or ''
    lowered = html.lower()
    if '<!doctype' in lowered or '<html' in lowered:
        document = html
        if project.css and not re.search(r'<style[\s>]', html, re.I):
            document = _inject(document, '</head>', f'<style>{project.css}</style>')
        if project.js and not re.search(r'<script[\s>]', html, re.I):
            document = _inject(document, '</body>', f'<script>{escape_script(project.js)}</script>')
        return document

    return _env.get_template('preview_legacy.html.j2').render(
        title=title,
        html=html,
        css=project.css or '',
        js=escape_script(project.js),
    )


def build_preview_document(project: Project, website_name: Optional[str] = None,
                           rewrite: Optional[RewriteResult] = None) -> str:
    """
    Assemble the preview document for a project.

    Args:
        project: Sanitized GeneratedProject or LegacyProject
        website_name: Used as the document title
        rewrite: Precomputed rewrite of the components (computed when omitted)

    Returns:
        Complete HTML document
    """
    title = website_name or DEFAULT_TITLE
    if isinstance(project, GeneratedProject):
        document = _component_document(project, title, rewrite)
    elif isinstance(project, LegacyProject):
        document = _legacy_document(project, title)
    else:
        raise TypeError(f"Cannot build a preview for {type(project).__name__}")

    return replace_broken_image_urls(document, FINAL_IMAGE_CONTEXT_BEFORE, FINAL_IMAGE_CONTEXT_AFTER)


def build_error_document(message: str, stack: Optional[str] = None, stage: Optional[str] = None,
                         website_name: Optional[str] = None) -> str:
    """Readable diagnostic document for a render that failed"""
    return _env.get_template('preview_error.html.j2').render(
        title=website_name or DEFAULT_TITLE,
        message=message,
        stack=stack,
        stage=stage,
    )


class RenderStage(Enum):
    IDLE = 'idle'
    PARSING = 'parsing'
    NORMALIZING = 'normalizing'
    SANITIZING = 'sanitizing'
    REWRITING = 'rewriting'
    SYNTHESIZING = 'synthesizing'
    RENDERED = 'rendered'
    FAILED = 'failed'


class PreviewRender:
    """
    One preview render of a persisted website record.

    Each instance is used for a single render and starts from the record,
    never from a previous render's artifacts.
    """

    def __init__(self, record: Dict[str, Any], website_name: Optional[str] = None):
        self.record = record or {}
        self.website_name = website_name or self.record.get('name')
        self.stage = RenderStage.IDLE
        self.history = [RenderStage.IDLE]
        self.project: Optional[Project] = None
        self.rewrite: Optional[RewriteResult] = None
        self.error: Optional[RenderFault] = None
        self.document: Optional[str] = None

    def _advance(self, stage: RenderStage):
        self.stage = stage
        self.history.append(stage)
        logger.debug(f"   Preview {self.record.get('id', '?')}: {stage.value}")

    @property
    def diagnostics(self) -> List[str]:
        return list(self.rewrite.diagnostics) if self.rewrite else []

    def _decoded_record(self) -> Dict[str, Any]:
        # Rows written by older clients may hold JSON text instead of JSON columns
        record = dict(self.record)
        for key in ('components', 'vite_config'):
            value = record.get(key)
            if isinstance(value, str) and value.strip():
                try:
                    record[key] = json.loads(value)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{key} column is not valid JSON: {e.msg}") from e
        return record

    def run(self) -> str:
        """Run every stage; returns the preview or the error document"""
        try:
            self._advance(RenderStage.PARSING)
            record = self._decoded_record()

            self._advance(RenderStage.NORMALIZING)
            project = project_from_record(record)

            self._advance(RenderStage.SANITIZING)
            project = sanitize_project(project)
            self.project = project

            self._advance(RenderStage.REWRITING)
            if isinstance(project, GeneratedProject):
                if uses_react(project.components):
                    self.rewrite = rewrite_project(project)
                else:
                    self.rewrite = rewrite_vanilla_project(project)

            self._advance(RenderStage.SYNTHESIZING)
            self.document = build_preview_document(project, self.website_name, self.rewrite)

            self._advance(RenderStage.RENDERED)
            return self.document

        except Exception as e:
            failed_stage = self.stage
            self.error = RenderFault(failed_stage.value, str(e))
            self._advance(RenderStage.FAILED)
            logger.error(f"   ❌ Preview render failed while {failed_stage.value}: {e}")
            self.document = build_error_document(
                str(e) or type(e).__name__,
                stack=traceback.format_exc(),
                stage=failed_stage.value,
                website_name=self.website_name,
            )
            return self.document


def render_preview(record: Dict[str, Any], website_name: Optional[str] = None) -> str:
    """Render a persisted website record into its preview document"""
    return PreviewRender(record, website_name).run()
