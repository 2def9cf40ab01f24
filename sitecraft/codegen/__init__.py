"""SiteCraft - generated code normalization and preview pipeline"""

from .errors import (
    GenerationError,
    PersistenceFault,
    RenderFault,
    RewriteAmbiguity,
    ShapeMismatch,
    SiteCraftError,
)
from .models import (
    Component,
    EntryConfig,
    GeneratedProject,
    LegacyProject,
    ParseFailure,
    Project,
    project_from_record,
    project_to_record,
)
from .response_parser import parse_model_response, repair_truncated_json, strip_code_fence
from .normalizer import normalize_response, normalize_shape
from .sanitizer import sanitize_project, sanitize_source
from .rewriter import rewrite_project, rewrite_vanilla_project
from .synthesizer import PreviewRender, build_error_document, build_preview_document, render_preview
from .materializer import archive_project, materialize_project, project_files, remove_project

__all__ = [
    'SiteCraftError',
    'ShapeMismatch',
    'RewriteAmbiguity',
    'RenderFault',
    'PersistenceFault',
    'GenerationError',
    'Component',
    'EntryConfig',
    'GeneratedProject',
    'LegacyProject',
    'ParseFailure',
    'Project',
    'project_from_record',
    'project_to_record',
    'strip_code_fence',
    'parse_model_response',
    'repair_truncated_json',
    'normalize_response',
    'normalize_shape',
    'sanitize_source',
    'sanitize_project',
    'rewrite_project',
    'rewrite_vanilla_project',
    'PreviewRender',
    'build_preview_document',
    'build_error_document',
    'render_preview',
    'project_files',
    'materialize_project',
    'archive_project',
    'remove_project',
]
