"""
Normalize the known model response shapes into one project shape.

Recognized shapes:
- {"components": [...], "viteConfig": {...}}      canonical
- {"files": [{"path": ..., "content": ...}]}      file list
- {"html": ..., "css": ..., "js": ...}            legacy flat blocks

Anything else (including undecodable text) is salvaged into a LegacyProject.
"""

import posixpath
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from sitecraft.logging_config import get_logger
from .errors import ShapeMismatch
from .models import (
    ENTRY_APP_NAME,
    LEGACY_CSS_PLACEHOLDER,
    LEGACY_HTML_PLACEHOLDER,
    LEGACY_JS_PLACEHOLDER,
    Component,
    EntryConfig,
    GeneratedProject,
    LegacyProject,
    ParseFailure,
    Project,
)
from .response_parser import loads_with_repair, parse_model_response

logger = get_logger(__name__)

COMPONENT_FILE_RE = re.compile(r'^(?:src/)?components?/.+\.(?:jsx|tsx)$', re.I)
PAGE_FILE_RE = re.compile(r'^(?:src/)?(?:app|pages)/.+\.(?:jsx|tsx)$', re.I)
STYLE_FILE_RE = re.compile(r'\.(?:css|scss)$', re.I)

BOOT_TAIL = (
    "\n\nconst rootEl = document.getElementById('root');\n"
    "if (rootEl && typeof ReactDOM !== 'undefined') {\n"
    "  if (typeof ReactDOM.createRoot === 'function') {\n"
    "    ReactDOM.createRoot(rootEl).render(<App />);\n"
    "  } else {\n"
    "    ReactDOM.render(<App />, rootEl);\n"
    "  }\n"
    "}\n"
)

_PAGE_IMPORT_RE = re.compile(r"""import\s+[\w{}\s,*$]+\s+from\s+['"][^'"]+['"]\s*;?\s*""")
_SIDE_EFFECT_IMPORT_RE = re.compile(r"""^\s*import\s+['"][^'"]+['"]\s*;?[ \t]*$""", re.M)
_DIRECTIVE_RE = re.compile(r"""^\s*['"]use\s+(?:client|server)['"]\s*;?[ \t]*$""", re.M | re.I)
_TRAILING_DEFAULT_EXPORT_RE = re.compile(r'export\s+default\s+([\w$]+)\s*;?\s*$', re.M)
_RENDER_CALL_RE = re.compile(r'ReactDOM\.(?:createRoot|render)\b')


def component_name_from_path(file_path: str) -> str:
    """
    Derive a component name from a file path.

    e.g. components/emi-calculator.tsx -> EmiCalculator,
         hero-SECTION.jsx -> HeroSection
    """
    base = posixpath.basename(file_path or '')
    stem = base.rsplit('.', 1)[0] if '.' in base else base
    segments = [s for s in re.split(r'[-_\s]+', stem) if s]
    return ''.join(s[0].upper() + s[1:].lower() for s in segments)


def render_all_entry(names: List[str]) -> str:
    """Entry composition rendering every component in order, plus the boot tail"""
    tags = ' '.join(f'<{name} />' for name in names)
    return f"function {ENTRY_APP_NAME}() {{ return (<>{tags}</>); }}" + BOOT_TAIL


def _page_to_entry(content: str) -> str:
    """Rewrite a page file into the entry composition"""
    page = _PAGE_IMPORT_RE.sub('', content or '')
    page = _SIDE_EFFECT_IMPORT_RE.sub('', page)
    page = _DIRECTIVE_RE.sub('', page)
    page = re.sub(r'export\s+default\s+(async\s+)?function\s+[\w$]+\s*\(', r'\1function App(', page)
    page = re.sub(r'export\s+default\s+(async\s+)?function\s*\(', r'\1function App(', page)

    match = _TRAILING_DEFAULT_EXPORT_RE.search(page)
    if match:
        exported = match.group(1)
        if exported != ENTRY_APP_NAME:
            page = re.sub(rf'\b(const|let|var)\s+{re.escape(exported)}\s*=', r'\1 App =', page)
            page = re.sub(rf'\bfunction\s+{re.escape(exported)}\s*\(', 'function App(', page)
        page = _TRAILING_DEFAULT_EXPORT_RE.sub('', page)

    page = re.sub(r'export\s+default\s+', '', page)
    page = re.sub(r'(?m)^(\s*)export\s+(?=(?:const|let|var|function|class|async)\b)', r'\1', page)

    if not _RENDER_CALL_RE.search(page):
        page = page.rstrip() + BOOT_TAIL
    return page.strip() + '\n'


def _pick_page(pages: List[Dict[str, Any]]) -> Dict[str, Any]:
    # Shallowest page/index file, else the first listed
    named = [
        f for f in pages
        if posixpath.basename(f.get('path', '')).rsplit('.', 1)[0].lower() in ('page', 'index')
    ]
    if named:
        return min(named, key=lambda f: f.get('path', '').count('/'))
    return pages[0]


def convert_files_to_structure(value: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert the file-list shape into the canonical components/viteConfig shape.

    Args:
        value: {'files': [{path, content}, ...], ...}

    Returns:
        {'components': [...], 'viteConfig': {...}, ...other top-level keys}
    """
    files = [
        dict(f, content=f.get('content') if isinstance(f.get('content'), str) else '')
        for f in (value.get('files') or [])
        if isinstance(f, dict) and isinstance(f.get('path'), str) and f.get('path')
    ]

    component_files = [f for f in files if COMPONENT_FILE_RE.match(f['path'])]
    page_files = [f for f in files if PAGE_FILE_RE.match(f['path'])]
    style_files = [f for f in files if STYLE_FILE_RE.search(f['path'])]

    components = []
    for f in component_files:
        file_path = f['path']
        components.append({
            'name': component_name_from_path(file_path),
            'type': 'component',
            'path': file_path if file_path.startswith('src/') else f'src/{file_path}',
            'code': f.get('content') or '',
            'language': 'jsx',
        })

    main_jsx = ''
    if page_files:
        if len(page_files) > 1:
            logger.info(f"   ℹ️  {len(page_files)} page files, using the shallowest page/index file")
        page = _pick_page(page_files)
        main_jsx = _page_to_entry(page.get('content') or '')
        if not components:
            # Page-only replies keep the page as their single unit
            page_path = page['path']
            components.append({
                'name': component_name_from_path(page_path),
                'type': 'page',
                'path': page_path if page_path.startswith('src/') else f'src/{page_path}',
                'code': page.get('content') or '',
                'language': page_path.rsplit('.', 1)[-1].lower(),
            })
    elif components:
        main_jsx = render_all_entry([c['name'] for c in components])

    style_css = '\n\n'.join(f.get('content') or '' for f in style_files)

    rest = {k: v for k, v in value.items() if k not in ('files', 'viteConfig')}
    existing = value.get('viteConfig') if isinstance(value.get('viteConfig'), dict) else {}
    vite_config = dict(existing)
    if main_jsx:
        vite_config['mainJsx'] = main_jsx
    if style_css:
        vite_config['styleCss'] = style_css

    logger.info(
        f"   ✅ Converted {len(files)} files: {len(components)} components, "
        f"page={'yes' if page_files else 'no'}, stylesheets={len(style_files)}"
    )

    result = dict(rest)
    result['components'] = components
    result['viteConfig'] = vite_config
    return result


def _first_text(value: Dict[str, Any], keys: Tuple[str, ...], default: str) -> str:
    for key in keys:
        text = value.get(key)
        if isinstance(text, str) and text:
            return text
    return default


def normalize_shape(value: Dict[str, Any]) -> Project:
    """
    Turn a decoded response object into a GeneratedProject or LegacyProject.

    Never returns a partial shape: missing pieces are defaulted.
    """
    if isinstance(value.get('files'), list):
        value = convert_files_to_structure(value)

    raw_components = value.get('components')
    if isinstance(raw_components, list):
        components = []
        diagnostics = []
        for index, raw in enumerate(c for c in raw_components if isinstance(c, dict)):
            component, missing = Component.from_dict(raw, index)
            if missing:
                problem = ShapeMismatch(f"component {component.name!r} missing {', '.join(missing)}; defaulted")
                diagnostics.append(str(problem))
                logger.warning(f"   ⚠️  {problem}")
            components.append(component)

        if components:
            vite_config = value.get('viteConfig')
            entry_config = EntryConfig.from_dict(vite_config) if isinstance(vite_config, dict) else None
            extra = {k: v for k, v in value.items() if k not in ('components', 'viteConfig')}
            return GeneratedProject(
                components=tuple(components),
                entry_config=entry_config,
                extra=extra,
                diagnostics=tuple(diagnostics),
            )

    project = LegacyProject(
        html=_first_text(value, ('html', 'HTML'), LEGACY_HTML_PLACEHOLDER),
        css=_first_text(value, ('css', 'CSS'), LEGACY_CSS_PLACEHOLDER),
        js=_first_text(value, ('js', 'JS', 'javascript'), LEGACY_JS_PLACEHOLDER),
    )
    if project.is_placeholder:
        logger.error("   ❌ Using default placeholder code; the model returned nothing usable")
    return project


def _object_candidate(text: str, markers: List[str]) -> Optional[str]:
    """Largest {...} substring containing every marker (open-ended if cut off)"""
    positions = [text.find(m) for m in markers]
    if any(p < 0 for p in positions):
        return None
    start = text.find('{')
    if start < 0 or start > min(positions):
        return None
    end = text.rfind('}')
    if end < max(positions):
        return text[start:]
    return text[start:end + 1]


def _code_block(response: str, labels: List[str], tag: str) -> Optional[str]:
    for label in labels:
        match = re.search(rf'```{label}[ \t]*\r?\n([\s\S]*?)```', response, re.I)
        if match:
            return match.group(1).strip()
    match = re.search(rf'<{tag}>([\s\S]*?)</{tag}>', response, re.I)
    return match.group(1).strip() if match else None


def extract_from_text(response: str) -> Dict[str, Any]:
    """
    Salvage a response that failed to parse as a whole.

    Tries an embedded components object, then an embedded legacy object,
    then fenced code blocks or raw tags.
    """
    text = response or ''

    for markers in (['"components"'], ['"html"', '"css"', '"js"']):
        candidate = _object_candidate(text, markers)
        if candidate is None:
            continue
        parsed = loads_with_repair(candidate)
        if not isinstance(parsed, ParseFailure):
            logger.info(f"   ✅ Extracted embedded object containing {', '.join(markers)}")
            return parsed
        logger.warning(f"   ⚠️  Embedded {markers[0]} object did not parse: {parsed.reason}")

    html = _code_block(text, ['html'], 'html')
    css = _code_block(text, ['css'], 'style')
    js = _code_block(text, ['javascript', 'js'], 'script')
    logger.info(
        f"   ℹ️  Legacy extraction: html={'yes' if html else 'no'}, "
        f"css={'yes' if css else 'no'}, js={'yes' if js else 'no'}"
    )
    return {
        'html': html or LEGACY_HTML_PLACEHOLDER,
        'css': css or LEGACY_CSS_PLACEHOLDER,
        'js': js or LEGACY_JS_PLACEHOLDER,
    }


def normalize_response(response: str) -> Project:
    """Parse and normalize a raw model response; always yields a project"""
    parsed: Union[Dict[str, Any], ParseFailure] = parse_model_response(response)
    if isinstance(parsed, ParseFailure):
        logger.warning(f"   ⚠️  All parse attempts failed ({parsed.reason}), trying text extraction")
        parsed = extract_from_text(response)
    return normalize_shape(parsed)
