"""
Project shapes produced by the generation pipeline.

A generated project is one of two alternatives:

- GeneratedProject: ordered components plus an optional entry configuration
  (the canonical Vite/React shape)
- LegacyProject: flat html/css/js text blocks

ParseFailure is the value returned when model output cannot be decoded.
All three are immutable; transformations return new instances.
"""

import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

LEGACY_HTML_PLACEHOLDER = '<div>Generated Website</div>'
LEGACY_CSS_PLACEHOLDER = 'body { margin: 0; padding: 0; }'
LEGACY_JS_PLACEHOLDER = '// JavaScript code'

COMPONENT_KINDS = ('component', 'page', 'util')
MARKUP_LANGUAGES = ('jsx', 'tsx')

MARKUP_WITH_SCRIPT = 'markup-with-script'
SCRIPT_ONLY = 'script-only'

ENTRY_APP_NAME = 'App'

# (attribute, persisted key)
ENTRY_FIELDS = (
    ('package_json', 'packageJson'),
    ('vite_config', 'viteConfig'),
    ('index_html', 'indexHtml'),
    ('main_jsx', 'mainJsx'),
    ('main_js', 'mainJs'),
    ('style_css', 'styleCss'),
)

_IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][\w$]*$')
_REACT_HINT_RE = re.compile(r"""import\s+React\b|from\s+['"]react['"]""")


def exposed_identifier(name: str) -> str:
    """
    Turn a component name into the identifier it is exposed under.

    Whitespace is removed; names that are still not identifiers are
    PascalCased from their alphanumeric runs.
    """
    compact = re.sub(r'\s+', '', name or '')
    if _IDENTIFIER_RE.match(compact):
        return compact

    parts = re.findall(r'[A-Za-z0-9]+', name or '')
    ident = ''.join(part[:1].upper() + part[1:] for part in parts)
    if not ident:
        return 'Component'
    if ident[0].isdigit():
        ident = 'C' + ident
    return ident


def _string_or_none(value: Any) -> Optional[str]:
    # Non-string values count as missing
    return value if isinstance(value, str) and value else None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # Models sometimes emit package.json as a nested object
    return json.dumps(value, indent=2)


@dataclass(frozen=True)
class Component:
    name: str
    kind: str = 'component'
    path: str = ''
    code: str = ''
    language: str = 'jsx'
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def exposed_name(self) -> str:
        return exposed_identifier(self.name)

    @property
    def dialect(self) -> str:
        if (self.language or '').lower() in MARKUP_LANGUAGES:
            return MARKUP_WITH_SCRIPT
        if re.search(r'\.(jsx|tsx)$', self.path or '', re.I):
            return MARKUP_WITH_SCRIPT
        code = self.code or ''
        if _REACT_HINT_RE.search(code) or ('<' in code and 'className=' in code):
            return MARKUP_WITH_SCRIPT
        return SCRIPT_ONLY

    def with_code(self, code: str) -> 'Component':
        return replace(self, code=code)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> Tuple['Component', List[str]]:
        """
        Build a component from its persisted/model dict.

        Returns:
            (component, names of fields that had to be defaulted)
        """
        missing = []
        name = _string_or_none(data.get('name'))
        path = _string_or_none(data.get('path'))

        if not name:
            if path:
                name = re.split(r'[\\/]', path)[-1].split('.')[0] or f'Component{index + 1}'
            else:
                name = f'Component{index + 1}'
            missing.append('name')

        kind = data.get('type')
        if kind not in COMPONENT_KINDS:
            missing.append('type')
            kind = 'component'

        if not path:
            missing.append('path')
            path = f"src/components/{exposed_identifier(name)}.jsx"

        code = data.get('code')
        if not isinstance(code, str):
            missing.append('code')
            code = _as_text(code) or ''

        language = _string_or_none(data.get('language'))
        if not language:
            missing.append('language')
            match = re.search(r'\.(\w+)$', path)
            language = match.group(1).lower() if match else 'jsx'

        extra = {k: v for k, v in data.items() if k not in ('name', 'type', 'path', 'code', 'language')}
        return cls(name=name, kind=kind, path=path, code=code, language=language, extra=extra), missing

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'type': self.kind,
            'path': self.path,
            'code': self.code,
            'language': self.language,
        }
        result.update(self.extra)
        return result


@dataclass(frozen=True)
class EntryConfig:
    package_json: Optional[str] = None
    vite_config: Optional[str] = None
    index_html: Optional[str] = None
    main_jsx: Optional[str] = None
    main_js: Optional[str] = None
    style_css: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def entry_source(self) -> Optional[str]:
        """The entry composition: mainJsx, falling back to mainJs"""
        return self.main_jsx or self.main_js

    def with_entry_source(self, source: str) -> 'EntryConfig':
        if self.main_jsx or not self.main_js:
            return replace(self, main_jsx=source)
        return replace(self, main_js=source)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EntryConfig':
        known = dict((key, _as_text(data.get(key))) for _, key in ENTRY_FIELDS)
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(
            package_json=known['packageJson'],
            vite_config=known['viteConfig'],
            index_html=known['indexHtml'],
            main_jsx=known['mainJsx'],
            main_js=known['mainJs'],
            style_css=known['styleCss'],
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for attr, key in ENTRY_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        result.update(self.extra)
        return result


@dataclass(frozen=True)
class GeneratedProject:
    components: Tuple[Component, ...]
    entry_config: Optional[EntryConfig] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)
    # Shape problems found while normalizing; never persisted
    diagnostics: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def entry_source(self) -> Optional[str]:
        return self.entry_config.entry_source if self.entry_config else None

    @property
    def style_css(self) -> str:
        return (self.entry_config.style_css if self.entry_config else None) or ''

    def to_dict(self) -> Dict[str, Any]:
        result = {'components': [c.to_dict() for c in self.components]}
        if self.entry_config is not None:
            result['viteConfig'] = self.entry_config.to_dict()
        result.update(self.extra)
        return result


@dataclass(frozen=True)
class LegacyProject:
    html: str = LEGACY_HTML_PLACEHOLDER
    css: str = LEGACY_CSS_PLACEHOLDER
    js: str = LEGACY_JS_PLACEHOLDER

    @property
    def is_placeholder(self) -> bool:
        return (
            self.html == LEGACY_HTML_PLACEHOLDER
            and self.css == LEGACY_CSS_PLACEHOLDER
            and self.js == LEGACY_JS_PLACEHOLDER
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'html': self.html, 'css': self.css, 'js': self.js}


@dataclass(frozen=True)
class ParseFailure:
    reason: str

    def __bool__(self):
        return False


Project = Union[GeneratedProject, LegacyProject]


def project_to_record(project: Project) -> Dict[str, Any]:
    """Columns stored on the websites table for a project"""
    if isinstance(project, GeneratedProject):
        data = project.to_dict()
        return {
            'components': data['components'],
            'vite_config': data.get('viteConfig'),
            'html_code': '',
            'css_code': '',
            'js_code': '',
        }
    return {
        'components': None,
        'vite_config': None,
        'html_code': project.html,
        'css_code': project.css,
        'js_code': project.js,
    }


def project_from_record(record: Dict[str, Any]) -> Project:
    """Rebuild the persisted project from a websites row"""
    components = record.get('components') or []
    if components:
        vite_config = record.get('vite_config')
        return GeneratedProject(
            components=tuple(Component.from_dict(c, i)[0] for i, c in enumerate(components)),
            entry_config=EntryConfig.from_dict(vite_config) if vite_config else None,
        )
    return LegacyProject(
        html=record.get('html_code') or LEGACY_HTML_PLACEHOLDER,
        css=record.get('css_code') or LEGACY_CSS_PLACEHOLDER,
        js=record.get('js_code') or LEGACY_JS_PLACEHOLDER,
    )
