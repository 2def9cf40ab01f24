"""
Rewrite generated ES modules into plain script units for the preview.

The preview document has no module loader, so every component is turned
into an import/export-free body, renamed to its exposed identifier and
wrapped in its own closure. The entry composition is adapted so that it
defines App and mounts it.

Everything here is text-level and per-render: nothing is cached between
calls and the persisted project is never modified.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sitecraft.logging_config import get_logger
from .errors import RewriteAmbiguity
from .models import (
    ENTRY_APP_NAME,
    MARKUP_WITH_SCRIPT,
    Component,
    GeneratedProject,
    exposed_identifier,
)
from .normalizer import BOOT_TAIL, component_name_from_path

logger = get_logger(__name__)

# Destructured from React by the preview preamble
REACT_HOOKS = (
    'useState', 'useEffect', 'useRef', 'useCallback', 'useMemo', 'useContext',
    'useReducer', 'useLayoutEffect', 'createContext', 'Fragment', 'memo', 'forwardRef',
)
REACT_GLOBALS = frozenset(('React', 'ReactDOM') + REACT_HOOKS)

REACT_SOURCES = ('react', 'react-dom', 'react-dom/client')

# Declared by the preview document when the scripts do not declare them
PREVIEW_DATA_NAMES = ('movieData', 'products', 'productData', 'items', 'listData', 'movies', 'posts', 'courses')

SCRIPT_LANGUAGES = ('js', 'jsx', 'ts', 'tsx', 'mjs')

DEFAULT_MOUNT_ID = 'root'
VANILLA_MOUNT_ID = 'app'

_IMPORT_RE = re.compile(
    r'(?<![\w$.])import\s+'
    r'(?:(?P<type>type)\s+)?'
    r'(?P<clause>[\w$]+(?:\s*,\s*(?:\{[^}]*\}|\*\s*as\s+[\w$]+))?|\{[^}]*\}|\*\s*as\s+[\w$]+)'
    r'\s*from\s*(?P<quote>[\'"])(?P<source>[^\'"]+)(?P=quote)[ \t]*;?'
)
_SIDE_EFFECT_IMPORT_RE = re.compile(r'(?<![\w$.])import\s*([\'"])[^\'"]+\1[ \t]*;?')
_DIRECTIVE_RE = re.compile(r'^[ \t]*[\'"]use\s+(?:client|server)[\'"][ \t]*;?[ \t]*$', re.M | re.I)
_REACT_DESTRUCTURE_RE = re.compile(r'(?:const|let|var)\s*\{[^{}]*\}\s*=\s*React\b[ \t]*;?')

_EXPORT_DEFAULT_FUNCTION_RE = re.compile(r'export\s+default\s+(async\s+)?function(\s*\*)?\s*([\w$]+)?\s*\(')
_EXPORT_DEFAULT_CLASS_RE = re.compile(r'export\s+default\s+class(?:\s+([\w$]+))?(?=\s*(?:extends\b|\{))')
_EXPORT_DEFAULT_IDENT_RE = re.compile(r'export\s+default\s+([A-Za-z_$][\w$]*)[ \t]*;?[ \t]*(?=\r?\n|$)')
_EXPORT_LIST_RE = re.compile(r'export\s+(?:type\s+)?\{([^}]*)\}(?:\s*from\s*([\'"])[^\'"]+\2)?[ \t]*;?')
_EXPORT_STAR_RE = re.compile(r'export\s+\*(?:\s+as\s+[\w$]+)?\s+from\s*([\'"])[^\'"]+\1[ \t]*;?')
_EXPORT_DEFAULT_RE = re.compile(r'export\s+default\s+')
_EXPORT_KEYWORD_RE = re.compile(r'(?<![\w$.])export\s+(?=(?:async\s+)?(?:const|let|var|function|class|type|interface|enum)\b)')

_RENDER_CALL_RE = re.compile(r'ReactDOM\.(?:createRoot|render|hydrateRoot)\b')
_MOUNT_ID_RE = re.compile(r'getElementById\(\s*[\'"]([^\'"]+)[\'"]\s*\)')
_JSX_TAG_RE = re.compile(r'<([A-Z][\w$]*)(?![\w$.])')
_TOP_LEVEL_DECLARATION_RE = re.compile(
    r'^(?:async\s+)?(?:function\s*\*?\s*|class\s+|const\s+|let\s+|var\s+)([A-Z][\w$]*)', re.M
)
_INDENTED_DECLARATION_RE = re.compile(
    r'^[ \t]*(?:async\s+)?(?:function\s*\*?\s*|class\s+|const\s+|let\s+|var\s+)([A-Z][\w$]*)', re.M
)
_APP_ASSIGNMENT_RE = re.compile(r'(?<![\w$.])(?:const|let|var)\s+App\s*=\s*')

_OPENERS = '([{'
_CLOSERS = ')]}'


@dataclass(frozen=True)
class RewrittenUnit:
    exposed_identifier: str
    body: str


@dataclass
class RewriteResult:
    """Everything the preview document needs from one render"""
    units: Tuple[RewrittenUnit, ...]
    entry_source: str
    mount_id: str = DEFAULT_MOUNT_ID
    bindings: Dict[str, str] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)
    mode: str = 'react'

    @property
    def script(self) -> str:
        return '\n\n'.join([u.body for u in self.units] + [self.entry_source])


def is_markup_capable(component: Component) -> bool:
    return component.dialect == MARKUP_WITH_SCRIPT


def uses_react(components: Iterable[Component]) -> bool:
    """True when any component needs the React runtime"""
    return any(is_markup_capable(c) for c in components)


def is_script_component(component: Component) -> bool:
    return is_markup_capable(component) or (component.language or '').lower() in SCRIPT_LANGUAGES


def declares(code: str, name: str) -> bool:
    """True when code declares name with function/class/const/let/var"""
    pattern = (
        r'(?<![\w$.])(?:function\s*\*?\s*|class\s+|const\s+|let\s+|var\s+)'
        + re.escape(name)
        + r'(?![\w$])'
    )
    return re.search(pattern, code or '') is not None


def references(code: str, name: str) -> bool:
    return re.search(r'(?<![\w$.])' + re.escape(name) + r'(?![\w$])', code or '') is not None


def _looks_like_component(name: str) -> bool:
    # PascalCase or a single capital; ALL_CAPS constants are data
    return name[:1].isupper() and not (len(name) > 1 and name.upper() == name)


def _parse_clause(clause: str) -> List[Tuple[str, str, str]]:
    """(imported, local, kind) for each binding of an import clause"""
    bindings = []
    for part in re.findall(r'\{[^}]*\}|\*\s*as\s+[\w$]+|[\w$]+', clause):
        if part.startswith('{'):
            for item in part[1:-1].split(','):
                item = re.sub(r'^\s*type\s+', '', item).strip()
                if not item:
                    continue
                pieces = re.split(r'\s+as\s+', item)
                imported = pieces[0].strip()
                local = pieces[-1].strip()
                bindings.append((imported, local, 'named'))
        elif part.startswith('*'):
            bindings.append(('*', re.split(r'\s+', part)[-1], 'namespace'))
        else:
            bindings.append(('default', part, 'default'))
    return bindings


def _resolve_component(local: str, source: str, known_names: Sequence[str]) -> Optional[str]:
    if local in known_names:
        return local
    if not _looks_like_component(local):
        return None
    by_lower = dict((name.lower(), name) for name in known_names)
    hit = by_lower.get(local.lower())
    if hit:
        return hit
    if source.startswith(('.', '/', '@/', '~/', 'src/')):
        return by_lower.get(component_name_from_path(source).lower())
    return None


def _placeholder(local: str, kind: str) -> str:
    if kind == 'namespace':
        return f'const {local} = {{}};'
    if _looks_like_component(local):
        return f'const {local} = (props) => (props && props.children) || null;'
    return f'const {local} = [];'


def strip_imports(code: str, known_names: Sequence[str], aliases: bool = False,
                  skip_names: Iterable[str] = ()) -> str:
    """
    Remove every import statement, keeping referenced bindings defined.

    Args:
        code: Module source
        known_names: Exposed identifiers of the project's components
        aliases: True for the entry composition, where a component imported
            under another name can be aliased directly. Units get a lazy
            wrapper instead because siblings may not be initialized yet.
        skip_names: Names the document defines itself

    Returns:
        Import-free source with placeholder declarations prepended
    """
    skip = set(skip_names) | set(REACT_GLOBALS) | {ENTRY_APP_NAME}
    removed = []

    def _collect(match):
        if not match.group('type'):
            removed.append((match.group('clause'), match.group('source')))
        return ''

    code = _IMPORT_RE.sub(_collect, code or '')
    code = _SIDE_EFFECT_IMPORT_RE.sub('', code)

    declarations = []
    seen = set()
    for clause, source in removed:
        for imported, local, kind in _parse_clause(clause):
            if local in seen or local in skip:
                continue
            seen.add(local)
            if declares(code, local) or not references(code, local):
                continue

            if source in REACT_SOURCES:
                if kind == 'named':
                    declarations.append(f'const {local} = React.{imported};')
                elif kind == 'namespace' or local != 'React':
                    declarations.append(f'const {local} = React;')
                continue

            target = _resolve_component(local, source, known_names)
            if target is not None:
                if target != local:
                    if aliases:
                        declarations.append(f'const {local} = {target};')
                    else:
                        declarations.append(f'const {local} = function () {{ return {target}.apply(this, arguments); }};')
                continue

            declarations.append(_placeholder(local, kind))

    if declarations:
        code = '\n'.join(declarations) + '\n' + code.lstrip('\n')
    return code


def strip_exports(code: str, exposed_name: str) -> Tuple[str, Optional[str]]:
    """
    Remove every export form, keeping the declarations.

    Returns:
        (export-free source, identifier that was default-exported or None)
    """
    default_name = None

    def _default_function(match):
        nonlocal default_name
        name = match.group(3) or exposed_name
        default_name = name
        return f"{match.group(1) or ''}function{match.group(2) or ''} {name}("

    def _default_class(match):
        nonlocal default_name
        name = match.group(1) or exposed_name
        default_name = name
        return f'class {name}'

    def _default_ident(match):
        nonlocal default_name
        default_name = match.group(1)
        return ''

    def _export_list(match):
        nonlocal default_name
        from_source = match.group(2) is not None
        for item in match.group(1).split(','):
            pieces = re.split(r'\s+as\s+', item.strip())
            if len(pieces) == 2 and pieces[1] == 'default' and not from_source:
                default_name = pieces[0]
        return ''

    code = _EXPORT_DEFAULT_FUNCTION_RE.sub(_default_function, code or '')
    code = _EXPORT_DEFAULT_CLASS_RE.sub(_default_class, code)
    code = _EXPORT_DEFAULT_IDENT_RE.sub(_default_ident, code)
    code = _EXPORT_LIST_RE.sub(_export_list, code)
    code = _EXPORT_STAR_RE.sub('', code)

    if _EXPORT_DEFAULT_RE.search(code):
        # Expression default export: memo(Card), () => ..., etc.
        if declares(code, exposed_name):
            code = _EXPORT_DEFAULT_RE.sub('', code)
        else:
            code = _EXPORT_DEFAULT_RE.sub(f'const {exposed_name} = ', code, count=1)
            code = _EXPORT_DEFAULT_RE.sub('', code)
            default_name = exposed_name

    code = _EXPORT_KEYWORD_RE.sub('', code)
    return code, default_name


def _rename(code: str, old: str, new: str) -> str:
    """Rename a declaration plus its JSX tags and member access lines"""
    name = re.escape(old)
    code = re.sub(
        r'(?<![\w$.])(function\s*\*?\s*|class\s+|const\s+|let\s+|var\s+)' + name + r'(?![\w$])',
        lambda m: m.group(1) + new,
        code,
    )
    code = re.sub(r'(</?)' + name + r'(?=[\s/>])', lambda m: m.group(1) + new, code)
    return re.sub(r'(?m)^([ \t]*)' + name + r'(?=\s*\.)', lambda m: m.group(1) + new, code)


def _declares_callable(code: str, name: str) -> bool:
    n = re.escape(name)
    pattern = (
        r'(?<![\w$.])(?:function\s*\*?\s*' + n + r'(?![\w$])|class\s+' + n + r'(?![\w$])'
        r'|(?:const|let|var)\s+' + n + r'\s*(?::[^=]+)?=\s*(?:async\s+)?'
        r'(?:\(|[\w$]+\s*=>|function\b|(?:React\.)?(?:memo|forwardRef)\b))'
    )
    return re.search(pattern, code) is not None


def _primary_candidates(code: str, names: Sequence[str]) -> List[str]:
    components = [n for n in names if _looks_like_component(n)]
    callables = [n for n in components if _declares_callable(code, n)]
    return callables or components


def rename_primary_declaration(code: str, exposed_name: str, default_name: Optional[str] = None) -> str:
    """
    Rename the unit's main declaration to its exposed identifier.

    The main declaration is the default-exported one, else the one whose
    name matches case-insensitively, else the first PascalCase declaration.
    ALL_CAPS constants are never candidates, and function, class and arrow
    declarations are preferred over other values.
    """
    if declares(code, exposed_name) and (not default_name or default_name == exposed_name):
        return code

    target = None
    if default_name and declares(code, default_name):
        target = default_name
    else:
        for pattern in (_TOP_LEVEL_DECLARATION_RE, _INDENTED_DECLARATION_RE):
            names = _primary_candidates(code, pattern.findall(code))
            matching = [n for n in names if n.lower() == exposed_name.lower()]
            if matching:
                target = matching[0]
                break
            if names:
                target = names[0]
                break

    if target is None or target == exposed_name:
        return code
    if declares(code, exposed_name):
        logger.debug(f"   {exposed_name} is already declared, keeping {target} as is")
        return code
    return _rename(code, target, exposed_name)


def wrap_unit(body: str, exposed_name: str) -> Tuple[str, bool]:
    """
    Wrap a unit body in an isolating closure bound to exposed_name.

    Returns:
        (wrapped source, whether the body declares exposed_name)
    """
    declared = declares(body, exposed_name)
    if declared:
        tail = (
            f"return typeof {exposed_name} !== 'undefined' ? {exposed_name} "
            f": (function {exposed_name}() {{ return null; }});"
        )
    else:
        # typeof would hit the outer binding while it is still uninitialized
        tail = f'return function {exposed_name}() {{ return null; }};'
    wrapped = f"const {exposed_name} = (function () {{\n{body.strip()}\n{tail}\n}})();"
    return wrapped, declared


def strip_component_placeholders(code: str, names: Iterable[str]) -> str:
    """Drop `const X = [];` / `{}` placeholders that would shadow real components"""
    for name in names:
        variants = {name, name[:1].lower() + name[1:]}
        for variant in variants:
            code = re.sub(
                r'(?<![\w$.])(?:const|let|var)\s+' + re.escape(variant) + r'\s*=\s*(?:\[\s*\]|\{\s*\})[ \t]*;?[ \t]*\n?',
                '',
                code,
            )
    return code


def _clean_module(code: str) -> str:
    code = _DIRECTIVE_RE.sub('', code or '')
    return _REACT_DESTRUCTURE_RE.sub('', code)


def _matching(text: str, open_index: int) -> Optional[int]:
    """Index of the bracket closing the one at open_index"""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return index
    return None


def _statement_end(text: str, start: int) -> int:
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif depth <= 0 and char in ';\n':
            return index + 1
    return len(text)


def convert_arrow_app(code: str) -> Optional[str]:
    """
    Turn `const App = (...) => ...` into `function App(...) {...}`.

    Returns None when App is not assigned or the assignment is not a plain
    arrow/function expression.
    """
    match = _APP_ASSIGNMENT_RE.search(code)
    if not match:
        return None
    pos = match.end()

    function_expr = re.match(r'(async\s+)?function\s*(\*?)\s*[\w$]*\s*\(', code[pos:])
    if function_expr:
        prefix = function_expr.group(1) or ''
        return code[:match.start()] + f'{prefix}function{function_expr.group(2)} App(' + code[pos + function_expr.end():]

    prefix = ''
    is_async = re.match(r'async\s+', code[pos:])
    if is_async:
        prefix = 'async '
        pos += is_async.end()

    if code[pos:pos + 1] == '(':
        close = _matching(code, pos)
        if close is None:
            return None
        params = code[pos + 1:close]
        pos = close + 1
    else:
        ident = re.match(r'[\w$]+', code[pos:])
        if not ident:
            return None
        params = ident.group(0)
        pos += ident.end()

    arrow = re.match(r'\s*=>\s*', code[pos:])
    if not arrow:
        return None
    pos += arrow.end()
    if pos >= len(code):
        return None

    if code[pos] in '{(':
        close = _matching(code, pos)
        if close is None:
            return None
        inner = code[pos:close + 1]
        body = inner if code[pos] == '{' else '{\n  return ' + inner + ';\n}'
        end = close + 1
    else:
        expression = re.match(r'[^;\n]*', code[pos:])
        end = pos + expression.end()
        body = '{\n  return ' + code[pos:end].strip() + ';\n}'

    semicolon = re.match(r'[ \t]*;', code[end:])
    if semicolon:
        end += semicolon.end()
    return code[:match.start()] + f'{prefix}function App({params}) ' + body + code[end:]


def synthesize_app(names: Sequence[str]) -> str:
    """App rendering every component in order inside a fragment"""
    tags = '\n      '.join(f'<{name} />' for name in names)
    return f'function {ENTRY_APP_NAME}() {{\n  return (\n    <>\n      {tags}\n    </>\n  );\n}}'


def _insert_before_render(code: str, block: str) -> str:
    render = _RENDER_CALL_RE.search(code)
    if render is None:
        return code.rstrip() + '\n\n' + block + '\n'
    # Start of the line holding the render call
    line_start = code.rfind('\n', 0, render.start()) + 1
    return code[:line_start].rstrip() + '\n\n' + block + '\n\n' + code[line_start:]


def mount_id_of(code: str, default: str = DEFAULT_MOUNT_ID) -> str:
    match = _MOUNT_ID_RE.search(code or '')
    return match.group(1) if match else default


def rewrite_entry(source: Optional[str], unit_names: Sequence[str], render_names: Sequence[str] = None):
    """
    Adapt the entry composition to the rewritten units.

    Args:
        source: mainJsx/mainJs text, or None to synthesize one
        unit_names: Exposed identifiers of all rewritten units
        render_names: Units a synthesized App renders (defaults to all)

    Returns:
        (entry source, mount id, bindings, diagnostics)
    """
    render_names = list(unit_names if render_names is None else render_names)
    bindings = dict((name, 'component') for name in unit_names)
    diagnostics = []

    if not (source or '').strip():
        return synthesize_app(render_names) + BOOT_TAIL, DEFAULT_MOUNT_ID, bindings, diagnostics

    code = strip_imports(source, unit_names, aliases=True, skip_names=PREVIEW_DATA_NAMES)
    code, default_name = strip_exports(code, ENTRY_APP_NAME)
    code = _clean_module(code)
    code = strip_component_placeholders(code, unit_names)

    app_is_unit = ENTRY_APP_NAME in unit_names
    if default_name and default_name != ENTRY_APP_NAME and not app_is_unit and not declares(code, ENTRY_APP_NAME):
        if default_name not in unit_names and declares(code, default_name):
            code = _rename(code, default_name, ENTRY_APP_NAME)

    has_function_app = re.search(r'(?<![\w$.])function\s+App\s*\(', code) is not None
    if not app_is_unit and not has_function_app:
        if _APP_ASSIGNMENT_RE.search(code):
            converted = convert_arrow_app(code)
            if converted is None:
                match = _APP_ASSIGNMENT_RE.search(code)
                end = _statement_end(code, match.end())
                logger.info("   ℹ️  App assignment is not a plain arrow function, replacing it")
                converted = code[:match.start()] + synthesize_app(render_names) + '\n' + code[end:]
            code = converted
        elif not declares(code, ENTRY_APP_NAME):
            code = _insert_before_render(code, synthesize_app(render_names))

    if not _RENDER_CALL_RE.search(code):
        code = code.rstrip() + BOOT_TAIL

    # Last resort for tags nothing declares
    fallbacks = []
    for tag in dict.fromkeys(_JSX_TAG_RE.findall(code)):
        if tag in bindings or tag in REACT_GLOBALS:
            continue
        if declares(code, tag):
            bindings[tag] = 'component'
            continue
        bindings[tag] = 'fallback'
        fallbacks.append(f'function {tag}() {{ return null; }}')
        problem = RewriteAmbiguity(f"<{tag}> has no component or declaration, rendering nothing")
        diagnostics.append(str(problem))
        logger.warning(f"   ⚠️  {problem}")

    if fallbacks:
        code = '\n'.join(fallbacks) + '\n\n' + code.lstrip('\n')

    return code.strip() + '\n', mount_id_of(code), bindings, diagnostics


def _unique_names(components: Sequence[Component]) -> List[str]:
    names = []
    taken = set()
    for component in components:
        base = exposed_identifier(component.name)
        name = base
        suffix = 2
        while name in taken:
            name = f'{base}{suffix}'
            suffix += 1
        if name != base:
            logger.warning(f"   ⚠️  Duplicate component name {base!r}, exposing it as {name}")
        taken.add(name)
        names.append(name)
    return names


def rewrite_unit(component: Component, exposed_name: str, known_names: Sequence[str]) -> Tuple[RewrittenUnit, bool]:
    """Rewrite one component module into an isolated unit"""
    code = strip_imports(component.code, known_names, aliases=False)
    code, default_name = strip_exports(code, exposed_name)
    code = _clean_module(code)
    code = rename_primary_declaration(code, exposed_name, default_name)
    wrapped, declared = wrap_unit(code, exposed_name)
    return RewrittenUnit(exposed_identifier=exposed_name, body=wrapped), declared


def rewrite_project(project: GeneratedProject) -> RewriteResult:
    """
    Rewrite a project for the React preview path.

    Returns:
        RewriteResult with one unit per script component and the adapted entry
    """
    components = [c for c in project.components if is_script_component(c)]
    names = _unique_names(components)

    units = []
    diagnostics = []
    for component, name in zip(components, names):
        unit, declared = rewrite_unit(component, name, names)
        if not declared:
            problem = RewriteAmbiguity(f"component {component.name!r} declares no {name}, rendering nothing")
            diagnostics.append(str(problem))
            logger.warning(f"   ⚠️  {problem}")
        units.append(unit)

    render_names = [n for c, n in zip(components, names) if c.kind != 'util']
    entry_source, mount_id, bindings, entry_diagnostics = rewrite_entry(project.entry_source, names, render_names)

    return RewriteResult(
        units=tuple(units),
        entry_source=entry_source,
        mount_id=mount_id,
        bindings=bindings,
        diagnostics=diagnostics + entry_diagnostics,
        mode='react',
    )


def _vanilla_order(main_js: Optional[str], names: Sequence[str]) -> List[str]:
    """Components in the order main.js imports them, else in project order"""
    if not main_js:
        return list(names)
    by_lower = dict((n.lower(), n) for n in names)
    ordered = []
    for match in _IMPORT_RE.finditer(main_js):
        for _, local, kind in _parse_clause(match.group('clause')):
            if kind == 'namespace':
                continue
            hit = by_lower.get(local.lower()) or by_lower.get(component_name_from_path(match.group('source')).lower())
            if hit and hit not in ordered:
                ordered.append(hit)
    return ordered or list(names)


def rewrite_vanilla_project(project: GeneratedProject) -> RewriteResult:
    """
    Rewrite a script-only project: each unit is a function returning a
    DOM node (or an HTML string) that gets appended into #app.
    """
    components = [c for c in project.components if is_script_component(c)]
    names = _unique_names(components)

    units = []
    diagnostics = []
    for component, name in zip(components, names):
        code = strip_imports(component.code, names, aliases=False, skip_names=('jsx',))
        code, default_name = strip_exports(code, name)
        code = rename_primary_declaration(code, name, default_name)
        wrapped, declared = wrap_unit(code, name)
        if not declared:
            problem = RewriteAmbiguity(f"component {component.name!r} declares no {name}, rendering nothing")
            diagnostics.append(str(problem))
            logger.warning(f"   ⚠️  {problem}")
        units.append(RewrittenUnit(exposed_identifier=name, body=wrapped))

    order = _vanilla_order(project.entry_config.main_js if project.entry_config else None, names)
    entry_source = (
        "(function () {\n"
        f"  const app = document.getElementById('{VANILLA_MOUNT_ID}');\n"
        "  if (!app) return;\n"
        f"  [{', '.join(order)}].forEach(function (render) {{\n"
        "    const node = render();\n"
        "    if (node instanceof Node) {\n"
        "      app.appendChild(node);\n"
        "    } else if (typeof node === 'string') {\n"
        "      app.insertAdjacentHTML('beforeend', node);\n"
        "    }\n"
        "  });\n"
        "})();\n"
    )

    return RewriteResult(
        units=tuple(units),
        entry_source=entry_source,
        mount_id=VANILLA_MOUNT_ID,
        bindings=dict((name, 'component') for name in names),
        diagnostics=diagnostics,
        mode='vanilla',
    )
