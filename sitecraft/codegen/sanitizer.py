"""
Text passes that repair common defects in generated component source.

Every pass is a pure function of its input text and is idempotent:
running a pass on its own output changes nothing.
"""

import bisect
import re
from dataclasses import replace
from typing import List, Optional, Tuple

from sitecraft.logging_config import get_logger
from .models import GeneratedProject, LegacyProject, Project

logger = get_logger(__name__)

PLACEHOLDER_IMAGE_URL = 'https://picsum.photos/{width}/{height}'

BROKEN_IMAGE_URL_RE = re.compile(
    r'https?://(?:[\w-]+\.)*(?:imgur\.com|via\.placeholder\.com|placehold\.it)'
    r'(?:[/?#][^\s"\'<>)\]`]*)?',
    re.I,
)

DEFAULT_IMAGE_SIZE = (400, 300)

# (keywords, size); the keyword closest to the URL decides
IMAGE_SIZE_KEYWORDS = (
    (('hero', 'banner', 'header-bg', 'cover', 'jumbotron', 'full-width'), (1200, 600)),
    (('thumbnail', 'thumb', 'avatar', 'icon', 'logo', 'favicon', 'profile-pic', 'user-img'), (96, 96)),
    (('card', 'product', 'item-img', 'gallery', 'grid-item'), (400, 300)),
)

WIDTH_RANGE = (48, 1200)
HEIGHT_RANGE = (48, 800)


def _keyword_re(words: Tuple[str, ...]) -> 're.Pattern':
    alternatives = '|'.join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    # heroImage, hero-section and hero_img all count; heroic does not
    return re.compile(rf'(?<![A-Za-z])(?i:{alternatives})s?(?![a-z])')


_SIZE_MATCHERS = tuple((_keyword_re(words), size) for words, size in IMAGE_SIZE_KEYWORDS)
# Plain numbers or px only; relative CSS units say nothing about pixels
_NUMERIC_SIZE = r'\s*[=:]\s*\{?\s*["\']?(\d+)(?![\d.]|\s*(?:%|vw|vh|vmin|vmax|r?em|ch)(?![a-z]))'
_WIDTH_RE = re.compile(r'(?<![\w-])width' + _NUMERIC_SIZE, re.I)
_HEIGHT_RE = re.compile(r'(?<![\w-])height' + _NUMERIC_SIZE, re.I)

_FALSY_OBJECT_ASSIGNMENT_RE = re.compile(r'!\s*(\w+)\s*=(?![=>])\s*\{\s*\}')
_FALSY_ARRAY_ASSIGNMENT_RE = re.compile(r'!\s*(\w+)\s*=(?![=>])\s*\[\s*\]')

_MARKUP_TEXT_RE = re.compile(r'>([^<]*)<')


def _clamp(value: int, bounds: Tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def _distance(match, anchor: int) -> int:
    if match.end() <= anchor:
        return anchor - match.end()
    return max(0, match.start() - anchor)


def _nearest(pattern, context: str, anchor: int):
    matches = list(pattern.finditer(context))
    if not matches:
        return None
    return min(matches, key=lambda m: _distance(m, anchor))


def infer_image_dimensions(text: str, url_start: int, before: int = 400, after: int = 400) -> Tuple[int, int]:
    """
    Guess a placeholder size from the text around an image URL.

    Args:
        text: Full source text
        url_start: Index where the URL starts
        before: Characters of context to inspect before the URL
        after: Characters of context to inspect after the URL

    Returns:
        (width, height)
    """
    start = max(0, url_start - before)
    context = text[start:url_start + after]
    anchor = url_start - start

    width, height = DEFAULT_IMAGE_SIZE
    best = None
    for pattern, size in _SIZE_MATCHERS:
        match = _nearest(pattern, context, anchor)
        if match is None:
            continue
        distance = _distance(match, anchor)
        if best is None or distance < best:
            best = distance
            width, height = size

    explicit_width = _nearest(_WIDTH_RE, context, anchor)
    if explicit_width:
        width = _clamp(int(explicit_width.group(1)), WIDTH_RANGE)
    explicit_height = _nearest(_HEIGHT_RE, context, anchor)
    if explicit_height:
        height = _clamp(int(explicit_height.group(1)), HEIGHT_RANGE)

    return width, height


def replace_broken_image_urls(text: str, before: int = 400, after: int = 400) -> str:
    """Point images on unreliable hosts at a sized placeholder service"""
    if not text or not isinstance(text, str):
        return text

    def _replace(match):
        width, height = infer_image_dimensions(text, match.start(), before, after)
        return PLACEHOLDER_IMAGE_URL.format(width=width, height=height)

    return BROKEN_IMAGE_URL_RE.sub(_replace, text)


def fix_invalid_condition_assignment(text: str) -> str:
    """
    Drop a spurious empty assignment after a negation.

    e.g. "if (!isOpen || !product = {})" -> "if (!isOpen || !product)"
    """
    if not text or not isinstance(text, str):
        return text
    text = _FALSY_OBJECT_ASSIGNMENT_RE.sub(r'!\1', text)
    return _FALSY_ARRAY_ASSIGNMENT_RE.sub(r'!\1', text)


def _backtick_positions(text: str) -> List[int]:
    positions = []
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == '\\':
            escaped = True
        elif char == '`':
            positions.append(index)
    return positions


def _closing_brace(segment: str, start: int) -> Optional[int]:
    depth = 1
    for index in range(start, len(segment)):
        char = segment[index]
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return index
    return None


def _rewrite_markup_text(segment: str, in_template: bool) -> str:
    out = []
    depth = 0
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == '\\':
            out.append(segment[index:index + 2])
            index += 2
            continue
        if char == '`':
            in_template = not in_template
        elif not in_template:
            if char == '$' and depth == 0:
                # Literal dollars before ${ stay in the prefix: $${x} -> {'$$' + x}
                run_end = index
                while run_end < len(segment) and segment[run_end] == '$':
                    run_end += 1
                if segment.startswith('{', run_end):
                    close = _closing_brace(segment, run_end + 1)
                    if close is not None:
                        expr = segment[run_end + 1:close].strip()
                        out.append("{'" + segment[index:run_end] + "' + " + expr + "}")
                        index = close + 1
                        continue
                out.append(segment[index:run_end])
                index = run_end
                continue
            if char == '{':
                depth += 1
            elif char == '}':
                depth = max(0, depth - 1)
        out.append(char)
        index += 1
    return ''.join(out)


def fix_jsx_dollar_interpolation(text: str) -> str:
    """
    Rewrite ${expr} in markup text content as {'$' + expr}.

    In-browser Babel reads a bare ${ in JSX text as the start of a template
    literal and fails with "Unterminated template". Only text between a '>'
    and the next '<' is eligible, and only outside expression containers
    and template literals.
    """
    if not text or not isinstance(text, str) or '${' not in text:
        return text

    backticks = _backtick_positions(text)

    def _replace(match):
        segment = match.group(1)
        if '${' not in segment:
            return match.group(0)
        in_template = bisect.bisect_left(backticks, match.start(1)) % 2 == 1
        return '>' + _rewrite_markup_text(segment, in_template) + '<'

    return _MARKUP_TEXT_RE.sub(_replace, text)


def sanitize_source(text: str) -> str:
    """All three passes over one component or entry source"""
    return replace_broken_image_urls(fix_invalid_condition_assignment(fix_jsx_dollar_interpolation(text)))


def sanitize_project(project: Project) -> Project:
    """
    Sanitize every source string of a project.

    Component and entry sources get all passes; stylesheets and legacy
    blocks only get the image rewrite.
    """
    if isinstance(project, GeneratedProject):
        components = tuple(c.with_code(sanitize_source(c.code)) for c in project.components)
        entry_config = project.entry_config
        if entry_config is not None:
            entry_config = replace(
                entry_config,
                main_jsx=sanitize_source(entry_config.main_jsx),
                main_js=sanitize_source(entry_config.main_js),
                style_css=replace_broken_image_urls(entry_config.style_css),
            )
        return replace(project, components=components, entry_config=entry_config)

    if isinstance(project, LegacyProject):
        return LegacyProject(
            html=replace_broken_image_urls(project.html),
            css=replace_broken_image_urls(project.css),
            js=replace_broken_image_urls(project.js),
        )

    raise TypeError(f"Cannot sanitize {type(project).__name__}")
