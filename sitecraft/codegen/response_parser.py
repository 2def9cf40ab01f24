"""
Decode raw generation-model output into a JSON object.

The model is told to return bare JSON but frequently wraps it in a markdown
fence, and long responses get cut off by the token limit. Parsing is strict:
either a complete JSON object comes back or a ParseFailure does.
"""

import json
import re
from typing import Any, Dict, Optional, Union

from sitecraft.logging_config import get_logger
from .models import ParseFailure

logger = get_logger(__name__)

_LEADING_FENCE_RE = re.compile(r'^```[\w+-]*[ \t]*(?:\r?\n)?')
_TRAILING_FENCE_RE = re.compile(r'(?:\r?\n)?[ \t]*```$')

# Appended in order to text cut off inside a string value
TRUNCATION_SUFFIXES = (
    '"\n}\n]\n}',   # inside the last component field: string, component, array, root
    '"\n}\n}',      # inside viteConfig (e.g. styleCss): string, config, root
    '"\n]\n}',      # inside a string list item: string, array, root
)

# A cut-off escape sequence at the very end of the text
_DANGLING_ESCAPE_RE = re.compile(r'(?<!\\)(?:\\\\)*\\(?:u[0-9a-fA-F]{0,3})?$')


def strip_code_fence(text: str) -> str:
    """
    Remove one outermost markdown fence.

    Only a fence opening the (trimmed) text and one closing it are removed;
    backtick runs inside the payload are never treated as boundaries.
    """
    content = (text or '').strip()
    content = _LEADING_FENCE_RE.sub('', content, count=1)
    content = _TRAILING_FENCE_RE.sub('', content, count=1)
    return content.strip()


def is_truncation_error(error: json.JSONDecodeError) -> bool:
    """True when the decode error means the text ended mid-value"""
    if error.msg.startswith('Unterminated string'):
        return True
    return error.pos >= len(error.doc.rstrip())


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    parsed = json.loads(text)
    return parsed if isinstance(parsed, dict) else None


def repair_truncated_json(text: str) -> Optional[Dict[str, Any]]:
    """
    Try closing text that was cut off inside a string value.

    Returns:
        The first suffix candidate that parses to an object, or None
    """
    trimmed = (text or '').strip()
    if not trimmed:
        return None

    # A half-written escape would swallow the closing quote
    trimmed = _DANGLING_ESCAPE_RE.sub(lambda m: _drop_dangling_escape(m.group(0)), trimmed)

    for suffix in TRUNCATION_SUFFIXES:
        try:
            parsed = _loads_object(trimmed + suffix)
        except json.JSONDecodeError:
            continue
        if parsed is not None:
            return parsed
    return None


def _drop_dangling_escape(tail: str) -> str:
    # Keep complete "\\" pairs, drop the lone backslash and any partial \uXXXX
    backslashes = len(tail) - len(tail.lstrip('\\'))
    return '\\' * (backslashes - 1 if backslashes % 2 else backslashes)


def loads_with_repair(text: str) -> Union[Dict[str, Any], ParseFailure]:
    """Strict parse, falling back to truncation repair on cut-off text"""
    try:
        parsed = _loads_object(text)
        if parsed is not None:
            return parsed
        return ParseFailure('JSON value is not an object')
    except json.JSONDecodeError as e:
        if not is_truncation_error(e):
            return ParseFailure(f'{e.msg} at position {e.pos}')

        logger.warning(f"   ⚠️  JSON looks truncated ({e.msg}), attempting repair")
        repaired = repair_truncated_json(text)
        if repaired is not None:
            logger.info("   ✅ Parsed after truncation repair")
            return repaired
        return ParseFailure(f'truncated JSON could not be repaired: {e.msg}')


def parse_model_response(response: str) -> Union[Dict[str, Any], ParseFailure]:
    """
    Parse a raw model response.

    Args:
        response: Raw text returned by the generation model

    Returns:
        The decoded JSON object, or ParseFailure when every attempt failed
    """
    if not response or not isinstance(response, str):
        return ParseFailure('empty response')

    content = strip_code_fence(response)
    logger.debug(f"   Response length={len(response)}, fence-stripped length={len(content)}")

    result = loads_with_repair(content)
    if not isinstance(result, ParseFailure):
        return result
    logger.warning(f"   ⚠️  Fence-stripped parse failed: {result.reason}")

    # Raw data with incidental backticks that looked like a fence
    raw = response.strip()
    if raw != content:
        try:
            parsed = _loads_object(raw)
            if parsed is not None:
                logger.info("   ✅ Parsed raw response")
                return parsed
        except json.JSONDecodeError as e:
            logger.warning(f"   ⚠️  Raw parse failed: {e.msg}")

    return result
