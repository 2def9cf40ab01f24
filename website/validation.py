"""
Request Validation for Website Generation
"""

import time
from typing import Any, Dict, List, Tuple


def validate_generation_request(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a website generation request body

    Args:
        data: Parsed JSON body

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not isinstance(data, dict):
        return False, ['Request body must be a JSON object']

    errors = []

    prompt = data.get('prompt')
    if not isinstance(prompt, str):
        errors.append('Prompt is required')
    elif not prompt.strip():
        errors.append('Prompt cannot be empty')

    website_name = data.get('websiteName')
    if website_name is not None and not isinstance(website_name, str):
        errors.append('Website Name must be a string')

    return len(errors) == 0, errors


def resolve_website_name(data: Dict[str, Any]) -> str:
    """The requested website name, or a timestamped default"""
    name = (data.get('websiteName') or '').strip()
    return name or f'Website {int(time.time() * 1000)}'
