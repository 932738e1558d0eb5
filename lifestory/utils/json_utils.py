"""
JSON utilities for cleaning LLM responses.
"""

import json
import re
from typing import Any, Dict, Optional

_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


def clean_json_response(response: str) -> str:
    """Clean LLM response by removing code block markers.

    Args:
        response: Raw LLM response

    Returns:
        Cleaned JSON string
    """
    response = response.strip()

    # Remove ```json and ``` markers
    if response.startswith('```json'):
        response = response[7:]
    elif response.startswith('```'):
        response = response[3:]

    if response.endswith('```'):
        response = response[:-3]

    return response.strip()


def extract_json_object(response: str) -> Optional[Dict[str, Any]]:
    """Pull the outermost JSON object out of free text.

    Args:
        response: Raw LLM response that may wrap a JSON object in prose or code fences

    Returns:
        Parsed dictionary, or None when no well-formed object is present
    """
    if not response:
        return None

    cleaned = clean_json_response(response)
    match = _OBJECT_PATTERN.search(cleaned)
    if not match:
        return None

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None

    return parsed if isinstance(parsed, dict) else None
