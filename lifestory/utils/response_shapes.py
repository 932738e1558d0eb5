"""
Ordered matchers that pull reply text out of the response shapes inference endpoints return.
"""

from typing import Any, Callable, Optional, Sequence

ShapeMatcher = Callable[[Any], Optional[str]]


def match_flat_string(payload: Any) -> Optional[str]:
    """A bare JSON string."""
    return payload if isinstance(payload, str) else None


def match_generated_text_list(payload: Any) -> Optional[str]:
    """[{"generated_text": "some reply"}, ...]"""
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        text = payload[0].get('generated_text')
        return text if isinstance(text, str) else None
    return None


def match_generated_text(payload: Any) -> Optional[str]:
    """{"generated_text": "some reply"}"""
    if isinstance(payload, dict):
        text = payload.get('generated_text')
        return text if isinstance(text, str) else None
    return None


def match_conversation(payload: Any) -> Optional[str]:
    """{"conversation": {"generated_responses": [..., "latest reply"]}}"""
    if not isinstance(payload, dict):
        return None
    conversation = payload.get('conversation')
    if not isinstance(conversation, dict):
        return None
    responses = conversation.get('generated_responses')
    if isinstance(responses, list) and responses and isinstance(responses[-1], str):
        return responses[-1]
    return None


DEFAULT_MATCHERS = (match_flat_string, match_generated_text_list, match_generated_text, match_conversation)


def extract_text(payload: Any, matchers: Sequence[ShapeMatcher] = DEFAULT_MATCHERS) -> Optional[str]:
    """Return the text from the first matcher that recognizes the payload, or None."""
    for matcher in matchers:
        text = matcher(payload)
        if text is not None:
            return text
    return None
