"""
Quality filter for candidate replies returned by generation sources.
"""

import re
from typing import Any, Optional

from ..models.vocabulary import EnhancerPolicy, default_enhancer_policy, term_pattern
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

_LEADING_ARTIFACTS = re.compile(r'^[\s:;\-–—]+')


class ResponseEnhancer:
    """Accept, reject or lightly clean raw generated text."""

    def __init__(self, policy: Optional[EnhancerPolicy] = None):
        self.policy = policy or default_enhancer_policy()

    def enhance(self, raw: Any, language: Optional[str] = None) -> Optional[str]:
        """Clean a candidate reply, or reject it.

        The rules run against the cleaned text, so an accepted result passes through
        a second call unchanged.

        Args:
            raw: Candidate text from a generation source
            language: Language tag of the conversation

        Returns:
            Cleaned reply, or None when the candidate carries no conversational value
        """
        if not isinstance(raw, str):
            return None

        candidate = _LEADING_ARTIFACTS.sub('', raw).rstrip()

        if len(candidate) < self.policy.min_length or not any(ch.isalpha() for ch in candidate):
            logger.debug('Rejected candidate: empty or no letters')
            return None

        if len(candidate.split()) == 1 and len(candidate) < self.policy.min_single_token_length:
            logger.debug(f'Rejected candidate: lone short token {candidate!r}')
            return None

        if len(candidate) < self.policy.short_reply_threshold and self._is_generic(candidate, language):
            logger.debug(f'Rejected candidate: generic acknowledgment {candidate!r}')
            return None

        return candidate

    def _is_generic(self, candidate: str, language: Optional[str]) -> bool:
        lowered = candidate.lower()
        return any(term_pattern(phrase).search(lowered) for phrase in self.policy.phrases_for(language))
