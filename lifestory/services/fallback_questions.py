"""
Deterministic follow-up questions used when no generation source gives an acceptable reply.
"""

import random
from typing import Optional, Sequence

from ..models.core import HistoryEntry
from ..models.vocabulary import QuestionBank, default_question_bank
from ..utils.logging_config import get_logger
from .topic_classifier import TopicClassifier

logger = get_logger(__name__)


class FallbackQuestionSynthesizer:
    """Pick a topic-aware canned question from the latest message and recent history."""

    def __init__(self,
                 classifier: Optional[TopicClassifier] = None,
                 questions: Optional[QuestionBank] = None,
                 rng: Optional[random.Random] = None,
                 history_window: int = 3):
        self.classifier = classifier or TopicClassifier()
        self.questions = questions or default_question_bank()
        self.rng = rng or random.Random()
        self.history_window = max(0, history_window)

    def synthesize(self, message: str, language: Optional[str], history: Sequence[HistoryEntry] = ()) -> str:
        """Produce a follow-up question. Never returns an empty string.

        Args:
            message: The user's latest message
            language: Language tag of the conversation
            history: Prior exchanges, oldest first

        Returns:
            A greeting, a topic question or a generic encouraging phrase
        """
        message = message if isinstance(message, str) else ''

        name = self.questions.extract_name(message, language)
        if name:
            logger.debug(f'Fallback greeting for introduced name {name}')
            return self.questions.named_greeting(name, language)
        if self.questions.is_greeting(message, language):
            return self.questions.greeting(language)

        recent = list(history)[-self.history_window:] if self.history_window else []
        history_text = ' '.join(entry.user_text for entry in recent if entry.user_text)

        tags = self.classifier.classify(message, language) | self.classifier.classify(history_text, language)
        for topic in self.classifier.order(tags):
            question = self.questions.topic_question(topic, language)
            if question:
                logger.debug(f'Fallback question for topic {topic.value}')
                return question

        return self.rng.choice(self.questions.generic_pool(language))
