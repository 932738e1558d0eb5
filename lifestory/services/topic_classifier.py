"""
Keyword topic classification for conversation text.
"""

from typing import Iterable, List, Optional, Set

from ..models.core import TopicTag
from ..models.vocabulary import TopicVocabulary, default_topic_vocabulary


class TopicClassifier:
    """Map free text onto zero or more topic tags by keyword presence."""

    def __init__(self, vocabulary: Optional[TopicVocabulary] = None):
        self.vocabulary = vocabulary or default_topic_vocabulary()

    def classify(self, text: str, language: Optional[str] = None) -> Set[TopicTag]:
        """Return every topic whose keyword table has a substring hit in the text.

        Args:
            text: Message or concatenated messages
            language: Language tag selecting the keyword table

        Returns:
            Set of matching topics, possibly empty
        """
        if not text or not isinstance(text, str):
            return set()

        lowered = text.lower()
        return {
            topic
            for topic, keywords in self.vocabulary.keywords_for(language).items()
            if any(keyword in lowered for keyword in keywords)
        }

    def classify_all(self, text: str, languages: Iterable[str]) -> Set[TopicTag]:
        """Union of classifications over several languages, for mixed-language corpora."""
        tags: Set[TopicTag] = set()
        for language in set(languages) or {None}:
            tags |= self.classify(text, language)
        return tags

    @staticmethod
    def order(tags: Iterable[TopicTag]) -> List[TopicTag]:
        """Sort tags into the fixed priority order."""
        present = set(tags)
        return [topic for topic in TopicTag if topic in present]
