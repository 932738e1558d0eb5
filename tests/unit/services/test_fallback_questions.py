"""
Unit tests for deterministic fallback questions.
"""

import random

from lifestory.models.core import HistoryEntry, TopicTag
from lifestory.models.vocabulary import default_question_bank
from lifestory.services.fallback_questions import FallbackQuestionSynthesizer

FAMILY_QUESTION = "Tell me more about your family! What were your parents like?"


class TestFallbackQuestionSynthesizer:
    """Test fallback question selection."""

    def setup_method(self):
        self.questions = default_question_bank()
        self.fallback = FallbackQuestionSynthesizer(rng=random.Random(7))

    def test_named_greeting(self):
        reply = self.fallback.synthesize("my name is Sara", "en-US")
        assert "Sara" in reply

    def test_clause_final_self_introduction_greets_by_name(self):
        reply = self.fallback.synthesize("Hi, I'm Bilal.", "en-US")
        assert reply == self.questions.named_greeting("Bilal", "en-US")

    def test_faith_after_i_am_asks_the_family_question(self):
        assert self.fallback.synthesize("I'm Muslim and my family prayed daily", "en-US") == FAMILY_QUESTION

    def test_plain_greeting(self):
        assert self.fallback.synthesize("Hello!", "en-US") == self.questions.greeting("en-US")

    def test_topic_from_message(self):
        reply = self.fallback.synthesize("My husband and I married young", "en-US")
        assert reply == self.questions.topic_question(TopicTag.MARRIAGE, "en-US")

    def test_topic_from_recent_history(self):
        history = [
            HistoryEntry("I loved my childhood", "Tell me about it"),
            HistoryEntry("We lived in a village", "What was it like?"),
            HistoryEntry("My family had three cows", "How lovely"),
            HistoryEntry("The village had one well", "Interesting"),
        ]
        assert self.fallback.synthesize("Those were the days.", "en-US", history) == FAMILY_QUESTION

    def test_priority_order_breaks_ties(self):
        reply = self.fallback.synthesize("My friend from work visited my sister", "en-US")
        assert reply == FAMILY_QUESTION

    def test_generic_phrase_uses_injected_rng(self):
        expected = random.Random(99).choice(self.questions.generic_pool("en-US"))
        fallback = FallbackQuestionSynthesizer(rng=random.Random(99))

        assert fallback.synthesize("It rained a lot that year.", "en-US") == expected

    def test_urdu_generic_phrase(self):
        reply = self.fallback.synthesize("اس سال بہت بارش ہوئی", "ur-PK")
        assert reply in self.questions.generic_pool("ur-PK")

    def test_never_empty_for_non_string(self):
        assert self.fallback.synthesize(None, "en-US")
