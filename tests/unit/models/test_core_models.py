"""
Unit tests for core data models.
"""

import pytest

from lifestory.exceptions import InvalidInputError
from lifestory.models.core import (MAX_LANGUAGE_CHARS, MAX_NOTE_CHARS, UNASSIGNED_PERSON_ID, BiographyDocument, ChatReply,
                                   HistoryEntry, LifeEvent, Note, Turn, camel_case, coerce_history, normalize_person_id)


class TestNormalizePersonId:
    """Test person id normalization."""

    @pytest.mark.parametrize("value", [None, "", "   ", "default", "DEFAULT", " Default "])
    def test_collapses_to_unassigned(self, value):
        assert normalize_person_id(value) == UNASSIGNED_PERSON_ID

    def test_keeps_real_ids_trimmed(self):
        assert normalize_person_id("  nana ") == "nana"

    def test_non_string_is_unassigned(self):
        assert normalize_person_id(42) == UNASSIGNED_PERSON_ID


class TestHistoryEntry:
    """Test history parsing from caller shapes."""

    def test_from_short_keys(self):
        entry = HistoryEntry.from_dict({"user": "hi", "ai": "hello"})
        assert entry == HistoryEntry("hi", "hello")

    def test_from_camel_keys(self):
        entry = HistoryEntry.from_dict({"userText": "hi", "aiText": "hello"})
        assert entry == HistoryEntry("hi", "hello")

    def test_missing_ai_text_defaults_to_empty(self):
        assert HistoryEntry.from_dict({"user": "hi"}).ai_text == ""

    def test_coerce_history_drops_unknown_items(self):
        history = coerce_history([HistoryEntry("a", "b"), {"user": "c", "ai": "d"}, "junk", None])
        assert history == (HistoryEntry("a", "b"), HistoryEntry("c", "d"))

    def test_coerce_history_handles_none(self):
        assert coerce_history(None) == ()


class TestTurn:
    """Test turn serialization."""

    def test_dict_round_trip(self, make_turn):
        turn = make_turn(history=[HistoryEntry("a", "b")])
        document = turn.to_dict()

        assert document["history_snapshot"] == [{"user": "a", "ai": "b"}]
        assert Turn.from_dict(document) == turn

    def test_from_dict_uses_document_id(self, make_turn):
        document = make_turn().to_dict()
        assert Turn.from_dict(document, doc_id="doc-1").id == "doc-1"


class TestNote:
    """Test note creation and validation."""

    def test_create_strips_and_normalizes(self):
        note = Note.create("  Baked bread on Fridays.  ", " en-US ", person_id="default", timestamp="2024-01-01T00:00:00+00:00")

        assert note.text == "Baked bread on Fridays."
        assert note.language == "en-US"
        assert note.person_id == UNASSIGNED_PERSON_ID
        assert note.timestamp == "2024-01-01T00:00:00+00:00"

    def test_create_truncates_long_fields(self):
        note = Note.create("x" * (MAX_NOTE_CHARS + 50), "l" * 80, person_id="nana")

        assert len(note.text) == MAX_NOTE_CHARS
        assert len(note.language) == MAX_LANGUAGE_CHARS

    def test_create_assigns_timestamp(self):
        assert Note.create("text", "en").timestamp

    @pytest.mark.parametrize("text", [None, "", "   ", 12])
    def test_create_rejects_missing_text(self, text):
        with pytest.raises(InvalidInputError, match="text"):
            Note.create(text, "en")

    @pytest.mark.parametrize("language", [None, "", "  "])
    def test_create_rejects_missing_language(self, language):
        with pytest.raises(InvalidInputError, match="language"):
            Note.create("A memory", language)


class TestOutputShapes:
    """Test caller-facing dictionaries."""

    def test_chat_reply_keys(self):
        reply = ChatReply(reply="Hello", session_id="session_1", timestamp="t", source="fallback", persisted=False)
        assert reply.to_dict() == {
            "reply": "Hello",
            "sessionId": "session_1",
            "timestamp": "t",
            "source": "fallback",
            "persisted": False,
        }

    def test_biography_sections_use_camel_case(self):
        document = BiographyDocument(title="T", summary="S", sections={"early_life": "Young", "life_journey": "Road"})
        sections = document.to_dict()["sections"]

        assert sections["earlyLife"] == "Young"
        assert sections["lifeJourney"] == "Road"
        assert sections["introduction"] == ""

    def test_camel_case(self):
        assert camel_case("early_life") == "earlyLife"
        assert camel_case("values") == "values"

    def test_life_event_display(self):
        assert LifeEvent("I was born", 1950, "t").display() == "(1950) I was born"
        assert LifeEvent("I moved", None, "t").display() == "I moved"
