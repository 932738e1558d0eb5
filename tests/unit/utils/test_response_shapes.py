"""
Unit tests for inference response shape matching.
"""

import pytest

from lifestory.utils.response_shapes import extract_text, match_conversation, match_generated_text_list


class TestResponseShapes:
    """Test ordered shape matching."""

    @pytest.mark.parametrize("payload,text", [
        ("flat", "flat"),
        ([{"generated_text": "from list"}], "from list"),
        ({"generated_text": "from dict"}, "from dict"),
        ({"conversation": {"generated_responses": ["first", "last"]}}, "last"),
    ])
    def test_known_shapes(self, payload, text):
        assert extract_text(payload) == text

    @pytest.mark.parametrize("payload", [None, 3, [], [1, 2], {"conversation": {"generated_responses": []}}, {"other": "x"}])
    def test_unknown_shapes(self, payload):
        assert extract_text(payload) is None

    def test_custom_matcher_order(self):
        payload = {"conversation": {"generated_responses": ["conversation"]}, "generated_text": "dict"}
        assert extract_text(payload, [match_conversation, match_generated_text_list]) == "conversation"
