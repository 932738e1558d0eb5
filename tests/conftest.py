"""Pytest configuration for lifestory tests."""

import random

import pytest

from lifestory.models.core import HistoryEntry, Note, Turn
from lifestory.services.turn_store import InMemoryTurnStore
from lifestory.utils.config import BedrockLLMConfig, HuggingFaceConfig, OpenSearchConfig


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (isolated, mocked)")
    config.addinivalue_line("markers", "integration: mark test as an integration test (requires real services)")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests by directory."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def rng():
    """Seeded random source so generic fallback phrases are reproducible."""
    return random.Random(1234)


@pytest.fixture
def memory_store():
    return InMemoryTurnStore()


@pytest.fixture
def huggingface_config():
    return HuggingFaceConfig(api_url="https://hf.test/models",
                             api_token="hf-test-token",
                             timeout=5.0,
                             max_new_tokens=50,
                             temperature=0.7,
                             biography_model="org/writer")


@pytest.fixture
def bedrock_config():
    return BedrockLLMConfig(region="us-east-1",
                            model_id="anthropic.test-model",
                            max_tokens=512,
                            temperature=0.5,
                            retry_attempts=2,
                            retry_delay=0.0)


@pytest.fixture
def opensearch_config():
    return OpenSearchConfig(endpoint="localhost", port=443, region="us-east-1", index_name="lifestory")


@pytest.fixture
def make_turn():
    """Factory for turns with sensible defaults."""

    def _make(user_message="I grew up near the river.",
              ai_response="What was the river like?",
              timestamp="2024-03-01T10:00:00+00:00",
              person_id="nana",
              session_id="session_a",
              language="en-US",
              history=()):
        return Turn(person_id=person_id,
                    session_id=session_id,
                    user_message=user_message,
                    ai_response=ai_response,
                    language=language,
                    timestamp=timestamp,
                    history_snapshot=tuple(history))

    return _make


@pytest.fixture
def make_note():
    def _make(text="My grandmother baked bread every Friday.", timestamp="2024-03-02T09:00:00+00:00", person_id="nana",
              language="en-US"):
        return Note(person_id=person_id, text=text, language=language, timestamp=timestamp)

    return _make


@pytest.fixture
def sample_history():
    return [
        HistoryEntry("Hello", "Hello! What would you like me to call you?"),
        HistoryEntry("Call me Amina", "Lovely to meet you, Amina!"),
    ]
