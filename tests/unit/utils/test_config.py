"""
Unit tests for environment configuration loading.
"""

import os
from unittest.mock import patch

from lifestory.utils.config import DEFAULT_CONVERSATION_SOURCES, load_config


class TestLoadConfig:
    """Test configuration defaults and overrides."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            app_config = load_config()

        assert app_config.conversation.sources == [source.strip() for source in DEFAULT_CONVERSATION_SOURCES.split(",")]
        assert app_config.conversation.history_window == 7
        assert app_config.conversation.source_history_pairs == 5
        assert app_config.conversation.fallback_history_window == 3
        assert app_config.conversation.default_language == "en-US"
        assert app_config.biography.generator == "bedrock"
        assert app_config.biography.max_prompt_chars == 8000
        assert app_config.biography.max_journey_lines == 20
        assert app_config.biography.journey_line_chars == 120
        assert app_config.storage.backend == "memory"
        assert app_config.huggingface.api_token is None
        assert app_config.log_level == "INFO"

    def test_overrides(self):
        env = {
            "CONVERSATION_SOURCES": "hf:org/a, ,bedrock",
            "CONVERSATION_HISTORY_WINDOW": "4",
            "BIOGRAPHY_GENERATOR": " NONE ",
            "STORAGE_BACKEND": "OpenSearch",
            "HUGGINGFACE_API_TOKEN": "secret",
            "HUGGINGFACE_TIMEOUT": "2.5",
            "OPENSEARCH_INDEX": "stories",
            "BIOGRAPHY_MAX_JOURNEY_LINES": "5",
        }
        with patch.dict(os.environ, env, clear=True):
            app_config = load_config()

        assert app_config.conversation.sources == ["hf:org/a", "bedrock"]
        assert app_config.conversation.history_window == 4
        assert app_config.biography.generator == "none"
        assert app_config.storage.backend == "opensearch"
        assert app_config.huggingface.api_token == "secret"
        assert app_config.huggingface.timeout == 2.5
        assert app_config.opensearch.index_name == "stories"
        assert app_config.biography.max_journey_lines == 5
