"""
Unit tests for component health reporting.
"""

from unittest.mock import patch

from lifestory.utils import health_check
from lifestory.utils.health_check import check_health, get_health_status, get_system_info


class TestHealthCheck:
    """Test aggregation of component health."""

    def test_check_health_aggregates(self):
        assert check_health({"a": {"healthy": True}, "b": {"healthy": True}}) is True
        assert check_health({"a": {"healthy": True}, "b": {"healthy": False}}) is False

    @patch("lifestory.utils.health_check.OpenSearchClient")
    @patch("lifestory.utils.health_check.BedrockLLM")
    @patch("lifestory.utils.health_check.HuggingFaceClient")
    def test_status_covers_configured_components(self, mock_hf, mock_llm, mock_opensearch):
        mock_hf.return_value.health_check.return_value = True
        mock_llm.side_effect = RuntimeError("no credentials")
        mock_opensearch.return_value.health_check.return_value = True

        with patch.object(health_check.config.conversation, "sources", ["hf:org/a", "bedrock"]), \
                patch.object(health_check.config.storage, "backend", "opensearch"):
            status = get_health_status()

        assert status["huggingface:org/a"]["healthy"] is True
        assert status["bedrock_llm"] == {"healthy": False, "service": "Amazon Bedrock LLM", "error": "no credentials"}
        assert status["opensearch"]["healthy"] is True

    @patch("lifestory.utils.health_check.HuggingFaceClient")
    def test_unconfigured_components_are_skipped(self, mock_hf):
        mock_hf.return_value.health_check.return_value = True

        with patch.object(health_check.config.conversation, "sources", ["hf:org/a"]), \
                patch.object(health_check.config.biography, "generator", "none"), \
                patch.object(health_check.config.storage, "backend", "memory"):
            info = get_system_info()

        assert set(info["health_status"]) == {"huggingface:org/a"}
        assert info["configuration"]["storage_backend"] == "memory"
