"""
Unit tests for generation sources and their factories.
"""

from unittest.mock import Mock, patch

import pytest

from lifestory.models.core import HistoryEntry
from lifestory.services.generation_sources import (BedrockLongFormGenerator, BedrockSource, GenerationRequest,
                                                   HuggingFaceLongFormGenerator, HuggingFaceSource, SourceError,
                                                   SourceUnavailableError, build_long_form_generator, build_sources)
from lifestory.utils.bedrock_llm import BedrockLLMError
from lifestory.utils.config import BiographyConfig, ConversationConfig
from lifestory.utils.huggingface_client import HuggingFaceError, ModelLoadingError


@pytest.fixture
def hf_client():
    client = Mock()
    client.model_name = "org/chat"
    client.parameters.return_value = {"max_new_tokens": 50}
    return client


def _history(count):
    return tuple(HistoryEntry(f"user {i}", f"ai {i}") for i in range(count))


class TestGenerationRequest:
    """Test history windowing on requests."""

    def test_recent_pairs_keeps_latest(self):
        request = GenerationRequest(message="hi", language="en-US", history=_history(8), max_pairs=5)
        assert [entry.user_text for entry in request.recent_pairs()] == ["user 3", "user 4", "user 5", "user 6", "user 7"]

    def test_zero_pairs(self):
        assert GenerationRequest(message="hi", language="en-US", history=_history(3), max_pairs=0).recent_pairs() == ()


class TestHuggingFaceSource:
    """Test the Hugging Face chat source."""

    def test_build_payload(self, hf_client):
        source = HuggingFaceSource(hf_client)
        request = GenerationRequest(message="Tell me", language="en-US", history=_history(2))

        assert source.name == "huggingface:org/chat"
        assert source.build_payload(request) == {
            "inputs": {
                "past_user_inputs": ["user 0", "user 1"],
                "generated_responses": ["ai 0", "ai 1"],
                "text": "Tell me",
            },
            "parameters": {"max_new_tokens": 50},
        }

    @pytest.mark.parametrize("result,text", [
        ("plain reply", "plain reply"),
        ([{"generated_text": "listed reply"}], "listed reply"),
        ({"generated_text": "dict reply"}, "dict reply"),
        ({"conversation": {"generated_responses": ["old", "latest reply"]}}, "latest reply"),
    ])
    def test_generate_extracts_text(self, hf_client, result, text):
        hf_client.infer.return_value = result
        assert HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US")) == text

    def test_model_loading_is_unavailable(self, hf_client):
        hf_client.infer.side_effect = ModelLoadingError("loading")
        with pytest.raises(SourceUnavailableError):
            HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US"))

    def test_loading_error_body_is_unavailable(self, hf_client):
        hf_client.infer.return_value = {"error": "Model org/chat is currently loading", "estimated_time": 20.0}
        with pytest.raises(SourceUnavailableError):
            HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US"))

    def test_other_error_body_fails(self, hf_client):
        hf_client.infer.return_value = {"error": "Rate limit reached"}
        with pytest.raises(SourceError) as excinfo:
            HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US"))
        assert not isinstance(excinfo.value, SourceUnavailableError)

    def test_transport_error_fails(self, hf_client):
        hf_client.infer.side_effect = HuggingFaceError("HTTP 500")
        with pytest.raises(SourceError):
            HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US"))

    def test_unrecognized_shape_fails(self, hf_client):
        hf_client.infer.return_value = 42
        with pytest.raises(SourceError, match="unrecognized"):
            HuggingFaceSource(hf_client).generate(GenerationRequest(message="hi", language="en-US"))


class TestBedrockSource:
    """Test the Bedrock chat source."""

    def test_build_messages_alternates_roles(self):
        source = BedrockSource(Mock())
        request = GenerationRequest(message="d", language="en-US", history=(HistoryEntry("a", "b"), HistoryEntry("c", "")))

        assert source.build_messages(request) == [
            {"role": "user", "content": [{"text": "a"}]},
            {"role": "assistant", "content": [{"text": "b"}]},
            {"role": "user", "content": [{"text": "c\nd"}]},
        ]

    def test_generate_uses_single_attempt(self):
        llm = Mock()
        llm.converse.return_value = "What happened next?"
        request = GenerationRequest(message="We moved", language="en-US", system_prompt="Be kind")

        assert BedrockSource(llm, max_tokens=200).generate(request) == "What happened next?"
        _, kwargs = llm.converse.call_args
        assert kwargs["attempts"] == 1
        assert kwargs["system_prompt"] == "Be kind"
        assert kwargs["max_tokens"] == 200

    def test_generate_wraps_errors(self):
        llm = Mock()
        llm.converse.side_effect = BedrockLLMError("throttled")
        with pytest.raises(SourceError):
            BedrockSource(llm).generate(GenerationRequest(message="hi", language="en-US"))


class TestLongFormGenerators:
    """Test biography generators."""

    def test_bedrock_prefills_json_fence(self):
        llm = Mock()
        llm.converse.return_value = '{"title": "x"}'

        assert BedrockLongFormGenerator(llm).generate("Write it") == '{"title": "x"}'
        _, kwargs = llm.converse.call_args
        assert kwargs["messages"][-1] == {"role": "assistant", "content": [{"text": "```json"}]}
        assert kwargs["stop_sequences"] == ["```"]

    def test_huggingface_generator(self, hf_client):
        hf_client.infer.return_value = [{"generated_text": "{}"}]
        generator = HuggingFaceLongFormGenerator(hf_client, max_new_tokens=900)

        assert generator.generate("Write it") == "{}"
        payload = hf_client.infer.call_args[0][0]
        assert payload["inputs"] == "Write it"
        assert payload["parameters"]["max_new_tokens"] == 900

    def test_huggingface_generator_wraps_errors(self, hf_client):
        hf_client.infer.side_effect = HuggingFaceError("down")
        with pytest.raises(SourceError):
            HuggingFaceLongFormGenerator(hf_client).generate("Write it")


class TestFactories:
    """Test source construction from configuration."""

    @patch("lifestory.services.generation_sources.BedrockLLM")
    def test_build_sources_in_order(self, mock_llm, huggingface_config, bedrock_config):
        conversation = ConversationConfig(sources=["hf:org/a", "huggingface:org/b", "mystery:x", "bedrock"])

        sources = build_sources(conversation, huggingface_config, bedrock_config)

        assert [source.name for source in sources] == ["huggingface:org/a", "huggingface:org/b", "bedrock"]
        mock_llm.assert_called_once_with(bedrock_config)

    @patch("lifestory.services.generation_sources.BedrockLLM")
    def test_build_sources_bedrock_model_override(self, mock_llm, huggingface_config, bedrock_config):
        build_sources(ConversationConfig(sources=["bedrock:other-model"]), huggingface_config, bedrock_config)
        assert mock_llm.call_args[0][0].model_id == "other-model"

    @patch("lifestory.services.generation_sources.BedrockLLM")
    def test_build_sources_skips_broken_entries(self, mock_llm, huggingface_config, bedrock_config):
        mock_llm.side_effect = RuntimeError("no credentials")
        sources = build_sources(ConversationConfig(sources=["bedrock", "hf:org/a"]), huggingface_config, bedrock_config)
        assert [source.name for source in sources] == ["huggingface:org/a"]

    @patch("lifestory.services.generation_sources.BedrockLLM")
    def test_build_long_form_generator(self, mock_llm, huggingface_config, bedrock_config):
        assert isinstance(build_long_form_generator(BiographyConfig(generator="bedrock"), huggingface_config, bedrock_config),
                          BedrockLongFormGenerator)
        generator = build_long_form_generator(BiographyConfig(generator="huggingface"), huggingface_config, bedrock_config)
        assert isinstance(generator, HuggingFaceLongFormGenerator)
        assert generator.name == "huggingface:org/writer"
        assert build_long_form_generator(BiographyConfig(generator="none"), huggingface_config, bedrock_config) is None
