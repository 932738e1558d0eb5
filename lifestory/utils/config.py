"""
Configuration management for generation sources, storage and application settings.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CONVERSATION_SOURCES = ('huggingface:facebook/blenderbot-400M-distill,'
                                'huggingface:microsoft/DialoGPT-large,'
                                'huggingface:microsoft/DialoGPT-medium')


@dataclass
class HuggingFaceConfig:
    """Configuration for the Hugging Face Inference API."""
    api_url: str
    api_token: Optional[str]
    timeout: float
    max_new_tokens: int
    temperature: float
    biography_model: str


@dataclass
class BedrockLLMConfig:
    """Configuration for Amazon Bedrock LLM service."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float
    read_timeout: int = 60


@dataclass
class OpenSearchConfig:
    """Configuration for OpenSearch."""
    endpoint: str
    port: int
    region: str
    index_name: str


@dataclass
class ConversationConfig:
    """Configuration for the chat response pipeline."""
    sources: List[str] = field(default_factory=list)
    history_window: int = 7
    source_history_pairs: int = 5
    fallback_history_window: int = 3
    default_language: str = 'en-US'


@dataclass
class BiographyConfig:
    """Configuration for biography synthesis."""
    generator: str = 'bedrock'
    max_prompt_chars: int = 8000
    max_life_events: int = 20
    story_min_chars: int = 100
    story_max_chars: int = 300
    max_stories: int = 10
    max_journey_lines: int = 20
    journey_line_chars: int = 120


@dataclass
class StorageConfig:
    """Configuration for the turn store backend."""
    backend: str = 'memory'


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    huggingface: HuggingFaceConfig
    bedrock_llm: BedrockLLMConfig
    opensearch: OpenSearchConfig
    conversation: ConversationConfig
    biography: BiographyConfig
    storage: StorageConfig
    mcp: MCPConfig


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Hugging Face configuration
    huggingface_config = HuggingFaceConfig(api_url=os.getenv('HUGGINGFACE_API_URL', 'https://api-inference.huggingface.co/models'),
                                           api_token=os.getenv('HUGGINGFACE_API_TOKEN') or None,
                                           timeout=float(os.getenv('HUGGINGFACE_TIMEOUT', '15')),
                                           max_new_tokens=int(os.getenv('HUGGINGFACE_MAX_NEW_TOKENS', '150')),
                                           temperature=float(os.getenv('HUGGINGFACE_TEMPERATURE', '0.7')),
                                           biography_model=os.getenv('HUGGINGFACE_BIOGRAPHY_MODEL', 'microsoft/DialoGPT-medium'))

    # Bedrock configuration
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-sonnet-20240229-v1:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '4096')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.7')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '3')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')),
                                          read_timeout=int(os.getenv('BEDROCK_LLM_READ_TIMEOUT', '60')))

    # Turn/note storage configuration
    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', 'localhost'),
                                         port=int(os.getenv('OPENSEARCH_PORT', '443')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         index_name=os.getenv('OPENSEARCH_INDEX', 'lifestory'))

    conversation_config = ConversationConfig(sources=_split_list(os.getenv('CONVERSATION_SOURCES', DEFAULT_CONVERSATION_SOURCES)),
                                             history_window=int(os.getenv('CONVERSATION_HISTORY_WINDOW', '7')),
                                             source_history_pairs=int(os.getenv('CONVERSATION_SOURCE_PAIRS', '5')),
                                             fallback_history_window=int(os.getenv('CONVERSATION_FALLBACK_WINDOW', '3')),
                                             default_language=os.getenv('CONVERSATION_DEFAULT_LANGUAGE', 'en-US'))

    biography_config = BiographyConfig(generator=os.getenv('BIOGRAPHY_GENERATOR', 'bedrock').strip().lower(),
                                       max_prompt_chars=int(os.getenv('BIOGRAPHY_MAX_PROMPT_CHARS', '8000')),
                                       max_life_events=int(os.getenv('BIOGRAPHY_MAX_LIFE_EVENTS', '20')),
                                       story_min_chars=int(os.getenv('BIOGRAPHY_STORY_MIN_CHARS', '100')),
                                       story_max_chars=int(os.getenv('BIOGRAPHY_STORY_MAX_CHARS', '300')),
                                       max_stories=int(os.getenv('BIOGRAPHY_MAX_STORIES', '10')),
                                       max_journey_lines=int(os.getenv('BIOGRAPHY_MAX_JOURNEY_LINES', '20')),
                                       journey_line_chars=int(os.getenv('BIOGRAPHY_JOURNEY_LINE_CHARS', '120')))

    storage_config = StorageConfig(backend=os.getenv('STORAGE_BACKEND', 'memory').strip().lower())

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     huggingface=huggingface_config,
                     bedrock_llm=bedrock_llm_config,
                     opensearch=opensearch_config,
                     conversation=conversation_config,
                     biography=biography_config,
                     storage=storage_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
