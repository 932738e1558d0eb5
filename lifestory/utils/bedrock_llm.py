"""
Amazon Bedrock Converse client for chat replies and biography drafts.
"""

import random
import time
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockLLMConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class BedrockLLMError(Exception):
    """Custom exception for Bedrock LLM errors."""
    pass


def text_message(role: str, text: str) -> Dict[str, Any]:
    """Build a Converse message holding a single text block."""
    return {'role': role, 'content': [{'text': text}]}


class BedrockLLM:
    """Streams Converse completions; callers choose how many attempts a request gets."""

    def __init__(self, config: BedrockLLMConfig):
        self.config = config
        self.model_id = config.model_id

        # Retries are handled per call in converse()
        self.bedrock_runtime = boto3.client('bedrock-runtime',
                                            region_name=config.region,
                                            config=BotoConfig(connect_timeout=10,
                                                              read_timeout=config.read_timeout,
                                                              retries={'max_attempts': 0}))

        logger.info(f'Initialized Bedrock LLM client with model: {self.model_id}')

    @staticmethod
    def _read_stream(stream: Optional[Iterable[Dict[str, Any]]]) -> str:
        return ''.join(event['contentBlockDelta']['delta']['text'] for event in stream or ()
                       if 'contentBlockDelta' in event)

    def converse(self,
                 messages: List[Dict[str, Any]],
                 system_prompt: str,
                 max_tokens: Optional[int] = None,
                 temperature: Optional[float] = None,
                 stop_sequences: Optional[List[str]] = None,
                 attempts: Optional[int] = None) -> str:
        """Return the model's text for a Converse request.

        Args:
            messages: Converse messages, alternating user and assistant
            system_prompt: System prompt for the request
            max_tokens: Token cap, config default when None
            temperature: Sampling temperature, config default when None
            stop_sequences: Sequences that end generation
            attempts: Tries before giving up, config retry_attempts when None

        Returns:
            Concatenated text of the streamed content deltas

        Raises:
            BedrockLLMError: When every attempt fails or the call errors unexpectedly
        """
        attempts = max(1, attempts or self.config.retry_attempts)
        request = {
            'modelId': self.model_id,
            'messages': messages,
            'system': [{'text': system_prompt}],
            'inferenceConfig': {
                'maxTokens': max_tokens or self.config.max_tokens,
                'temperature': self.config.temperature if temperature is None else temperature,
                'stopSequences': stop_sequences or [],
            },
        }

        for attempt in range(1, attempts + 1):
            try:
                text = self._read_stream(self.bedrock_runtime.converse_stream(**request).get('stream'))
                logger.debug(f'Bedrock reply on attempt {attempt}/{attempts} ({len(text)} chars)')
                return text

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock attempt {attempt}/{attempts} failed: {e}')
                if attempt == attempts:
                    raise BedrockLLMError(f'Bedrock LLM failed after {attempts} attempts: {e}')
                # Exponential backoff with jitter
                time.sleep(self.config.retry_delay * (2**(attempt - 1)) + random.uniform(0, 1))

            except Exception as e:
                logger.error(f'Unexpected error in Bedrock LLM: {e}')
                raise BedrockLLMError(f'Unexpected Bedrock LLM error: {e}')

        raise BedrockLLMError(f'Bedrock LLM failed after {attempts} attempts')

    def health_check(self) -> bool:
        """Single-attempt ping; True when the model answers with any text."""
        try:
            reply = self.converse([text_message('user', 'Hi')],
                                  "You are a helpful assistant. Respond with just 'OK'.",
                                  max_tokens=10,
                                  temperature=0.0,
                                  attempts=1)
            return bool(reply.strip())

        except BedrockLLMError as e:
            logger.error(f'Bedrock LLM health check failed: {e}')
            return False
