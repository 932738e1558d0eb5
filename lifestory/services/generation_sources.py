"""
External text-generation sources behind one capability interface.

Chat sources turn a message plus recent history into a candidate reply. Long-form
generators turn one large prompt into free text for biography synthesis.
"""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..models.core import HistoryEntry
from ..utils.bedrock_llm import BedrockLLM, BedrockLLMError, text_message
from ..utils.config import BedrockLLMConfig, BiographyConfig, ConversationConfig, HuggingFaceConfig
from ..utils.huggingface_client import HuggingFaceClient, HuggingFaceError, ModelLoadingError
from ..utils.logging_config import get_logger
from ..utils.response_shapes import extract_text

logger = get_logger(__name__)


class SourceError(Exception):
    """A generation source failed to produce text."""
    pass


class SourceUnavailableError(SourceError):
    """A generation source is temporarily unavailable, e.g. its model is warming up."""
    pass


@dataclass(frozen=True)
class GenerationRequest:
    """Everything a chat source may use to build its payload."""
    message: str
    language: str
    history: Tuple[HistoryEntry, ...] = ()
    system_prompt: str = ''
    max_pairs: int = 5

    def recent_pairs(self) -> Tuple[HistoryEntry, ...]:
        if self.max_pairs <= 0:
            return ()
        return self.history[-self.max_pairs:]


class GenerationSource(ABC):
    """Capability interface for one chat generation endpoint."""

    name: str = 'source'

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        """Return raw candidate text.

        Raises:
            SourceUnavailableError: If the source is warming up or rate limited
            SourceError: On any other failure
        """


class HuggingFaceSource(GenerationSource):
    """Conversational model hosted on the Hugging Face Inference API."""

    def __init__(self, client: HuggingFaceClient):
        self.client = client
        self.name = f'huggingface:{client.model_name}'

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        pairs = request.recent_pairs()
        return {
            'inputs': {
                'past_user_inputs': [entry.user_text for entry in pairs],
                'generated_responses': [entry.ai_text for entry in pairs],
                'text': request.message,
            },
            'parameters': self.client.parameters(),
        }

    def generate(self, request: GenerationRequest) -> str:
        try:
            result = self.client.infer(self.build_payload(request))
        except ModelLoadingError as e:
            raise SourceUnavailableError(str(e))
        except HuggingFaceError as e:
            raise SourceError(str(e))

        if isinstance(result, dict) and isinstance(result.get('error'), str):
            error = result['error']
            if 'loading' in error.lower():
                raise SourceUnavailableError(f'{self.name}: {error}')
            raise SourceError(f'{self.name}: {error}')

        text = extract_text(result)
        if text is None:
            raise SourceError(f'{self.name}: unrecognized response shape {type(result).__name__}')
        return text


def _alternate(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Merge consecutive same-role messages; Converse requires strict alternation starting with 'user'."""
    merged: List[Dict[str, Any]] = []
    for message in messages:
        if merged and merged[-1]['role'] == message['role']:
            merged[-1]['content'][0]['text'] += '\n' + message['content'][0]['text']
        else:
            merged.append({'role': message['role'], 'content': [{'text': message['content'][0]['text']}]})
    while merged and merged[0]['role'] != 'user':
        merged.pop(0)
    return merged


class BedrockSource(GenerationSource):
    """Chat model on Amazon Bedrock, called once per request without retries."""

    name = 'bedrock'

    def __init__(self, llm: BedrockLLM, max_tokens: int = 300):
        self.llm = llm
        self.max_tokens = max_tokens

    def build_messages(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        messages = []
        for entry in request.recent_pairs():
            if entry.user_text.strip():
                messages.append(text_message('user', entry.user_text))
            if entry.ai_text.strip():
                messages.append(text_message('assistant', entry.ai_text))
        messages.append(text_message('user', request.message))
        return _alternate(messages)

    def generate(self, request: GenerationRequest) -> str:
        try:
            text = self.llm.converse(messages=self.build_messages(request),
                                     system_prompt=request.system_prompt,
                                     max_tokens=self.max_tokens,
                                     attempts=1)
        except BedrockLLMError as e:
            raise SourceError(f'{self.name}: {e}')
        return text


class LongFormGenerator(ABC):
    """Capability interface for a single-prompt, long-output generator."""

    name: str = 'long-form'

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return free text for the prompt.

        Raises:
            SourceError: On any failure
        """


BIOGRAPHER_SYSTEM_PROMPT = """You are a warm, careful biographer. You write life stories from recorded conversations.
Only use facts the person actually shared. Do not invent names, dates or places.
Answer with a single JSON object and nothing else."""


class BedrockLongFormGenerator(LongFormGenerator):
    """Biography writer on Amazon Bedrock, prefilled to answer inside a JSON code block."""

    name = 'bedrock'

    def __init__(self, llm: BedrockLLM):
        self.llm = llm

    def generate(self, prompt: str) -> str:
        messages = [text_message('user', prompt), text_message('assistant', '```json')]
        try:
            text = self.llm.converse(messages=messages, system_prompt=BIOGRAPHER_SYSTEM_PROMPT, stop_sequences=['```'])
        except BedrockLLMError as e:
            raise SourceError(f'{self.name}: {e}')
        return text


class HuggingFaceLongFormGenerator(LongFormGenerator):
    """Text-generation model on the Hugging Face Inference API."""

    def __init__(self, client: HuggingFaceClient, max_new_tokens: int = 1024):
        self.client = client
        self.max_new_tokens = max_new_tokens
        self.name = f'huggingface:{client.model_name}'

    def generate(self, prompt: str) -> str:
        parameters = dict(self.client.parameters(), max_new_tokens=self.max_new_tokens)
        try:
            result = self.client.infer({'inputs': prompt, 'parameters': parameters})
        except HuggingFaceError as e:
            raise SourceError(f'{self.name}: {e}')

        text = extract_text(result)
        if text is None:
            raise SourceError(f'{self.name}: unrecognized response shape {type(result).__name__}')
        return text


def build_sources(conversation: ConversationConfig,
                  huggingface: HuggingFaceConfig,
                  bedrock: BedrockLLMConfig) -> List[GenerationSource]:
    """Instantiate chat sources in the configured priority order.

    Entries look like 'huggingface:<model>' (or 'hf:<model>'), 'bedrock' or 'bedrock:<model id>'.
    Unknown or unconstructible entries are logged and skipped.
    """
    sources: List[GenerationSource] = []
    for entry in conversation.sources:
        kind, _, target = entry.partition(':')
        kind = kind.strip().lower()
        target = target.strip()
        try:
            if kind in ('huggingface', 'hf') and target:
                sources.append(HuggingFaceSource(HuggingFaceClient(huggingface, target)))
            elif kind == 'bedrock':
                llm_config = dataclasses.replace(bedrock, model_id=target) if target else bedrock
                sources.append(BedrockSource(BedrockLLM(llm_config)))
            else:
                logger.warning(f'Skipping unknown conversation source: {entry}')
        except Exception as e:
            logger.error(f'Failed to initialize conversation source {entry}: {e}')

    logger.info(f"Configured conversation sources: {', '.join(s.name for s in sources) or 'none'}")
    return sources


def build_long_form_generator(biography: BiographyConfig,
                              huggingface: HuggingFaceConfig,
                              bedrock: BedrockLLMConfig) -> Optional[LongFormGenerator]:
    """Instantiate the biography generator selected by configuration, or None."""
    try:
        if biography.generator == 'bedrock':
            return BedrockLongFormGenerator(BedrockLLM(bedrock))
        if biography.generator in ('huggingface', 'hf'):
            return HuggingFaceLongFormGenerator(HuggingFaceClient(huggingface, huggingface.biography_model))
    except Exception as e:
        logger.error(f'Failed to initialize biography generator {biography.generator}: {e}')
        return None

    if biography.generator not in ('none', ''):
        logger.warning(f'Unknown biography generator: {biography.generator}')
    return None
