"""
Multi-source reply orchestration for storytelling conversations.
"""

import uuid
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..exceptions import InvalidInputError
from ..models.core import ChatReply, Turn, coerce_history, normalize_person_id
from ..models.vocabulary import default_system_prompts, language_key
from ..utils.config import ConversationConfig
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import now_iso
from .fallback_questions import FallbackQuestionSynthesizer
from .generation_sources import GenerationRequest, GenerationSource, SourceError, SourceUnavailableError
from .response_enhancer import ResponseEnhancer
from .turn_store import TurnStore

logger = get_logger(__name__)

FALLBACK_SOURCE = 'fallback'


def new_session_id() -> str:
    return f'session_{uuid.uuid4().hex}'


class ResponseOrchestrator:
    """Try each generation source in priority order, filter the result, fall back to a canned question."""

    def __init__(self,
                 sources: Sequence[GenerationSource],
                 store: TurnStore,
                 conversation_config: Optional[ConversationConfig] = None,
                 enhancer: Optional[ResponseEnhancer] = None,
                 fallback: Optional[FallbackQuestionSynthesizer] = None,
                 system_prompts: Optional[Mapping[str, str]] = None):
        """
        Initialize the orchestrator.

        Args:
            sources: Generation sources, cheapest acceptable first
            store: Turn store that receives every completed turn
            conversation_config: Window sizes and default language
            enhancer: Candidate filter
            fallback: Deterministic question synthesizer
            system_prompts: Per-language system prompt for sources that accept one
        """
        self.sources = list(sources)
        self.store = store
        self.config = conversation_config or ConversationConfig()
        self.enhancer = enhancer or ResponseEnhancer()
        self.fallback = fallback or FallbackQuestionSynthesizer(history_window=self.config.fallback_history_window)
        self.system_prompts = system_prompts or default_system_prompts()

        logger.info(f'Initialized ResponseOrchestrator with {len(self.sources)} sources')

    def respond(self,
                message: Any,
                language: Optional[str] = None,
                session_id: Optional[str] = None,
                history: Optional[Iterable[Any]] = None,
                person_id: Optional[str] = None) -> ChatReply:
        """Produce a reply for the message and record the turn.

        Args:
            message: The user's new message
            language: Language tag, defaults to the configured language
            session_id: Caller's session id; a new one is created when absent
            history: Prior exchanges (HistoryEntry or {'user', 'ai'} dicts), oldest first
            person_id: Person the conversation belongs to

        Returns:
            ChatReply with a non-empty reply and the resolved session id

        Raises:
            InvalidInputError: If the message is missing or blank
        """
        if not isinstance(message, str) or not message.strip():
            raise InvalidInputError('Missing message')

        language = language if isinstance(language, str) and language.strip() else self.config.default_language
        session = session_id if isinstance(session_id, str) and session_id.strip() else new_session_id()
        full_history = coerce_history(history)
        window = full_history[-self.config.history_window:] if self.config.history_window > 0 else ()

        request = GenerationRequest(message=message,
                                    language=language,
                                    history=window,
                                    system_prompt=self.system_prompts.get(language_key(language), ''),
                                    max_pairs=self.config.source_history_pairs)

        reply, source_name = self._generate(request)
        if reply is None:
            logger.info('All conversation sources failed or were rejected, using fallback question')
            reply = self.fallback.synthesize(message, language, window)
            source_name = FALLBACK_SOURCE

        timestamp = now_iso()
        turn = Turn(person_id=normalize_person_id(person_id),
                    session_id=session,
                    user_message=message,
                    ai_response=reply,
                    language=language,
                    timestamp=timestamp,
                    history_snapshot=full_history)

        return ChatReply(reply=reply,
                         session_id=session,
                         timestamp=timestamp,
                         source=source_name,
                         persisted=self._persist(turn))

    def _generate(self, request: GenerationRequest):
        """Return (reply, source name) from the first source whose output is accepted, else (None, None)."""
        for source in self.sources:
            try:
                raw = source.generate(request)
            except SourceUnavailableError as e:
                logger.info(f'Source {source.name} unavailable, trying next: {e}')
                continue
            except SourceError as e:
                logger.warning(f'Source {source.name} failed, trying next: {e}')
                continue
            except Exception as e:
                logger.warning(f'Unexpected error from source {source.name}, trying next: {e}')
                continue

            reply = self.enhancer.enhance(raw, request.language)
            if reply is not None:
                logger.debug(f'Accepted reply from {source.name}')
                return reply, source.name
            logger.debug(f'Rejected reply from {source.name}')

        return None, None

    def _persist(self, turn: Turn) -> bool:
        try:
            self.store.append(turn)
            return True
        except Exception as e:
            logger.error(f'Failed to save conversation turn for person {turn.person_id} '
                         f'in session {turn.session_id}: {e}')
            return False
