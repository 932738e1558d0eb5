"""
Core data models for the storytelling conversation and biography system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..exceptions import InvalidInputError
from ..utils.timestamp_utils import now_iso

UNASSIGNED_PERSON_ID = 'unassigned'
MAX_NOTE_CHARS = 10000
MAX_LANGUAGE_CHARS = 50


def normalize_person_id(person_id: Optional[str]) -> str:
    """Collapse absent, blank and 'default' person ids to the unassigned sentinel."""
    if person_id is None or not isinstance(person_id, str):
        return UNASSIGNED_PERSON_ID
    cleaned = person_id.strip()
    if not cleaned or cleaned.lower() == 'default':
        return UNASSIGNED_PERSON_ID
    return cleaned


class TopicTag(Enum):
    """Coarse life-story topics. Declaration order is the follow-up priority order."""
    CHILDHOOD = 'Childhood'
    FAMILY = 'Family'
    MARRIAGE = 'Marriage'
    WORK = 'Work'
    TRAVEL = 'Travel'
    EDUCATION = 'Education'
    FRIENDSHIP = 'Friendship'


@dataclass(frozen=True)
class HistoryEntry:
    """One prior exchange supplied by the caller alongside a new message."""
    user_text: str
    ai_text: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        """Build from a caller dict using either 'user'/'ai' or 'userText'/'aiText' keys."""
        user_text = data.get('user', data.get('userText', data.get('user_text', ''))) or ''
        ai_text = data.get('ai', data.get('aiText', data.get('ai_text', ''))) or ''
        return cls(user_text=str(user_text), ai_text=str(ai_text))

    def to_dict(self) -> Dict[str, str]:
        return {'user': self.user_text, 'ai': self.ai_text}


def coerce_history(history: Optional[Iterable[Any]]) -> Tuple[HistoryEntry, ...]:
    """Accept HistoryEntry objects or caller dicts; silently drop anything else."""
    if not history:
        return ()
    entries = []
    for item in history:
        if isinstance(item, HistoryEntry):
            entries.append(item)
        elif isinstance(item, dict):
            entries.append(HistoryEntry.from_dict(item))
    return tuple(entries)


@dataclass(frozen=True)
class Turn:
    """One user message and the reply given to it, persisted together."""
    person_id: str
    session_id: str
    user_message: str
    ai_response: str
    language: str
    timestamp: str
    history_snapshot: Tuple[HistoryEntry, ...] = ()
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'person_id': self.person_id,
            'session_id': self.session_id,
            'user_message': self.user_message,
            'ai_response': self.ai_response,
            'language': self.language,
            'timestamp': self.timestamp,
            'history_snapshot': [entry.to_dict() for entry in self.history_snapshot],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> 'Turn':
        return cls(person_id=data.get('person_id') or UNASSIGNED_PERSON_ID,
                   session_id=data.get('session_id', ''),
                   user_message=data.get('user_message', ''),
                   ai_response=data.get('ai_response', ''),
                   language=data.get('language', ''),
                   timestamp=data.get('timestamp', ''),
                   history_snapshot=coerce_history(data.get('history_snapshot')),
                   id=doc_id or data.get('id'))


@dataclass(frozen=True)
class Note:
    """A standalone saved memory, independent of any conversation turn."""
    person_id: str
    text: str
    language: str
    timestamp: str
    id: Optional[str] = None

    @classmethod
    def create(cls,
               text: Optional[str],
               language: Optional[str],
               person_id: Optional[str] = None,
               timestamp: Optional[str] = None) -> 'Note':
        """Validate and bound user input into a Note.

        Raises:
            InvalidInputError: If text or language is missing or blank
        """
        if not text or not isinstance(text, str) or not text.strip():
            raise InvalidInputError('Missing or invalid "text" field')
        if not language or not isinstance(language, str) or not language.strip():
            raise InvalidInputError('Missing or invalid "language" field')

        return cls(person_id=normalize_person_id(person_id),
                   text=text.strip()[:MAX_NOTE_CHARS],
                   language=language.strip()[:MAX_LANGUAGE_CHARS],
                   timestamp=timestamp or now_iso())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'person_id': self.person_id,
            'text': self.text,
            'language': self.language,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> 'Note':
        return cls(person_id=data.get('person_id') or UNASSIGNED_PERSON_ID,
                   text=data.get('text', ''),
                   language=data.get('language', ''),
                   timestamp=data.get('timestamp', ''),
                   id=doc_id or data.get('id'))


@dataclass(frozen=True)
class StoryEntry:
    """A turn or note flattened into the chronological corpus used for biographies."""
    timestamp: str
    text: str
    kind: str  # 'turn' or 'note'
    language: str
    ai_text: str = ''


@dataclass(frozen=True)
class LifeEvent:
    """A sentence describing a milestone, with the year it is attributed to."""
    text: str
    year: Optional[int]
    timestamp: str

    def display(self) -> str:
        return f'({self.year}) {self.text}' if self.year else self.text


@dataclass
class ChatReply:
    """Result of one conversational turn."""
    reply: str
    session_id: str
    timestamp: str
    source: str
    persisted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reply': self.reply,
            'sessionId': self.session_id,
            'timestamp': self.timestamp,
            'source': self.source,
            'persisted': self.persisted,
        }


BIOGRAPHY_SECTIONS = ('introduction', 'early_life', 'personality', 'life_journey', 'relationships', 'values', 'stories',
                      'themes', 'conclusion')


def camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


@dataclass
class BiographyDocument:
    """Structured long-form biography assembled from a person's history."""
    title: str
    summary: str
    sections: Dict[str, str]
    topics: List[str] = field(default_factory=list)
    personality_traits: List[str] = field(default_factory=list)
    life_events: List[str] = field(default_factory=list)
    relationships: List[str] = field(default_factory=list)
    values: List[str] = field(default_factory=list)
    stories: List[str] = field(default_factory=list)
    source: str = 'deterministic'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'summary': self.summary,
            'sections': {camel_case(name): self.sections.get(name, '') for name in BIOGRAPHY_SECTIONS},
            'topics': list(self.topics),
            'personalityTraits': list(self.personality_traits),
            'lifeEvents': list(self.life_events),
            'relationships': list(self.relationships),
            'values': list(self.values),
            'stories': list(self.stories),
            'source': self.source,
        }


@dataclass
class BiographyReport:
    """A biography plus summary statistics about the history it was built from."""
    person_id: str
    biography: BiographyDocument
    stats: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {'personId': self.person_id, 'biography': self.biography.to_dict(), 'stats': self.stats}


@dataclass
class PersonData:
    """Everything stored for one person, or for everyone when person_id is None."""
    person_id: Optional[str]
    turns: List[Turn] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    people: List[str] = field(default_factory=list)

    @property
    def total_turns(self) -> int:
        return len(self.turns)

    @property
    def total_notes(self) -> int:
        return len(self.notes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'personId': self.person_id,
            'conversations': [turn.to_dict() for turn in self.turns],
            'memories': [note.to_dict() for note in self.notes],
            'people': list(self.people),
            'totalConversations': self.total_turns,
            'totalMemories': self.total_notes,
        }
