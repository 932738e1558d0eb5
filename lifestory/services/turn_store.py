"""
Append-only storage for conversation turns and saved notes.
"""

import dataclasses
import threading
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.core import Note, Turn
from ..utils.config import AppConfig
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient, OpenSearchError
from ..utils.timestamp_utils import sort_key

logger = get_logger(__name__)


class StorageError(Exception):
    """Custom exception for turn store failures."""
    pass


class TurnStore(ABC):
    """Durable store of turns and notes keyed by person and session."""

    @abstractmethod
    def append(self, turn: Turn) -> Turn:
        """Persist a turn and return the stored copy carrying its id."""

    @abstractmethod
    def query(self,
              person_id: Optional[str] = None,
              session_id: Optional[str] = None,
              limit: int = 100,
              ascending: bool = False) -> List[Turn]:
        """Turns matching every given filter, ordered by timestamp."""

    @abstractmethod
    def append_note(self, note: Note) -> Note:
        """Persist a note and return the stored copy carrying its id."""

    @abstractmethod
    def query_notes(self, person_id: Optional[str] = None, limit: int = 1000, ascending: bool = True) -> List[Note]:
        """Notes for a person (or everyone), ordered by timestamp."""

    @abstractmethod
    def list_people(self) -> List[str]:
        """Distinct non-blank person ids across turns and notes, sorted."""

    @abstractmethod
    def search(self, text: str, person_id: Optional[str] = None, limit: int = 50) -> List[Turn]:
        """Turns whose message or reply contains the text, newest first."""


class InMemoryTurnStore(TurnStore):
    """Process-local store; suitable for development and tests."""

    def __init__(self):
        self._turns: List[Turn] = []
        self._notes: List[Note] = []
        self._lock = threading.Lock()

    def append(self, turn: Turn) -> Turn:
        stored = dataclasses.replace(turn, id=uuid.uuid4().hex)
        with self._lock:
            self._turns.append(stored)
        return stored

    def query(self,
              person_id: Optional[str] = None,
              session_id: Optional[str] = None,
              limit: int = 100,
              ascending: bool = False) -> List[Turn]:
        with self._lock:
            turns = [
                turn for turn in self._turns
                if (person_id is None or turn.person_id == person_id) and (session_id is None or turn.session_id == session_id)
            ]
        turns.sort(key=lambda turn: sort_key(turn.timestamp), reverse=not ascending)
        return turns[:max(0, limit)]

    def append_note(self, note: Note) -> Note:
        stored = dataclasses.replace(note, id=uuid.uuid4().hex)
        with self._lock:
            self._notes.append(stored)
        return stored

    def query_notes(self, person_id: Optional[str] = None, limit: int = 1000, ascending: bool = True) -> List[Note]:
        with self._lock:
            notes = [note for note in self._notes if person_id is None or note.person_id == person_id]
        notes.sort(key=lambda note: sort_key(note.timestamp), reverse=not ascending)
        return notes[:max(0, limit)]

    def list_people(self) -> List[str]:
        with self._lock:
            people = {turn.person_id for turn in self._turns} | {note.person_id for note in self._notes}
        return sorted(person for person in people if person and person.strip())

    def search(self, text: str, person_id: Optional[str] = None, limit: int = 50) -> List[Turn]:
        needle = text.lower()
        matches = [
            turn for turn in self.query(person_id=person_id, limit=len(self._turns))
            if needle in turn.user_message.lower() or needle in turn.ai_response.lower()
        ]
        return matches[:max(0, limit)]


class OpenSearchTurnStore(TurnStore):
    """Store backed by two OpenSearch indices, one for turns and one for notes."""

    def __init__(self, client: OpenSearchClient):
        self.client = client
        try:
            self.client.create_index_if_not_exists(index_type='turn')
            self.client.create_index_if_not_exists(index_type='note')
        except OpenSearchError as e:
            logger.warning(f'Failed to create OpenSearch indexes: {e}')

        logger.info('Initialized OpenSearchTurnStore')

    def append(self, turn: Turn) -> Turn:
        document = turn.to_dict()
        document.pop('id')
        try:
            doc_id = self.client.index_document(document, index_type='turn')
        except OpenSearchError as e:
            raise StorageError(f'Failed to store turn: {e}')
        return dataclasses.replace(turn, id=doc_id)

    def query(self,
              person_id: Optional[str] = None,
              session_id: Optional[str] = None,
              limit: int = 100,
              ascending: bool = False) -> List[Turn]:
        filters = {}
        if person_id is not None:
            filters['person_id'] = person_id
        if session_id is not None:
            filters['session_id'] = session_id
        try:
            hits = self.client.filtered_search(filters, size=limit, ascending=ascending, index_type='turn')
        except OpenSearchError as e:
            raise StorageError(f'Failed to query turns: {e}')
        return [Turn.from_dict(hit['document'], doc_id=hit['id']) for hit in hits]

    def append_note(self, note: Note) -> Note:
        document = note.to_dict()
        document.pop('id')
        try:
            doc_id = self.client.index_document(document, index_type='note')
        except OpenSearchError as e:
            raise StorageError(f'Failed to store note: {e}')
        return dataclasses.replace(note, id=doc_id)

    def query_notes(self, person_id: Optional[str] = None, limit: int = 1000, ascending: bool = True) -> List[Note]:
        filters = {'person_id': person_id} if person_id is not None else {}
        try:
            hits = self.client.filtered_search(filters, size=limit, ascending=ascending, index_type='note')
        except OpenSearchError as e:
            raise StorageError(f'Failed to query notes: {e}')
        return [Note.from_dict(hit['document'], doc_id=hit['id']) for hit in hits]

    def list_people(self) -> List[str]:
        try:
            people = set(self.client.distinct_values('person_id', index_type='turn'))
            people |= set(self.client.distinct_values('person_id', index_type='note'))
        except OpenSearchError as e:
            raise StorageError(f'Failed to list people: {e}')
        return sorted(person for person in people if person and person.strip())

    def search(self, text: str, person_id: Optional[str] = None, limit: int = 50) -> List[Turn]:
        filters = {'person_id': person_id} if person_id is not None else {}
        try:
            hits = self.client.filtered_search(filters,
                                               size=limit,
                                               ascending=False,
                                               index_type='turn',
                                               text_query=text,
                                               text_fields=['user_message', 'ai_response'])
        except OpenSearchError as e:
            raise StorageError(f'Failed to search turns: {e}')
        return [Turn.from_dict(hit['document'], doc_id=hit['id']) for hit in hits]


def create_turn_store(app_config: AppConfig) -> TurnStore:
    """Build the store selected by STORAGE_BACKEND."""
    backend = app_config.storage.backend
    if backend == 'opensearch':
        return OpenSearchTurnStore(OpenSearchClient(app_config.opensearch))
    if backend != 'memory':
        logger.warning(f'Unknown storage backend {backend}, using in-memory store')
    return InMemoryTurnStore()
