"""
Memory Service for saved notes, conversation history and biography reports.
"""

from typing import Any, Dict, List, Optional

from ..exceptions import InvalidInputError
from ..models.core import BiographyReport, Note, PersonData, Turn, normalize_person_id
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import sort_key
from .biography_synthesis import BiographySynthesizer
from .turn_store import StorageError, TurnStore

logger = get_logger(__name__)

MIN_CONVERSATION_LIMIT = 1
MAX_CONVERSATION_LIMIT = 1000
MAX_SEARCH_RESULTS = 50
MAX_HISTORY_FOR_ANALYSIS = 1000
MAX_EXPORT_RECORDS = 10000


class MemoryServiceError(Exception):
    """Custom exception for memory service errors."""
    pass


class MemoryService:
    """Caller-facing operations over the turn store and the biography synthesizer."""

    def __init__(self, store: TurnStore, synthesizer: Optional[BiographySynthesizer] = None):
        self.store = store
        self.synthesizer = synthesizer or BiographySynthesizer()

        logger.info('Initialized MemoryService')

    def save_note(self, text: Any, language: Any, person_id: Optional[str] = None) -> Note:
        """Validate and store a standalone memory.

        Args:
            text: Memory text, truncated to 10,000 characters
            language: Language tag, truncated to 50 characters
            person_id: Owner of the memory; blank or 'default' becomes 'unassigned'

        Returns:
            The stored note with its id

        Raises:
            InvalidInputError: If text or language is missing
            MemoryServiceError: If the note cannot be stored
        """
        note = Note.create(text, language, person_id=person_id)
        try:
            stored = self.store.append_note(note)
        except StorageError as e:
            logger.error(f'Failed to save note for person {note.person_id}: {e}')
            raise MemoryServiceError(f'Saving memory failed: {e}')

        logger.debug(f'Saved note {stored.id} for person {stored.person_id}')
        return stored

    def get_conversations(self,
                          session_id: Optional[str] = None,
                          person_id: Optional[str] = None,
                          limit: int = 100) -> List[Turn]:
        """Return stored turns, newest first, optionally filtered by session and person."""
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = 100
        limit = max(MIN_CONVERSATION_LIMIT, min(limit, MAX_CONVERSATION_LIMIT))

        session_id = session_id.strip() if isinstance(session_id, str) and session_id.strip() else None
        person_id = normalize_person_id(person_id) if isinstance(person_id, str) and person_id.strip() else None

        try:
            return self.store.query(person_id=person_id, session_id=session_id, limit=limit, ascending=False)
        except StorageError as e:
            logger.error(f'Failed to load conversations: {e}')
            raise MemoryServiceError(f'Loading conversations failed: {e}')

    def get_people(self) -> List[str]:
        try:
            return self.store.list_people()
        except StorageError as e:
            logger.error(f'Failed to list people: {e}')
            raise MemoryServiceError(f'Listing people failed: {e}')

    def get_person_data(self, person_id: Optional[str] = None) -> PersonData:
        """Export stored turns and saved notes, oldest first, with the list of known people.

        Args:
            person_id: Only this person's records; everyone's when blank or None

        Returns:
            PersonData with turns, notes, people and their totals

        Raises:
            MemoryServiceError: If the store cannot be read
        """
        person_id = normalize_person_id(person_id) if isinstance(person_id, str) and person_id.strip() else None

        try:
            turns = self.store.query(person_id=person_id, limit=MAX_EXPORT_RECORDS, ascending=True)
            notes = self.store.query_notes(person_id=person_id, limit=MAX_EXPORT_RECORDS, ascending=True)
            people = self.store.list_people()
        except StorageError as e:
            logger.error(f'Failed to export data for person {person_id or "(all)"}: {e}')
            raise MemoryServiceError(f'Exporting data failed: {e}')

        logger.debug(f'Exported {len(turns)} turns and {len(notes)} notes for person {person_id or "(all)"}')
        return PersonData(person_id=person_id, turns=turns, notes=notes, people=people)

    def search_conversations(self, query: Any, person_id: Optional[str] = None) -> List[Turn]:
        """Case-insensitive search over stored messages and replies.

        Raises:
            InvalidInputError: If the query is blank
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidInputError('Missing search query')

        person_id = normalize_person_id(person_id) if isinstance(person_id, str) and person_id.strip() else None
        try:
            return self.store.search(query.strip(), person_id=person_id, limit=MAX_SEARCH_RESULTS)
        except StorageError as e:
            logger.error(f'Failed to search conversations: {e}')
            raise MemoryServiceError(f'Searching conversations failed: {e}')

    def analyze_person(self, person_id: Any) -> BiographyReport:
        """Build a biography and history statistics for one person.

        Args:
            person_id: Person whose turns and notes are analyzed

        Returns:
            BiographyReport with the biography and stats

        Raises:
            InvalidInputError: If the person id is blank
            NotFoundError: If the person has no turns and no notes
            MemoryServiceError: If the history cannot be loaded
        """
        if not isinstance(person_id, str) or not person_id.strip():
            raise InvalidInputError('Missing person id')
        person_id = normalize_person_id(person_id)

        try:
            turns = self.store.query(person_id=person_id, limit=MAX_HISTORY_FOR_ANALYSIS, ascending=True)
            notes = self.store.query_notes(person_id=person_id, limit=MAX_HISTORY_FOR_ANALYSIS, ascending=True)
        except StorageError as e:
            logger.error(f'Failed to load history for person {person_id}: {e}')
            raise MemoryServiceError(f'Loading history failed: {e}')

        biography = self.synthesizer.synthesize(person_id, turns, notes)
        logger.info(f'Generated {biography.source} biography for person {person_id} '
                    f'from {len(turns)} turns and {len(notes)} notes')

        return BiographyReport(person_id=person_id, biography=biography, stats=self.history_stats(turns, notes))

    @staticmethod
    def history_stats(turns: List[Turn], notes: List[Note]) -> Dict[str, Any]:
        timestamps = sorted((item.timestamp for item in list(turns) + list(notes) if item.timestamp), key=sort_key)
        return {
            'total_turns': len(turns),
            'total_notes': len(notes),
            'total_messages': len(turns) * 2 + len(notes),
            'date_range': {
                'first': timestamps[0] if timestamps else None,
                'last': timestamps[-1] if timestamps else None,
            },
        }
