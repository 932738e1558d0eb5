"""
Biography synthesis from a person's conversation turns and saved notes.

A configured long-form generator is asked for a structured JSON biography first. When it
is missing, fails, or answers with anything other than a well-formed document, the
biography is assembled from keyword extraction and narrative templates instead.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import NotFoundError
from ..models.core import (BIOGRAPHY_SECTIONS, UNASSIGNED_PERSON_ID, BiographyDocument, LifeEvent, Note, StoryEntry,
                           TopicTag, Turn, camel_case)
from ..models.vocabulary import (BiographyVocabulary, QuestionBank, default_biography_vocabulary, default_question_bank,
                                 term_pattern)
from ..utils.config import BiographyConfig
from ..utils.json_utils import extract_json_object
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import parse_timestamp, sort_key, year_of
from .generation_sources import LongFormGenerator
from .topic_classifier import TopicClassifier

logger = get_logger(__name__)

_SENTENCE_SPLIT = re.compile(r'[.!?。！？۔؟\n]+')
_YEAR = re.compile(r'(?<!\d)(1[89]\d{2}|20\d{2})(?!\d)')
UNNAMED_STORYTELLER = 'an unnamed storyteller'
_LIST_FIELDS = {
    'topics': 'topics',
    'personality_traits': 'personalityTraits',
    'life_events': 'lifeEvents',
    'relationships': 'relationships',
    'values': 'values',
    'stories': 'stories',
}


@dataclass
class BiographyFacts:
    """Everything the deterministic extraction pulls out of a corpus."""
    name: Optional[str] = None
    topics: List[TopicTag] = field(default_factory=list)
    life_events: List[LifeEvent] = field(default_factory=list)
    relationships: List[str] = field(default_factory=list)
    personality_traits: List[str] = field(default_factory=list)
    values: List[str] = field(default_factory=list)
    stories: List[str] = field(default_factory=list)
    early_life: List[str] = field(default_factory=list)

    def lists(self) -> Dict[str, List[str]]:
        return {
            'topics': [topic.value for topic in self.topics],
            'personality_traits': list(self.personality_traits),
            'life_events': [event.display() for event in self.life_events],
            'relationships': list(self.relationships),
            'values': list(self.values),
            'stories': list(self.stories),
        }


def _join(items: Sequence[str]) -> str:
    items = [item for item in items if item]
    if not items:
        return ''
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _plural(count: int, singular: str, plural: str) -> str:
    return f'{count} {singular if count == 1 else plural}'


def _date_part(timestamp: str) -> Optional[str]:
    parsed = parse_timestamp(timestamp)
    return parsed.date().isoformat() if parsed else None


class BiographySynthesizer:
    """Turn a person's history into a structured narrative biography."""

    def __init__(self,
                 generator: Optional[LongFormGenerator] = None,
                 biography_config: Optional[BiographyConfig] = None,
                 classifier: Optional[TopicClassifier] = None,
                 vocabulary: Optional[BiographyVocabulary] = None,
                 questions: Optional[QuestionBank] = None):
        self.generator = generator
        self.config = biography_config or BiographyConfig()
        self.classifier = classifier or TopicClassifier()
        self.vocabulary = vocabulary or default_biography_vocabulary()
        self.questions = questions or default_question_bank()
        self._event_patterns = [term_pattern(keyword) for keyword in self.vocabulary.event_keywords]

        logger.info(f"Initialized BiographySynthesizer (generator: {generator.name if generator else 'none'})")

    def synthesize(self, person_id: str, turns: Sequence[Turn], notes: Sequence[Note]) -> BiographyDocument:
        """Build a biography for one person.

        Args:
            person_id: Person the history belongs to
            turns: Conversation turns in any order
            notes: Saved notes in any order

        Returns:
            A complete BiographyDocument

        Raises:
            NotFoundError: If there are no turns and no notes
        """
        entries = self.merge_entries(turns, notes)
        if not entries:
            raise NotFoundError(f'No conversations or notes found for person {person_id}')

        facts = self.extract(entries)

        if self.generator is not None:
            document = self._from_generator(person_id, entries, facts)
            if document is not None:
                return document

        return self.assemble(person_id, entries, facts)

    @staticmethod
    def merge_entries(turns: Sequence[Turn], notes: Sequence[Note]) -> List[StoryEntry]:
        """Flatten turns and notes into one list sorted by timestamp (stable for ties)."""
        entries = [
            StoryEntry(timestamp=turn.timestamp,
                       text=turn.user_message or '',
                       kind='turn',
                       language=turn.language or '',
                       ai_text=turn.ai_response or '') for turn in turns or ()
        ]
        entries += [
            StoryEntry(timestamp=note.timestamp, text=note.text or '', kind='note', language=note.language or '')
            for note in notes or ()
        ]
        return sorted(entries, key=lambda entry: sort_key(entry.timestamp))

    # ------------------------------------------------------------------
    # External generator
    # ------------------------------------------------------------------

    def build_prompt(self, person_id: str, entries: Sequence[StoryEntry]) -> str:
        lines = []
        for entry in entries:
            date = _date_part(entry.timestamp) or 'undated'
            label = 'Saved memory' if entry.kind == 'note' else 'Person'
            lines.append(f'[{date}] {label}: {entry.text}')
            if entry.ai_text:
                lines.append(f'[{date}] Interviewer: {entry.ai_text}')
        transcript = '\n'.join(lines)
        limit = self.config.max_prompt_chars
        if len(transcript) > limit:
            transcript = transcript[:limit] + ' ... (truncated)'

        return f"""Write a biography of the person identified as "{person_id}" from the conversations and saved memories below.
Cover who they are, their early life, personality, life journey in chronological order, relationships,
values, memorable stories and recurring themes.

Return a JSON object with exactly this structure:
{{
  "title": "Title of the biography",
  "summary": "Two or three sentence overview",
  "sections": {{
    "introduction": "...",
    "earlyLife": "...",
    "personality": "...",
    "lifeJourney": "...",
    "relationships": "...",
    "values": "...",
    "stories": "...",
    "themes": "...",
    "conclusion": "..."
  }},
  "topics": ["topic"],
  "personalityTraits": ["trait"],
  "lifeEvents": ["event"],
  "relationships": ["relationship"],
  "values": ["value"],
  "stories": ["story"]
}}

Conversations and memories (oldest first):
{transcript}"""

    def _from_generator(self, person_id: str, entries: Sequence[StoryEntry], facts: BiographyFacts) -> Optional[BiographyDocument]:
        try:
            response = self.generator.generate(self.build_prompt(person_id, entries))
        except Exception as e:
            logger.warning(f'Biography generator {self.generator.name} failed, assembling deterministically: {e}')
            return None

        document = self.parse_generated(response, facts)
        if document is None:
            logger.info(f'Biography generator {self.generator.name} returned malformed output, assembling deterministically')
        return document

    @staticmethod
    def parse_generated(response: Any, facts: BiographyFacts) -> Optional[BiographyDocument]:
        """Validate generator output; missing list fields are filled from the extracted facts."""
        if not isinstance(response, str):
            return None
        data = extract_json_object(response)
        if data is None:
            return None

        title = data.get('title')
        sections = data.get('sections')
        if not isinstance(title, str) or not title.strip() or not isinstance(sections, dict):
            return None

        parsed_sections = {}
        for name in BIOGRAPHY_SECTIONS:
            camel = camel_case(name)
            value = sections.get(camel, sections.get(name))
            if not isinstance(value, str) or not value.strip():
                return None
            parsed_sections[name] = value.strip()

        fallback_lists = facts.lists()
        lists = {}
        for name, key in _LIST_FIELDS.items():
            value = data.get(key, data.get(name))
            if isinstance(value, list):
                lists[name] = [str(item).strip() for item in value if str(item).strip()]
            else:
                lists[name] = fallback_lists[name]

        summary = data.get('summary')
        if not isinstance(summary, str) or not summary.strip():
            summary = parsed_sections['introduction']

        return BiographyDocument(title=title.strip(), summary=summary.strip(), sections=parsed_sections, source='generator', **lists)

    # ------------------------------------------------------------------
    # Deterministic extraction
    # ------------------------------------------------------------------

    def extract(self, entries: Sequence[StoryEntry]) -> BiographyFacts:
        """Run topic, event, relationship, personality, value and story extraction over the person's words."""
        full_text = '\n'.join(entry.text for entry in entries if entry.text)
        lowered = full_text.lower()
        languages = {entry.language for entry in entries if entry.language}

        facts = BiographyFacts()
        facts.name = self._find_name(entries)
        facts.topics = self.classifier.order(self.classifier.classify_all(full_text, languages))
        facts.life_events = self._life_events(entries)
        facts.relationships = self._present(self.vocabulary.relationships, lowered)
        facts.personality_traits = self._present(self.vocabulary.personality, lowered)
        facts.values = self._present(self.vocabulary.values, lowered)
        facts.stories = self._stories(entries)
        facts.early_life = self._early_life(entries)
        return facts

    def _find_name(self, entries: Sequence[StoryEntry]) -> Optional[str]:
        for entry in entries:
            if entry.kind != 'turn':
                continue
            name = self.questions.extract_name(entry.text, entry.language, explicit_only=True)
            if name:
                return name
        return None

    @staticmethod
    def _sentences(text: str) -> List[str]:
        return [sentence.strip() for sentence in _SENTENCE_SPLIT.split(text or '') if len(sentence.strip()) >= 3]

    def _life_events(self, entries: Sequence[StoryEntry]) -> List[LifeEvent]:
        events: List[LifeEvent] = []
        seen = set()
        for entry in entries:
            for sentence in self._sentences(entry.text):
                lowered = sentence.lower()
                if lowered in seen or not any(pattern.search(lowered) for pattern in self._event_patterns):
                    continue
                seen.add(lowered)
                mentioned = _YEAR.search(sentence)
                year = int(mentioned.group(1)) if mentioned else year_of(entry.timestamp)
                events.append(LifeEvent(text=sentence, year=year, timestamp=entry.timestamp))
                if len(events) >= self.config.max_life_events:
                    return events
        return events

    @staticmethod
    def _present(vocabulary: Tuple[Tuple[str, Tuple[str, ...]], ...], lowered: str) -> List[str]:
        return [label for label, terms in vocabulary if any(term_pattern(term).search(lowered) for term in terms)]

    def _stories(self, entries: Sequence[StoryEntry]) -> List[str]:
        stories = []
        for entry in entries:
            text = entry.text.strip()
            if len(text) <= self.config.story_min_chars:
                continue
            if len(text) > self.config.story_max_chars:
                text = text[:self.config.story_max_chars].rstrip() + '...'
            stories.append(text)
            if len(stories) >= self.config.max_stories:
                break
        return stories

    def _early_life(self, entries: Sequence[StoryEntry], limit: int = 3) -> List[str]:
        early = []
        for entry in entries:
            for sentence in self._sentences(entry.text):
                if TopicTag.CHILDHOOD in self.classifier.classify(sentence, entry.language):
                    early.append(sentence)
                    if len(early) >= limit:
                        return early
        return early

    # ------------------------------------------------------------------
    # Deterministic assembly
    # ------------------------------------------------------------------

    def assemble(self, person_id: str, entries: Sequence[StoryEntry], facts: BiographyFacts) -> BiographyDocument:
        """Fill every narrative section from templates; empty categories get a generic sentence."""
        if person_id and person_id != UNASSIGNED_PERSON_ID:
            display_name = person_id
        else:
            display_name = facts.name or UNNAMED_STORYTELLER
        subject = facts.name or 'this storyteller'
        subject_cap = subject[:1].upper() + subject[1:]

        turn_count = sum(1 for entry in entries if entry.kind == 'turn')
        note_count = len(entries) - turn_count
        topics = [topic.value.lower() for topic in facts.topics]
        traits = [trait.lower() for trait in facts.personality_traits]
        relationships = [relationship.lower() for relationship in facts.relationships]
        values = [value.lower() for value in facts.values]

        dates = [date for date in (_date_part(entry.timestamp) for entry in entries) if date]
        if not dates:
            period = ''
        elif dates[0] == dates[-1]:
            period = f' on {dates[0]}'
        else:
            period = f' between {dates[0]} and {dates[-1]}'

        shared = (f"{_plural(turn_count, 'conversation', 'conversations')} and "
                  f"{_plural(note_count, 'saved memory', 'saved memories')}")

        sections = {}
        sections['introduction'] = f'{subject_cap} shared {shared}{period}. ' + (
            f'These recollections touch on {_join(topics)}.' if topics else 'These recollections are only the beginning of a longer story.')

        if facts.early_life:
            sections['early_life'] = f'Looking back on the early years, {subject} recalled: ' + ' '.join(
                f'"{sentence}."' for sentence in facts.early_life)
        else:
            sections['early_life'] = (f'{subject_cap} has not yet said much about the early years; '
                                      'those memories are still waiting to be told.')

        if traits:
            sections['personality'] = f'Through these conversations {subject} comes across as {_join(traits)}.'
        else:
            sections['personality'] = f"{subject_cap}'s character shows in the way these memories are told, even where no single trait stands out."

        sections['life_journey'] = self._life_journey(subject, entries, facts)

        if relationships:
            sections['relationships'] = f'The people who fill these stories include {_join(relationships)}.'
        else:
            sections['relationships'] = f'{subject_cap} has not yet described the people closest to them in detail.'

        if values:
            sections['values'] = f'What {subject} holds dear comes through clearly: {_join(values)}.'
        else:
            sections['values'] = f'The values that guide {subject} will become clearer as more stories are shared.'

        if facts.stories:
            sections['stories'] = "Some memories stand out as stories in their own right:\n" + '\n'.join(
                f'- "{story}"' for story in facts.stories)
        else:
            sections['stories'] = 'No long-form stories have been recorded yet; every conversation adds another piece.'

        if topics:
            sections['themes'] = f'Recurring themes across these conversations include {_join(topics)}.'
        else:
            sections['themes'] = 'No single theme dominates these conversations yet.'

        sections['conclusion'] = (f'Taken together, these conversations preserve the voice and memories of {display_name}, '
                                  'a record to treasure and to keep adding to over time.')

        # Person ids are case-sensitive; only the generic phrase is capitalized
        summary_subject = 'An unnamed storyteller' if display_name == UNNAMED_STORYTELLER else display_name
        summary = (f"{summary_subject} has shared {shared} covering "
                   f"{_join(topics) if topics else 'various aspects of their life'}.")

        return BiographyDocument(title=f'The Life Story of {display_name}',
                                 summary=summary,
                                 sections=sections,
                                 source='deterministic',
                                 **facts.lists())

    def _life_journey(self, subject: str, entries: Sequence[StoryEntry], facts: BiographyFacts) -> str:
        lines = []
        max_chars = self.config.journey_line_chars
        for entry in entries:
            text = entry.text.strip()
            if not text:
                continue
            if len(text) > max_chars:
                text = text[:max_chars].rstrip() + '...'
            year = year_of(entry.timestamp)
            lines.append(f"- {year if year else 'Undated'}: {text}")
            if len(lines) >= self.config.max_journey_lines:
                break

        if facts.life_events:
            milestones = sorted(facts.life_events, key=lambda event: event.year or 9999)
            opening = f"The milestones {subject} mentioned include {_join([event.display() for event in milestones[:5]])}."
        else:
            opening = f'{subject[:1].upper() + subject[1:]} has not named specific milestones yet.'

        if not lines:
            return opening
        return opening + '\nIn the order they were shared:\n' + '\n'.join(lines)
