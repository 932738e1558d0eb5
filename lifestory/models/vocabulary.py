"""
Immutable keyword tables, canned questions and prompts for English and Urdu conversations.

Every table is built by a factory and handed to the component that uses it, so tests can
substitute their own fixtures.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

from .core import TopicTag

ENGLISH = 'en'
URDU = 'ur'


def language_key(language: Optional[str]) -> str:
    """Map a language tag such as 'ur-PK' or 'en-US' onto a table key."""
    if language and isinstance(language, str) and language.strip().lower().split('-')[0].split('_')[0] == URDU:
        return URDU
    return ENGLISH


def term_pattern(term: str) -> Pattern:
    """Whole-word (or whole-phrase) matcher for a lower-cased term, script agnostic."""
    return re.compile(r'(?<!\w)' + re.escape(term) + r'(?!\w)')


def _freeze(mapping):
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TopicVocabulary:
    """Keyword substrings per language and topic."""
    keywords: Mapping[str, Mapping[TopicTag, Tuple[str, ...]]]

    def keywords_for(self, language: Optional[str]) -> Mapping[TopicTag, Tuple[str, ...]]:
        key = language_key(language)
        return self.keywords.get(key) or self.keywords.get(ENGLISH, MappingProxyType({}))


@dataclass(frozen=True)
class EnhancerPolicy:
    """Quality rules for candidate replies."""
    denylist: Mapping[str, Tuple[str, ...]]
    short_reply_threshold: int = 35
    min_length: int = 3
    min_single_token_length: int = 5

    def phrases_for(self, language: Optional[str]) -> Tuple[str, ...]:
        # Models answer Urdu prompts in English often enough that English phrases always apply.
        phrases = tuple(self.denylist.get(ENGLISH, ()))
        key = language_key(language)
        if key != ENGLISH:
            phrases += tuple(self.denylist.get(key, ()))
        return phrases


@dataclass(frozen=True)
class QuestionBank:
    """Canned follow-up questions and greeting detection per language."""
    topic_questions: Mapping[str, Mapping[TopicTag, str]]
    generic_questions: Mapping[str, Tuple[str, ...]]
    named_greetings: Mapping[str, str]
    greetings: Mapping[str, str]
    name_patterns: Mapping[str, Tuple[Pattern, ...]]
    greeting_patterns: Mapping[str, Tuple[Pattern, ...]]
    name_stopwords: frozenset = frozenset()
    self_introduction_patterns: Mapping[str, Tuple[Pattern, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def _get(self, table, language):
        return table.get(language_key(language)) or table[ENGLISH]

    def topic_question(self, topic: TopicTag, language: Optional[str]) -> Optional[str]:
        return self._get(self.topic_questions, language).get(topic)

    def generic_pool(self, language: Optional[str]) -> Tuple[str, ...]:
        return self._get(self.generic_questions, language)

    def named_greeting(self, name: str, language: Optional[str]) -> str:
        return self._get(self.named_greetings, language).format(name=name)

    def greeting(self, language: Optional[str]) -> str:
        return self._get(self.greetings, language)

    def _patterns(self, table: Mapping[str, Tuple[Pattern, ...]], language: Optional[str]) -> Tuple[Pattern, ...]:
        patterns = tuple(table.get(language_key(language), ()))
        if language_key(language) != ENGLISH:
            patterns += tuple(table.get(ENGLISH, ()))
        return patterns

    def extract_name(self, message: str, language: Optional[str], explicit_only: bool = False) -> Optional[str]:
        """Return the name captured by the first matching introduction pattern, if any.

        With explicit_only, clause-final "I'm X" introductions are ignored and only
        "my name is" / "call me" style phrases count.
        """
        if not message:
            return None
        patterns = self._patterns(self.name_patterns, language)
        if not explicit_only:
            patterns += self._patterns(self.self_introduction_patterns, language)
        for pattern in patterns:
            match = pattern.search(message)
            if not match:
                continue
            name = match.group(1).strip(".,!?;:'\"،۔")
            if name and name.lower() not in self.name_stopwords:
                return name[:1].upper() + name[1:]
        return None

    def is_greeting(self, message: str, language: Optional[str]) -> bool:
        if not message:
            return False
        return any(pattern.search(message) for pattern in self._patterns(self.greeting_patterns, language))


@dataclass(frozen=True)
class BiographyVocabulary:
    """Presence-test vocabularies used when assembling a biography without a generator."""
    event_keywords: Tuple[str, ...]
    relationships: Tuple[Tuple[str, Tuple[str, ...]], ...]
    personality: Tuple[Tuple[str, Tuple[str, ...]], ...]
    values: Tuple[Tuple[str, Tuple[str, ...]], ...]


def default_topic_vocabulary() -> TopicVocabulary:
    english = {
        TopicTag.CHILDHOOD: ('childhood', 'grew up', 'growing up', 'when i was young', 'when i was little',
                             'when i was a kid', 'as a child', 'as a kid'),
        TopicTag.FAMILY: ('family', 'parent', 'mother', 'father', 'my mom', 'my dad', 'brother', 'sister', 'sibling',
                          'grandmother', 'grandfather', 'grandma', 'grandpa', 'uncle', 'cousin'),
        TopicTag.MARRIAGE: ('married', 'marry', 'marriage', 'wedding', 'husband', 'wife', 'spouse'),
        TopicTag.WORK: ('work', 'job', 'career', 'office', 'profession', 'business', 'factory', 'employ'),
        TopicTag.TRAVEL: ('travel', 'trip', 'visit', 'journey', 'abroad', 'vacation', 'holiday'),
        TopicTag.EDUCATION: ('school', 'education', 'college', 'university', 'teacher', 'studied', 'student'),
        TopicTag.FRIENDSHIP: ('friend', ),
    }
    urdu = {
        TopicTag.CHILDHOOD: ('بچپن', 'چھوٹا تھا', 'چھوٹی تھی', 'پلا بڑھا', 'پلی بڑھی'),
        TopicTag.FAMILY: ('خاندان', 'گھر والے', 'گھر والوں', 'والدین', 'والد', 'امی', 'ابو', 'ماں', 'باپ', 'بھائی', 'بہن',
                          'دادا', 'دادی', 'نانا', 'نانی'),
        TopicTag.MARRIAGE: ('شادی', 'شوہر', 'بیوی', 'نکاح', 'دلہن', 'دولہا', 'بیگم'),
        TopicTag.WORK: ('نوکری', 'ملازمت', 'کام', 'دفتر', 'کاروبار', 'پیشہ'),
        TopicTag.TRAVEL: ('سفر', 'سیاحت', 'حج', 'عمرہ', 'دورہ', 'گھومنے'),
        TopicTag.EDUCATION: ('سکول', 'اسکول', 'تعلیم', 'کالج', 'یونیورسٹی', 'استاد', 'پڑھائی', 'مدرسہ'),
        TopicTag.FRIENDSHIP: ('دوست', 'سہیلی'),
    }
    return TopicVocabulary(keywords=_freeze({ENGLISH: _freeze(english), URDU: _freeze(urdu)}))


def default_enhancer_policy() -> EnhancerPolicy:
    denylist = {
        ENGLISH: ("i'm listening", 'i am listening', 'yes', 'yeah', 'okay', 'ok', 'i see', 'hmm', 'uh huh', 'go on',
                  'tell me more', 'i understand'),
        URDU: ('جی', 'ہاں', 'جی ہاں', 'اچھا', 'ٹھیک ہے', 'میں سن رہا ہوں', 'میں سن رہی ہوں', 'سمجھ گیا', 'مزید بتائیں'),
    }
    return EnhancerPolicy(denylist=_freeze(denylist))


def default_question_bank() -> QuestionBank:
    topic_questions = {
        ENGLISH: _freeze({
            TopicTag.CHILDHOOD: 'What was your childhood like? What do you remember most about growing up?',
            TopicTag.FAMILY: 'Tell me more about your family! What were your parents like?',
            TopicTag.MARRIAGE: 'How did you meet your spouse? What do you remember about your wedding day?',
            TopicTag.WORK: 'What kind of work did you do? What did you enjoy most about it?',
            TopicTag.TRAVEL: 'Where did you travel? What was the most memorable place you visited?',
            TopicTag.EDUCATION: 'What was school like for you? Do you remember a favorite teacher?',
            TopicTag.FRIENDSHIP: 'Tell me about your friends. Who was your closest friend back then?',
        }),
        URDU: _freeze({
            TopicTag.CHILDHOOD: 'آپ کا بچپن کیسا تھا؟ بچپن کی کون سی یاد آپ کو سب سے زیادہ عزیز ہے؟',
            TopicTag.FAMILY: 'مجھے اپنے خاندان کے بارے میں مزید بتائیں! آپ کے والدین کیسے تھے؟',
            TopicTag.MARRIAGE: 'آپ کی شادی کیسے ہوئی؟ شادی کا دن آپ کو کیسا یاد ہے؟',
            TopicTag.WORK: 'آپ کیا کام کرتے تھے؟ آپ کو اپنے کام میں سب سے زیادہ کیا پسند تھا؟',
            TopicTag.TRAVEL: 'آپ نے کہاں کہاں سفر کیا؟ سب سے یادگار جگہ کون سی تھی؟',
            TopicTag.EDUCATION: 'آپ کی پڑھائی کیسی رہی؟ کیا آپ کو اپنا کوئی پسندیدہ استاد یاد ہے؟',
            TopicTag.FRIENDSHIP: 'مجھے اپنے دوستوں کے بارے میں بتائیں۔ اس وقت آپ کا سب سے قریبی دوست کون تھا؟',
        }),
    }
    generic_questions = {
        ENGLISH: ('That sounds interesting! Tell me more about that.',
                  "I'd love to hear more. What happened next?",
                  'That must have been quite something. How did it make you feel?',
                  'What a memory! Can you tell me more about it?'),
        URDU: ('یہ تو بہت دلچسپ ہے! مجھے اس کے بارے میں مزید بتائیں۔',
               'پھر کیا ہوا؟ میں اور سننا چاہتا ہوں۔',
               'اس وقت آپ کو کیسا محسوس ہوا؟',
               'کیا خوبصورت یاد ہے! مجھے تفصیل سے بتائیں۔'),
    }
    named_greetings = {
        ENGLISH: "It's lovely to meet you, {name}! Would you tell me a little about where you grew up?",
        URDU: '{name}، آپ سے مل کر بہت خوشی ہوئی! کیا آپ مجھے بتائیں گے کہ آپ کہاں پلے بڑھے؟',
    }
    greetings = {
        ENGLISH: "Hello! It's so nice to meet you. What would you like me to call you?",
        URDU: 'السلام علیکم! آپ سے مل کر بہت خوشی ہوئی۔ میں آپ کو کس نام سے پکاروں؟',
    }
    name_patterns = {
        ENGLISH: (re.compile(r"\bmy name is\s+([A-Za-z][A-Za-z'\-]*)", re.IGNORECASE),
                  re.compile(r"\b[Cc]all me\s+([A-Z][A-Za-z'\-]*)")),
        URDU: (re.compile(r'میرا نام\s+(\S+)'), re.compile(r'مجھے\s+(\S+)\s+کہتے')),
    }
    # "I'm X" only counts when X closes the clause: "I'm Bilal." but not "I'm Pakistani and ..."
    self_introduction_patterns = {
        ENGLISH: (re.compile(r"\b(?:[Ii]['’]m|[Ii]\s+am)\s+([A-Z][A-Za-z'\-]*)(?=\s*(?:[.,!?;:]|$))"), ),
    }
    greeting_patterns = {
        ENGLISH: (re.compile(r'^\s*(?:hello|hi|hey|greetings|good (?:morning|afternoon|evening)|salaam|'
                             r'assalam(?:u)?[\s-]?o?[\s-]?alaikum)\b', re.IGNORECASE), ),
        URDU: (re.compile(r'^\s*(?:السلام علیکم|اسلام علیکم|سلام|آداب|ہیلو)'), ),
    }
    name_stopwords = frozenset({'not', 'so', 'very', 'just', 'here', 'fine', 'good', 'glad', 'sorry', 'okay', 'ok',
                                'back', 'from', 'in', 'at', 'going', 'doing', 'still', 'also', 'the', 'a', 'an',
                                'happy', 'sad', 'tired', 'old', 'listening', 'ready', 'sure'})
    return QuestionBank(topic_questions=_freeze(topic_questions),
                        generic_questions=_freeze(generic_questions),
                        named_greetings=_freeze(named_greetings),
                        greetings=_freeze(greetings),
                        name_patterns=_freeze(name_patterns),
                        self_introduction_patterns=_freeze(self_introduction_patterns),
                        greeting_patterns=_freeze(greeting_patterns),
                        name_stopwords=name_stopwords)


def default_biography_vocabulary() -> BiographyVocabulary:
    return BiographyVocabulary(
        event_keywords=('born', 'graduated', 'married', 'moved', 'started', 'retired', 'traveled', 'travelled', 'met',
                        'پیدا', 'شادی', 'منتقل', 'ریٹائر', 'شروع', 'ملاقات', 'سفر', 'فارغ التحصیل'),
        relationships=(
            ('Mother', ('mother', 'mom', 'mum', 'ammi', 'امی', 'والدہ', 'ماں')),
            ('Father', ('father', 'dad', 'abba', 'abbu', 'ابو', 'ابا', 'والد')),
            ('Spouse', ('husband', 'wife', 'spouse', 'شوہر', 'بیوی', 'بیگم')),
            ('Siblings', ('brother', 'brothers', 'sister', 'sisters', 'sibling', 'siblings', 'بھائی', 'بہن')),
            ('Children', ('son', 'daughter', 'children', 'kids', 'بیٹا', 'بیٹی', 'بچے', 'بچوں')),
            ('Grandparents', ('grandmother', 'grandfather', 'grandma', 'grandpa', 'grandparents', 'دادا', 'دادی', 'نانا',
                              'نانی')),
            ('Friends', ('friend', 'friends', 'دوست', 'سہیلی')),
            ('Teachers', ('teacher', 'teachers', 'استاد', 'استانی')),
            ('Neighbors', ('neighbor', 'neighbors', 'neighbour', 'neighbours', 'پڑوسی')),
        ),
        personality=(
            ('Caring', ('love', 'loved', 'care', 'cared', 'caring', 'محبت', 'پیار')),
            ('Hardworking', ('hard work', 'worked hard', 'dedicated', 'محنت')),
            ('Humorous', ('funny', 'humor', 'humour', 'laugh', 'laughed', 'مذاق', 'ہنسی')),
            ('Adventurous', ('adventure', 'adventurous', 'explore', 'explored')),
            ('Resilient', ('struggle', 'struggled', 'overcame', 'difficult', 'hardship', 'مشکل', 'جدوجہد')),
            ('Curious', ('curious', 'wondered', 'learned', 'learning', 'سیکھا')),
            ('Generous', ('helped', 'shared', 'generous', 'مدد')),
        ),
        values=(
            ('Family', ('family', 'خاندان')),
            ('Faith', ('god', 'faith', 'pray', 'prayer', 'prayed', 'mosque', 'church', 'allah', 'اللہ', 'نماز', 'ایمان',
                       'دعا')),
            ('Education', ('education', 'school', 'learn', 'تعلیم')),
            ('Honesty', ('honest', 'honesty', 'truth', 'ایمانداری', 'سچ')),
            ('Hard work', ('hard work', 'worked hard', 'محنت')),
            ('Kindness', ('kindness', 'kind', 'help', 'احسان')),
            ('Respect', ('respect', 'elders', 'عزت', 'ادب')),
            ('Community', ('community', 'neighbors', 'neighbours', 'village', 'محلہ', 'گاؤں')),
        ),
    )


def default_system_prompts() -> Mapping[str, str]:
    return _freeze({
        ENGLISH: ('You are a friendly, curious person who genuinely wants to listen. Speak naturally. If someone asks a '
                  'question, answer it directly. If someone shares a story or experience, ask relevant follow-up '
                  'questions using the actual words and topics from the conversation. Respond to what they actually '
                  'said, not with generic phrases.'),
        URDU: ('آپ ایک دوستانہ، متجسس انسان ہیں جو واقعی سننا چاہتا ہے۔ قدرتی طور پر بات کریں۔ اگر کوئی سوال پوچھے تو براہ '
               'راست جواب دیں۔ اگر کوئی کہانی یا واقعہ بتائے تو اس کے الفاظ استعمال کرتے ہوئے متعلقہ سوالات پوچھیں۔'),
    })
