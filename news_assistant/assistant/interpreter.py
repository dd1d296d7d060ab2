"""
Voice command interpreter.

Classifies a transcript as a control command, a numbered article selection,
a fuzzy title match, or nothing. Rules are tried in order and the first one
that produces an action wins:

    control keywords  ->  numeric patterns  ->  fuzzy title match

Keyword and number tables cover Vietnamese and English.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class ControlCommand(str, Enum):
    """Playback control verbs."""

    STOP = "stop"
    CONTINUE = "continue"
    NEXT = "next"
    PREVIOUS = "previous"
    REPEAT = "repeat"


@dataclass(frozen=True)
class Utterance:
    """One transcribed chunk of user speech."""

    raw_text: str
    captured_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Control:
    command: ControlCommand


@dataclass(frozen=True)
class SelectByNumber:
    index: int  # zero-based


@dataclass(frozen=True)
class SelectByFuzzyMatch:
    index: int  # zero-based
    text: str
    score: float


@dataclass(frozen=True)
class Unrecognized:
    text: str = ""


Action = Union[Control, SelectByNumber, SelectByFuzzyMatch, Unrecognized]

# Checked in this order; the first command with a matching phrase wins
CONTROL_KEYWORDS: dict[ControlCommand, tuple[str, ...]] = {
    ControlCommand.STOP: ("dừng", "stop", "tạm dừng", "pause"),
    ControlCommand.CONTINUE: ("tiếp tục", "continue", "phát", "play"),
    ControlCommand.NEXT: ("tin tiếp theo", "next", "bài tiếp theo"),
    ControlCommand.PREVIOUS: ("tin trước", "previous", "bài trước"),
    ControlCommand.REPEAT: ("lặp lại", "repeat", "đọc lại"),
}

# Title keyword -> spoken variants that should count as mentioning it
DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "mỹ": ("mỹ", "america", "usa"),
    "việt nam": ("việt nam", "vietnam"),
    "trump": ("trump", "ông trump"),
    "iran": ("iran",),
    "thái lan": ("thái lan", "thailand"),
    "tàu": ("tàu", "tau"),
    "cảnh sát": ("cảnh sát", "canh sat"),
    "bắt": ("bắt", "bat"),
    "đường sắt": ("đường sắt", "duong sat", "đường ray"),
    "xe ôm": ("xe ôm", "xe om", "grab"),
    "hun sen": ("hun sen",),
}

VI_NUMBER_WORDS: dict[str, int] = {
    "một": 1, "hai": 2, "ba": 3, "bốn": 4, "tư": 4, "năm": 5,
    "sáu": 6, "bảy": 7, "tám": 8, "chín": 9, "mười": 10,
}

EN_NUMBER_WORDS: dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

NUMBER_WORDS: dict[str, int] = {**VI_NUMBER_WORDS, **EN_NUMBER_WORDS}

# Units after "mười"/"mươi": 15 is "mười lăm", 21 is "hai mươi mốt";
# "năm" there means "year"
_VI_TRAILING_UNITS: dict[str, int] = {
    **{word: value for word, value in VI_NUMBER_WORDS.items() if value < 10 and word != "năm"},
    "mốt": 1,
    "lăm": 5,
}


def _alternatives(words) -> str:
    return "|".join(sorted(words, key=len, reverse=True))


_VI_UNIT = _alternatives(w for w, v in VI_NUMBER_WORDS.items() if v < 10)
_VI_TRAILING = _alternatives(_VI_TRAILING_UNITS)
_EN_TENS = _alternatives(w for w, v in EN_NUMBER_WORDS.items() if v >= 20)
_EN_UNIT = _alternatives(w for w, v in EN_NUMBER_WORDS.items() if v < 10)

# Digits, compound numerals up to 99, or a single number word
_NUMBER = (
    r"(\d+"
    rf"|(?:{_VI_UNIT})\s+mươi(?:\s+(?:{_VI_TRAILING}))?"
    rf"|mười\s+(?:{_VI_TRAILING})"
    rf"|(?:{_EN_TENS})[\s-]+(?:{_EN_UNIT})"
    rf"|{_alternatives(NUMBER_WORDS)})\b"
)

# Tried in order; the first one that matches decides
NUMBER_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"tin\s*số\s*" + _NUMBER),
    re.compile(r"bài\s*số\s*" + _NUMBER),
    re.compile(r"news\s*(?:number\s*)?" + _NUMBER),
    re.compile(r"article\s*(?:number\s*)?" + _NUMBER),
    re.compile(r"số\s*" + _NUMBER),
    re.compile(r"^" + _NUMBER + r"$"),
)

_PUNCTUATION = ".,!?;:\"'"


@dataclass
class MatchWeights:
    """Tuning knobs for fuzzy title matching."""

    similarity_scale: float = 10.0
    keyword_bonus: float = 5.0
    word_bonus: float = 2.0
    min_word_length: int = 3
    min_score: float = 3.0  # accept only scores strictly above this


def normalize(text: str) -> str:
    """Lower-case, trim, collapse whitespace and drop punctuation at the ends."""
    text = " ".join(text.lower().split())
    return text.strip(_PUNCTUATION).strip()


def parse_number(token: str) -> int:
    """Digits or a spoken number: "ba", "mười lăm", "hai mươi mốt", "twenty-one"."""
    if token.isdigit():
        return int(token)
    words = token.replace("-", " ").split()
    if len(words) > 1 and words[1] == "mươi":
        value = VI_NUMBER_WORDS[words[0]] * 10
        rest = words[2:]
    else:
        value = NUMBER_WORDS[words[0]]
        rest = words[1:]
    for word in rest:
        value += _VI_TRAILING_UNITS.get(word) or NUMBER_WORDS[word]
    return value


def word_overlap(a: str, b: str) -> float:
    """
    Shared-word ratio between two strings.

    A word of ``a`` counts as shared when it is a substring of some word of
    ``b`` or contains one. The count is divided by the larger word count.
    """
    words_a = a.split()
    words_b = b.split()
    if not words_a or not words_b:
        return 0.0
    common = [w for w in words_a if any(w in t or t in w for t in words_b)]
    return len(common) / max(len(words_a), len(words_b))


ArticlesArg = Union[int, Sequence[str]]
Rule = Callable[[str, Sequence[Optional[str]]], Optional[Action]]


class VoiceCommandInterpreter:
    """
    Turns transcripts into actions.

    Usage:
        interpreter = VoiceCommandInterpreter()
        interpreter.interpret("tin số 3", 5)            # SelectByNumber(2)
        interpreter.interpret("giá vàng", titles)       # SelectByFuzzyMatch(...)
    """

    def __init__(
        self,
        weights: Optional[MatchWeights] = None,
        control_keywords: Optional[dict[ControlCommand, tuple[str, ...]]] = None,
        domain_keywords: Optional[dict[str, tuple[str, ...]]] = None,
    ):
        self.weights = weights or MatchWeights()
        self.control_keywords = control_keywords or CONTROL_KEYWORDS
        self.domain_keywords = domain_keywords or DOMAIN_KEYWORDS
        self.rules: list[tuple[str, Rule]] = [
            ("control", self._match_control),
            ("number", self._match_number),
            ("fuzzy", self._match_title),
        ]

    def interpret(self, text: str, articles: ArticlesArg) -> Action:
        """
        Classify a transcript.

        Args:
            text: Raw transcript
            articles: Article count, or the article titles in selection
                order (titles enable fuzzy matching)

        Returns:
            Control, SelectByNumber, SelectByFuzzyMatch or Unrecognized
        """
        normalized = normalize(text)
        if not normalized:
            return Unrecognized(text)

        if isinstance(articles, int):
            titles: Sequence[Optional[str]] = [None] * max(articles, 0)
        else:
            titles = list(articles)

        for name, rule in self.rules:
            action = rule(normalized, titles)
            if action is not None:
                logger.debug("Interpreted %r via %s rule: %s", text, name, action)
                return action

        logger.debug("Unrecognized command: %r", text)
        return Unrecognized(text)

    def _match_control(self, text: str, titles: Sequence[Optional[str]]) -> Optional[Action]:
        for command, keywords in self.control_keywords.items():
            if any(keyword in text for keyword in keywords):
                return Control(command)
        return None

    def _match_number(self, text: str, titles: Sequence[Optional[str]]) -> Optional[Action]:
        for pattern in NUMBER_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            number = parse_number(match.group(1))
            if 1 <= number <= len(titles):
                return SelectByNumber(number - 1)
            # Prose that happens to contain a number
            return None
        return None

    def score_title(self, text: str, title: str) -> float:
        """Fuzzy score of a normalized utterance against one title."""
        weights = self.weights
        title = title.lower()

        score = word_overlap(text, title) * weights.similarity_scale

        for keyword, variants in self.domain_keywords.items():
            if keyword in title:
                score += weights.keyword_bonus * sum(1 for v in variants if v in text)

        title_words = title.split()
        for word in text.split():
            if len(word) < weights.min_word_length:
                continue
            for title_word in title_words:
                if title_word in word or word in title_word:
                    score += weights.word_bonus

        return score

    def _match_title(self, text: str, titles: Sequence[Optional[str]]) -> Optional[Action]:
        best_index = None
        best_score = 0.0
        for index, title in enumerate(titles):
            if not title:
                continue
            score = self.score_title(text, title)
            if score > best_score:
                best_index, best_score = index, score

        if best_index is not None and best_score > self.weights.min_score:
            return SelectByFuzzyMatch(index=best_index, text=text, score=best_score)
        return None
