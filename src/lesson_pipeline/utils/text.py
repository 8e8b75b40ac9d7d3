"""Text helpers shared by the context builder, generators and validators.

All helpers are pure functions over strings so they can be unit tested
without an adapter.
"""

import json
import logging
import re
from collections import Counter
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

STOPWORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be because
    been before being below between both but by can could did do does doing down
    during each even ever every few for from further had has have having he her
    here hers herself him himself his how however i if in into is it its itself
    just like made make many may me might more most much must my myself never new
    no nor not now of off on once one only or other our ours ourselves out over own
    said same says she should since so some still such than that the their theirs
    them themselves then there these they this those through thus to too under
    until up upon us very was way we well were what when where which while who
    whom why will with within without would yet you your yours yourself yourselves
    """.split()
)

_NUMBERING = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")
_WORD = re.compile(r"\b[\w']+\b")


def strip_numbering(line: str) -> str:
    """Remove list numbering or bullets from the start of a line.

    Example:
        >>> strip_numbering("2) What do you enjoy?")
        'What do you enjoy?'
    """
    return _NUMBERING.sub("", line).strip()


def parse_lines(
    text: str,
    min_length: int = 0,
    require_question: bool = False,
    limit: Optional[int] = None,
) -> List[str]:
    """Split a response into cleaned, non-empty lines.

    Args:
        text: Raw adapter response
        min_length: Lines of this length or shorter are dropped
        require_question: Keep only lines ending with "?"
        limit: Maximum number of lines to return

    Returns:
        Cleaned lines in response order
    """
    lines = []
    for raw in text.splitlines():
        line = strip_numbering(raw.strip())
        if not line or len(line) <= min_length:
            continue
        if require_question and not line.endswith("?"):
            continue
        lines.append(line)
    return lines[:limit] if limit is not None else lines


def words(text: str) -> List[str]:
    """Lowercased word tokens."""
    return _WORD.findall(text.lower())


def word_count(text: str) -> int:
    return len(text.split())


def split_sentences(text: str) -> List[str]:
    """Split text into sentences, keeping terminal punctuation.

    A trailing fragment without punctuation is returned as its own sentence.
    """
    sentences = [s.strip() for s in re.findall(r"[^.!?]+[.!?]+", text)]
    consumed = sum(len(m.group(0)) for m in re.finditer(r"[^.!?]+[.!?]+", text))
    tail = text[consumed:].strip()
    if tail:
        sentences.append(tail)
    return [s for s in sentences if s]


def contains_word(text: str, word: str) -> bool:
    """Case-insensitive whole-word (or phrase) match."""
    if not word:
        return False
    return re.search(rf"\b{re.escape(word.lower())}\b", text.lower()) is not None


def count_integrated(text: str, vocabulary: Iterable[str]) -> List[str]:
    """Return the vocabulary items that appear verbatim in ``text``."""
    return [item for item in vocabulary if contains_word(text, item)]


def rank_keywords(text: str, limit: int = 8, min_len: int = 4, max_len: int = 12) -> List[str]:
    """Frequency-ranked content words, stopwords removed.

    Ties keep first-occurrence order.
    """
    tokens = re.findall(rf"\b[a-z]{{{min_len},{max_len}}}\b", text.lower())
    counts = Counter(t for t in tokens if t not in STOPWORDS)
    return [word for word, _ in counts.most_common(limit)]


_ENTITY_STOP = frozenset(
    """
    The This That These Those There Their They Then When Where What Which Who Why How
    However And But For With From After Before During While Although Because Since
    Our Its His Her Your Many Most Some Each Every Other Another Such One Two Three
    Mr Mrs Ms Dr It In On At As An A If So We He She You I
    """.split()
)


def extract_named_entities(text: str, limit: int = 20) -> List[str]:
    """Detect proper names, multi-word names and years in ``text``.

    Multi-word capitalised sequences are kept whole ("Ryder Cup"); single
    capitalised words count only when they do not open a sentence. Years
    (1900-2099) are included as strings.
    """
    entities: List[str] = []

    def add(candidate: str) -> None:
        candidate = candidate.strip()
        if candidate and candidate not in entities:
            entities.append(candidate)

    for match in re.finditer(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b", text):
        parts = [p for p in match.group(0).split() if p not in _ENTITY_STOP]
        if len(parts) >= 2:
            add(" ".join(parts))
        elif len(parts) == 1 and len(parts[0]) >= 3:
            add(parts[0])

    for match in re.finditer(r"\b[A-Z][a-z]{2,}\b", text):
        word = match.group(0)
        if word in _ENTITY_STOP:
            continue
        preceding = text[: match.start()].rstrip()
        if not preceding or preceding[-1] in ".!?\n\"'":
            continue
        if not any(word in entity.split() for entity in entities):
            add(word)

    for match in re.finditer(r"\b(?:19|20)\d{2}\b", text):
        add(match.group(0))

    return entities[:limit]


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def repair_incomplete_json(text: str) -> str:
    """Best-effort repair of a JSON object cut off by an output limit.

    Strips code fences, keeps the text from the first ``{``, closes an odd
    trailing quote and then closes open brackets and braces in nesting order.
    """
    repaired = strip_code_fences(text)
    start = repaired.find("{")
    if start == -1:
        return repaired
    repaired = repaired[start:]

    stack: List[str] = []
    in_string = False
    escaped = False
    last_complete = 0
    for index, char in enumerate(repaired):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]":
            if stack:
                stack.pop()
            if not stack:
                last_complete = index + 1
                break

    if last_complete:
        return repaired[:last_complete]

    if in_string:
        repaired += '"'
    repaired = repaired.rstrip().rstrip(",")
    added = "".join(reversed(stack))
    if added:
        logger.debug(f"Repaired JSON by closing {len(added)} structure(s)")
    return repaired + added


def load_json_object(text: str) -> dict:
    """Parse a JSON object from a model response, repairing it if needed.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    candidate = repair_incomplete_json(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
