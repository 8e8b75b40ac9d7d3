"""Pronunciation practice generator.

Target words are chosen by phonetic difficulty from the lesson vocabulary and
the source excerpt, preferring words that cover different difficult sounds.
Each word gets IPA, difficult sounds, tips and a practice sentence from its
own adapter call; tongue twisters come from one final call.
"""

import logging
import math
import re
from typing import Dict, Iterable, List, Set, Tuple

from lesson_pipeline.constants import MIN_PRONUNCIATION_WORDS, MIN_TONGUE_TWISTERS
from lesson_pipeline.errors import MalformedResponse
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.models.sections import PronunciationSection, PronunciationWord, TongueTwister
from lesson_pipeline.prompts.section_prompts import (
    build_pronunciation_word_prompt,
    build_tongue_twister_prompt,
)
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import STOPWORDS, words

logger = logging.getLogger(__name__)

# (pattern, points) scored once per match
DIGRAPHS: List[Tuple[str, int]] = [
    ("th", 5), ("ch", 4), ("sh", 4), ("ph", 3), ("gh", 4), ("ng", 3), ("wh", 3), ("[^aeiou]r", 4),
]
VOWEL_GROUPS: List[Tuple[str, int]] = [
    ("ough|augh", 5), ("eau", 4), ("ieu", 4), ("ou", 3), ("oo", 3), ("ea", 3),
    ("au|aw", 3), ("oi|oy", 3), ("ei|ey", 2), ("ie", 2),
]
CLUSTERS: List[Tuple[str, int]] = [("[^aeiou]{3,}", 3), ("[aeiou]{3,}", 2)]

# (pattern, points) scored once per word
ENDINGS: List[Tuple[str, int]] = [("(tion|sion|ture|sure)$", 3), ("(cious|tious)$", 2)]
SILENT_LETTERS: List[Tuple[str, int]] = [("^(kn|gn|wr|ps)", 5), ("(mb|bt|lm|lk)", 4), ("[aeiou]gh", 3)]
STRESS_SUFFIX = re.compile(r"(ate|tion|ic)$")

FIELD = re.compile(r"^(WORD|IPA|DIFFICULT_SOUNDS|TIP_\d+|PRACTICE)\s*:\s*(.*)$", re.I)
TWISTER_FIELD = re.compile(r"^(TWISTER|SOUNDS|DIFFICULTY)_(\d+)\s*:\s*(.*)$", re.I)


def phonetic_difficulty(word: str) -> int:
    """Score how hard a word is to pronounce for English learners.

    Example:
        >>> phonetic_difficulty("through") > phonetic_difficulty("cat")
        True
    """
    w = word.lower()
    score = min(len(w), 10)
    for pattern, points in DIGRAPHS + VOWEL_GROUPS + CLUSTERS:
        score += points * len(re.findall(pattern, w))
    for pattern, points in ENDINGS + SILENT_LETTERS:
        if re.search(pattern, w):
            score += points
    if len(w) > 6 and STRESS_SUFFIX.search(w):
        score += 2
    return score


def difficult_sounds(word: str) -> Set[str]:
    """Spelling patterns in the word that carry a difficult sound."""
    w = word.lower()
    found = set()
    for pattern, _ in DIGRAPHS + VOWEL_GROUPS + ENDINGS + SILENT_LETTERS:
        if re.search(pattern, w):
            found.add(pattern)
    return found


def select_challenging_words(
    candidates: Iterable[str],
    vocabulary: Iterable[str] = (),
    count: int = MIN_PRONUNCIATION_WORDS,
) -> List[str]:
    """Pick ``count`` words that are hard to say and cover varied sounds.

    First pass takes the highest scoring words that add a new difficult sound
    (or while fewer than half the slots are filled); second pass fills the
    remaining slots by score; lesson vocabulary tops up whatever is left.
    """
    unique: Dict[str, str] = {}
    for word in candidates:
        key = word.lower()
        if len(key) >= 3 and key.isalpha() and key not in STOPWORDS and key not in unique:
            unique[key] = word

    ranked = sorted(unique, key=lambda k: phonetic_difficulty(k), reverse=True)
    selected: List[str] = []
    covered: Set[str] = set()
    half = math.ceil(count / 2)

    for key in ranked:
        if len(selected) >= count:
            break
        sounds = difficult_sounds(key)
        if sounds - covered or len(selected) < half:
            selected.append(key)
            covered |= sounds

    for key in ranked:
        if len(selected) >= count:
            break
        if key not in selected:
            selected.append(key)

    for word in vocabulary:
        if len(selected) >= count:
            break
        if word.lower() not in selected:
            selected.append(word.lower())

    return [unique.get(key, key) for key in selected]


def parse_word_block(response: str, word: str) -> PronunciationWord:
    """Parse the WORD/IPA/DIFFICULT_SOUNDS/TIP_n/PRACTICE block."""
    fields: Dict[str, str] = {}
    tips: List[str] = []
    for raw in response.splitlines():
        match = FIELD.match(raw.strip())
        if not match:
            continue
        key, value = match.group(1).upper(), match.group(2).strip()
        if key.startswith("TIP_"):
            if value:
                tips.append(value)
        else:
            fields[key] = value

    ipa = fields.get("IPA", "").strip()
    if not ipa:
        raise MalformedResponse(SectionName.PRONUNCIATION.value, f'no IPA for "{word}"')
    if not ipa.startswith("/"):
        ipa = f"/{ipa.strip('[]/')}/"

    sounds = [s.strip() for s in fields.get("DIFFICULT_SOUNDS", "").split(",") if s.strip()]
    return PronunciationWord(
        word=fields.get("WORD") or word,
        ipa=ipa,
        difficult_sounds=sounds,
        tips=tips,
        practice_sentence=fields.get("PRACTICE", ""),
    )


def parse_tongue_twisters(response: str) -> List[TongueTwister]:
    blocks: Dict[int, Dict[str, str]] = {}
    for raw in response.splitlines():
        match = TWISTER_FIELD.match(raw.strip())
        if match:
            blocks.setdefault(int(match.group(2)), {})[match.group(1).upper()] = match.group(3).strip()

    twisters = []
    for index in sorted(blocks):
        block = blocks[index]
        text = block.get("TWISTER", "")
        if not text:
            continue
        twisters.append(
            TongueTwister(
                text=text,
                target_sounds=[s.strip() for s in block.get("SOUNDS", "").split(",") if s.strip()],
                difficulty=block.get("DIFFICULTY") or "medium",
            )
        )
    return twisters


class PronunciationGenerator(BaseSectionGenerator):
    section = SectionName.PRONUNCIATION
    instruction = (
        "Practice pronunciation with your tutor. "
        "Focus on the difficult sounds and try the tongue twisters:"
    )

    async def generate(
        self, section_input: SectionInput, invoker: PromptInvoker
    ) -> PronunciationSection:
        context = section_input.context
        vocabulary = section_input.lesson_vocabulary(limit=20)
        candidates = vocabulary + list(context.ranked_vocabulary) + words(context.source_excerpt)
        targets = select_challenging_words(candidates, vocabulary, MIN_PRONUNCIATION_WORDS)

        logger.info(
            f"Selected pronunciation targets: {', '.join(targets)}",
            extra={"section": self.section.value, "attempt": section_input.attempt},
        )

        items = []
        for word in targets:
            prompt = self.prompt_with_feedback(build_pronunciation_word_prompt(word, context), section_input)
            items.append(parse_word_block(await invoker(prompt), word))

        response = await invoker(build_tongue_twister_prompt(context, MIN_TONGUE_TWISTERS))
        twisters = parse_tongue_twisters(response)

        return PronunciationSection(instruction=self.instruction, words=items, tongue_twisters=twisters)
