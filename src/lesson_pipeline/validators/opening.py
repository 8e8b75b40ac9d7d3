"""Validator for warm-up questions.

Warm-up questions activate prior knowledge of the topic. Anything that
presumes the learner has already read the source (references to "the text",
past events, people or years taken from it) is content-assumption leakage
and blocks the section.
"""

import re
from typing import List

from lesson_pipeline.constants import OPENING_QUESTION_COUNT
from lesson_pipeline.models.schema import GenerationContext, SectionName, Tier
from lesson_pipeline.models.sections import OpeningSection
from lesson_pipeline.utils.text import contains_word
from lesson_pipeline.validators.base import BaseSectionValidator

MIN_QUESTION_LENGTH = 10
MAX_QUESTION_LENGTH = 200

QUESTION_WORDS = (
    "what", "when", "where", "who", "why", "how", "do", "does", "did", "have",
    "has", "is", "are", "can", "could", "would", "should", "will", "which", "in",
)

CONTENT_ASSUMPTION_PATTERNS = [
    (re.compile(r"what happened", re.I), "References specific events"),
    (re.compile(r"in the (text|story|article|passage|reading)", re.I), "References the text directly"),
    (re.compile(r"according to (the )?(text|story|article|author)", re.I), "References the text/author"),
    (re.compile(r"the author (said|wrote|mentioned|stated|explained)", re.I), "References author statements"),
    (re.compile(r"do you remember", re.I), "Assumes prior knowledge of content"),
    (re.compile(r"what did .+ do", re.I), "References specific actions"),
    (re.compile(r"why did .+ happen", re.I), "References specific events"),
    (re.compile(r"when did", re.I), "References specific timing"),
    (re.compile(r"who (was|were|did)", re.I), "References specific people"),
    (re.compile(r"which (person|character|event)", re.I), "References specific content elements"),
    (
        re.compile(r"the (story|text|article|passage) (says|mentions|describes|tells)", re.I),
        "References text content",
    ),
    (re.compile(r"in this (story|text|article)", re.I), "References the text"),
    (re.compile(r"from the (story|text|article)", re.I), "References the text"),
]

ALLOWED_CAPITALISED = {
    "What", "When", "Where", "Who", "Why", "How", "Do", "Does", "Did", "Have", "Has",
    "Is", "Are", "Can", "Could", "Would", "Should", "Will", "Which", "In", "If", "I",
    "English", "Spanish", "French", "German", "Chinese", "Japanese",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
    "January", "February", "March", "April", "May", "June", "July", "August",
    "September", "October", "November", "December",
}

ADVANCED_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"hypothetically", r"in what ways", r"to what extent", r"how might",
        r"what factors", r"analy[sz]e", r"evaluate", r"compare and contrast",
        r"what implications", r"how would you assess",
    )
]
INTERMEDIATE_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"why do you think", r"what would", r"how could", r"in your opinion",
        r"do you believe", r"what are the (advantages|disadvantages)", r"how does .+ affect",
    )
]

EXPECTED_COMPLEXITY = {
    Tier.A1: ("simple",),
    Tier.A2: ("simple",),
    Tier.B1: ("simple", "intermediate"),
    Tier.B2: ("intermediate", "advanced"),
    Tier.C1: ("advanced", "intermediate"),
}

PERSONAL_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"have you( ever)?", r"do you (think|believe|feel|like|enjoy)", r"what (is|are) your",
        r"in your (opinion|experience)", r"how do you",
    )
]
YES_NO_PATTERNS = [
    re.compile(p, re.I)
    for p in (r"^do you", r"^have you", r"^is (it|there)", r"^are (you|there)", r"^can you", r"^would you")
]
VERY_SIMPLE_WORDS = {
    "you", "your", "have", "do", "what", "how", "is", "are", "the", "a", "an",
    "like", "want", "go", "see", "get",
}
CLAUSE_INDICATOR = re.compile(r",|\b(and|but|or|because|although|if|when|while|which|that)\b", re.I)


def assess_question_complexity(questions: List[str]) -> str:
    """Classify a question set as simple, intermediate or advanced."""
    text = " ".join(questions).lower()
    advanced = sum(1 for p in ADVANCED_PATTERNS if p.search(text))
    intermediate = sum(1 for p in INTERMEDIATE_PATTERNS if p.search(text))
    if advanced >= 2:
        return "advanced"
    if advanced >= 1 or intermediate >= 2:
        return "intermediate"
    return "simple"


def assess_vocabulary_level(question: str) -> str:
    tokens = question.lower().rstrip("?").split()
    if not tokens:
        return "appropriate"
    simple_ratio = sum(1 for t in tokens if t in VERY_SIMPLE_WORDS) / len(tokens)
    complex_ratio = sum(
        1 for t in tokens if len(t) > 10 or re.search(r"tion|sion|ment|ness|ity", t)
    ) / len(tokens)
    if simple_ratio > 0.8:
        return "too_simple"
    if complex_ratio > 0.3:
        return "too_complex"
    return "appropriate"


def assess_sentence_structure(question: str) -> str:
    clauses = len(CLAUSE_INDICATOR.findall(question)) + 1
    count = len(question.split())
    if clauses >= 3 or count > 20:
        return "complex"
    if clauses == 2 or count > 12:
        return "moderate"
    return "simple"


class OpeningValidator(BaseSectionValidator):
    """Checks count, format, leakage, tier complexity and pedagogical variety."""

    section = SectionName.WARMUP

    def check_fixed_counts(self, content: OpeningSection, critical: List[str]) -> None:
        count = len(content.questions)
        if count < OPENING_QUESTION_COUNT:
            critical.append(f"Insufficient questions: expected {OPENING_QUESTION_COUNT}, got {count}")
        elif count > OPENING_QUESTION_COUNT:
            critical.append(f"Too many questions: expected {OPENING_QUESTION_COUNT}, got {count}")

    def check_structure(
        self,
        content: OpeningSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        questions = content.questions
        for index, question in enumerate(questions, 1):
            if len(question) < MIN_QUESTION_LENGTH:
                issues.append(f"Question {index} is too short ({len(question)} characters)")
            if len(question) > MAX_QUESTION_LENGTH:
                warnings.append(f"Question {index} is very long ({len(question)} characters)")
            if not question.endswith("?"):
                issues.append(f"Question {index} doesn't end with a question mark")
            if not question.lower().startswith(tuple(w + " " for w in QUESTION_WORDS)):
                warnings.append(f"Question {index} doesn't start with a typical question word")

        self._check_pedagogy(questions, warnings)

    def _check_pedagogy(self, questions: List[str], warnings: List[str]) -> None:
        if not questions:
            return
        if not any(p.search(q) for q in questions for p in PERSONAL_PATTERNS):
            warnings.append("No questions focus on personal experience")
        starters = {q.split()[0].lower() for q in questions if q.split()}
        if len(starters) == 1 and len(questions) > 1:
            warnings.append("All questions start with the same word")
        if all(any(p.search(q) for p in YES_NO_PATTERNS) for q in questions):
            warnings.append("All questions appear to be yes/no questions")

    def check_tier_fit(
        self,
        content: OpeningSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        questions = content.questions
        if not questions:
            return
        tier = context.tier
        complexity = assess_question_complexity(questions)
        expected = EXPECTED_COMPLEXITY[tier]
        if complexity not in expected:
            issues.append(
                f"Questions are {complexity} but {tier.value} requires {' or '.join(expected)}"
            )

        for index, question in enumerate(questions, 1):
            vocabulary_level = assess_vocabulary_level(question)
            if vocabulary_level == "too_simple" and tier >= Tier.B2:
                warnings.append(f"Question {index} uses very simple vocabulary for {tier.value} level")
            if vocabulary_level == "too_complex" and tier <= Tier.A2:
                warnings.append(
                    f"Question {index} may use vocabulary too advanced for {tier.value} level"
                )
            structure = assess_sentence_structure(question)
            if structure == "complex" and tier <= Tier.A2:
                warnings.append(f"Question {index} has complex sentence structure for {tier.value} level")
            if structure == "simple" and tier == Tier.C1:
                warnings.append(f"Question {index} has simple structure for {tier.value} level")

    def check_leakage(
        self,
        content: OpeningSection,
        context: GenerationContext,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        for index, question in enumerate(content.questions, 1):
            for pattern, message in CONTENT_ASSUMPTION_PATTERNS:
                if pattern.search(question):
                    issues.append(f"Question {index} assumes content knowledge: {message}")
                    break

            leaked = [e for e in context.source_entities if contains_word(question, e)]
            if leaked:
                issues.append(
                    f"Question {index} references source-specific details: {', '.join(leaked)}"
                )

            suspicious = [
                w.strip("?,.!")
                for w in question.split()
                if re.fullmatch(r"[A-Z][a-z]+[?,.!]?", w)
                and w.strip("?,.!") not in ALLOWED_CAPITALISED
                and w.strip("?,.!") not in leaked
            ]
            # Sentence-initial words are expected to be capitalised
            if suspicious and question.split()[0].strip("?,.!") == suspicious[0]:
                suspicious = suspicious[1:]
            if suspicious:
                warnings.append(f"Question {index} may contain proper names: {', '.join(suspicious)}")

            if re.search(r"\b(19|20)\d{2}\b", question) and not leaked:
                warnings.append(f"Question {index} contains a specific year")

    def score_bonus(self, content: OpeningSection) -> int:
        return 10 if len(content.questions) == OPENING_QUESTION_COUNT else 0
