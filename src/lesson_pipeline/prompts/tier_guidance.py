"""Per-tier constraint tables used by prompt builders and validators.

Every complexity rule in the pipeline reads from ``TIER_GUIDANCE`` so that a
tier's sentence-length band, example density and grammar ceiling are defined
in exactly one place.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from lesson_pipeline.models.schema import Tier


@dataclass(frozen=True)
class DiscussionGuidance:
    style: str
    description: str
    question_types: Tuple[str, ...]
    structures: Tuple[str, ...]
    response_expectation: str
    example_templates: Tuple[str, ...]

    def examples(self, themes: str) -> str:
        return "\n".join(f'"{template.format(themes=themes)}"' for template in self.example_templates)


@dataclass(frozen=True)
class DialogueGuidance:
    grammar_ceiling: str
    vocabulary: str
    grammar: str
    sentence_length: str
    examples: str
    gap_example: str


@dataclass(frozen=True)
class TierGuidance:
    """All tier-dependent constraints for one proficiency tier."""

    tier: Tier
    sentence_length: Tuple[int, int]
    examples_per_word: int
    example_guideline: str
    example_word_range: Tuple[int, int]
    opening_instruction: str
    discussion_word_range: Tuple[int, int]
    dialogue_line_range: Tuple[int, int]
    grammar_points: str
    discussion: DiscussionGuidance
    dialogue: DialogueGuidance


TIER_GUIDANCE: Dict[Tier, TierGuidance] = {
    Tier.A1: TierGuidance(
        tier=Tier.A1,
        sentence_length=(5, 8),
        examples_per_word=5,
        example_guideline="5-8 words, present tense, basic vocabulary",
        example_word_range=(5, 10),
        opening_instruction=(
            "Use very simple present tense questions with basic vocabulary. "
            "Questions should be about personal experiences and familiar situations."
        ),
        discussion_word_range=(4, 12),
        dialogue_line_range=(3, 12),
        grammar_points="present simple, articles, basic prepositions",
        discussion=DiscussionGuidance(
            style="yes/no",
            description=(
                "Simple question structures with basic vocabulary focusing on familiar "
                "topics and personal experiences"
            ),
            question_types=(
                'Yes/No questions: "Do you like...?", "Have you ever...?", "Can you...?"',
                'Simple Wh- questions: "What is your favorite...?", "Where do you...?"',
                'Personal preference questions: "Which do you prefer...?", "What do you enjoy...?"',
            ),
            structures=(
                "Use present simple and simple past tenses only",
                "Keep questions short (4-10 words)",
                "Use common, everyday vocabulary",
                "Focus on concrete, tangible topics",
            ),
            response_expectation=(
                "Students should be able to answer with 1-3 simple sentences using basic vocabulary"
            ),
            example_templates=(
                "Do you like {themes}?",
                "What is your favorite thing about {themes}?",
                "Have you ever tried {themes}?",
            ),
        ),
        dialogue=DialogueGuidance(
            grammar_ceiling="present simple and past simple",
            vocabulary=(
                "Use ONLY the most common everyday words (top 500-1000 words). "
                "Examples: go, come, like, want, have, be, do, make, get, see, know, think."
            ),
            grammar=(
                "Use ONLY simple present tense (I go, she likes) and simple past tense "
                "(I went, she liked). NO perfect tenses, NO conditionals, NO passive voice."
            ),
            sentence_length="Keep sentences very short: 5-8 words maximum. One idea per sentence.",
            examples=(
                'Good: "I like this topic." / "Do you know about it?" '
                'Bad: "I\'ve been interested in this topic for a while." (too complex)'
            ),
            gap_example="Student: I _____ to learn about this.\nTutor: What do you _____ about it?",
        ),
    ),
    Tier.A2: TierGuidance(
        tier=Tier.A2,
        sentence_length=(8, 12),
        examples_per_word=5,
        example_guideline="8-12 words, simple past/future, common words",
        example_word_range=(8, 15),
        opening_instruction=(
            "Use simple questions with present and past tenses. "
            "Focus on personal experiences and everyday situations."
        ),
        discussion_word_range=(5, 15),
        dialogue_line_range=(5, 18),
        grammar_points="past simple, comparatives, modal verbs",
        discussion=DiscussionGuidance(
            style="opinion",
            description=(
                "Simple questions with multiple tenses focusing on personal experiences "
                "and everyday situations"
            ),
            question_types=(
                'Opinion questions: "What do you think about...?", "Do you agree that...?"',
                'Experience questions: "Can you describe...?", "What happened when...?"',
                'Simple hypotheticals: "What would you do if...?", "Where would you go...?"',
            ),
            structures=(
                "Use present, past, and future tenses",
                "Include simple conditionals (first conditional)",
                "Keep questions moderate length (5-12 words)",
                "Use familiar vocabulary with some new words",
            ),
            response_expectation=(
                "Students should be able to answer with 3-5 sentences, expressing simple "
                "opinions and describing experiences"
            ),
            example_templates=(
                "What do you think about {themes}?",
                "Can you describe your experience with {themes}?",
                "What would you do if you could learn more about {themes}?",
            ),
        ),
        dialogue=DialogueGuidance(
            grammar_ceiling="present and past simple, simple future",
            vocabulary=(
                "Use simple, familiar vocabulary (top 1000-2000 words). Include common "
                "adjectives and adverbs: interesting, important, different, usually, often."
            ),
            grammar=(
                "Use present simple, past simple, present continuous, and future with "
                '"going to" and "will". NO present perfect, NO complex conditionals, NO passive voice.'
            ),
            sentence_length=(
                "Keep sentences clear and direct: 8-12 words. Combine two simple ideas "
                'with "and" or "but".'
            ),
            examples=(
                'Good: "I\'m reading about this topic because it\'s interesting." '
                'Bad: "I\'ve been studying this topic which has fascinated me." (too complex)'
            ),
            gap_example=(
                "Student: I _____ about this topic last week.\nTutor: What did you _____ most interesting?"
            ),
        ),
    ),
    Tier.B1: TierGuidance(
        tier=Tier.B1,
        sentence_length=(10, 15),
        examples_per_word=4,
        example_guideline="10-15 words, varied tenses, compound sentences",
        example_word_range=(10, 18),
        opening_instruction=(
            "Use varied question structures with different tenses. "
            "Include questions about opinions and experiences."
        ),
        discussion_word_range=(6, 18),
        dialogue_line_range=(7, 22),
        grammar_points="present perfect, conditionals, passive voice",
        discussion=DiscussionGuidance(
            style="opinion and comparison",
            description="Varied question structures including opinion questions and comparisons",
            question_types=(
                'Opinion and justification: "Why do you think...?", "Do you believe that...? Why?"',
                'Comparison questions: "How does X compare to Y?", "What are the differences between...?"',
                'Advantage/disadvantage questions: "What are the advantages of...?"',
            ),
            structures=(
                "Use varied tenses including present perfect",
                "Include first and second conditionals",
                "Use moderate complexity (6-15 words)",
                "Incorporate topic-specific vocabulary",
            ),
            response_expectation=(
                "Students should provide 5-8 sentences with explanations, examples, and personal opinions"
            ),
            example_templates=(
                "Why do you think {themes} is important?",
                "How does {themes} compare to similar topics?",
                "What are the advantages and disadvantages of {themes}?",
            ),
        ),
        dialogue=DialogueGuidance(
            grammar_ceiling="adds present perfect and first conditional",
            vocabulary=(
                "Use intermediate vocabulary with some less common words. Include phrasal "
                "verbs (find out, look into, deal with) and opinion expressions (I think, it seems)."
            ),
            grammar=(
                "Use varied tenses including present perfect, past continuous and first "
                "conditional. Include compound sentences and some relative clauses."
            ),
            sentence_length="Use varied sentence lengths: 10-15 words average.",
            examples=(
                'Good: "I\'ve been looking into this topic, and I\'ve found some interesting '
                'information." Bad: "I go to library." (too simple)'
            ),
            gap_example=(
                "Student: I've been _____ into this topic recently.\nTutor: What aspects have you _____ across?"
            ),
        ),
    ),
    Tier.B2: TierGuidance(
        tier=Tier.B2,
        sentence_length=(12, 18),
        examples_per_word=3,
        example_guideline="12-18 words, complex structures, relative clauses",
        example_word_range=(12, 22),
        opening_instruction=(
            "Use complex question structures. "
            "Include hypothetical and analytical questions about experiences."
        ),
        discussion_word_range=(8, 22),
        dialogue_line_range=(8, 25),
        grammar_points="relative clauses, advanced conditionals, reported speech",
        discussion=DiscussionGuidance(
            style="analytical",
            description="Complex question structures requiring analytical thinking and justification",
            question_types=(
                'Analytical questions: "To what extent do you agree that...?", "What might be the consequences of...?"',
                'Evaluation questions: "How would you evaluate...?", "What are the implications of...?"',
                'Hypothetical scenarios: "How would the situation change if...?"',
            ),
            structures=(
                "Use complex tenses including conditionals (types 1-3)",
                "Include passive voice and modal verbs",
                "Use sophisticated vocabulary and expressions",
                "Questions should be 8-18 words",
            ),
            response_expectation=(
                "Students should provide detailed responses (8-12 sentences) with analysis, "
                "examples, and counterarguments"
            ),
            example_templates=(
                "To what extent do you agree that {themes} has changed society?",
                "What might be the long-term consequences of {themes}?",
                "How would you evaluate the impact of {themes}?",
            ),
        ),
        dialogue=DialogueGuidance(
            grammar_ceiling="adds passive voice and complex conditionals",
            vocabulary=(
                "Use advanced vocabulary including abstract concepts, collocations (make a "
                "decision, take into account) and nuanced expressions (somewhat, considerably)."
            ),
            grammar=(
                "Use relative clauses, second and third conditionals, passive voice and "
                "perfect tenses. Include subordinating conjunctions (although, whereas, unless)."
            ),
            sentence_length="Use sophisticated sentences: 12-18 words. Combine multiple clauses naturally.",
            examples=(
                'Good: "Although I\'ve studied this topic extensively, some aspects remain '
                'somewhat unclear." Bad: "I like this topic." (too simple)'
            ),
            gap_example=(
                "Student: The _____ of this topic requires careful analysis.\n"
                "Tutor: How do you _____ the different perspectives?"
            ),
        ),
    ),
    Tier.C1: TierGuidance(
        tier=Tier.C1,
        sentence_length=(15, 20),
        examples_per_word=2,
        example_guideline="15-20 words, sophisticated grammar, nuanced expressions",
        example_word_range=(15, 25),
        opening_instruction=(
            "Use sophisticated question structures. "
            "Include abstract and evaluative questions that encourage critical thinking."
        ),
        discussion_word_range=(10, 25),
        dialogue_line_range=(10, 30),
        grammar_points="subjunctive, cleft sentences, inversion",
        discussion=DiscussionGuidance(
            style="evaluative and abstract",
            description="Sophisticated question structures requiring evaluative and critical thinking",
            question_types=(
                'Evaluative questions: "What are the broader implications of...?", "How might one assess...?"',
                'Critical analysis: "In what ways could this be interpreted...?", "To what degree does...?"',
                'Abstract reasoning: "How might one reconcile...?", "What underlying assumptions...?"',
            ),
            structures=(
                "Use advanced grammatical structures and nuanced expressions",
                "Include abstract concepts and theoretical frameworks",
                "Use sophisticated vocabulary and idiomatic expressions",
                "Questions should be 10-20 words with complex syntax",
            ),
            response_expectation=(
                "Students should provide comprehensive responses (12+ sentences) with critical "
                "analysis, multiple perspectives, and sophisticated argumentation"
            ),
            example_templates=(
                "What are the broader implications of {themes} for modern society?",
                "In what ways could different perspectives on {themes} be reconciled?",
                "How might one critically assess the underlying assumptions about {themes}?",
            ),
        ),
        dialogue=DialogueGuidance(
            grammar_ceiling="adds subjunctive, cleft sentences and ellipsis",
            vocabulary=(
                "Use sophisticated, nuanced vocabulary including academic language, advanced "
                "idioms and hedging (arguably, presumably, to some extent)."
            ),
            grammar=(
                "Use inversion (Rarely have I seen...), cleft sentences (What interests me is...), "
                "subjunctive mood (I suggest that he be...) and ellipsis where natural."
            ),
            sentence_length="Use sophisticated, flowing sentences: 15-20 words.",
            examples=(
                'Good: "What strikes me as particularly intriguing is the way this topic '
                'intersects with broader concerns." Bad: "This topic is interesting." (too simple)'
            ),
            gap_example=(
                "Student: The _____ nature of this topic is fascinating.\n"
                "Tutor: How would you _____ the apparent contradictions?"
            ),
        ),
    ),
}


def guidance_for(tier: Tier) -> TierGuidance:
    return TIER_GUIDANCE[Tier.parse(tier)]


def examples_per_word(tier: Tier) -> int:
    """Example sentences required per vocabulary word: 5, 5, 4, 3, 2 for A1..C1."""
    return guidance_for(tier).examples_per_word
