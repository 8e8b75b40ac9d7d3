"""Prompt builders for the shared context and every lesson section.

Each builder is a pure function of the generation context (and, where a
section depends on earlier ones, the words it must reinforce). Retries append
``build_feedback_block`` so the second attempt is told what to avoid.
"""

from typing import List, Sequence

from lesson_pipeline.constants import (
    CLOSING_QUESTION_COUNT,
    COMPREHENSION_QUESTION_COUNT,
    DISCUSSION_QUESTION_COUNT,
    FOLLOW_UP_QUESTION_COUNT,
    MIN_GRAMMAR_EXERCISES,
    OPENING_QUESTION_COUNT,
    TARGET_DIALOGUE_LINES,
)
from lesson_pipeline.models.schema import GenerationContext, Tier
from lesson_pipeline.prompts.tier_guidance import guidance_for


def build_feedback_block(issues: Sequence[str]) -> str:
    """Negative constraints appended to a prompt after a failed attempt.

    Args:
        issues: Blocking issues reported for the previous attempt

    Returns:
        Prompt suffix, empty when there is nothing to correct
    """
    if not issues:
        return ""
    listed = "\n".join(f"- {issue}" for issue in issues[:8])
    return f"""

IMPORTANT - YOUR PREVIOUS ANSWER WAS REJECTED FOR THESE REASONS:
{listed}

Fix every problem listed above. Do not repeat them. Keep the same output format."""


# ============================================================================
# Shared context
# ============================================================================


def build_summary_prompt(text: str, tier: Tier) -> str:
    return f"Summarize this text in 2-3 sentences for {tier.value} level students:\n\n{text[:600]}"


def build_vocabulary_extraction_prompt(text: str, tier: Tier) -> str:
    return (
        f"Extract 8-12 key vocabulary words from this text for {tier.value} level students. "
        f"Return only the words, one per line:\n\n{text[:500]}"
    )


def build_theme_extraction_prompt(text: str, tier: Tier) -> str:
    return (
        f"Identify 3-5 main themes or topics in this text for {tier.value} level students. "
        f"Return only the themes, one per line:\n\n{text[:400]}"
    )


def build_title_prompt(text: str, tier: Tier, artifact_kind: str) -> str:
    return (
        f"Create a lesson title for {tier.value} level {artifact_kind} about: {text[:150]}"
        "\n\nTitle (3-8 words):"
    )


# ============================================================================
# Question sections
# ============================================================================


def build_opening_prompt(context: GenerationContext) -> str:
    """Warm-up questions that activate prior knowledge without source details."""
    tier = context.tier.value
    instruction = guidance_for(context.tier).opening_instruction
    return f"""Create {OPENING_QUESTION_COUNT} warm-up questions for {tier} level students about the general topic of "{context.main_theme}".

CRITICAL REQUIREMENTS:
1. DO NOT reference specific events, people, names, dates, or outcomes from any text
2. DO NOT assume students have read or know anything about specific content
3. FOCUS on students' personal experiences, opinions, and general knowledge
4. Questions should activate prior knowledge about the TOPIC, not test knowledge of specific content
5. Questions should build interest and mental focus for learning about this topic
6. {instruction}

EXAMPLES OF GOOD QUESTIONS (activate prior knowledge without content assumptions):
- "Have you ever experienced [general situation related to topic]?"
- "What do you think about [general concept related to topic]?"
- "In your opinion, why is [general aspect of topic] important?"

EXAMPLES OF BAD QUESTIONS (assume content knowledge):
- "What happened when [specific person] did [specific event]?"
- "Why did [specific outcome] occur in the story?"
- "What do you remember about [specific detail]?"

Return ONLY {OPENING_QUESTION_COUNT} questions, one per line, with no numbering or extra text:"""


def build_comprehension_prompt(context: GenerationContext, passage: str = "") -> str:
    material = passage or context.content_summary
    return (
        f"Create {COMPREHENSION_QUESTION_COUNT} {context.tier.value} comprehension questions "
        f"about this content:\n{material}\nReturn only questions, one per line:"
    )


def build_discussion_prompt(context: GenerationContext) -> str:
    """Five level-calibrated discussion questions with a progression strategy."""
    tier = context.tier.value
    config = guidance_for(context.tier).discussion
    themes = ", ".join(context.main_themes[:3]) or context.main_theme
    vocab = ", ".join(context.ranked_vocabulary[:5])
    question_types = "\n".join(f"{i}. {t}" for i, t in enumerate(config.question_types, 1))
    structures = "\n".join(f"- {s}" for s in config.structures)

    return f"""Create exactly {DISCUSSION_QUESTION_COUNT} discussion questions for {tier} level students about {themes}.

SOURCE CONTEXT: {context.content_summary}
RELATED VOCABULARY: {vocab}

LEVEL-SPECIFIC REQUIREMENTS FOR {tier}:
{config.description}

QUESTION TYPES TO USE:
{question_types}

STRUCTURAL GUIDELINES:
{structures}

RESPONSE EXPECTATION:
{config.response_expectation}

CRITICAL REQUIREMENTS:
1. Generate EXACTLY {DISCUSSION_QUESTION_COUNT} questions - no more, no less
2. Questions MUST relate directly to the source material themes: {themes}
3. Each question should explore a DIFFERENT aspect of the topic
4. Questions should encourage EXTENDED responses appropriate to {tier} level
5. Vary question types across the questions (don't repeat the same structure)

QUESTION PROGRESSION STRATEGY:
- Question 1: Personal connection or basic understanding (easiest within level)
- Question 2: Specific aspect from source material
- Question 3: Comparison, contrast, or different perspective
- Question 4: Application or implication of concepts
- Question 5: Evaluation or broader significance (most challenging within level)

EXAMPLES OF GOOD {tier} QUESTIONS:
{config.examples(themes)}

Return ONLY {DISCUSSION_QUESTION_COUNT} questions, one per line, with no numbering, bullets, or extra text:"""


def build_closing_prompt(context: GenerationContext, vocabulary: Sequence[str] = ()) -> str:
    words = ", ".join(list(vocabulary)[:5])
    suffix = f"\nKey words from the lesson: {words}" if words else ""
    return (
        f"Create {CLOSING_QUESTION_COUNT} {context.tier.value} wrap-up questions about this lesson:\n"
        f"{context.content_summary}{suffix}\nReturn only questions, one per line:"
    )


# ============================================================================
# Vocabulary and reading
# ============================================================================


def build_definition_prompt(word: str, context: GenerationContext) -> str:
    return (
        f'Define "{word}" simply for {context.tier.value} level. '
        f"Context: {context.content_summary[:100]}. Give only the definition:"
    )


def build_examples_prompt(word: str, context: GenerationContext, count: int) -> str:
    tier = context.tier.value
    themes = ", ".join(context.main_themes[:2])
    guideline = guidance_for(context.tier).example_guideline
    return f"""Create {count} sentences using "{word}" for {tier} level.

Context: {context.content_summary[:150]}
Topic: {themes}

Requirements:
- Relate to the topic ({themes})
- Match {tier} level: {guideline}
- Show different uses of "{word}"
- Use context-specific terms
- Start each sentence with a capital letter and end it with punctuation

Return {count} sentences, one per line, no numbering:"""


def build_reading_prompt(context: GenerationContext, vocabulary: Sequence[str]) -> str:
    low, high = guidance_for(context.tier).sentence_length
    words = ", ".join(vocabulary)
    return (
        f"Rewrite this text for {context.tier.value} level students. \n"
        f"Use these vocabulary words: {words}\n"
        f"Keep sentences around {low}-{high} words.\n"
        f"Keep it 200-400 words:\n\n{context.source_excerpt}"
    )


# ============================================================================
# Dialogue
# ============================================================================


def _dialogue_requirements(context: GenerationContext) -> str:
    d = guidance_for(context.tier).dialogue
    return f"""LEVEL-SPECIFIC REQUIREMENTS FOR {context.tier.value}:

VOCABULARY REQUIREMENTS:
{d.vocabulary}

GRAMMAR REQUIREMENTS:
{d.grammar}

SENTENCE LENGTH:
{d.sentence_length}

EXAMPLES OF APPROPRIATE LANGUAGE:
{d.examples}"""


def _vocab_instruction(vocabulary: Sequence[str]) -> str:
    if not vocabulary:
        return "Use topic words from the context naturally."
    return (
        "VOCABULARY INTEGRATION: Naturally incorporate 3-4 of these lesson vocabulary words "
        f"into the dialogue: {', '.join(list(vocabulary)[:5])}. Use them where they fit naturally."
    )


def build_dialogue_practice_prompt(context: GenerationContext, vocabulary: Sequence[str]) -> str:
    tier = context.tier.value
    lines = TARGET_DIALOGUE_LINES
    format_lines = "\n".join(
        "Student: [line]" if i % 2 == 0 else "Tutor: [response]" for i in range(lines)
    )
    return f"""Create a natural conversation between a Student and a Tutor about "{context.main_theme}" for {tier} level students.

CONTEXT: {context.content_summary}

TOPIC THEMES: {', '.join(context.main_themes)}

CRITICAL REQUIREMENTS:
1. Create EXACTLY {lines} dialogue lines (alternating between Student and Tutor) - THIS IS MANDATORY
2. Start with Student speaking first
3. Make the conversation natural and engaging about the topic
4. The conversation should relate to the source material context and themes
5. {_vocab_instruction(vocabulary)}
6. COUNT YOUR LINES - you must have {lines} lines total ({lines // 2} Student + {lines // 2} Tutor)

{_dialogue_requirements(context)}

FORMAT:
Return ONLY the dialogue lines in this exact format:
{format_lines}

Do NOT include any numbering, explanations, or extra text. Just the dialogue lines."""


def build_dialogue_fill_gap_prompt(context: GenerationContext, vocabulary: Sequence[str]) -> str:
    tier = context.tier.value
    lines = TARGET_DIALOGUE_LINES
    gap_example = guidance_for(context.tier).dialogue.gap_example
    format_lines = "\n".join(
        ("Student" if i % 2 == 0 else "Tutor") + ": [line with possible _____ for gap]"
        for i in range(lines)
    )
    return f"""Create a natural conversation between a Student and a Tutor about "{context.main_theme}" for {tier} level students with fill-in-the-gap exercises.

CONTEXT: {context.content_summary}

TOPIC THEMES: {', '.join(context.main_themes)}

CRITICAL REQUIREMENTS:
1. Create EXACTLY {lines} dialogue lines (alternating between Student and Tutor) - THIS IS MANDATORY
2. Start with Student speaking first
3. Replace 1 key word in SOME lines (about 4-6 lines total) with _____ (blank)
4. The conversation should relate to the source material context and themes
5. {_vocab_instruction(vocabulary)}
6. Choose meaningful words to blank out (verbs, nouns, adjectives - NOT articles, prepositions, or pronouns)
7. COUNT YOUR LINES - you must have {lines} lines total

{_dialogue_requirements(context)}

GAP SELECTION GUIDELINES:
- A1/A2: Blank out common verbs (go, like, want) or simple nouns (topic, idea, question)
- B1: Blank out phrasal verbs (find out, look into) or intermediate vocabulary
- B2/C1: Blank out sophisticated vocabulary, collocations, or idiomatic expressions
- Ensure the gap can be filled from context clues in the conversation

FORMAT:
Return ONLY the dialogue lines in this exact format:
{format_lines}

EXAMPLE FOR {tier} LEVEL:
{gap_example}

Do NOT include any numbering, explanations, or extra text. Just the dialogue lines with gaps."""


def build_follow_up_prompt(context: GenerationContext, dialogue_text: str) -> str:
    return (
        f"Create {FOLLOW_UP_QUESTION_COUNT} follow-up discussion questions for "
        f"{context.tier.value} level students about the dialogue topic.\n\n"
        f"Dialogue:\n{dialogue_text}\n\nReturn only questions, one per line:"
    )


def build_gap_answers_prompt(dialogue_text: str, gap_count: int) -> str:
    return (
        f"This dialogue has {gap_count} gaps marked with _____.\n\n{dialogue_text}\n\n"
        f"List the single word or short phrase that fills each gap, in order. "
        f"Return exactly {gap_count} answers, one per line, no numbering:"
    )


# ============================================================================
# Grammar and pronunciation
# ============================================================================


def build_grammar_prompt(context: GenerationContext) -> str:
    tier = context.tier.value
    points = guidance_for(context.tier).grammar_points
    exercise_skeleton = ",\n    ".join(
        f'{{"prompt": "Exercise {i}", "answer": "Answer {i}", "explanation": "Why"}}'
        for i in range(1, MIN_GRAMMAR_EXERCISES + 1)
    )
    return f"""Identify ONE grammar point from this text for {tier} level.

Text: {context.source_excerpt[:200]}

Suggested: {points}

Return CONCISE JSON (brief explanations, 3 examples, {MIN_GRAMMAR_EXERCISES} exercises):
{{
  "grammarPoint": "Name",
  "explanation": {{
    "form": "How to form (1 sentence)",
    "usage": "When to use (1 sentence)",
    "levelNotes": "Level note (1 sentence)"
  }},
  "examples": ["example 1", "example 2", "example 3"],
  "exercises": [
    {exercise_skeleton}
  ]
}}"""


def build_pronunciation_word_prompt(word: str, context: GenerationContext) -> str:
    tier = context.tier.value
    theme = context.main_theme
    related = ", ".join(
        [w for w in context.ranked_vocabulary if w.lower() != word.lower()][:3]
    )
    return f"""Create pronunciation practice for the word "{word}" for {tier} level students.

CONTEXT: {context.content_summary[:200]}
TOPIC: {theme}
RELATED VOCABULARY: {related}

CRITICAL REQUIREMENTS:
1. Provide accurate IPA (International Phonetic Alphabet) transcription
2. Identify 2-3 specific difficult sounds in the word that are challenging for English learners
3. Give practical, actionable pronunciation tips focusing on mouth/tongue position
4. Create a practice sentence that uses "{word}" naturally and relates to {theme}

Provide the following information in this exact format:

WORD: {word}
IPA: [accurate IPA transcription]
DIFFICULT_SOUNDS: [2-3 IPA sounds separated by commas, e.g., /θ/, /ð/, /r/]
TIP_1: [tip about mouth/tongue position for the first difficult sound]
TIP_2: [tip about mouth/tongue position for the second difficult sound]
PRACTICE: [a sentence using "{word}" that relates to {theme}]

Example for "through" in sports context:
WORD: through
IPA: /θruː/
DIFFICULT_SOUNDS: /θ/, /uː/
TIP_1: Place your tongue between your teeth for the 'th' sound (/θ/)
TIP_2: Round your lips and make them tense for the long 'oo' sound (/uː/)
PRACTICE: The athlete ran through the finish line with determination.

Example for "strength" in fitness context:
WORD: strength
IPA: /streŋθ/
DIFFICULT_SOUNDS: /str/, /ŋ/, /θ/
TIP_1: Blend the 's', 't', and 'r' sounds smoothly without adding extra vowels
TIP_2: For the final 'th' (/θ/), place your tongue between your teeth
PRACTICE: Building strength requires consistent training and proper nutrition."""


def build_tongue_twister_prompt(context: GenerationContext, count: int) -> str:
    tier = context.tier.value
    themes = " and ".join(context.main_themes[:2]) or context.main_theme
    target_words = ", ".join(context.ranked_vocabulary[:5])
    blocks: List[str] = []
    for i in range(1, count + 1):
        blocks.append(
            f"TWISTER_{i}: [tongue twister text]\n"
            f"SOUNDS_{i}: [target sounds separated by commas]\n"
            f"DIFFICULTY_{i}: moderate"
        )
    formatted = "\n\n".join(blocks)
    return f"""Create {count} tongue twisters for {tier} level students about "{themes}".

Requirements:
- Related to: {themes}
- Try to use words: {target_words}
- Focus on challenging sounds (th, r, l, s, sh, ch)
- 6-12 words each
- Appropriate for {tier} level

Provide in this exact format:

{formatted}

Example:
TWISTER_1: Three athletes threw the ball through the thick crowd
SOUNDS_1: /θ/, /r/
DIFFICULTY_1: moderate"""
