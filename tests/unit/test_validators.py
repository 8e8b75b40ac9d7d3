"""Unit tests for section validators."""

import pytest

from fakes import (
    CLOSING,
    COMPREHENSION,
    DIALOGUE,
    DISCUSSION,
    FILL_GAP_DIALOGUE,
    LEAKY_OPENING,
    OPENING,
    PASSAGE,
    example_sentences,
)
from lesson_pipeline.generators.dialogue import parse_dialogue
from lesson_pipeline.models.schema import Tier
from lesson_pipeline.models.sections import (
    ClosingSection,
    ComprehensionSection,
    DialogueFillGapSection,
    DialogueLine,
    DialoguePracticeSection,
    DiscussionSection,
    GrammarExercise,
    GrammarExplanation,
    GrammarSection,
    OpeningSection,
    PronunciationSection,
    PronunciationWord,
    ReadingSection,
    TongueTwister,
    VocabularyEntry,
    VocabularySection,
)
from lesson_pipeline.validators import VALIDATORS
from lesson_pipeline.validators.dialogue import DialogueFillGapValidator, DialoguePracticeValidator
from lesson_pipeline.validators.grammar import GrammarValidator
from lesson_pipeline.validators.opening import (
    OpeningValidator,
    assess_question_complexity,
    assess_sentence_structure,
)
from lesson_pipeline.validators.pronunciation import PronunciationValidator
from lesson_pipeline.validators.questions import (
    ClosingValidator,
    ComprehensionValidator,
    DiscussionValidator,
)
from lesson_pipeline.validators.reading import ReadingValidator
from lesson_pipeline.validators.vocabulary import VocabularyValidator

LESSON_VOCABULARY = ["Climate", "Energy", "Renewable", "Pollution", "Community"]


def test_every_section_has_a_validator():
    for name, validator in VALIDATORS.items():
        assert validator.section == name


class TestOpeningValidator:
    """Test warm-up question checks."""

    def test_valid_questions(self, make_context):
        outcome = OpeningValidator().validate(OpeningSection(questions=OPENING), make_context())

        assert outcome.is_valid
        assert outcome.score > 80

    def test_source_entity_is_leakage(self, make_context):
        """Test that a named entity from the source blocks the section."""
        outcome = OpeningValidator().validate(OpeningSection(questions=LEAKY_OPENING), make_context())

        assert not outcome.is_valid
        assert any("Greta Thunberg" in issue for issue in outcome.issues)
        assert any("Greta Thunberg" in issue for issue in outcome.critical)
        assert not outcome.is_degradable

    @pytest.mark.parametrize(
        "question",
        [
            "What happened to the city after the new law?",
            "According to the article, why is energy cheaper?",
            "Do you remember the main idea of the story?",
        ],
    )
    def test_content_assumption_patterns(self, make_context, question):
        section = OpeningSection(questions=[question] + OPENING[1:])

        outcome = OpeningValidator().validate(section, make_context())

        assert any("assumes content knowledge" in issue for issue in outcome.issues)

    def test_year_flagged(self, make_context):
        section = OpeningSection(questions=OPENING[:2] + ["What do you think life was like in 1990?"])

        outcome = OpeningValidator().validate(section, make_context(source_entities=[]))

        assert any("specific year" in warning for warning in outcome.warnings)

    def test_wrong_count(self, make_context):
        outcome = OpeningValidator().validate(OpeningSection(questions=OPENING[:2]), make_context())
        assert "Insufficient questions: expected 3, got 2" in outcome.issues
        assert outcome.critical == ["Insufficient questions: expected 3, got 2"]

    def test_missing_question_mark(self, make_context):
        section = OpeningSection(questions=OPENING[:2] + ["Tell me about your favourite season"])
        outcome = OpeningValidator().validate(section, make_context())
        assert "Question 3 doesn't end with a question mark" in outcome.issues
        assert outcome.is_degradable

    def test_simple_questions_too_easy_for_b2(self, make_context):
        """Test that simple questions are rejected at upper tiers."""
        outcome = OpeningValidator().validate(OpeningSection(questions=OPENING), make_context(tier=Tier.B2))

        assert any("B2 requires" in issue for issue in outcome.issues)

    def test_advanced_questions_too_hard_for_a1(self, make_context):
        questions = [
            "To what extent should cities evaluate their energy use?",
            "How might your town change in the future?",
            "What do you like about your city?",
        ]
        outcome = OpeningValidator().validate(OpeningSection(questions=questions), make_context(tier=Tier.A1))

        assert any("Questions are advanced but A1 requires simple" == issue for issue in outcome.issues)

    def test_complexity_assessment(self):
        assert assess_question_complexity(OPENING) == "simple"
        assert assess_question_complexity(["Why do you think so?", "In your opinion, what matters?"]) == "intermediate"
        assert assess_sentence_structure("Do you like tea?") == "simple"
        assert assess_sentence_structure("If you could travel, where would you go, and why?") == "complex"


class TestVocabularyValidator:
    """Test per-tier example counts and sentence checks."""

    @pytest.mark.parametrize(
        "tier, count",
        [(Tier.A1, 5), (Tier.A2, 5), (Tier.B1, 4), (Tier.B2, 3), (Tier.C1, 2)],
    )
    def test_tier_example_counts_accepted(self, make_context, tier, count):
        section = VocabularySection(
            words=[
                VocabularyEntry(word="Climate", meaning="The usual weather.", examples=example_sentences("climate", count, tier.value))
            ]
        )

        outcome = VocabularyValidator().validate(section, make_context(tier=tier))

        assert outcome.is_valid, outcome.issues

    def test_wrong_example_count(self, make_context):
        section = VocabularySection(
            words=[
                VocabularyEntry(word="Climate", meaning="The usual weather.", examples=example_sentences("climate", 5, "B2"))
            ]
        )

        outcome = VocabularyValidator().validate(section, make_context(tier=Tier.B2))

        assert 'Word "Climate": expected 3 examples for B2, got 5' in outcome.issues

    def test_example_checks(self, make_context):
        """Test missing word, capitalisation and punctuation issues."""
        examples = example_sentences("climate", 4, "B1")
        examples[0] = "many people often talk about climate and climate change in their busy."
        examples[1] = "Many people often talk about energy and solar power in their busy town."
        examples[2] = examples[2].rstrip(".")
        section = VocabularySection(
            words=[VocabularyEntry(word="Climate", meaning="The usual weather.", examples=examples)]
        )

        outcome = VocabularyValidator().validate(section, make_context(tier=Tier.B1))

        assert 'Example 1 for "Climate" should start with a capital letter' in outcome.issues
        assert 'Example 2 for "Climate" does not contain the word' in outcome.issues
        assert 'Example 3 for "Climate" should end with punctuation' in outcome.issues

    def test_missing_definition_and_empty_section(self, make_context):
        section = VocabularySection(
            words=[VocabularyEntry(word="Climate", meaning=" ", examples=example_sentences("climate", 4, "B1"))]
        )
        assert 'Word "Climate" has no definition' in VocabularyValidator().validate(section, make_context()).issues
        assert not VocabularyValidator().validate(VocabularySection(), make_context()).is_valid

    def test_short_examples_for_tier(self, make_context):
        section = VocabularySection(
            words=[
                VocabularyEntry(word="Climate", meaning="The usual weather.", examples=example_sentences("climate", 2, "A1"))
            ]
        )

        outcome = VocabularyValidator().validate(section, make_context(tier=Tier.C1))

        assert any("too short" in issue for issue in outcome.issues)


class TestReadingValidator:
    """Test passage length and vocabulary integration."""

    def test_valid_passage(self, make_context):
        outcome = ReadingValidator().validate(ReadingSection(passage=PASSAGE), make_context(), LESSON_VOCABULARY)
        assert outcome.is_valid

    def test_short_passage(self, make_context):
        outcome = ReadingValidator().validate(
            ReadingSection(passage="The climate is changing. Energy is expensive."),
            make_context(),
            LESSON_VOCABULARY,
        )
        assert any("too short" in issue for issue in outcome.issues)

    def test_vocabulary_not_integrated(self, make_context):
        """Test that a passage ignoring the lesson vocabulary is rejected."""
        passage = " ".join(["The weather was warm and people walked in the park."] * 8)

        outcome = ReadingValidator().validate(ReadingSection(passage=passage), make_context(), LESSON_VOCABULARY)

        assert any("expected at least 2" in issue for issue in outcome.issues)


class TestQuestionValidators:
    """Test comprehension, discussion and wrap-up checks."""

    def test_defaults_valid(self, make_context):
        context = make_context()
        assert ComprehensionValidator().validate(ComprehensionSection(questions=COMPREHENSION), context).is_valid
        assert DiscussionValidator().validate(DiscussionSection(questions=DISCUSSION), context, LESSON_VOCABULARY).is_valid
        assert ClosingValidator().validate(ClosingSection(questions=CLOSING), context).is_valid

    def test_discussion_needs_exactly_five(self, make_context):
        outcome = DiscussionValidator().validate(DiscussionSection(questions=DISCUSSION[:4]), make_context())
        assert "Expected exactly 5 questions, got 4" in outcome.issues
        assert outcome.critical == ["Expected exactly 5 questions, got 4"]

    def test_closing_shortfall_is_degradable(self, make_context):
        outcome = ClosingValidator().validate(ClosingSection(questions=CLOSING[:2]), make_context())
        assert not outcome.is_valid
        assert outcome.is_degradable

    def test_discussion_depth_warning_at_b2(self, make_context):
        questions = [
            "What do you do to save energy at home?",
            "Where do people in your city buy solar panels?",
            "How do you travel to work or school every day?",
            "What kind of car does your family have now?",
            "Which bus do you usually take to the city center?",
        ]
        outcome = DiscussionValidator().validate(DiscussionSection(questions=questions), make_context(tier=Tier.B2))

        assert outcome.is_valid
        assert "Questions lack analytical depth for B2 level" in outcome.warnings

    def test_closing_too_few(self, make_context):
        outcome = ClosingValidator().validate(ClosingSection(questions=CLOSING[:1]), make_context())
        assert "Expected 3 wrap-up questions, got 1" in outcome.issues


class TestDialogueValidators:
    """Test dialogue structure, tier fit and vocabulary integration."""

    def test_valid_practice_dialogue(self, make_context):
        section = DialoguePracticeSection(
            lines=parse_dialogue("\n".join(DIALOGUE)),
            follow_up_questions=["What do you think?", "How do you travel?", "Why does it matter?"],
        )

        outcome = DialoguePracticeValidator().validate(section, make_context(), LESSON_VOCABULARY)

        assert outcome.is_valid, outcome.issues

    def test_too_few_lines(self, make_context):
        section = DialoguePracticeSection(lines=parse_dialogue("\n".join(DIALOGUE[:6])))

        outcome = DialoguePracticeValidator().validate(section, make_context(), LESSON_VOCABULARY)

        assert "Insufficient dialogue lines: expected at least 12, got 6" in outcome.issues

    def test_advanced_words_rejected_at_a2(self, make_context):
        """Test that words above A2 block the dialogue."""
        lines = parse_dialogue("\n".join(DIALOGUE))
        lines[1] = DialogueLine(speaker="Tutor", text="That is a significant and sophisticated plan for our climate.")
        section = DialoguePracticeSection(lines=lines)

        outcome = DialoguePracticeValidator().validate(section, make_context(tier=Tier.A2), LESSON_VOCABULARY)

        assert any("above A2 level: sophisticated, significant" in issue for issue in outcome.issues)

    def test_alternation_and_opening_speaker(self, make_context):
        lines = parse_dialogue("\n".join(DIALOGUE[1:]))
        lines.append(DialogueLine(speaker="Tutor", text="We can talk about energy again next week."))
        section = DialoguePracticeSection(lines=lines)

        outcome = DialoguePracticeValidator().validate(section, make_context(), LESSON_VOCABULARY)

        assert "Dialogue should start with Student speaking" in outcome.warnings
        assert any("should alternate" in warning for warning in outcome.warnings)

    def test_vocabulary_integration(self, make_context):
        section = DialoguePracticeSection(lines=parse_dialogue("\n".join(DIALOGUE)))

        outcome = DialoguePracticeValidator().validate(section, make_context(), ["Carbon", "Recycling", "Future"])

        assert "Dialogue uses 0 lesson vocabulary word(s), expected at least 2" in outcome.issues

    def test_gap_answers_must_match(self, make_context):
        section = DialogueFillGapSection(lines=parse_dialogue("\n".join(FILL_GAP_DIALOGUE)), answers=["energy"])

        outcome = DialogueFillGapValidator().validate(section, make_context(), LESSON_VOCABULARY)

        assert "Gap answers do not match gaps: 4 gap(s), 1 answer(s)" in outcome.issues

    def test_fill_gap_answers_count_as_vocabulary(self, make_context):
        """Test that lesson words blanked out of the lines are found in the answer key."""
        lines = [
            DialogueLine(
                speaker="Student" if index % 2 == 0 else "Tutor",
                text=f"Line {index + 1} is about the _____ we need in our town.",
            )
            for index in range(12)
        ]
        answers = ["solar", "carbon", "recycling"] * 4
        vocabulary = ["Solar", "Carbon", "Recycling"]

        gapped = DialogueFillGapValidator().validate(
            DialogueFillGapSection(lines=lines, answers=answers), make_context(), vocabulary
        )
        practice = DialoguePracticeValidator().validate(
            DialoguePracticeSection(lines=lines), make_context(), vocabulary
        )

        assert gapped.is_valid, gapped.issues
        assert "Dialogue uses 0 lesson vocabulary word(s), expected at least 2" in practice.issues

    def test_fill_gap_without_gaps_warns(self, make_context):
        section = DialogueFillGapSection(lines=parse_dialogue("\n".join(DIALOGUE)))

        outcome = DialogueFillGapValidator().validate(section, make_context(), LESSON_VOCABULARY)

        assert outcome.is_valid
        assert "Fill-in-gap dialogue should have at least 3 gaps, found 0" in outcome.warnings


class TestGrammarValidator:
    """Test grammar point completeness."""

    def _section(self, exercises=5):
        return GrammarSection(
            grammar_point="Present continuous",
            explanation=GrammarExplanation(form="Subject + be + verb-ing.", usage="For changes happening now."),
            examples=[
                "Cities are changing their energy plans.",
                "People are riding bicycles more often.",
                "Solar power is becoming cheaper.",
            ],
            exercises=[
                GrammarExercise(prompt=f"Cities _____ (build) farm {i}.", answer="are building")
                for i in range(exercises)
            ],
        )

    def test_valid(self, make_context):
        assert GrammarValidator().validate(self._section(), make_context()).is_valid

    def test_too_few_exercises(self, make_context):
        outcome = GrammarValidator().validate(self._section(exercises=2), make_context())
        assert "Expected at least 5 exercises, got 2" in outcome.issues

    def test_missing_parts(self, make_context):
        outcome = GrammarValidator().validate(GrammarSection(), make_context())

        assert "Grammar point is missing" in outcome.issues
        assert "Grammar explanation is missing the form" in outcome.issues
        assert outcome.score < 50


class TestPronunciationValidator:
    """Test pronunciation words and tongue twisters."""

    def _word(self, word, ipa="/wɜːd/"):
        return PronunciationWord(
            word=word,
            ipa=ipa,
            tips=["Relax your tongue."],
            practice_sentence=f"We often say {word} in class.",
        )

    def test_valid(self, make_context):
        section = PronunciationSection(
            words=[self._word(w) for w in ("through", "strength", "climate", "energy", "thought")],
            tongue_twisters=[
                TongueTwister(text="Three thin thinkers thought", target_sounds=["/θ/"]),
                TongueTwister(text="Seven solar sellers sell slowly", target_sounds=["/s/"]),
            ],
        )
        outcome = PronunciationValidator().validate(section, make_context())

        assert outcome.is_valid
        assert outcome.score == 100

    def test_missing_ipa_and_twisters(self, make_context):
        section = PronunciationSection(words=[self._word("through", ipa="")])

        outcome = PronunciationValidator().validate(section, make_context())

        assert 'Word "through" has no IPA transcription' in outcome.issues
        assert "Expected at least 5 pronunciation words, got 1" in outcome.issues
        assert "Expected at least 2 tongue twisters, got 0" in outcome.issues
