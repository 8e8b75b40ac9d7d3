"""Unit tests for the per-section regeneration loop."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import FakeAdapter, OPENING
from lesson_pipeline.errors import (
    MalformedResponse,
    NetworkError,
    ServiceUnavailable,
    TokenLimitExceeded,
    ValidationFailure,
)
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName, ValidationOutcome
from lesson_pipeline.models.sections import DialogueLine, DialoguePracticeSection, OpeningSection
from lesson_pipeline.quality_metrics import QualityMetricsTracker
from lesson_pipeline.regeneration import RegenerationController, SectionHandler


class ScriptedGenerator(BaseSectionGenerator):
    """Returns (or raises) one scripted step per attempt."""

    def __init__(self, section, *steps):
        self.section = section
        self.steps = list(steps)
        self.inputs = []

    async def generate(self, section_input, invoker):
        self.inputs.append(section_input)
        step = self.steps[min(len(self.inputs), len(self.steps)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step


def opening(*questions):
    return OpeningSection(questions=list(questions or OPENING))


def handler_for(generator, *outcomes):
    validator = MagicMock()
    validator.validate.side_effect = list(outcomes)
    return SectionHandler(generator=generator, validator=validator)


@pytest.fixture
def section_input(make_context):
    return SectionInput(context=make_context())


@pytest.fixture
def invoker(make_invoker):
    return make_invoker(FakeAdapter())


class TestRegenerationController:
    """Test accept, regenerate, degrade and fail paths."""

    @pytest.mark.asyncio
    async def test_accepted_first_attempt(self, section_input, invoker):
        generator = ScriptedGenerator(SectionName.WARMUP, opening())
        handler = handler_for(generator, ValidationOutcome(warnings=["Minor"], score=95))
        on_regenerate = AsyncMock()

        result = await RegenerationController().run(handler, section_input, invoker, on_regenerate=on_regenerate)

        assert result.name == SectionName.WARMUP
        assert result.attempts == 1
        assert result.quality_score == 95
        assert result.warnings == ["Minor"]
        assert result.degraded is False
        on_regenerate.assert_not_called()

    @pytest.mark.asyncio
    async def test_validator_receives_lesson_vocabulary(self, section_input, invoker):
        generator = ScriptedGenerator(SectionName.WARMUP, opening())
        handler = handler_for(generator, ValidationOutcome())

        await RegenerationController().run(handler, section_input, invoker)

        content, context, vocabulary = handler.validator.validate.call_args.args
        assert context is section_input.context
        assert vocabulary == section_input.context.ranked_vocabulary[:5]

    @pytest.mark.asyncio
    async def test_regenerated_with_feedback(self, section_input, invoker):
        """Test that the second attempt sees the first attempt's issues."""
        second = opening("What do you like about your city?", "How do you travel?", "What is energy?")
        generator = ScriptedGenerator(SectionName.WARMUP, opening(), second)
        handler = handler_for(
            generator,
            ValidationOutcome(issues=["Question 1 references source-specific details: Copenhagen"], score=60),
            ValidationOutcome(score=90),
        )
        on_regenerate = AsyncMock()

        result = await RegenerationController().run(handler, section_input, invoker, on_regenerate=on_regenerate)

        assert result.attempts == 2
        assert result.content is second
        assert generator.inputs[0].feedback == []
        assert generator.inputs[1].feedback == ["Question 1 references source-specific details: Copenhagen"]
        assert generator.inputs[1].attempt == 2
        on_regenerate.assert_awaited_once_with(SectionName.WARMUP, 2)

    @pytest.mark.asyncio
    async def test_degrade_keeps_best_attempt(self, section_input, invoker):
        """Test that a degradable section keeps its best attempt with issues as warnings."""
        first, second = opening(), opening("Do you like cities?")
        generator = ScriptedGenerator(SectionName.WARMUP, first, second)
        handler = handler_for(
            generator,
            ValidationOutcome(issues=["Too advanced"], warnings=["Long question"], score=70),
            ValidationOutcome(issues=["Insufficient questions: expected 3, got 1"], score=40),
        )

        result = await RegenerationController().run(handler, section_input, invoker)

        assert result.degraded is True
        assert result.attempts == 2
        assert result.content is first
        assert result.quality_score == 70
        assert result.warnings == ["Long question", "Too advanced"]

    @pytest.mark.asyncio
    async def test_degrade_skips_attempts_with_critical_issues(self, section_input, invoker):
        leak = "Question 1 references source-specific details: Greta Thunberg"
        first, second = opening(), opening("Do you like cities?")
        generator = ScriptedGenerator(SectionName.WARMUP, first, second)
        handler = handler_for(
            generator,
            ValidationOutcome(issues=[leak], critical=[leak], score=80),
            ValidationOutcome(issues=["Too advanced"], score=60),
        )

        result = await RegenerationController().run(handler, section_input, invoker)

        assert result.degraded is True
        assert result.content is second
        assert result.warnings == ["Too advanced"]

    @pytest.mark.asyncio
    async def test_critical_issues_on_every_attempt_fail(self, section_input, invoker):
        """Test that a degradable section still fails when no attempt is free of critical issues."""
        shortfall = "Expected exactly 5 questions, got 4"
        generator = ScriptedGenerator(SectionName.DISCUSSION, opening())
        handler = handler_for(
            generator,
            ValidationOutcome(issues=[shortfall], critical=[shortfall], score=80),
            ValidationOutcome(issues=[shortfall], critical=[shortfall], score=80),
        )

        with pytest.raises(ValidationFailure) as exc_info:
            await RegenerationController().run(handler, section_input, invoker)

        assert exc_info.value.section == "discussion"
        assert exc_info.value.attempts == 2
        assert exc_info.value.issues == [shortfall]

    @pytest.mark.asyncio
    async def test_structural_section_fails(self, section_input, invoker):
        dialogue = DialoguePracticeSection(lines=[DialogueLine(speaker="Student", text="Hello.")])
        generator = ScriptedGenerator(SectionName.DIALOGUE_PRACTICE, dialogue)
        issues = ["Insufficient dialogue lines: expected at least 12, got 1"]
        handler = handler_for(
            generator, ValidationOutcome(issues=issues, score=20), ValidationOutcome(issues=issues, score=20)
        )

        with pytest.raises(ValidationFailure) as exc_info:
            await RegenerationController().run(handler, section_input, invoker)

        assert exc_info.value.section == "dialogue_practice"
        assert exc_info.value.issues == issues
        assert exc_info.value.attempts == 2
        assert len(generator.inputs) == 2

    @pytest.mark.asyncio
    async def test_malformed_response_counts_as_attempt(self, section_input, invoker):
        error = MalformedResponse("warmup", "no questions found in response")
        generator = ScriptedGenerator(SectionName.WARMUP, error, opening())
        handler = handler_for(generator, ValidationOutcome())

        result = await RegenerationController().run(handler, section_input, invoker)

        assert result.attempts == 2
        assert generator.inputs[1].feedback == [error.message]
        # Only the parsed attempt reaches the validator
        assert handler.validator.validate.call_count == 1

    @pytest.mark.asyncio
    async def test_no_usable_attempt_fails_even_when_degradable(self, section_input, invoker):
        """Test that degrading needs at least one non-empty attempt."""
        generator = ScriptedGenerator(SectionName.WARMUP, TokenLimitExceeded([60, 30, None]))
        handler = handler_for(generator)

        with pytest.raises(ValidationFailure) as exc_info:
            await RegenerationController().run(handler, section_input, invoker)

        assert exc_info.value.attempts == 2
        assert "Output truncated at every budget step" in exc_info.value.issues[0]

    @pytest.mark.asyncio
    async def test_service_failure_not_retried(self, section_input, invoker):
        error = ServiceUnavailable("network", NetworkError("connection reset"))
        generator = ScriptedGenerator(SectionName.WARMUP, error, opening())
        handler = handler_for(generator, ValidationOutcome())

        with pytest.raises(ServiceUnavailable):
            await RegenerationController().run(handler, section_input, invoker)

        assert len(generator.inputs) == 1

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, section_input, invoker):
        generator = ScriptedGenerator(SectionName.WARMUP, opening())
        handler = handler_for(
            generator,
            ValidationOutcome(issues=["Too advanced"], score=50),
            ValidationOutcome(warnings=["Minor"], score=88),
        )
        metrics = QualityMetricsTracker()

        await RegenerationController().run(handler, section_input, invoker, metrics=metrics)

        recorded = metrics.get_section_metrics("warmup")
        assert recorded.attempt_count == 2
        assert recorded.regenerated is True
        assert recorded.validation_score == 88
        assert recorded.warning_count == 1
        assert recorded.issue_count == 0

    @pytest.mark.asyncio
    async def test_single_attempt_degrades_immediately(self, section_input, invoker):
        generator = ScriptedGenerator(SectionName.WARMUP, opening())
        handler = handler_for(generator, ValidationOutcome(issues=["Too advanced"], score=65))

        result = await RegenerationController(max_attempts=1).run(handler, section_input, invoker)

        assert result.attempts == 1
        assert result.degraded is True

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            RegenerationController(max_attempts=0)
