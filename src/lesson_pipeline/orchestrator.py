"""Pipeline orchestrator.

Sequences one lesson generation:

1. Structural floor check on the source (no adapter calls on failure)
2. Shared context and title
3. Every planned section, in dependency order, through the regeneration
   controller
4. Assembly of the artifact

Progress is reported before and after each section. Any failure leaves with
the last progress state attached; a partial artifact is never returned.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, Iterable, List, Optional

from lesson_pipeline.constants import DEFAULT_OUTPUT_BUDGET
from lesson_pipeline.content_validator import ContentValidator
from lesson_pipeline.context_builder import LessonTitleGenerator, SharedContextBuilder
from lesson_pipeline.error_classifier import ErrorClassifier
from lesson_pipeline.errors import LessonPipelineError
from lesson_pipeline.generators import GENERATORS, SectionInput
from lesson_pipeline.models.events import (
    CompleteEvent,
    ErrorDetail,
    ErrorEvent,
    PipelineEvent,
    ProgressState,
)
from lesson_pipeline.models.schema import (
    GenerationContext,
    GenerationRequest,
    LessonArtifact,
    PhaseWeights,
    SectionName,
    SectionResult,
    SectionSpec,
)
from lesson_pipeline.progress import (
    EventChannel,
    ProgressAggregator,
    ProgressObserver,
    ProgressReporter,
    SafeObserver,
)
from lesson_pipeline.quality_metrics import QualityMetricsTracker
from lesson_pipeline.regeneration import RegenerationController, SectionHandler
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.llm_client import TextGenerationAdapter
from lesson_pipeline.utils.logging_config import pipeline_stage_logger
from lesson_pipeline.validators import VALIDATORS

logger = logging.getLogger(__name__)

# ============================================================================
# Section graph and artifact plans
# ============================================================================

SECTION_SPECS: Dict[SectionName, SectionSpec] = {
    spec.name: spec
    for spec in (
        SectionSpec(name=SectionName.WARMUP),
        SectionSpec(name=SectionName.VOCABULARY, depends_on=[SectionName.WARMUP]),
        SectionSpec(name=SectionName.READING, depends_on=[SectionName.VOCABULARY]),
        SectionSpec(name=SectionName.COMPREHENSION, depends_on=[SectionName.READING]),
        SectionSpec(
            name=SectionName.DISCUSSION,
            depends_on=[SectionName.COMPREHENSION],
        ),
        SectionSpec(
            name=SectionName.DIALOGUE_PRACTICE,
            depends_on=[SectionName.COMPREHENSION, SectionName.VOCABULARY],
        ),
        SectionSpec(
            name=SectionName.DIALOGUE_FILL_GAP,
            depends_on=[SectionName.DIALOGUE_PRACTICE, SectionName.VOCABULARY],
        ),
        SectionSpec(name=SectionName.GRAMMAR, depends_on=[SectionName.COMPREHENSION]),
        SectionSpec(
            name=SectionName.PRONUNCIATION,
            depends_on=[SectionName.COMPREHENSION, SectionName.VOCABULARY],
        ),
        SectionSpec(name=SectionName.WRAPUP, depends_on=[SectionName.COMPREHENSION]),
    )
}

_CORE = [SectionName.WARMUP, SectionName.VOCABULARY, SectionName.READING, SectionName.COMPREHENSION]

ARTIFACT_PLANS: Dict[str, List[SectionName]] = {
    "discussion": _CORE + [SectionName.DISCUSSION, SectionName.WRAPUP],
    "grammar": _CORE + [SectionName.GRAMMAR, SectionName.WRAPUP],
    "pronunciation": _CORE + [SectionName.PRONUNCIATION, SectionName.WRAPUP],
    "travel": _CORE + [SectionName.DIALOGUE_PRACTICE, SectionName.DIALOGUE_FILL_GAP, SectionName.WRAPUP],
    "business": _CORE + [SectionName.DIALOGUE_PRACTICE, SectionName.DIALOGUE_FILL_GAP, SectionName.WRAPUP],
}
DEFAULT_PLAN: List[SectionName] = _CORE + [SectionName.WRAPUP]


def topological_order(
    members: Iterable[SectionName],
    specs: Dict[SectionName, SectionSpec] = SECTION_SPECS,
) -> List[SectionName]:
    """Order sections so every dependency comes first.

    Dependencies outside ``members`` are ignored; ties keep the order of
    ``members``.

    Raises:
        ValueError: The dependency graph has a cycle
    """
    members = list(dict.fromkeys(members))
    remaining = {
        name: {dep for dep in (specs[name].depends_on if name in specs else []) if dep in members}
        for name in members
    }
    ordered: List[SectionName] = []
    while remaining:
        ready = [name for name in members if name in remaining and not remaining[name]]
        if not ready:
            cycle = ", ".join(name.value for name in remaining)
            raise ValueError(f"Section dependency cycle among: {cycle}")
        for name in ready:
            ordered.append(name)
            del remaining[name]
        for deps in remaining.values():
            deps.difference_update(ready)
    return ordered


def plan_sections(artifact_kind: str) -> List[SectionName]:
    """Sections generated for an artifact kind, in dependency order."""
    return topological_order(ARTIFACT_PLANS.get(artifact_kind, DEFAULT_PLAN))


def default_handlers() -> Dict[SectionName, SectionHandler]:
    return {
        name: SectionHandler(generator=GENERATORS[name], validator=VALIDATORS[name])
        for name in SectionName
    }


# ============================================================================
# Pipeline
# ============================================================================


class LessonPipeline:
    """Turns a source document into a validated lesson artifact.

    One instance can serve any number of concurrent requests: everything
    request-specific lives in the ``GenerationRequest`` and in objects created
    per call.
    """

    def __init__(
        self,
        adapter: TextGenerationAdapter,
        weights: Optional[PhaseWeights] = None,
        handlers: Optional[Dict[SectionName, SectionHandler]] = None,
        controller: Optional[RegenerationController] = None,
        content_validator: Optional[ContentValidator] = None,
        context_builder: Optional[SharedContextBuilder] = None,
        title_generator: Optional[LessonTitleGenerator] = None,
        classifier: Optional[ErrorClassifier] = None,
        default_budget: Optional[int] = DEFAULT_OUTPUT_BUDGET,
    ):
        self.adapter = adapter
        self.weights = weights or PhaseWeights.default()
        self.handlers = default_handlers()
        self.handlers.update(handlers or {})
        missing = [name.value for name in SectionName if name not in self.handlers]
        if missing:
            raise ValueError(f"No handler for sections: {', '.join(missing)}")

        self.controller = controller or RegenerationController()
        self.content_validator = content_validator or ContentValidator()
        self.context_builder = context_builder or SharedContextBuilder()
        self.title_generator = title_generator or LessonTitleGenerator()
        self.classifier = classifier or ErrorClassifier()
        self.default_budget = default_budget

    async def generate(
        self,
        request: GenerationRequest,
        observer: Optional[ProgressObserver] = None,
    ) -> LessonArtifact:
        """Generate one artifact, reporting progress to ``observer``.

        Raises:
            LessonPipelineError: With ``progress_state`` set to the last
                progress update seen before the failure
        """
        reporter = self._reporter(request, SafeObserver(observer))
        return await self._run(request, reporter)

    async def stream(
        self,
        request: GenerationRequest,
        observer: Optional[ProgressObserver] = None,
    ) -> AsyncIterator[PipelineEvent]:
        """Generate one artifact as a stream of events.

        Yields progress events and exactly one terminal ``complete`` or
        ``error`` event. Closing the iterator early cancels the request.
        """
        channel = EventChannel()
        reporter = self._reporter(request, SafeObserver(observer), channel)
        task = asyncio.create_task(self._produce(request, reporter, channel))
        try:
            async for event in channel:
                yield event
        finally:
            if not task.done():
                logger.info(
                    f"Event consumer went away, cancelling request {request.request_id}",
                    extra={"request_id": request.request_id},
                )
                request.cancel()
                task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _produce(
        self,
        request: GenerationRequest,
        reporter: ProgressReporter,
        channel: EventChannel,
    ) -> None:
        try:
            artifact = await self._run(request, reporter)
            await channel.publish(CompleteEvent(artifact=artifact))
        except Exception as e:
            await channel.publish(self.error_event(e, reporter))
        finally:
            channel.close()

    def _reporter(
        self,
        request: GenerationRequest,
        observer: SafeObserver,
        channel: Optional[EventChannel] = None,
    ) -> ProgressReporter:
        aggregator = ProgressAggregator(plan_sections(request.artifact_kind), self.weights)
        return ProgressReporter(aggregator, observer, channel)

    async def _run(self, request: GenerationRequest, reporter: ProgressReporter) -> LessonArtifact:
        plan = reporter.aggregator.plan
        log_context = {"request_id": request.request_id, "tier": request.tier.value}
        logger.info(
            f"Generating {request.artifact_kind} lesson at {request.tier.value}: "
            f"{', '.join(name.value for name in plan)}",
            extra=log_context,
        )

        try:
            await reporter.init("Validating source content")
            self.content_validator.ensure_sufficient(request.document)

            invoker = PromptInvoker(self.adapter, request, default_budget=self.default_budget)
            await reporter.init("Analyzing source content")
            with pipeline_stage_logger("context", **log_context):
                context = await self.context_builder.build(request, invoker)
                title = await self.title_generator.generate(request, invoker)

            metrics = QualityMetricsTracker()
            results: Dict[SectionName, SectionResult] = {}
            for name in plan:
                request.raise_if_cancelled()
                await reporter.section_started(name)
                section_input = SectionInput(context=context, prior_results=dict(results))
                with pipeline_stage_logger(name.value, **log_context):
                    results[name] = await self.controller.run(
                        self.handlers[name],
                        section_input,
                        invoker,
                        metrics=metrics,
                        on_regenerate=reporter.section_retrying,
                    )
                await reporter.section_completed(name)

            request.raise_if_cancelled()
            await reporter.save()
            metrics.log_summary()
            artifact = self.assemble(request, context, title, plan, results, metrics)
            logger.info(
                f"Lesson ready: {len(artifact.sections)} sections, "
                f"{invoker.sub_calls} adapter call(s)",
                extra=log_context,
            )
            return artifact

        except LessonPipelineError as e:
            e.progress_state = reporter.last_state()
            logger.error(
                f"Lesson generation failed ({e.kind}) at {e.progress_state}: {e.message}",
                extra=log_context,
            )
            raise

    @staticmethod
    def assemble(
        request: GenerationRequest,
        context: GenerationContext,
        title: str,
        plan: List[SectionName],
        results: Dict[SectionName, SectionResult],
        metrics: QualityMetricsTracker,
    ) -> LessonArtifact:
        return LessonArtifact(
            request_id=request.request_id,
            title=title,
            tier=context.tier,
            target_language=context.target_language,
            artifact_kind=request.artifact_kind,
            sections={name.value: results[name].content for name in plan},
            section_warnings={
                name.value: results[name].warnings for name in plan if results[name].warnings
            },
            attempts={name.value: results[name].attempts for name in plan},
            quality=metrics.report().model_dump(mode="json"),
        )

    def error_event(self, error: Exception, reporter: ProgressReporter) -> ErrorEvent:
        """Terminal error event carrying the last progress state."""
        state = getattr(error, "progress_state", None) or reporter.last_state()
        if not isinstance(error, LessonPipelineError):
            logger.error(f"Unexpected failure during generation: {error}", exc_info=error)

        classified = self.classifier.classify(error, {"progress_state": state})
        user_message = self.classifier.user_message(classified)
        return ErrorEvent(
            error=ErrorDetail(
                kind=classified.type.value,
                message=getattr(error, "message", None) or str(error),
                error_id=classified.error_id,
                title=user_message.title,
                actionable_steps=user_message.actionable_steps,
            ),
            progress_state=ProgressState(**state),
        )
