"""Progress aggregation and fault-isolated delivery.

``ProgressAggregator`` turns section lifecycle signals into a weighted,
non-decreasing percentage over the sections planned for one artifact.
``SafeObserver`` is the single place observer failures are caught.
``EventChannel`` is a bounded queue of events for streaming consumers, and
``ProgressReporter`` ties the three together for the orchestrator.
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Set

from lesson_pipeline.constants import EVENT_QUEUE_SIZE
from lesson_pipeline.errors import ObserverFailure
from lesson_pipeline.models.events import PipelineEvent, ProgressEvent
from lesson_pipeline.models.schema import PhaseWeights, ProgressUpdate, SectionName

logger = logging.getLogger(__name__)

ProgressObserver = Callable[[ProgressUpdate], Any]

# Share of an in-progress section's weight credited while it is being retried
RETRY_PARTIAL_CREDIT = 0.5


def weighted_progress(
    completed: Iterable[SectionName],
    plan: Iterable[SectionName],
    weights: PhaseWeights,
    in_progress: Optional[SectionName] = None,
    partial: float = 0.0,
) -> int:
    """``100 * (sum(completed) + partial credit) / sum(plan)``, rounded half-up.

    Completed sections outside the plan are ignored; a zero-weight plan
    yields 0.
    """
    planned = list(dict.fromkeys(plan))
    total = sum(weights.weight_of(name) for name in planned)
    if total <= 0:
        return 0
    done = {name for name in completed if name in planned}
    value = sum(weights.weight_of(name) for name in done)
    if in_progress is not None and in_progress in planned and in_progress not in done:
        value += weights.weight_of(in_progress) * max(0.0, min(1.0, partial))
    return min(100, int(100 * value / total + 0.5))


class ProgressAggregator:
    """Running progress for one artifact.

    Completion signals are deduplicated by section name, and the reported
    percentage never goes below the highest one already reported.
    """

    def __init__(self, plan: List[SectionName], weights: Optional[PhaseWeights] = None):
        self.plan = list(plan)
        self.weights = weights or PhaseWeights.default()
        self.completed: Set[SectionName] = set()
        self._high_water = 0

    def mark_completed(self, name: SectionName) -> int:
        self.completed.add(name)
        return self.current()

    def current(self, in_progress: Optional[SectionName] = None, partial: float = 0.0) -> int:
        value = weighted_progress(self.completed, self.plan, self.weights, in_progress, partial)
        self._high_water = max(self._high_water, value)
        return self._high_water

    def finish(self) -> int:
        self._high_water = 100
        return 100


class SafeObserver:
    """Fault-isolating wrapper around a progress observer.

    Sync and async callables are both accepted. Anything the observer raises
    is logged with the triggering update and discarded; without an observer
    the wrapper does nothing.
    """

    def __init__(self, observer: Optional[ProgressObserver] = None):
        self.observer = observer
        self.failures: List[ObserverFailure] = []

    async def __call__(self, update: ProgressUpdate) -> bool:
        if self.observer is None:
            return False
        try:
            result = self.observer(update)
            if inspect.isawaitable(result):
                await result
            return True
        except Exception as e:
            failure = ObserverFailure(update, e)
            self.failures.append(failure)
            logger.error(
                f"{failure.message} (step={update.step!r}, progress={update.progress})",
                extra={"update": update.as_state()},
                exc_info=True,
            )
            return False


class EventChannel:
    """Bounded queue of pipeline events with an end-of-stream marker."""

    _CLOSED = object()

    def __init__(self, maxsize: int = EVENT_QUEUE_SIZE):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def publish(self, event: PipelineEvent) -> None:
        if self.closed:
            raise RuntimeError("Cannot publish to a closed event channel")
        await self._queue.put(event)

    def close(self) -> None:
        """Mark the end of the stream without waiting for queue space."""
        if self.closed:
            return
        self.closed = True
        if not self._queue.full():
            self._queue.put_nowait(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[PipelineEvent]:
        # A full queue at close time gets no marker; the closed flag ends iteration once drained
        while not (self.closed and self._queue.empty()):
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ProgressReporter:
    """Emits progress updates for one artifact in dependency order.

    Keeps the last update so the orchestrator can attach it to a terminal
    error.
    """

    def __init__(
        self,
        aggregator: ProgressAggregator,
        observer: Optional[SafeObserver] = None,
        channel: Optional[EventChannel] = None,
    ):
        self.aggregator = aggregator
        self.observer = observer or SafeObserver()
        self.channel = channel
        self.last_update: Optional[ProgressUpdate] = None

    async def emit(self, step: str, progress: int, phase: str, section: Optional[str] = None) -> ProgressUpdate:
        if self.last_update is not None:
            progress = max(progress, self.last_update.progress)
        update = ProgressUpdate(step=step, progress=progress, phase=phase, section=section)
        self.last_update = update

        logger.debug(f"Progress {progress}%: {step}", extra={"phase": phase, "progress": progress})
        await self.observer(update)
        if self.channel is not None:
            await self.channel.publish(ProgressEvent.from_update(update))
        return update

    async def init(self, step: str) -> ProgressUpdate:
        return await self.emit(step, self.aggregator.current(), "init")

    async def section_started(self, name: SectionName) -> ProgressUpdate:
        return await self.emit(
            f"Generating {name.display_name.lower()}",
            self.aggregator.current(in_progress=name),
            name.phase,
            name.value,
        )

    async def section_retrying(self, name: SectionName, attempt: int) -> ProgressUpdate:
        return await self.emit(
            f"Improving {name.display_name.lower()} (attempt {attempt})",
            self.aggregator.current(in_progress=name, partial=RETRY_PARTIAL_CREDIT),
            name.phase,
            name.value,
        )

    async def section_completed(self, name: SectionName) -> ProgressUpdate:
        return await self.emit(
            f"Completed {name.display_name.lower()}",
            self.aggregator.mark_completed(name),
            name.phase,
            name.value,
        )

    async def save(self, step: str = "Assembling lesson") -> ProgressUpdate:
        return await self.emit(step, self.aggregator.finish(), "save")

    def last_state(self) -> dict:
        if self.last_update is None:
            return {"step": "Not started", "progress": 0, "phase": "init"}
        return self.last_update.as_state()
