"""Unit tests for progress aggregation and observer isolation."""

import pytest

from lesson_pipeline.models.events import ProgressEvent
from lesson_pipeline.models.schema import PhaseWeights, ProgressUpdate, SectionName
from lesson_pipeline.progress import (
    EventChannel,
    ProgressAggregator,
    ProgressReporter,
    SafeObserver,
    weighted_progress,
)

DISCUSSION_PLAN = [
    SectionName.WARMUP,
    SectionName.VOCABULARY,
    SectionName.READING,
    SectionName.COMPREHENSION,
    SectionName.DISCUSSION,
    SectionName.WRAPUP,
]


def update(progress=10):
    return ProgressUpdate(step="Generating vocabulary", progress=progress, phase="vocabulary")


class TestWeightedProgress:
    """Test the weighted percentage over planned sections."""

    @pytest.mark.parametrize(
        "completed, expected",
        [
            ([], 0),
            ([SectionName.WARMUP], 14),
            ([SectionName.WARMUP, SectionName.VOCABULARY], 36),
            (DISCUSSION_PLAN, 100),
        ],
    )
    def test_completed_sections(self, completed, expected):
        assert weighted_progress(completed, DISCUSSION_PLAN, PhaseWeights.default()) == expected

    def test_partial_credit_for_section_in_progress(self):
        value = weighted_progress(
            [SectionName.WARMUP],
            DISCUSSION_PLAN,
            PhaseWeights.default(),
            in_progress=SectionName.READING,
            partial=0.5,
        )
        assert value == 29

    def test_unplanned_sections_ignored(self):
        value = weighted_progress([SectionName.GRAMMAR], DISCUSSION_PLAN, PhaseWeights.default())
        assert value == 0

    def test_zero_total_weight(self):
        assert weighted_progress([], DISCUSSION_PLAN, PhaseWeights(weights={})) == 0
        assert weighted_progress([], [], PhaseWeights.default()) == 0


class TestProgressAggregator:
    """Test deduplication and the high-water mark."""

    def test_duplicate_completion_counted_once(self):
        aggregator = ProgressAggregator(DISCUSSION_PLAN)

        first = aggregator.mark_completed(SectionName.WARMUP)
        second = aggregator.mark_completed(SectionName.WARMUP)

        assert first == second == 14

    def test_never_decreases(self):
        """Test that partial credit already reported is not taken back."""
        aggregator = ProgressAggregator(DISCUSSION_PLAN)

        retrying = aggregator.current(in_progress=SectionName.READING, partial=0.5)
        after = aggregator.current()

        assert retrying == 14
        assert after == retrying

    def test_finish(self):
        aggregator = ProgressAggregator(DISCUSSION_PLAN)
        assert aggregator.finish() == 100
        assert aggregator.current() == 100


class TestSafeObserver:
    """Test that observer failures never reach the pipeline."""

    @pytest.mark.asyncio
    async def test_sync_observer(self):
        seen = []
        observer = SafeObserver(seen.append)

        assert await observer(update()) is True
        assert seen == [update()]

    @pytest.mark.asyncio
    async def test_async_observer(self):
        seen = []

        async def observe(u):
            seen.append(u.progress)

        assert await SafeObserver(observe)(update(42)) is True
        assert seen == [42]

    @pytest.mark.asyncio
    async def test_raising_observer_is_isolated(self):
        def broken(u):
            raise RuntimeError("UI went away")

        observer = SafeObserver(broken)

        assert await observer(update()) is False
        assert await observer(update(20)) is False
        assert len(observer.failures) == 2
        assert observer.failures[0].update == update()
        assert isinstance(observer.failures[0].original, RuntimeError)

    @pytest.mark.asyncio
    async def test_no_observer(self):
        assert await SafeObserver()(update()) is False


class TestEventChannel:
    """Test the bounded event queue."""

    @pytest.mark.asyncio
    async def test_iterates_until_closed(self):
        channel = EventChannel(maxsize=4)
        await channel.publish(ProgressEvent.from_update(update(10)))
        await channel.publish(ProgressEvent.from_update(update(20)))
        channel.close()

        events = [event async for event in channel]

        assert [event.progress for event in events] == [10, 20]

    @pytest.mark.asyncio
    async def test_close_on_full_queue_still_ends_stream(self):
        channel = EventChannel(maxsize=1)
        await channel.publish(ProgressEvent.from_update(update(10)))
        channel.close()

        events = [event async for event in channel]

        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_publish_after_close(self):
        channel = EventChannel()
        channel.close()
        channel.close()

        with pytest.raises(RuntimeError):
            await channel.publish(ProgressEvent.from_update(update()))


class TestProgressReporter:
    """Test the updates emitted over a section lifecycle."""

    @pytest.mark.asyncio
    async def test_lifecycle_updates(self):
        seen = []
        channel = EventChannel(maxsize=16)
        reporter = ProgressReporter(ProgressAggregator(DISCUSSION_PLAN), SafeObserver(seen.append), channel)

        await reporter.init("Validating source document")
        await reporter.section_started(SectionName.WARMUP)
        await reporter.section_completed(SectionName.WARMUP)
        await reporter.section_retrying(SectionName.VOCABULARY, 2)
        await reporter.section_completed(SectionName.VOCABULARY)
        await reporter.save()
        channel.close()

        assert [u.progress for u in seen] == [0, 0, 14, 25, 36, 100]
        assert [u.phase for u in seen] == ["init", "warmup", "warmup", "vocabulary", "vocabulary", "save"]
        assert seen[3].step == "Improving vocabulary (attempt 2)"
        assert seen[3].section == "vocabulary"
        events = [event async for event in channel]
        assert [event.progress for event in events] == [0, 0, 14, 25, 36, 100]

    @pytest.mark.asyncio
    async def test_emit_clamps_to_last_progress(self):
        reporter = ProgressReporter(ProgressAggregator(DISCUSSION_PLAN))

        await reporter.emit("Halfway", 50, "reading")
        later = await reporter.emit("Lower", 20, "reading")

        assert later.progress == 50

    @pytest.mark.asyncio
    async def test_last_state(self):
        reporter = ProgressReporter(ProgressAggregator(DISCUSSION_PLAN))
        assert reporter.last_state() == {"step": "Not started", "progress": 0, "phase": "init"}

        await reporter.section_started(SectionName.READING)

        assert reporter.last_state() == {
            "step": "Generating reading",
            "progress": 0,
            "phase": "reading",
            "section": "reading",
        }

    @pytest.mark.asyncio
    async def test_broken_observer_does_not_stop_reporting(self):
        def broken(u):
            raise ValueError("boom")

        reporter = ProgressReporter(ProgressAggregator(DISCUSSION_PLAN), SafeObserver(broken))

        await reporter.section_completed(SectionName.WARMUP)
        final = await reporter.save()

        assert final.progress == 100
        assert len(reporter.observer.failures) == 2
