"""Unit tests for output budget backoff."""

import pytest

from fakes import FakeAdapter, sequence
from lesson_pipeline.errors import (
    GenerationCancelled,
    NetworkError,
    QuotaExceeded,
    ServiceUnavailable,
    TokenLimitExceeded,
    TruncatedNoContent,
)
from lesson_pipeline.utils.backoff import budget_schedule, invoke_with_budget_backoff

PROMPT = "Summarize this text in 2-3 sentences for B1 level students"


class TestBudgetSchedule:
    """Test the budget steps tried for one call."""

    @pytest.mark.parametrize(
        "budget, expected",
        [
            (60, [60, 30, None]),
            (40, [40, 20, None]),
            (30, [30, 20, None]),
            (None, [None]),
        ],
    )
    def test_schedule(self, budget, expected):
        """Test halving with a floor, then the service default."""
        assert budget_schedule(budget) == expected


class TestInvokeWithBudgetBackoff:
    """Test truncation recovery and error translation."""

    @pytest.mark.asyncio
    async def test_success_first_call(self):
        adapter = FakeAdapter({PROMPT: sequence("A short summary.")})

        text = await invoke_with_budget_backoff(adapter, PROMPT, 60)

        assert text == "A short summary."
        assert [budget for _, budget in adapter.calls] == [60]

    @pytest.mark.asyncio
    async def test_truncation_steps_down_budget(self):
        """Test that a truncated call is retried at half the budget."""
        adapter = FakeAdapter({PROMPT: sequence(TruncatedNoContent(40), "Recovered summary.")})

        text = await invoke_with_budget_backoff(adapter, PROMPT, 40)

        assert text == "Recovered summary."
        assert [budget for _, budget in adapter.calls] == [40, 20]

    @pytest.mark.asyncio
    async def test_falls_back_to_service_default(self):
        adapter = FakeAdapter(
            {PROMPT: sequence(TruncatedNoContent(60), TruncatedNoContent(30), "Finally.")}
        )

        text = await invoke_with_budget_backoff(adapter, PROMPT, 60)

        assert text == "Finally."
        assert [budget for _, budget in adapter.calls] == [60, 30, None]

    @pytest.mark.asyncio
    async def test_every_step_truncated(self):
        """Test TokenLimitExceeded after the last budget step."""
        adapter = FakeAdapter({PROMPT: sequence(TruncatedNoContent(None))})

        with pytest.raises(TokenLimitExceeded) as exc_info:
            await invoke_with_budget_backoff(adapter, PROMPT, 60)

        assert exc_info.value.budgets == [60, 30, None]
        assert len(adapter.calls) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, reason",
        [(QuotaExceeded("rate limited"), "quota"), (NetworkError("connection reset"), "network")],
    )
    async def test_service_errors_not_retried(self, error, reason):
        """Test that quota and network failures surface after one call."""
        adapter = FakeAdapter({PROMPT: sequence(error)})

        with pytest.raises(ServiceUnavailable) as exc_info:
            await invoke_with_budget_backoff(adapter, PROMPT, 60)

        assert exc_info.value.reason == reason
        assert exc_info.value.original is error
        assert len(adapter.calls) == 1

    @pytest.mark.asyncio
    async def test_checkpoint_abandons_call(self, make_request):
        """Test that a cancelled request stops before the next sub-call."""
        request = make_request()
        adapter = FakeAdapter({PROMPT: sequence(TruncatedNoContent(60), "never returned")})

        def checkpoint():
            request.raise_if_cancelled()
            request.cancel()

        with pytest.raises(GenerationCancelled):
            await invoke_with_budget_backoff(adapter, PROMPT, 60, checkpoint=checkpoint)

        assert len(adapter.calls) == 1


class TestPromptInvoker:
    """Test the request-bound invoker."""

    @pytest.mark.asyncio
    async def test_counts_sub_calls_and_uses_default_budget(self, make_invoker):
        adapter = FakeAdapter({PROMPT: sequence(TruncatedNoContent(60), "Summary.")})
        invoker = make_invoker(adapter, default_budget=60)

        assert await invoker(PROMPT) == "Summary."
        assert invoker.sub_calls == 2
        assert [budget for _, budget in adapter.calls] == [60, 30]

    @pytest.mark.asyncio
    async def test_explicit_budget_overrides_default(self, make_invoker):
        adapter = FakeAdapter({PROMPT: sequence("Title")})
        invoker = make_invoker(adapter, default_budget=1000)

        await invoker(PROMPT, budget=50)

        assert adapter.calls[0][1] == 50

    @pytest.mark.asyncio
    async def test_cancelled_request_makes_no_call(self, make_invoker):
        adapter = FakeAdapter()
        invoker = make_invoker(adapter)
        invoker.request.cancel()

        with pytest.raises(GenerationCancelled):
            await invoker(PROMPT)

        assert adapter.calls == []
        assert invoker.sub_calls == 0
