"""Shared utilities: adapter client, budget backoff, logging and text helpers."""

from lesson_pipeline.utils.backoff import PromptInvoker, invoke_with_budget_backoff
from lesson_pipeline.utils.llm_client import LLMClient, TextGenerationAdapter

__all__ = [
    "LLMClient",
    "PromptInvoker",
    "TextGenerationAdapter",
    "invoke_with_budget_backoff",
]
