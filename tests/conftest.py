"""Shared fixtures for lesson pipeline tests."""

import pytest

from fakes import SUMMARY, THEMES, VOCABULARY, FakeAdapter, source_text
from lesson_pipeline.models.schema import (
    GenerationContext,
    GenerationRequest,
    SourceDocument,
    SourceMetadata,
    Tier,
)
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import extract_named_entities


@pytest.fixture
def article_text():
    """A 1,200-word article about cities and clean energy."""
    return source_text(1200)


@pytest.fixture
def document(article_text):
    return SourceDocument(
        text=article_text,
        metadata=SourceMetadata(title="Cities and clean energy", url="https://example.com/energy"),
    )


@pytest.fixture
def make_request(document):
    def _make(tier=Tier.B1, artifact_kind="discussion", **kwargs):
        return GenerationRequest(document=document, tier=tier, artifact_kind=artifact_kind, **kwargs)

    return _make


@pytest.fixture
def make_context(article_text):
    def _make(tier=Tier.B1, **overrides):
        fields = dict(
            tier=tier,
            target_language="English",
            content_summary=SUMMARY,
            ranked_vocabulary=list(VOCABULARY),
            main_themes=list(THEMES),
            source_excerpt=article_text[:1000],
            source_entities=extract_named_entities(article_text),
        )
        fields.update(overrides)
        return GenerationContext(**fields)

    return _make


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def make_invoker(make_request):
    def _make(adapter, tier=Tier.B1, default_budget=None):
        return PromptInvoker(adapter, make_request(tier=tier), default_budget=default_budget)

    return _make
