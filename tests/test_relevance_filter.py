"""
Tests for two-stage relevance filtering.

Stage 1 (keyword pre-filter) fails closed; stage 2 (batched model
classification) fails open and records a relevance_batch_kept warning.
"""

import json
import re

import pytest

from tests.conftest import FakeAIClient


def _candidate(item_id, text):
    from brandpulse.models.content_models import CandidateItem

    return CandidateItem(
        id=item_id, text=text, author="user", community_tag="cars",
        created_at="2026-01-01T00:00:00+00:00", url=f"https://reddit.com/r/cars/{item_id}",
    )


def _relevant_text(n):
    return f"I love my Tesla, the charging experience has been great so far ({n})"


def _echo_ids(prompt):
    """Model stand-in that keeps every id listed in the prompt."""
    return json.dumps(re.findall(r"^ID: (\S+)$", prompt, re.MULTILINE))


class TestKeywordPrefilter:
    """is_obviously_irrelevant() rules."""

    @pytest.mark.parametrize('text', [
        "Tesla is great",
        "We're hiring at Tesla, great benefits and a friendly team",
        "How do I reset my Tesla screen? The experience has been bad",
        "I love Tesla, click here to grab a great deal before it ends",
        "BREAKING: Tesla has announced that prices are good now",
        "Thoughts on Tesla? I think the new model seems fine to me",
        "The charging experience on this car has been great so far",
        "Tesla delivered 400k vehicles this quarter according to filings",
    ])
    def test_rejected(self, text):
        from brandpulse.relevance_filter import is_obviously_irrelevant

        assert is_obviously_irrelevant(text, "Tesla") is True

    @pytest.mark.parametrize('text', [
        "I love my Tesla, the service experience was great",
        "BREAKING: Tesla cut prices and honestly this is the best decision they made",
        "Thoughts on Tesla? Honestly I hate the new yoke, worst change ever",
    ])
    def test_kept(self, text):
        from brandpulse.relevance_filter import is_obviously_irrelevant

        assert is_obviously_irrelevant(text, "Tesla") is False

    def test_entity_token_match(self):
        """A name token longer than 3 characters counts as a mention."""
        from brandpulse.relevance_filter import is_obviously_irrelevant

        text = "I love my ford, great experience with the dealer so far"

        assert is_obviously_irrelevant(text, "Ford Motor Company") is False

    def test_short_text_rejected(self):
        """Text under 30 characters is rejected even with sentiment and entity."""
        from brandpulse.relevance_filter import is_obviously_irrelevant

        assert is_obviously_irrelevant("  I love Tesla, it's great  ", "Tesla") is True


class TestRelevanceFilter:
    """RelevanceFilter.filter_relevant()."""

    @pytest.mark.asyncio
    async def test_keeps_only_returned_ids_in_input_order(self):
        from brandpulse.relevance_filter import RelevanceFilter

        items = [_candidate(f"c{i}", _relevant_text(i)) for i in range(1, 5)]
        ai = FakeAIClient(['["c3", "c1", "unknown"]'])

        result = await RelevanceFilter(ai).filter_relevant(items, "Tesla")

        assert [i.id for i in result] == ["c1", "c3"]
        assert ai.calls[0]["temperature"] == 0.3
        assert "ID: c1\nText: " in ai.prompts[0]

    @pytest.mark.asyncio
    async def test_prefiltered_items_never_sent(self):
        """Items rejected by keywords are not classified; no call when none survive."""
        from brandpulse.relevance_filter import RelevanceFilter

        items = [_candidate("c1", "Tesla is great"), _candidate("c2", "We're hiring at Tesla, great team")]
        ai = FakeAIClient()

        result = await RelevanceFilter(ai).filter_relevant(items, "Tesla")

        assert result == []
        assert ai.calls == []

    @pytest.mark.asyncio
    async def test_empty_input(self):
        from brandpulse.relevance_filter import RelevanceFilter

        ai = FakeAIClient()

        assert await RelevanceFilter(ai).filter_relevant([], "Tesla") == []
        assert ai.calls == []

    @pytest.mark.asyncio
    async def test_batches_of_batch_size(self):
        """12 survivors with batch_size 5 take 3 calls."""
        from brandpulse.relevance_filter import RelevanceFilter

        items = [_candidate(f"c{i}", _relevant_text(i)) for i in range(12)]
        ai = FakeAIClient(_echo_ids)

        result = await RelevanceFilter(ai, batch_size=5).filter_relevant(items, "Tesla")

        assert len(ai.calls) == 3
        assert [i.id for i in result] == [f"c{i}" for i in range(12)]

    @pytest.mark.asyncio
    async def test_failed_batch_kept_with_warning(self):
        """A failing batch is kept whole; other batches are still filtered."""
        from brandpulse.backend.utils.errors import WarningsCollector
        from brandpulse.relevance_filter import RelevanceFilter

        items = [_candidate(f"c{i}", _relevant_text(i)) for i in range(4)]
        ai = FakeAIClient([RuntimeError("rate limited"), '["c3"]'])
        warnings = WarningsCollector()

        result = await RelevanceFilter(ai, batch_size=2).filter_relevant(items, "Tesla", warnings=warnings)

        assert [i.id for i in result] == ["c0", "c1", "c3"]
        assert warnings.types() == ["relevance_batch_kept"]

    @pytest.mark.asyncio
    async def test_unparseable_batch_kept(self):
        from brandpulse.relevance_filter import RelevanceFilter

        items = [_candidate("c1", _relevant_text(1)), _candidate("c2", _relevant_text(2))]
        ai = FakeAIClient(["Both look relevant to me."])

        result = await RelevanceFilter(ai).filter_relevant(items, "Tesla")

        assert [i.id for i in result] == ["c1", "c2"]
