"""Sentiment classification and aggregation.

SentimentAnalyzer makes one model call per text. Every failure (call error,
no JSON object, invalid label, missing score) degrades to a neutral result
with score 0, so one bad item never affects the others in a batch.
"""

from typing import Any, Dict, Iterable, Sequence

import structlog

from brandpulse.ai_batch import gather_in_batches
from brandpulse.ai_parser import parse_sentiment_response
from brandpulse.models.content_models import AggregateStats, CandidateItem, SentimentResult
from brandpulse.prompts import build_sentiment_prompt


logger = structlog.get_logger()

SENTIMENT_TEMPERATURE = 0.3

# Score ranges a label is normally expected to fall in
_LABEL_RANGES = {
    "positive": (10.0, 100.0),
    "neutral": (-9.0, 9.0),
    "negative": (-100.0, -10.0),
}


def neutral_result() -> SentimentResult:
    return SentimentResult(label="neutral", score=0.0)


class SentimentAnalyzer:
    """Score the sentiment of texts toward an entity on [-100, 100].

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
        concurrency: Calls in flight per batch in analyze_batch() (default: 5)
    """

    def __init__(self, ai_client: Any, concurrency: int = 5):
        self.ai_client = ai_client
        self.concurrency = concurrency

    async def analyze(self, text: str, entity: str) -> SentimentResult:
        """Classify one text. Never raises."""
        try:
            raw = await self.ai_client.generate_text(
                build_sentiment_prompt(text, entity),
                temperature=SENTIMENT_TEMPERATURE,
            )
            result = parse_sentiment_response(raw)
        except Exception as e:
            logger.warning(
                "sentiment_analysis_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
            )
            return neutral_result()

        low, high = _LABEL_RANGES[result.label]
        if not low <= result.score <= high:
            # Label and score come from the same call and are kept as returned
            logger.debug("sentiment_label_score_mismatch", label=result.label, score=result.score)

        return result

    async def analyze_batch(
        self,
        items: Sequence[CandidateItem],
        entity: str,
    ) -> Dict[str, SentimentResult]:
        """Classify many items with bounded concurrency.

        Returns:
            {item.id: SentimentResult} in input order
        """
        async def _analyze_item(item: CandidateItem) -> SentimentResult:
            return await self.analyze(item.text, entity)

        results = await gather_in_batches(items, _analyze_item, self.concurrency, stage="sentiment")

        logger.info("sentiment_batch_completed", entity=entity, item_count=len(items))
        return {item.id: result for item, result in zip(items, results)}


def calculate_aggregate(results: Iterable[SentimentResult]) -> AggregateStats:
    """Mean score and per-label counts.

    Examples:
        >>> calculate_aggregate([])
        AggregateStats(score=0.0, total=0, positive=0, neutral=0, negative=0)
    """
    results = list(results)
    if not results:
        return AggregateStats(score=0.0, total=0, positive=0, neutral=0, negative=0)

    counts = {"positive": 0, "neutral": 0, "negative": 0}
    for result in results:
        counts[result.label] = counts.get(result.label, 0) + 1

    return AggregateStats(
        score=sum(r.score for r in results) / len(results),
        total=len(results),
        positive=counts["positive"],
        neutral=counts["neutral"],
        negative=counts["negative"],
    )
