"""Sentiment analysis API endpoint (entry point A).

- GET /sentiment?entity=...: Run the full pipeline for an entity

A failed run still answers 200: the snapshot's `error` field is set and the
counts are zeroed (or the demo dataset is served when DEMO_FALLBACK is on).
"""

from fastapi import APIRouter, Query, Request

from brandpulse.api.responses import VALIDATION_ERROR, raise_api_error, wrap_response
from brandpulse.backend.utils.logging_config import get_logger
from brandpulse.pipeline import AnalysisPipeline

router = APIRouter(tags=["sentiment"])
logger = get_logger(__name__)


@router.get("/sentiment")
async def get_sentiment(
    request: Request,
    entity: str = Query(..., min_length=1, description="Brand or company name to analyze"),
):
    """Analyze Reddit sentiment about an entity.

    Returns:
        Envelope whose data is a SentimentSnapshot: score, counts, mentions,
        history, topics, recommendations, recommendation_summary, warnings
        and error (set only on failure)

    Example:
        GET /sentiment?entity=Tesla
    """
    entity = entity.strip()
    if not entity:
        raise_api_error(VALIDATION_ERROR, "entity must not be blank")

    state = request.app.state
    pipeline = AnalysisPipeline(state.ai_client, state.reddit, state.settings)
    snapshot = await pipeline.run_analysis(entity)

    logger.info(
        "sentiment_request_completed",
        entity=entity,
        total=snapshot.total,
        failed=snapshot.error is not None,
    )
    return wrap_response(snapshot)
