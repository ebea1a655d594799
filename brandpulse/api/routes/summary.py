"""Snapshot summary API endpoint (entry point B).

- POST /summary: Executive summary and key themes for a SentimentSnapshot
"""

from fastapi import APIRouter, Request

from brandpulse.api.models import SnapshotIn
from brandpulse.api.responses import wrap_response
from brandpulse.backend.utils.logging_config import get_logger
from brandpulse.models.content_models import Mention, SentimentSnapshot
from brandpulse.summary import summarize_snapshot

router = APIRouter(tags=["summary"])
logger = get_logger(__name__)


def _to_snapshot(body: SnapshotIn) -> SentimentSnapshot:
    return SentimentSnapshot(
        score=body.score,
        total=body.total,
        positive_count=body.positive_count,
        neutral_count=body.neutral_count,
        negative_count=body.negative_count,
        mentions=[Mention(**m.model_dump()) for m in body.mentions],
        entity=body.entity,
    )


@router.post("/summary")
async def create_summary(request: Request, body: SnapshotIn):
    """Summarize a snapshot.

    Malformed model output is not an error here: the response carries the
    fixed "Analysis Error" fallback summary instead.

    Returns:
        Envelope whose data is {executive_summary, key_themes: [{theme, sentiment, description}]}
    """
    state = request.app.state
    summary = await summarize_snapshot(state.ai_client, _to_snapshot(body), model=state.settings.summary_model)
    return wrap_response(summary, total=len(summary.key_themes))
