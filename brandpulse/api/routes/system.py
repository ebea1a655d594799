"""System status API endpoint.

- GET /status: Model client configuration, token usage and active pipeline settings
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from brandpulse.api.responses import wrap_response
from brandpulse.backend.utils.logging_config import get_logger

router = APIRouter(tags=["system"])
logger = get_logger(__name__)


@router.get("/status")
async def get_status(request: Request):
    """Report whether the model client is configured and how the pipeline is tuned.

    Example:
        GET /status -> {"data": {"openai_configured": true, "model": "gpt-4o-mini", ...}, "meta": {...}}
    """
    state = request.app.state
    ai_client = state.ai_client
    settings = state.settings

    status: Dict[str, Any] = {
        "openai_configured": getattr(ai_client, "is_configured", False),
        "model": settings.openai_model,
        "summary_model": settings.summary_model,
        "monthly_tokens": getattr(ai_client, "monthly_tokens", 0),
        "topic_count": settings.topic_count,
        "target_item_count": settings.target_item_count,
        "search_timeframe": settings.search_timeframe,
        "history_mode": settings.history_mode,
        "demo_fallback": settings.demo_fallback,
    }
    return wrap_response(status)
