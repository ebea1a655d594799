"""Executive summary of a sentiment snapshot.

Any call or parse failure yields fallback_summary(), a fixed payload with a
single "Analysis Error" theme, so the caller always gets a well-formed result.
"""

from typing import Any, List, Optional

import structlog

from brandpulse.ai_parser import extract_json_object
from brandpulse.models.content_models import SENTIMENT_LABELS, SentimentSnapshot, SnapshotSummary, Theme
from brandpulse.prompts import build_summary_prompt


logger = structlog.get_logger()

SUMMARY_TEMPERATURE = 0.5
MAX_THEMES = 5


def fallback_summary() -> SnapshotSummary:
    return SnapshotSummary(
        executive_summary="Unable to generate summary. Please check the sentiment data and try again.",
        key_themes=[
            Theme(theme="Analysis Error", sentiment="neutral", description="Could not parse AI response"),
        ],
    )


def _normalize_themes(raw_themes: List[Any]) -> List[Theme]:
    """Keep dict entries with a theme name; unknown sentiments become neutral."""
    themes = []
    for raw in raw_themes:
        if not isinstance(raw, dict) or not raw.get("theme"):
            continue
        sentiment = str(raw.get("sentiment") or "").strip().lower()
        themes.append(Theme(
            theme=str(raw["theme"]),
            sentiment=sentiment if sentiment in SENTIMENT_LABELS else "neutral",
            description=str(raw.get("description") or ""),
        ))
    return themes[:MAX_THEMES]


def parse_summary(raw_content: str) -> SnapshotSummary:
    """Parse {"executive_summary": str, "key_themes": [...]}.

    Raises:
        MalformedResponseError: No JSON object found
        ValueError: Missing executive_summary or key_themes is not a list
    """
    data = extract_json_object(raw_content)

    executive_summary = data.get("executive_summary")
    key_themes = data.get("key_themes")
    if not isinstance(executive_summary, str) or not executive_summary.strip():
        raise ValueError("executive_summary is missing or empty")
    if not isinstance(key_themes, list):
        raise ValueError("key_themes must be a list")

    return SnapshotSummary(executive_summary=executive_summary.strip(), key_themes=_normalize_themes(key_themes))


async def summarize_snapshot(
    ai_client: Any,
    snapshot: SentimentSnapshot,
    model: Optional[str] = None,
) -> SnapshotSummary:
    """Summarize a snapshot's counts and mentions into an executive summary and 3-5 themes."""
    prompt = build_summary_prompt(
        score=snapshot.score,
        total=snapshot.total,
        positive=snapshot.positive_count,
        neutral=snapshot.neutral_count,
        negative=snapshot.negative_count,
        mentions=snapshot.mentions,
    )

    try:
        raw = await ai_client.generate_text(prompt, temperature=SUMMARY_TEMPERATURE, model=model)
        summary = parse_summary(raw)
    except Exception as e:
        logger.warning(
            "snapshot_summary_failed",
            entity=snapshot.entity,
            error_type=type(e).__name__,
            error=str(e),
        )
        return fallback_summary()

    logger.info("snapshot_summarized", entity=snapshot.entity, theme_count=len(summary.key_themes))
    return summary

