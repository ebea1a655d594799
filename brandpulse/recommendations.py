"""Response recommendations for topic clusters that need attention.

For every cluster with should_address=True the model proposes an issue
statement, a business impact and up to four post ideas. A cluster whose call
or parse fails is dropped rather than returned half-filled.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional, Sequence

import structlog

from brandpulse.ai_parser import extract_json_object
from brandpulse.backend.utils.errors import WARNING_TYPE_RECOMMENDATION_DROPPED, WarningsCollector
from brandpulse.models.content_models import PRIORITY_ORDER, Mention, PostIdea, Recommendation, TopicCluster
from brandpulse.prompts import build_executive_summary_prompt, build_recommendation_prompt


logger = structlog.get_logger()

RECOMMENDATION_TEMPERATURE = 0.6
SUMMARY_TEMPERATURE = 0.5
MAX_NEGATIVE_SAMPLES = 8
MAX_POST_IDEAS = 4
NEGATIVE_SCORE_THRESHOLD = -10

DEFAULT_ISSUE = "Issue not identified"
DEFAULT_IMPACT = "Impact unclear"


def negative_samples(cluster: TopicCluster) -> List[Mention]:
    """Mentions labeled negative or scoring below -10, at most 8."""
    samples = [m for m in cluster.mentions if m.label == "negative" or m.score < NEGATIVE_SCORE_THRESHOLD]
    return samples[:MAX_NEGATIVE_SAMPLES]


def topic_slug(topic: str) -> str:
    """Lowercase, hyphen-separated form of a topic name.

    Examples:
        >>> topic_slug("Customer Service & Support")
        'customer-service-support'
    """
    return re.sub(r"[^a-z0-9]+", "-", topic.lower()).strip("-") or "topic"


def parse_post_ideas(raw_ideas: Any, topic: str) -> List[PostIdea]:
    """Convert the model's postSuggestions into PostIdea objects.

    Non-dict entries are skipped, at most 4 ideas are kept and a missing id is
    derived from the topic slug and the idea's position.
    """
    if not isinstance(raw_ideas, list):
        return []

    slug = topic_slug(topic)
    ideas = []
    for raw in raw_ideas:
        if not isinstance(raw, dict):
            continue
        position = len(ideas) + 1
        ideas.append(PostIdea(
            id=str(raw.get("id") or f"{slug}-{position}"),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            angle=str(raw.get("angle") or ""),
        ))
        if len(ideas) == MAX_POST_IDEAS:
            break
    return ideas


class RecommendationEngine:
    """Turn addressed topic clusters into structured response strategies.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
    """

    def __init__(self, ai_client: Any):
        self.ai_client = ai_client

    async def generate_recommendations(
        self,
        clusters: Sequence[TopicCluster],
        entity: str,
        warnings: Optional[WarningsCollector] = None,
    ) -> List[Recommendation]:
        """One recommendation per addressed cluster, generated concurrently, sorted by priority."""
        to_address = [c for c in clusters if c.should_address]
        if not to_address:
            return []

        results = await asyncio.gather(
            *(self.generate_recommendation(cluster, entity) for cluster in to_address)
        )

        recommendations = []
        for cluster, recommendation in zip(to_address, results):
            if recommendation is None:
                if warnings is not None:
                    warnings.append(
                        WARNING_TYPE_RECOMMENDATION_DROPPED,
                        "Recommendation generation failed; cluster dropped",
                        {"topic": cluster.topic, "priority": cluster.priority},
                    )
                continue
            recommendations.append(recommendation)

        recommendations.sort(key=lambda r: PRIORITY_ORDER[r.priority])

        logger.info(
            "recommendations_generated",
            entity=entity,
            addressed_clusters=len(to_address),
            recommendation_count=len(recommendations),
        )
        return recommendations

    async def generate_recommendation(self, cluster: TopicCluster, entity: str) -> Optional[Recommendation]:
        """Generate the recommendation for one cluster, or None on any failure."""
        prompt = build_recommendation_prompt(cluster, negative_samples(cluster), entity)

        try:
            raw = await self.ai_client.generate_text(prompt, temperature=RECOMMENDATION_TEMPERATURE)
            data = extract_json_object(raw)
        except Exception as e:
            logger.warning(
                "recommendation_dropped",
                topic=cluster.topic,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        return Recommendation(
            topic=cluster.topic,
            priority=cluster.priority,
            issue=str(data.get("issue") or DEFAULT_ISSUE),
            impact=str(data.get("impact") or DEFAULT_IMPACT),
            post_ideas=parse_post_ideas(data.get("postSuggestions"), cluster.topic),
            affected_mention_count=cluster.negative_count,
        )

    async def generate_executive_summary(self, recommendations: Sequence[Recommendation], entity: str) -> str:
        """Summarize the recommendations in 2-3 sentences."""
        if not recommendations:
            return f"No major concerns identified. Customer sentiment about {entity} is generally positive."

        high = [r for r in recommendations if r.priority == "high"]
        medium = [r for r in recommendations if r.priority == "medium"]

        try:
            raw = await self.ai_client.generate_text(
                build_executive_summary_prompt(high, medium, entity),
                temperature=SUMMARY_TEMPERATURE,
            )
            summary = raw.strip()
        except Exception as e:
            logger.warning(
                "executive_summary_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
            )
            summary = ""

        return summary or f"{entity} has {len(recommendations)} areas requiring attention based on customer feedback."
