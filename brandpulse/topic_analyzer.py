"""Topic clustering and priority scoring.

Mentions are grouped into model-named topics in three phases:

1. Topic identification from a sample of mention texts
2. Per-mention topic assignment, batched with bounded concurrency
3. Per-cluster statistics and priority tier (pure, see build_cluster)

Priority Rules:
    should_address = negative% >= 40  OR  (negative >= 3 AND average < -10)
    high           = addressed AND (negative% >= 60 OR average <= -30)
    medium         = addressed otherwise
    low            = not addressed
"""

from typing import Any, Dict, List, Sequence

import structlog

from brandpulse.ai_batch import gather_in_batches
from brandpulse.ai_parser import parse_string_list, strip_wrapping_quotes
from brandpulse.models.content_models import PRIORITY_ORDER, Mention, TopicCluster
from brandpulse.prompts import (
    build_topic_assignment_prompt,
    build_topic_description_prompt,
    build_topic_identification_prompt,
)


logger = structlog.get_logger()

FALLBACK_TOPIC = "General Feedback"
IDENTIFICATION_SAMPLE_SIZE = 30
MAX_TOPICS = 8
ASSIGNMENT_BATCH_SIZE = 10
DESCRIPTION_SAMPLE_SIZE = 5

IDENTIFICATION_TEMPERATURE = 0.5
ASSIGNMENT_TEMPERATURE = 0.3
DESCRIPTION_TEMPERATURE = 0.4

ADDRESS_NEGATIVE_PCT = 40.0
ADDRESS_MIN_NEGATIVE = 3
ADDRESS_MAX_AVERAGE = -10.0
HIGH_NEGATIVE_PCT = 60.0
HIGH_MAX_AVERAGE = -30.0


def fallback_description(topic: str) -> str:
    return f"Customer feedback about {topic}"


def build_cluster(topic: str, description: str, mentions: List[Mention]) -> TopicCluster:
    """Compute counts, average sentiment and priority for one non-empty topic.

    Examples:
        >>> # 10 mentions, 6 negative
        >>> build_cluster("Service", "", mentions).priority
        'high'
    """
    positive = sum(1 for m in mentions if m.label == "positive")
    neutral = sum(1 for m in mentions if m.label == "neutral")
    negative = sum(1 for m in mentions if m.label == "negative")

    count = len(mentions)
    average = sum(m.score for m in mentions) / count if count else 0.0
    negative_pct = negative / count * 100 if count else 0.0

    should_address = (
        negative_pct >= ADDRESS_NEGATIVE_PCT
        or (negative >= ADDRESS_MIN_NEGATIVE and average < ADDRESS_MAX_AVERAGE)
    )

    if not should_address:
        priority = "low"
    elif negative_pct >= HIGH_NEGATIVE_PCT or average <= HIGH_MAX_AVERAGE:
        priority = "high"
    else:
        priority = "medium"

    return TopicCluster(
        topic=topic,
        description=description,
        mention_count=count,
        average_sentiment=average,
        positive_count=positive,
        neutral_count=neutral,
        negative_count=negative,
        mentions=list(mentions),
        should_address=should_address,
        priority=priority,
    )


def sort_clusters(clusters: List[TopicCluster]) -> List[TopicCluster]:
    """Sort by priority (high, medium, low), then by mention count descending."""
    return sorted(clusters, key=lambda c: (PRIORITY_ORDER[c.priority], -c.mention_count))


def match_topic(answer: str, topics: Sequence[str]) -> str:
    """Return the first topic contained in the answer (case-insensitive), else the first topic."""
    cleaned = strip_wrapping_quotes(answer).lower()
    for topic in topics:
        if topic.lower() in cleaned:
            return topic
    return topics[0]


class TopicAnalyzer:
    """Group mentions into prioritized topic clusters.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
    """

    def __init__(self, ai_client: Any):
        self.ai_client = ai_client

    async def cluster_by_topics(self, mentions: Sequence[Mention], entity: str) -> List[TopicCluster]:
        """Cluster mentions; returns [] for no mentions or any unexpected error."""
        if not mentions:
            return []

        try:
            topics = await self.identify_topics(mentions, entity)
            grouped = await self.assign_mentions(mentions, topics, entity)

            clusters = []
            for topic, members in grouped.items():
                description = await self.describe_topic(topic, members, entity)
                clusters.append(build_cluster(topic, description, members))

            clusters = sort_clusters(clusters)
        except Exception as e:
            logger.error(
                "topic_clustering_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

        logger.info(
            "topic_clustering_completed",
            entity=entity,
            cluster_count=len(clusters),
            addressed_count=sum(1 for c in clusters if c.should_address),
        )
        return clusters

    async def identify_topics(self, mentions: Sequence[Mention], entity: str) -> List[str]:
        """Name up to 8 topics from the first 30 mentions, or [FALLBACK_TOPIC]."""
        texts = [m.text for m in mentions[:IDENTIFICATION_SAMPLE_SIZE]]

        try:
            raw = await self.ai_client.generate_text(
                build_topic_identification_prompt(texts, entity),
                temperature=IDENTIFICATION_TEMPERATURE,
            )
            topics = parse_string_list(raw)[:MAX_TOPICS]
        except Exception as e:
            logger.warning(
                "topic_identification_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
            )
            return [FALLBACK_TOPIC]

        if not topics:
            logger.warning("topic_identification_empty", entity=entity)
            return [FALLBACK_TOPIC]

        return topics

    async def assign_mentions(
        self,
        mentions: Sequence[Mention],
        topics: List[str],
        entity: str,
    ) -> Dict[str, List[Mention]]:
        """Assign each mention to exactly one topic.

        Returns:
            {topic: mentions} for non-empty topics, in topic order; members
            keep their input order
        """
        async def _assign(mention: Mention) -> str:
            return await self._assign_one(mention, topics, entity)

        assigned = await gather_in_batches(
            mentions, _assign, ASSIGNMENT_BATCH_SIZE, stage="topic_assignment"
        )

        grouped: Dict[str, List[Mention]] = {topic: [] for topic in topics}
        for mention, topic in zip(mentions, assigned):
            grouped[topic].append(mention)

        return {topic: members for topic, members in grouped.items() if members}

    async def _assign_one(self, mention: Mention, topics: List[str], entity: str) -> str:
        try:
            raw = await self.ai_client.generate_text(
                build_topic_assignment_prompt(mention.text, topics, entity),
                temperature=ASSIGNMENT_TEMPERATURE,
            )
        except Exception as e:
            logger.warning(
                "topic_assignment_failed",
                mention_id=mention.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return topics[0]

        return match_topic(raw, topics)

    async def describe_topic(self, topic: str, mentions: Sequence[Mention], entity: str) -> str:
        """One-sentence description from up to 5 sample mentions."""
        samples = [m.text for m in mentions[:DESCRIPTION_SAMPLE_SIZE]]

        try:
            raw = await self.ai_client.generate_text(
                build_topic_description_prompt(topic, samples, entity),
                temperature=DESCRIPTION_TEMPERATURE,
            )
        except Exception as e:
            logger.warning(
                "topic_description_failed",
                topic=topic,
                error_type=type(e).__name__,
                error=str(e),
            )
            return fallback_description(topic)

        description = strip_wrapping_quotes(raw)
        return description or fallback_description(topic)
