"""Search-topic generation.

Asks the model for search phrases that surface opinions about an entity.
The pipeline never proceeds with zero topics: every failure falls back to
searching for the entity name itself.
"""

from typing import Any, List

import structlog

from brandpulse.ai_parser import MalformedResponseError, parse_string_list
from brandpulse.prompts import build_topic_prompt


logger = structlog.get_logger()

TOPIC_TEMPERATURE = 0.7


class TopicGenerator:
    """Generate search topics for an entity.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
    """

    def __init__(self, ai_client: Any):
        self.ai_client = ai_client

    async def generate_topics(self, entity: str, count: int = 5) -> List[str]:
        """Return up to `count` distinct search phrases, or [entity] on any failure."""
        try:
            raw = await self.ai_client.generate_text(
                build_topic_prompt(entity, count),
                temperature=TOPIC_TEMPERATURE,
            )
            topics = parse_string_list(raw)[:count]
        except MalformedResponseError as e:
            logger.warning("topic_generation_unparseable", entity=entity, error=str(e))
            return [entity]
        except Exception as e:
            logger.warning(
                "topic_generation_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
            )
            return [entity]

        if not topics:
            logger.warning("topic_generation_empty", entity=entity)
            return [entity]

        logger.info("topics_generated", entity=entity, topic_count=len(topics), topics=topics)
        return topics
