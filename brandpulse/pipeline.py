"""Collection-to-recommendation pipeline (entry point A).

Stages run strictly in sequence; each one starts only after the previous
stage's full output is available:

    topics -> search (per topic, deduplicated) -> replies (top posts)
    -> relevance filter -> fallback cascade -> sentiment -> aggregate
    -> history -> topic clusters -> recommendations

Stages degrade on their own and record what they gave up in a
WarningsCollector. run_analysis() holds the only catch-all: an unexpected
error anywhere produces a fallback snapshot instead of an exception.
"""

import asyncio
import math
import random
import time
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

import structlog

from brandpulse.backend.utils.errors import (
    WARNING_TYPE_ANALYSIS_FAILED,
    WARNING_TYPE_COMMENT_FALLBACK_USED,
    WARNING_TYPE_NO_SOURCES_FOUND,
    WARNING_TYPE_TOPIC_CLUSTERING_EMPTY,
    WarningsCollector,
)
from brandpulse.config import Settings
from brandpulse.history import generate_history, generate_smooth_history
from brandpulse.models.content_models import (
    CandidateItem,
    CommentItem,
    HistoryPoint,
    Mention,
    SentimentResult,
    SentimentSnapshot,
    SourceItem,
)
from brandpulse.recommendations import RecommendationEngine
from brandpulse.reddit import (
    RedditClient,
    dedupe_by_id,
    extract_text,
    filter_by_score,
    filter_by_subreddit,
    post_url,
)
from brandpulse.relevance_filter import RelevanceFilter
from brandpulse.sentiment import SentimentAnalyzer, calculate_aggregate
from brandpulse.topic_analyzer import TopicAnalyzer
from brandpulse.topic_generator import TopicGenerator


logger = structlog.get_logger()

DISPLAY_TEXT_LIMIT = 200


def truncate_display_text(text: str) -> str:
    """Clip text to 200 characters plus "..." when longer."""
    if len(text) <= DISPLAY_TEXT_LIMIT:
        return text
    return text[:DISPLAY_TEXT_LIMIT] + "..."


def comment_to_candidate(comment: CommentItem) -> CandidateItem:
    return CandidateItem(
        id=comment.id,
        text=comment.body_text,
        author=comment.author,
        community_tag=comment.community_tag,
        created_at=comment.created_at,
        url=post_url(comment.permalink_of_parent),
        body=comment.body_text if len(comment.body_text) > DISPLAY_TEXT_LIMIT else None,
    )


def post_to_candidate(post: SourceItem) -> CandidateItem:
    return CandidateItem(
        id=post.id,
        text=extract_text(post),
        author=post.author,
        community_tag=post.community_tag,
        created_at=post.created_at,
        url=post_url(post.permalink),
        body=post.body_text or None,
    )


def build_mention(candidate: CandidateItem, result: SentimentResult) -> Mention:
    return Mention(
        id=candidate.id,
        text=truncate_display_text(candidate.text),
        label=result.label,
        score=result.score,
        author=candidate.author,
        community_tag=candidate.community_tag,
        created_at=candidate.created_at,
        url=candidate.url,
        body=candidate.body,
    )


def build_snapshot(
    entity: str,
    mentions: List[Mention],
    history_mode: str = "random",
    history_hours: int = 24,
    rng: Optional[random.Random] = None,
) -> SentimentSnapshot:
    """Aggregate mentions into a snapshot with a synthetic history."""
    aggregate = calculate_aggregate(SentimentResult(label=m.label, score=m.score) for m in mentions)

    if history_mode == "smooth":
        history = generate_smooth_history(aggregate.score, hours=history_hours)
    else:
        history = generate_history(aggregate.score, hours=history_hours, rng=rng)

    return SentimentSnapshot(
        score=aggregate.score,
        total=aggregate.total,
        positive_count=aggregate.positive,
        neutral_count=aggregate.neutral,
        negative_count=aggregate.negative,
        mentions=mentions,
        history=history,
        entity=entity,
    )


def fallback_snapshot(entity: str, error: str, history_hours: int = 24) -> SentimentSnapshot:
    """Zeroed snapshot returned when a run fails; history is flat at 0."""
    now = datetime.now(timezone.utc)
    history = [
        HistoryPoint(timestamp=(now - timedelta(hours=i)).isoformat(), score=0.0)
        for i in range(history_hours - 1, -1, -1)
    ]
    return SentimentSnapshot(
        score=0.0,
        total=0,
        positive_count=0,
        neutral_count=0,
        negative_count=0,
        history=history,
        entity=entity,
        error=error,
    )


def demo_snapshot(entity: str, now: Optional[datetime] = None) -> SentimentSnapshot:
    """Fixed five-mention dataset served when DEMO_FALLBACK is enabled."""
    now = now or datetime.now(timezone.utc)
    rows = [
        ("demo1", f"Just bought {entity} products and I'm really impressed with the quality!",
         "positive", 85.0, "technology"),
        ("demo2", f"{entity} announced new features today. Looks interesting but waiting to see reviews.",
         "neutral", 10.0, "business"),
        ("demo3", f"Had some issues with {entity} customer service. Hope they improve.",
         "negative", -60.0, "reviews"),
        ("demo4", f"{entity} is leading innovation in their industry. Excited for the future!",
         "positive", 90.0, "investing"),
        ("demo5", f"{entity} stock performance has been solid this quarter.",
         "positive", 70.0, "stocks"),
    ]

    mentions = [
        Mention(
            id=mention_id,
            text=text,
            label=label,
            score=score,
            author=f"demo_user_{index}",
            community_tag=subreddit,
            created_at=(now - timedelta(hours=index)).isoformat(),
            url=f"https://reddit.com/r/{subreddit}/{mention_id}",
        )
        for index, (mention_id, text, label, score, subreddit) in enumerate(rows, start=1)
    ]

    return build_snapshot(entity, mentions, history_mode="smooth")


class AnalysisPipeline:
    """Run one full analysis for an entity.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
        reddit: RedditClient used for search and reply fetches
        settings: Pipeline settings (default: Settings())
        rng: Random source for history generation (default: fresh random.Random)

    Example:
        >>> pipeline = AnalysisPipeline(OpenAIClient(), RedditClient(), load_settings())
        >>> snapshot = await pipeline.run_analysis("Tesla")
        >>> snapshot.total, [c.priority for c in snapshot.topics]
    """

    def __init__(
        self,
        ai_client: Any,
        reddit: RedditClient,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or Settings()
        self.reddit = reddit
        self.rng = rng
        self.topic_generator = TopicGenerator(ai_client)
        self.relevance_filter = RelevanceFilter(ai_client, batch_size=self.settings.relevance_batch_size)
        self.sentiment_analyzer = SentimentAnalyzer(ai_client, concurrency=self.settings.sentiment_concurrency)
        self.topic_analyzer = TopicAnalyzer(ai_client)
        self.recommendation_engine = RecommendationEngine(ai_client)

    async def collect_sources(self, entity: str, topics: Sequence[str]) -> List[SourceItem]:
        """Search every topic and merge the results, deduplicated by id.

        Each topic requests ceil(target_item_count / len(topics)) posts, with
        search_delay_seconds before every search after the first.
        """
        per_topic_limit = max(1, math.ceil(self.settings.target_item_count / len(topics)))

        results = await self.reddit.search_multiple_topics(
            list(topics),
            limit=per_topic_limit,
            timeframe=self.settings.search_timeframe,
            entity_name=entity,
            delay_seconds=self.settings.search_delay_seconds,
        )

        merged = [post for posts in results.values() for post in posts]
        posts = dedupe_by_id(merged)

        if self.settings.min_post_score > 0:
            posts = filter_by_score(posts, self.settings.min_post_score)
        if self.settings.subreddit_allowlist:
            posts = filter_by_subreddit(posts, self.settings.subreddit_allowlist)

        logger.info(
            "sources_collected",
            entity=entity,
            topic_count=len(topics),
            per_topic_limit=per_topic_limit,
            raw_count=len(merged),
            unique_count=len(posts),
        )
        return posts

    async def collect_comments(self, posts: Sequence[SourceItem]) -> List[CommentItem]:
        """Fetch reply trees of the first reply_post_limit posts, with reply_delay_seconds between fetches."""
        comments: List[CommentItem] = []

        for index, post in enumerate(posts[:self.settings.reply_post_limit]):
            if index > 0 and self.settings.reply_delay_seconds > 0:
                await asyncio.sleep(self.settings.reply_delay_seconds)

            comments.extend(await self.reddit.fetch_replies(
                post.permalink,
                community_tag=post.community_tag,
                parent_title=post.title,
            ))

        logger.info("comments_collected", post_count=min(len(posts), self.settings.reply_post_limit),
                    comment_count=len(comments))
        return comments

    async def select_candidates(
        self,
        entity: str,
        posts: Sequence[SourceItem],
        comments: Sequence[CommentItem],
        warnings: WarningsCollector,
    ) -> List[CandidateItem]:
        """Relevance-filter comments, falling back to posts when too few survive."""
        candidates = await self.relevance_filter.filter_relevant(
            [comment_to_candidate(c) for c in comments], entity, warnings=warnings
        )

        if len(candidates) < self.settings.min_candidates:
            fallback_posts = list(posts[:self.settings.fallback_post_limit])
            logger.warning(
                "comment_fallback_used",
                entity=entity,
                comment_candidates=len(candidates),
                min_candidates=self.settings.min_candidates,
                fallback_post_count=len(fallback_posts),
            )
            if fallback_posts:
                warnings.append(
                    WARNING_TYPE_COMMENT_FALLBACK_USED,
                    "Too few relevant comments; analyzing posts directly",
                    {"comment_candidates": len(candidates), "post_count": len(fallback_posts)},
                )
            candidates = [post_to_candidate(p) for p in fallback_posts]

        return candidates[:self.settings.max_candidates]

    async def analyze(self, entity: str, warnings: WarningsCollector) -> SentimentSnapshot:
        """Run every stage. Exceptions propagate to run_analysis()."""
        topics = await self.topic_generator.generate_topics(entity, self.settings.topic_count)

        posts = await self.collect_sources(entity, topics)
        if not posts:
            warnings.append(
                WARNING_TYPE_NO_SOURCES_FOUND,
                "No posts found for any search topic",
                {"topics": list(topics)},
            )

        comments = await self.collect_comments(posts)
        candidates = await self.select_candidates(entity, posts, comments, warnings)

        results = await self.sentiment_analyzer.analyze_batch(candidates, entity)
        mentions = [build_mention(c, results[c.id]) for c in candidates]

        snapshot = build_snapshot(
            entity,
            mentions,
            history_mode=self.settings.history_mode,
            history_hours=self.settings.history_hours,
            rng=self.rng,
        )

        snapshot.topics = await self.topic_analyzer.cluster_by_topics(mentions, entity)
        if mentions and not snapshot.topics:
            warnings.append(
                WARNING_TYPE_TOPIC_CLUSTERING_EMPTY,
                "Topic clustering produced no clusters",
                {"mention_count": len(mentions)},
            )

        snapshot.recommendations = await self.recommendation_engine.generate_recommendations(
            snapshot.topics, entity, warnings=warnings
        )
        snapshot.recommendation_summary = await self.recommendation_engine.generate_executive_summary(
            snapshot.recommendations, entity
        )
        return snapshot

    async def run_analysis(self, entity: str) -> SentimentSnapshot:
        """Analyze an entity. Never raises; failures produce a fallback snapshot."""
        warnings = WarningsCollector()
        started = time.monotonic()
        logger.info("analysis_started", entity=entity)

        try:
            snapshot = await self.analyze(entity, warnings)
        except Exception as e:
            logger.error(
                "analysis_failed",
                entity=entity,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            warnings.append(
                WARNING_TYPE_ANALYSIS_FAILED,
                "Analysis failed; returning fallback data",
                {"error_type": type(e).__name__},
            )
            error = str(e) or type(e).__name__
            if self.settings.demo_fallback:
                snapshot = demo_snapshot(entity)
                snapshot.error = error
            else:
                snapshot = fallback_snapshot(entity, error, self.settings.history_hours)
            snapshot.warnings = warnings.to_list()
            return snapshot

        snapshot.warnings = warnings.to_list()

        logger.info(
            "analysis_completed",
            entity=entity,
            total=snapshot.total,
            score=round(snapshot.score, 2),
            topic_count=len(snapshot.topics),
            recommendation_count=len(snapshot.recommendations),
            warning_count=len(warnings),
            duration_seconds=round(time.monotonic() - started, 2),
        )
        return snapshot
