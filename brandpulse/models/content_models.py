"""Content data models for BrandPulse.

This module defines the data structures that flow through the
collection-to-recommendation pipeline, from raw Reddit content to
ready-to-publish platform posts.

Data Models:
    SourceItem: a Reddit post returned by search
    CommentItem: a flattened reply from a post's comment tree
    CandidateItem: an item that survived relevance filtering
    SentimentResult: label + score produced by one classification call
    Mention: a candidate enriched with its sentiment result
    SentimentSnapshot: aggregate view returned by an analysis run
    TopicCluster: mentions grouped under one named topic with a priority tier
    PostIdea / Recommendation: response strategies for addressed clusters
    PlatformPost: a drafted post for one social platform
    Theme / SnapshotSummary: executive summary of a snapshot

These models use dataclasses for simplicity. They are created fresh for
every run and are never persisted by the pipeline.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


SENTIMENT_LABELS = ("positive", "neutral", "negative")
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
PLATFORMS = ("twitter", "linkedin", "facebook", "instagram")


@dataclass
class SourceItem:
    """A Reddit post matching a search topic.

    Attributes:
        id: Reddit post ID (identity within a collection run)
        title: Post title
        body_text: Post self text (empty for link/image posts)
        author: Username of the poster
        community_tag: Subreddit name without the r/ prefix
        created_at: ISO 8601 UTC creation timestamp
        permalink: Reddit permalink path (e.g. /r/cars/comments/abc/...)
        upvote_score: Reddit score at fetch time
    """
    id: str
    title: str
    body_text: str
    author: str
    community_tag: str
    created_at: str
    permalink: str
    upvote_score: int = 0


@dataclass
class CommentItem:
    """A single comment from a flattened reply tree.

    Replies inherit community_tag from their post and carry the post title
    so every comment can be traced back to the thread it came from.
    """
    id: str
    body_text: str
    author: str
    community_tag: str
    created_at: str
    permalink_of_parent: str
    parent_title: str = ""


@dataclass
class CandidateItem:
    """An item selected for sentiment analysis.

    Attributes:
        id: Post or comment ID
        text: Text sent to the classifier
        author: Username
        community_tag: Subreddit name
        created_at: ISO 8601 UTC timestamp
        url: Absolute URL of the post (comments point at their parent post)
        body: Full body text, kept for summaries (optional)
    """
    id: str
    text: str
    author: str
    community_tag: str
    created_at: str
    url: str
    body: Optional[str] = None


@dataclass
class SentimentResult:
    """Sentiment of one text toward the entity.

    label and score come from the same model call and are not reconciled:
    a "positive" label with a negative score is a valid result.
    """
    label: str
    score: float


@dataclass
class Mention:
    """A candidate item with its sentiment result and display text."""
    id: str
    text: str
    label: str
    score: float
    author: str
    community_tag: str
    created_at: str
    url: str
    body: Optional[str] = None


@dataclass
class HistoryPoint:
    timestamp: str
    score: float


@dataclass
class AggregateStats:
    score: float
    total: int
    positive: int
    neutral: int
    negative: int


@dataclass
class TopicCluster:
    """A named group of mentions with aggregate sentiment and a priority tier.

    Invariant: mention_count == positive_count + neutral_count + negative_count
    == len(mentions).
    """
    topic: str
    description: str
    mention_count: int
    average_sentiment: float
    positive_count: int
    neutral_count: int
    negative_count: int
    mentions: List[Mention] = field(default_factory=list)
    should_address: bool = False
    priority: str = "low"


@dataclass
class PostIdea:
    """An abstract response strategy before platform-specific drafting.

    angle is free text (e.g. "acknowledge and explain", "share roadmap").
    """
    id: str
    title: str
    description: str
    angle: str


@dataclass
class Recommendation:
    topic: str
    priority: str
    issue: str
    impact: str
    post_ideas: List[PostIdea] = field(default_factory=list)
    affected_mention_count: int = 0


@dataclass
class PlatformPost:
    platform: str
    content: str
    hashtags: List[str]
    character_count: int
    media_recommendation: str


@dataclass
class Theme:
    theme: str
    sentiment: str
    description: str


@dataclass
class SnapshotSummary:
    executive_summary: str
    key_themes: List[Theme] = field(default_factory=list)


@dataclass
class SentimentSnapshot:
    """Result of one analysis run (entry point A).

    Attributes:
        score: Mean of all mention scores (0 when there are no mentions)
        total: Number of mentions analyzed
        positive_count / neutral_count / negative_count: Per-label tallies
        mentions: Analyzed mentions
        history: Synthetic hourly trend ending at the current score
        entity: Entity the run was about
        topics: Topic clusters, sorted by priority
        recommendations: One recommendation per addressed cluster
        recommendation_summary: Short executive summary of recommendations
        warnings: Degradation events recorded during the run
        error: Set only when the run failed and this is a fallback payload
    """
    score: float
    total: int
    positive_count: int
    neutral_count: int
    negative_count: int
    mentions: List[Mention] = field(default_factory=list)
    history: List[HistoryPoint] = field(default_factory=list)
    entity: str = ""
    topics: List[TopicCluster] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    recommendation_summary: Optional[str] = None
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
