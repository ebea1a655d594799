"""Reddit Integration Module

This module fetches public Reddit content through the unauthenticated JSON
endpoints (search.json and <permalink>.json) using httpx, and converts it to
SourceItem / CommentItem objects.

Every network or payload problem degrades to an empty result: a non-2xx
status, a non-JSON content type, a malformed body or a transport error is
logged and returned as [] so collection can continue with the other topics.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
import structlog

from brandpulse.config import DEFAULT_USER_AGENT
from brandpulse.models.content_models import CommentItem, SourceItem

# Initialize logger
logger = structlog.get_logger()

REDDIT_BASE_URL = "https://www.reddit.com"
SEARCH_URL = f"{REDDIT_BASE_URL}/search.json"
POST_URL_BASE = "https://reddit.com"

# Only this much of the body is checked for the entity name
ENTITY_BODY_WINDOW = 500

# Known homonyms and job-posting phrases that disqualify an otherwise matching post
IRRELEVANT_PATTERNS = [
    re.compile(r"tesla\s+coil", re.IGNORECASE),
    re.compile(r"nikola\s+tesla", re.IGNORECASE),
    re.compile(r"tesla\s+(unit|measurement)", re.IGNORECASE),
    re.compile(r"\bhiring\b", re.IGNORECASE),
    re.compile(r"\bwe'?re\s+hiring\b", re.IGNORECASE),
    re.compile(r"\bjoin\s+our\s+team\b", re.IGNORECASE),
    re.compile(r"\bposition\s+available\b", re.IGNORECASE),
    re.compile(r"\bresume\b", re.IGNORECASE),
]


class RedditAPIError(Exception):
    """Raised internally for unusable Reddit responses; never escapes RedditClient."""
    pass


def _to_iso_utc(created_utc: Any) -> str:
    """Convert a Reddit created_utc epoch value to an ISO 8601 UTC string."""
    if isinstance(created_utc, (int, float)) and not isinstance(created_utc, bool):
        return datetime.fromtimestamp(created_utc, tz=timezone.utc).isoformat()
    return datetime.now(timezone.utc).isoformat()


def mentions_entity(entity: str, title: str, body_text: str) -> bool:
    """Check that a post is really about the entity.

    The entity must appear as a whole word (case-insensitive) in the title or
    in the first 500 characters of the body, and none of IRRELEVANT_PATTERNS
    may match that same text.

    Examples:
        >>> mentions_entity("Tesla", "Tesla's service was great", "")
        True
        >>> mentions_entity("Tesla", "Teslacoil build log", "")
        False
        >>> mentions_entity("Tesla", "Nikola Tesla biography", "")
        False
    """
    entity_pattern = re.compile(r"\b" + re.escape(entity) + r"\b", re.IGNORECASE)
    text_to_check = f"{title} {body_text[:ENTITY_BODY_WINDOW]}"

    if not entity_pattern.search(title) and not entity_pattern.search(text_to_check):
        return False

    return not any(pattern.search(text_to_check) for pattern in IRRELEVANT_PATTERNS)


def extract_text(item: SourceItem) -> str:
    """Return title and body joined by a space, stripped."""
    return f"{item.title} {item.body_text}".strip()


def post_url(permalink: str) -> str:
    """Build the absolute URL of a post from its permalink path."""
    return f"{POST_URL_BASE}{permalink}"


def filter_by_score(items: Iterable[SourceItem], min_score: int = 0) -> List[SourceItem]:
    """Keep items whose Reddit score is at least min_score."""
    return [item for item in items if item.upvote_score >= min_score]


def filter_by_subreddit(items: Iterable[SourceItem], subreddits: Iterable[str]) -> List[SourceItem]:
    """Keep items posted in one of the given subreddits (case-insensitive)."""
    allowed = {s.lower() for s in subreddits}
    return [item for item in items if item.community_tag.lower() in allowed]


def dedupe_by_id(items: Iterable[SourceItem]) -> List[SourceItem]:
    """Collapse items sharing an id, keeping the last occurrence.

    Each surviving item takes the position of its final occurrence.

    Examples:
        >>> [i.title for i in dedupe_by_id([a1, b, a2])]  # a1.id == a2.id
        ['b', 'a2']
    """
    by_id: Dict[str, SourceItem] = {}
    for item in items:
        by_id.pop(item.id, None)
        by_id[item.id] = item
    return list(by_id.values())


def _to_source_item(data: Dict[str, Any]) -> Optional[SourceItem]:
    """Map a search result's data dict to a SourceItem, or None if it has no id."""
    post_id = data.get("id")
    if not post_id:
        return None

    score = data.get("score", 0)
    return SourceItem(
        id=str(post_id),
        title=data.get("title") or "",
        body_text=data.get("selftext") or "",
        author=data.get("author") or "[deleted]",
        community_tag=data.get("subreddit") or "",
        created_at=_to_iso_utc(data.get("created_utc")),
        permalink=data.get("permalink") or "",
        upvote_score=score if isinstance(score, int) else 0,
    )


def _flatten_comments(
    children: Any,
    community_tag: str,
    permalink: str,
    parent_title: str,
) -> List[CommentItem]:
    """Flatten a reply tree depth-first, each comment followed by its replies.

    Only `t1` entries with a body are kept; "more" stubs and deleted entries
    without a body are skipped along with their subtrees.
    """
    comments: List[CommentItem] = []
    if not isinstance(children, list):
        return comments

    for child in children:
        if not isinstance(child, dict) or child.get("kind") != "t1":
            continue
        data = child.get("data")
        if not isinstance(data, dict) or not data.get("body"):
            continue

        comments.append(CommentItem(
            id=str(data.get("id", "")),
            body_text=data["body"],
            author=data.get("author") or "[deleted]",
            community_tag=community_tag,
            created_at=_to_iso_utc(data.get("created_utc")),
            permalink_of_parent=permalink,
            parent_title=parent_title,
        ))

        # Reddit sends "" instead of a listing when there are no replies
        replies = data.get("replies")
        if isinstance(replies, dict):
            nested = replies.get("data", {})
            if isinstance(nested, dict):
                comments.extend(_flatten_comments(
                    nested.get("children"), community_tag, permalink, parent_title
                ))

    return comments


class RedditClient:
    """Async client for Reddit's public JSON endpoints.

    Args:
        user_agent: Browser-like User-Agent sent with every request
        http_client: Pre-built httpx.AsyncClient (tests pass one with a MockTransport)
        timeout: Transport timeout in seconds for a client built here

    Example:
        >>> async with RedditClient() as reddit:
        ...     posts = await reddit.search("Tesla service", limit=10, timeframe="month",
        ...                                 entity_name="Tesla")
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
    ):
        self.user_agent = user_agent
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __aenter__(self) -> "RedditClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
            "Referer": f"{REDDIT_BASE_URL}/",
        }

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            RedditAPIError: Non-2xx status, non-JSON content type, undecodable
                body or transport failure
        """
        try:
            response = await self._http.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise RedditAPIError(f"Request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise RedditAPIError(f"HTTP {response.status_code}")

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise RedditAPIError(f"Unexpected content type: {content_type or 'missing'}")

        try:
            return response.json()
        except ValueError as e:
            raise RedditAPIError(f"Invalid JSON body: {e}") from e

    async def search(
        self,
        query: str,
        limit: int = 20,
        timeframe: str = "day",
        entity_name: Optional[str] = None,
    ) -> List[SourceItem]:
        """Search Reddit for posts matching query.

        Three times `limit` raw results are requested to absorb losses from the
        entity post-filter, then at most `limit` posts are returned.

        Args:
            query: Search phrase
            limit: Maximum posts to return (default: 20)
            timeframe: Reddit `t` parameter: hour/day/week/month/year/all (default: "day")
            entity_name: When given, prepended to the query if missing and
                enforced with mentions_entity()

        Returns:
            list[SourceItem] in Reddit's relevance order (empty on any failure)
        """
        search_query = query
        if entity_name and entity_name.lower() not in query.lower():
            search_query = f"{entity_name} {query}"

        params = {
            "q": search_query,
            "sort": "relevance",
            "limit": limit * 3,
            "t": timeframe,
        }

        try:
            payload = await self._get_json(SEARCH_URL, params=params)
        except RedditAPIError as e:
            logger.warning("reddit_search_failed", query=search_query, error=str(e))
            return []

        listing = payload.get("data") if isinstance(payload, dict) else None
        children = listing.get("children") if isinstance(listing, dict) else None
        if not isinstance(children, list):
            logger.warning("reddit_search_malformed_payload", query=search_query)
            return []

        posts = []
        for child in children:
            data = child.get("data") if isinstance(child, dict) else None
            if not isinstance(data, dict):
                continue
            post = _to_source_item(data)
            if post is not None:
                posts.append(post)

        raw_count = len(posts)
        if entity_name:
            posts = [p for p in posts if mentions_entity(entity_name, p.title, p.body_text)]

        posts = posts[:limit]

        logger.info(
            "reddit_search_completed",
            query=search_query,
            timeframe=timeframe,
            raw_count=raw_count,
            returned_count=len(posts),
        )
        return posts

    async def fetch_replies(
        self,
        permalink: str,
        community_tag: str = "",
        parent_title: str = "",
    ) -> List[CommentItem]:
        """Fetch and flatten the reply tree of a post.

        Reddit returns [post_listing, comment_listing]; the second listing's
        children are flattened depth-first.

        Args:
            permalink: Post permalink path (e.g. /r/cars/comments/abc/title/)
            community_tag: Subreddit inherited by every reply
            parent_title: Post title carried on every reply

        Returns:
            list[CommentItem] (empty on any failure or malformed structure)
        """
        url = f"{REDDIT_BASE_URL}{permalink.rstrip('/')}.json"

        try:
            payload = await self._get_json(url)
        except RedditAPIError as e:
            logger.warning("reddit_replies_fetch_failed", permalink=permalink, error=str(e))
            return []

        if not isinstance(payload, list) or len(payload) < 2:
            logger.warning("reddit_replies_malformed_payload", permalink=permalink)
            return []

        listing = payload[1].get("data") if isinstance(payload[1], dict) else None
        children = listing.get("children") if isinstance(listing, dict) else None
        if not isinstance(children, list):
            logger.warning("reddit_replies_malformed_payload", permalink=permalink)
            return []

        comments = _flatten_comments(children, community_tag, permalink, parent_title)

        logger.debug("reddit_replies_fetched", permalink=permalink, comment_count=len(comments))
        return comments

    async def search_multiple_topics(
        self,
        topics: List[str],
        limit: int = 20,
        timeframe: str = "day",
        entity_name: Optional[str] = None,
        delay_seconds: float = 0.0,
    ) -> Dict[str, List[SourceItem]]:
        """Search each topic in turn, sleeping delay_seconds before every search after the first.

        Returns:
            {topic: posts} for topics that returned at least one post
        """
        results: Dict[str, List[SourceItem]] = {}

        for index, topic in enumerate(topics):
            if index > 0 and delay_seconds > 0:
                await asyncio.sleep(delay_seconds)

            posts = await self.search(topic, limit=limit, timeframe=timeframe, entity_name=entity_name)
            if posts:
                results[topic] = posts

        return results
