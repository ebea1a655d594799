"""
Tests for Reddit search and reply fetching over the public JSON endpoints.

HTTP traffic is served by httpx.MockTransport, so these tests cover query
construction, the entity post-filter, reply-tree flattening and the
degrade-to-empty behavior on every kind of bad response.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest


def _post(post_id, title, selftext="", subreddit="cars", score=10, created_utc=1700000000):
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "title": title,
            "selftext": selftext,
            "author": f"author_{post_id}",
            "subreddit": subreddit,
            "created_utc": created_utc,
            "permalink": f"/r/{subreddit}/comments/{post_id}/slug/",
            "score": score,
        },
    }


def _search_payload(*posts):
    return {"kind": "Listing", "data": {"children": list(posts)}}


def _comment(comment_id, body, replies=""):
    return {
        "kind": "t1",
        "data": {
            "id": comment_id,
            "body": body,
            "author": f"user_{comment_id}",
            "created_utc": 1700000000,
            "replies": replies,
        },
    }


def _client_for(handler):
    from brandpulse.reddit import RedditClient

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RedditClient(user_agent="test-agent/1.0", http_client=http), http


class TestEntityFilter:
    """Whole-word entity matching with homonym and job-post denylist."""

    @pytest.mark.parametrize('title,expected', [
        ("Tesla's service was great", True),
        ("My TESLA Model 3 after a year", True),
        ("Teslacoil build log", False),
        ("Nikola Tesla biography recommendations", False),
        ("Building a tesla coil in my garage", False),
        ("Tesla is hiring engineers", False),
        ("Ford Mustang review", False),
    ])
    def test_mentions_entity_in_title(self, title, expected):
        from brandpulse.reddit import mentions_entity

        assert mentions_entity("Tesla", title, "") is expected

    @pytest.mark.parametrize('title,expected', [
        ("Dr. Pepper tastes odd lately", True),
        ("DrX Pepper tastes odd lately", False),
    ])
    def test_entity_punctuation_matched_literally(self, title, expected):
        """A '.' in the entity name matches only a literal dot."""
        from brandpulse.reddit import mentions_entity

        assert mentions_entity("Dr. Pepper", title, "") is expected

    def test_entity_in_body_window(self):
        """The entity may appear in the first 500 characters of the body."""
        from brandpulse.reddit import mentions_entity

        assert mentions_entity("Tesla", "Picked up my new car", "It is a Tesla and I like it")

    def test_entity_beyond_body_window_ignored(self):
        """An entity mention after character 500 of the body does not count."""
        from brandpulse.reddit import mentions_entity

        body = "x" * 600 + " Tesla"

        assert not mentions_entity("Tesla", "Picked up my new car", body)

    def test_denylist_applies_to_body(self):
        """A job phrase in the body disqualifies a matching title."""
        from brandpulse.reddit import mentions_entity

        assert not mentions_entity("Tesla", "Tesla Gigafactory", "Send your resume to apply")


class TestCollectionHelpers:
    """Deduplication and post-dedup filters."""

    def _item(self, item_id, title, score=0, subreddit="cars"):
        from brandpulse.models.content_models import SourceItem

        return SourceItem(
            id=item_id, title=title, body_text="", author="a", community_tag=subreddit,
            created_at="2026-01-01T00:00:00+00:00", permalink=f"/r/{subreddit}/{item_id}",
            upvote_score=score,
        )

    def test_dedupe_keeps_one_entry_per_id(self):
        """Duplicate ids collapse to the last occurrence."""
        from brandpulse.reddit import dedupe_by_id

        items = [self._item("a", "first a"), self._item("b", "b"), self._item("a", "second a")]

        result = dedupe_by_id(items)

        assert len(result) == 2
        assert [i.title for i in result] == ["b", "second a"]

    def test_dedupe_without_duplicates_is_identity(self):
        from brandpulse.reddit import dedupe_by_id

        items = [self._item("a", "a"), self._item("b", "b")]

        assert [i.id for i in dedupe_by_id(items)] == ["a", "b"]

    def test_filter_by_score(self):
        from brandpulse.reddit import filter_by_score

        items = [self._item("a", "a", score=1), self._item("b", "b", score=10)]

        assert [i.id for i in filter_by_score(items, 5)] == ["b"]

    def test_filter_by_subreddit_case_insensitive(self):
        from brandpulse.reddit import filter_by_subreddit

        items = [self._item("a", "a", subreddit="TeslaMotors"), self._item("b", "b", subreddit="cars")]

        assert [i.id for i in filter_by_subreddit(items, ["teslamotors"])] == ["a"]

    def test_extract_text_and_post_url(self):
        from brandpulse.models.content_models import SourceItem
        from brandpulse.reddit import extract_text, post_url

        item = SourceItem(
            id="p1", title="Title", body_text="Body", author="a", community_tag="cars",
            created_at="", permalink="/r/cars/comments/p1/title/",
        )

        assert extract_text(item) == "Title Body"
        assert post_url(item.permalink) == "https://reddit.com/r/cars/comments/p1/title/"


class TestSearch:
    """RedditClient.search()."""

    @pytest.mark.asyncio
    async def test_search_query_and_params(self):
        """Entity is prepended when missing and three times the limit is requested."""
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json=_search_payload())

        reddit, http = _client_for(handler)
        await reddit.search("service reviews", limit=10, timeframe="month", entity_name="Tesla")
        await http.aclose()

        params = seen["url"].params
        assert seen["url"].path == "/search.json"
        assert params["q"] == "Tesla service reviews"
        assert params["limit"] == "30"
        assert params["sort"] == "relevance"
        assert params["t"] == "month"
        assert seen["headers"]["user-agent"] == "test-agent/1.0"

    @pytest.mark.asyncio
    async def test_query_already_containing_entity_unchanged(self):
        seen = {}

        def handler(request):
            seen["q"] = request.url.params["q"]
            return httpx.Response(200, json=_search_payload())

        reddit, http = _client_for(handler)
        await reddit.search("tesla charging", limit=5, entity_name="Tesla")
        await http.aclose()

        assert seen["q"] == "tesla charging"

    @pytest.mark.asyncio
    async def test_search_maps_and_filters_posts(self):
        """Posts failing the entity filter are dropped; the rest map to SourceItem."""
        payload = _search_payload(
            _post("p1", "Tesla's service was great", selftext="Quick and friendly"),
            _post("p2", "Teslacoil build log"),
            _post("p3", "Nikola Tesla biography"),
            _post("p4", "My Tesla after a year", subreddit="TeslaMotors", score=42),
        )

        reddit, http = _client_for(lambda request: httpx.Response(200, json=payload))
        posts = await reddit.search("service", limit=10, entity_name="Tesla")
        await http.aclose()

        assert [p.id for p in posts] == ["p1", "p4"]
        first = posts[0]
        assert first.body_text == "Quick and friendly"
        assert first.author == "author_p1"
        assert first.permalink == "/r/cars/comments/p1/slug/"
        assert first.created_at == "2023-11-14T22:13:20+00:00"
        assert posts[1].community_tag == "TeslaMotors"
        assert posts[1].upvote_score == 42

    @pytest.mark.asyncio
    async def test_search_truncates_to_limit(self):
        payload = _search_payload(*[_post(f"p{i}", f"Tesla post {i}") for i in range(6)])

        reddit, http = _client_for(lambda request: httpx.Response(200, json=payload))
        posts = await reddit.search("Tesla", limit=2, entity_name="Tesla")
        await http.aclose()

        assert [p.id for p in posts] == ["p0", "p1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize('response', [
        httpx.Response(429, json={"message": "Too Many Requests"}),
        httpx.Response(500, json={}),
        httpx.Response(200, content=b"<html>blocked</html>", headers={"content-type": "text/html"}),
        httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"}),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json=["not", "a", "listing"]),
    ])
    async def test_bad_responses_return_empty(self, response):
        """Non-2xx, non-JSON, undecodable and malformed responses all yield []."""
        reddit, http = _client_for(lambda request: response)
        posts = await reddit.search("Tesla", entity_name="Tesla")
        await http.aclose()

        assert posts == []

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        reddit, http = _client_for(handler)
        posts = await reddit.search("Tesla")
        await http.aclose()

        assert posts == []


class TestFetchReplies:
    """RedditClient.fetch_replies()."""

    @pytest.mark.asyncio
    async def test_flattens_reply_tree_depth_first(self):
        """Each comment is followed by its replies; more-stubs and empty bodies are skipped."""
        nested = {"kind": "Listing", "data": {"children": [_comment("c2", "Reply to c1")]}}
        payload = [
            _search_payload(_post("p1", "Tesla thread")),
            {"kind": "Listing", "data": {"children": [
                _comment("c1", "Top level comment", replies=nested),
                {"kind": "more", "data": {"children": ["x", "y"]}},
                _comment("c3", ""),
                _comment("c4", "Second top level"),
            ]}},
        ]
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json=payload)

        reddit, http = _client_for(handler)
        comments = await reddit.fetch_replies(
            "/r/cars/comments/p1/tesla_thread/", community_tag="cars", parent_title="Tesla thread"
        )
        await http.aclose()

        assert seen["path"] == "/r/cars/comments/p1/tesla_thread.json"
        assert [c.id for c in comments] == ["c1", "c2", "c4"]
        assert all(c.community_tag == "cars" for c in comments)
        assert all(c.parent_title == "Tesla thread" for c in comments)
        assert all(c.permalink_of_parent == "/r/cars/comments/p1/tesla_thread/" for c in comments)
        assert comments[0].author == "user_c1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize('payload', [
        {"kind": "Listing"},
        [_search_payload()],
        [_search_payload(), {"data": {"children": "nope"}}],
    ])
    async def test_malformed_structure_returns_empty(self, payload):
        reddit, http = _client_for(lambda request: httpx.Response(200, json=payload))
        comments = await reddit.fetch_replies("/r/cars/comments/p1/x/")
        await http.aclose()

        assert comments == []

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self):
        reddit, http = _client_for(lambda request: httpx.Response(403, json={}))
        comments = await reddit.fetch_replies("/r/cars/comments/p1/x/")
        await http.aclose()

        assert comments == []


class TestSearchMultipleTopics:
    """Sequential multi-topic search with a fixed delay."""

    @pytest.mark.asyncio
    async def test_topics_without_results_are_omitted(self):
        def handler(request):
            if "charging" in request.url.params["q"]:
                return httpx.Response(200, json=_search_payload(_post("p1", "Tesla charging is fine")))
            return httpx.Response(200, json=_search_payload())

        reddit, http = _client_for(handler)
        with patch("brandpulse.reddit.asyncio.sleep", new=AsyncMock()):
            results = await reddit.search_multiple_topics(
                ["Tesla charging", "Tesla service"], limit=5, entity_name="Tesla"
            )
        await http.aclose()

        assert list(results) == ["Tesla charging"]
        assert [p.id for p in results["Tesla charging"]] == ["p1"]

    @pytest.mark.asyncio
    async def test_delay_before_every_search_after_first(self):
        reddit, http = _client_for(lambda request: httpx.Response(200, json=_search_payload()))
        with patch("brandpulse.reddit.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await reddit.search_multiple_topics(["a", "b", "c"], delay_seconds=1.5)
        await http.aclose()

        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(1.5)


class TestClientLifecycle:
    """Ownership of the underlying httpx client."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        reddit, http = _client_for(lambda request: httpx.Response(200, json=_search_payload()))

        async with reddit:
            pass

        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        from brandpulse.reddit import RedditClient

        reddit = RedditClient()
        await reddit.aclose()

        assert reddit._http.is_closed
