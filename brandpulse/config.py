"""Runtime configuration for BrandPulse.

All settings come from environment variables. load_dotenv() copies a local
.env file into os.environ without overriding variables that are already set,
so the same code runs under uvicorn, the CLI scripts and the test suite.

Usage:
    >>> from brandpulse.config import load_dotenv, load_settings
    >>> load_dotenv()
    >>> settings = load_settings()
    >>> settings.topic_count
    5
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def load_dotenv(env_path: Optional[str] = None) -> None:
    """Load a .env file into os.environ if it exists.

    Args:
        env_path: Path to the .env file (default: .env in the current directory)
    """
    path = Path(env_path) if env_path else Path.cwd() / ".env"
    if not path.exists():
        return

    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip())


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable with fallback."""
    try:
        return int(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable with fallback."""
    try:
        return float(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


def _get_env_list(key: str, default: List[str], separator: str = ",") -> List[str]:
    """Get list value from environment variable with fallback."""
    value = os.environ.get(key)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(separator) if item.strip()]


@dataclass
class Settings:
    """Pipeline and service settings.

    Attributes:
        openai_model: Model used for every classification call
        summary_model: Model used for snapshot summaries (entry point B)
        reddit_user_agent: User-Agent header sent to Reddit
        topic_count: Number of search topics generated per run
        target_item_count: Total posts requested across all topics
        search_timeframe: Reddit search window (hour/day/week/month/year/all)
        search_delay_seconds: Fixed delay before each search after the first
        reply_post_limit: Number of top posts whose reply trees are fetched
        reply_delay_seconds: Fixed delay before each reply fetch after the first
        min_candidates: Below this many comment candidates, fall back to posts
        fallback_post_limit: Posts analyzed directly in the fallback cascade
        max_candidates: Upper bound on items sent to sentiment analysis
        relevance_batch_size: Items per relevance classification call
        sentiment_concurrency: Concurrent sentiment calls per batch
        history_hours: Number of hourly history points
        history_mode: "random" (default) or "smooth"
        min_post_score: Posts below this Reddit score are dropped after dedup
        subreddit_allowlist: When non-empty, only these subreddits are kept
        demo_fallback: Serve the demo dataset when a run fails
        cors_origins: Allowed CORS origins for the API
        log_dir: Directory for the JSON log file
    """
    openai_model: str = "gpt-4o-mini"
    summary_model: str = "gpt-4o-mini"
    reddit_user_agent: str = DEFAULT_USER_AGENT
    topic_count: int = 5
    target_item_count: int = 50
    search_timeframe: str = "month"
    search_delay_seconds: float = 1.0
    reply_post_limit: int = 5
    reply_delay_seconds: float = 0.5
    min_candidates: int = 5
    fallback_post_limit: int = 20
    max_candidates: int = 50
    relevance_batch_size: int = 10
    sentiment_concurrency: int = 5
    history_hours: int = 24
    history_mode: str = "random"
    min_post_score: int = 0
    subreddit_allowlist: List[str] = field(default_factory=list)
    demo_fallback: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_dir: str = "logs"

    def __post_init__(self) -> None:
        # Batch sizes below 1 would make every run fail in chunked()
        self.relevance_batch_size = max(1, self.relevance_batch_size)
        self.sentiment_concurrency = max(1, self.sentiment_concurrency)


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    model = os.environ.get("OPENAI_MODEL", "").strip() or "gpt-4o-mini"

    return Settings(
        openai_model=model,
        summary_model=os.environ.get("OPENAI_SUMMARY_MODEL", "").strip() or model,
        reddit_user_agent=os.environ.get("REDDIT_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
        topic_count=_get_env_int("TOPIC_COUNT", 5),
        target_item_count=_get_env_int("TARGET_ITEM_COUNT", 50),
        search_timeframe=os.environ.get("SEARCH_TIMEFRAME", "").strip() or "month",
        search_delay_seconds=_get_env_float("SEARCH_DELAY_SECONDS", 1.0),
        reply_post_limit=_get_env_int("REPLY_POST_LIMIT", 5),
        reply_delay_seconds=_get_env_float("REPLY_DELAY_SECONDS", 0.5),
        min_candidates=_get_env_int("MIN_CANDIDATES", 5),
        fallback_post_limit=_get_env_int("FALLBACK_POST_LIMIT", 20),
        max_candidates=_get_env_int("MAX_CANDIDATES", 50),
        relevance_batch_size=_get_env_int("RELEVANCE_BATCH_SIZE", 10),
        sentiment_concurrency=_get_env_int("SENTIMENT_CONCURRENCY", 5),
        history_hours=_get_env_int("HISTORY_HOURS", 24),
        history_mode=os.environ.get("HISTORY_MODE", "").strip().lower() or "random",
        min_post_score=_get_env_int("MIN_POST_SCORE", 0),
        subreddit_allowlist=_get_env_list("SUBREDDIT_ALLOWLIST", []),
        demo_fallback=_get_env_bool("DEMO_FALLBACK", False),
        cors_origins=_get_env_list("CORS_ORIGINS", ["http://localhost:3000"]),
        log_dir=os.environ.get("LOG_DIR", "").strip() or "logs",
    )
