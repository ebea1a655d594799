"""Two-stage relevance filtering.

Stage 1 is a keyword pre-filter that rejects anything that is obviously not a
personal opinion about the entity. It fails closed: one matching rule is
enough to drop an item, and no model call is made for it.

Stage 2 sends the survivors to the model in fixed-size batches and keeps only
the ids it returns. It fails open: if the call or the parse fails for a
batch, the whole batch is kept.
"""

import re
from typing import Any, List, Optional, Sequence

import structlog

from brandpulse.ai_batch import chunked
from brandpulse.ai_parser import parse_id_list
from brandpulse.backend.utils.errors import WARNING_TYPE_RELEVANCE_BATCH_KEPT, WarningsCollector
from brandpulse.models.content_models import CandidateItem
from brandpulse.prompts import build_relevance_prompt


logger = structlog.get_logger()

MIN_TEXT_LENGTH = 30
RELEVANCE_TEMPERATURE = 0.3

SENTIMENT_WORDS = (
    # positive
    "love", "great", "awesome", "amazing", "excellent", "fantastic", "wonderful",
    "good", "best", "happy", "satisfied", "recommend", "impressed", "perfect",
    "outstanding", "brilliant", "superb",
    # negative
    "hate", "terrible", "awful", "horrible", "worst", "bad", "disappointed",
    "frustrat", "annoying", "poor", "sucks", "waste", "regret", "avoid",
    "pathetic", "useless", "garbage",
    # opinion markers
    "experience", "opinion", "think", "feel", "seems", "compared to",
    "better than", "worse than", "not as good", "review", "rating", "prefer",
    "disappoint", "concern",
)

STRONG_SENTIMENT_WORDS = (
    "love", "amazing", "excellent", "fantastic", "wonderful", "best", "impressed",
    "perfect", "outstanding", "brilliant", "superb", "highly recommend",
    "hate", "terrible", "awful", "horrible", "worst", "disappointed", "frustrat",
    "sucks", "waste", "regret", "avoid", "pathetic", "useless", "garbage",
)

JOB_KEYWORDS = (
    "hiring", "we're hiring", "we are hiring", "now hiring", "job opening",
    "position available", "apply now", "send resume", "send cv",
    "looking for candidates", "join our team", "careers at", "job posting",
    "employment opportunity", "work with us", "[hiring]", "remote position",
    "full-time position", "part-time position", "salary range",
    "years of experience", "apply here", "application deadline",
    "job description", "responsibilities include", "qualifications:",
    "requirements:", "benefits:", "competitive salary", "equal opportunity",
)

SPAM_KEYWORDS = (
    "click here", "buy now", "limited time offer", "act now", "visit our website",
    "check out our", "dm for details", "link in bio", "subscribe to", "follow us",
    "follow me", "check my profile",
)

NEWS_PATTERNS = [
    re.compile(r"^(breaking|update|news):", re.IGNORECASE),
    re.compile(r"^just announced", re.IGNORECASE),
    re.compile(r"has announced that", re.IGNORECASE),
    re.compile(r"according to reports", re.IGNORECASE),
    re.compile(r"sources say", re.IGNORECASE),
]

TECH_SUPPORT_PATTERNS = [
    re.compile(r"^how (do i|to|can i)"),
    re.compile(r"^can someone help"),
    re.compile(r"^need help with"),
    re.compile(r"^anyone know how"),
    re.compile(r"^does anyone know"),
    re.compile(r"^is there a way to"),
    re.compile(r"^what('s| is) the best way to"),
    re.compile(r"^looking for (a|an|the)"),
    re.compile(r"^where (can i|do i)"),
]

GENERIC_PROMPT_PATTERNS = [
    re.compile(r"^(what|which) (do you|would you)"),
    re.compile(r"^thoughts on"),
    re.compile(r"^opinions on"),
    re.compile(r"^what (are|is) (your|everyone's)"),
]


def has_sentiment_indicators(lower_text: str) -> bool:
    return any(word in lower_text for word in SENTIMENT_WORDS)


def has_strong_sentiment(lower_text: str) -> bool:
    return any(word in lower_text for word in STRONG_SENTIMENT_WORDS)


def mentions_entity_loosely(lower_text: str, entity: str) -> bool:
    """Substring match on the full name, else on any name token longer than 3 characters."""
    lower_entity = entity.lower()
    if lower_entity in lower_text:
        return True
    return any(len(token) > 3 and token in lower_text for token in lower_entity.split())


def is_obviously_irrelevant(text: str, entity: str) -> bool:
    """Keyword pre-filter. Returns True if the item should be dropped.

    An item is dropped when ANY of these holds:
        - no sentiment-indicator word
        - no mention of the entity (full name or a token longer than 3 chars)
        - a job-posting phrase
        - a news-announcement pattern without a strong sentiment word
        - a tech-support question opener
        - a promotional/spam phrase
        - a generic discussion prompt without a strong sentiment word
        - fewer than 30 characters after stripping

    Examples:
        >>> is_obviously_irrelevant("Tesla is great", "Tesla")
        True
        >>> is_obviously_irrelevant("We're hiring at Tesla, great benefits and experience", "Tesla")
        True
        >>> is_obviously_irrelevant("I love my Tesla, the service experience was great", "Tesla")
        False
    """
    stripped = text.strip()
    lower_text = stripped.lower()

    if not has_sentiment_indicators(lower_text):
        return True

    if not mentions_entity_loosely(lower_text, entity):
        return True

    if any(keyword in lower_text for keyword in JOB_KEYWORDS):
        return True

    if any(p.search(stripped) for p in NEWS_PATTERNS) and not has_strong_sentiment(lower_text):
        return True

    if any(p.search(lower_text) for p in TECH_SUPPORT_PATTERNS):
        return True

    if any(keyword in lower_text for keyword in SPAM_KEYWORDS):
        return True

    if any(p.search(lower_text) for p in GENERIC_PROMPT_PATTERNS) and not has_strong_sentiment(lower_text):
        return True

    return len(stripped) < MIN_TEXT_LENGTH


class RelevanceFilter:
    """Keep only items that express personal sentiment about the entity.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
        batch_size: Items per classification call (default: 10)
    """

    def __init__(self, ai_client: Any, batch_size: int = 10):
        self.ai_client = ai_client
        self.batch_size = batch_size

    async def filter_relevant(
        self,
        items: Sequence[CandidateItem],
        entity: str,
        warnings: Optional[WarningsCollector] = None,
    ) -> List[CandidateItem]:
        """Run both stages and return the surviving items in input order.

        Args:
            items: Candidates with `id` and `text`
            entity: Brand or company name
            warnings: Collector that receives a relevance_batch_kept warning for
                every batch kept because classification failed (optional)
        """
        if not items:
            return []

        pre_filtered = [item for item in items if not is_obviously_irrelevant(item.text, entity)]

        logger.info(
            "relevance_prefilter_completed",
            entity=entity,
            input_count=len(items),
            survivor_count=len(pre_filtered),
        )

        if not pre_filtered:
            return []

        relevant: List[CandidateItem] = []
        for batch in chunked(pre_filtered, self.batch_size):
            relevant.extend(await self._filter_batch(batch, entity, warnings))

        logger.info(
            "relevance_filter_completed",
            entity=entity,
            classified_count=len(pre_filtered),
            relevant_count=len(relevant),
        )
        return relevant

    async def _filter_batch(
        self,
        batch: List[CandidateItem],
        entity: str,
        warnings: Optional[WarningsCollector],
    ) -> List[CandidateItem]:
        try:
            raw = await self.ai_client.generate_text(
                build_relevance_prompt(batch, entity),
                temperature=RELEVANCE_TEMPERATURE,
            )
            relevant_ids = set(parse_id_list(raw))
        except Exception as e:
            logger.warning(
                "relevance_batch_kept",
                entity=entity,
                batch_size=len(batch),
                error_type=type(e).__name__,
                error=str(e),
            )
            if warnings is not None:
                warnings.append(
                    WARNING_TYPE_RELEVANCE_BATCH_KEPT,
                    "Relevance classification failed; batch kept unfiltered",
                    {"batch_size": len(batch), "error_type": type(e).__name__},
                )
            return list(batch)

        return [item for item in batch if item.id in relevant_ids]
