"""
Prompt templates for every model call in the BrandPulse pipeline.

Each builder returns a single user prompt string. All prompts ask for a bare
JSON payload (or a bare sentence) so that brandpulse.ai_parser can locate the
answer with a regex even when the model adds prose around it.
"""

from typing import Any, Dict, List, Sequence

from brandpulse.models.content_models import Mention, TopicCluster


RELEVANCE_TEXT_LIMIT = 300
SENTIMENT_TEXT_LIMIT = 500


def build_topic_prompt(entity: str, count: int) -> str:
    """
    Build the search-topic generation prompt.

    Asks for `count` search phrases that each contain the entity and point at
    opinion or experience discussion rather than news.

    Args:
        entity: Brand or company name
        count: Number of search phrases requested

    Returns:
        Prompt string expecting a JSON array of strings
    """
    return f"""Generate {count} Reddit search queries that will surface OPINIONS and EXPERIENCES about {entity}.

Every query MUST contain "{entity}" verbatim.

Each query should target something people have feelings about:
- specific products, services or features
- reviews, complaints, praise
- comparisons with competitors

Avoid news, announcements, stock talk and other factual topics.

Good: ["{entity} customer service complaints", "{entity} vs competitors", "{entity} owner experience"]
Bad: ["{entity} news", "{entity} stock", "{entity} announcement"]

Respond with ONLY a JSON array of {count} strings."""


def build_relevance_prompt(items: Sequence[Any], entity: str) -> str:
    """
    Build the batched relevance classification prompt.

    Each item is listed by id with its text clipped to RELEVANCE_TEXT_LIMIT
    characters. The model returns the ids that express clear personal
    sentiment; everything else is rejected.

    Args:
        items: Objects with `id` and `text` attributes
        entity: Brand or company name

    Returns:
        Prompt string expecting a JSON array of ids
    """
    item_lines = "\n".join(
        f"ID: {item.id}\nText: {item.text[:RELEVANCE_TEXT_LIMIT]}\n" for item in items
    )

    return f"""You are a STRICT relevance filter for sentiment analysis about "{entity}". Most items should be rejected.

Keep an item ONLY if it expresses a PERSONAL opinion or experience about {entity}, for example:
- "I love my {entity} product, it works great"
- "Terrible experience with {entity} support"
- "Been using {entity} for years, pretty happy with it"

Reject:
- job postings and recruiting
- questions without an opinion ("Anyone tried {entity}?")
- tech support requests
- news or facts without an opinion
- passing mentions and promotional content

If unsure, reject.

Items:
{item_lines}
Respond with ONLY a JSON array of the ids to keep, e.g. ["id1", "id2"]. Return [] if none qualify."""


def build_sentiment_prompt(text: str, entity: str) -> str:
    """
    Build the single-item sentiment prompt.

    Score bands:
        100 to 50: very positive
        49 to 10: somewhat positive
        9 to -9: neutral
        -10 to -49: somewhat negative
        -50 to -100: very negative

    Args:
        text: Item text (clipped to SENTIMENT_TEXT_LIMIT characters)
        entity: Brand or company name

    Returns:
        Prompt string expecting {"sentiment": ..., "score": ...}
    """
    return f"""Analyze the sentiment of this text toward {entity}.

Consider the overall tone, what is said about {entity} specifically, context, and sarcasm or irony.

Respond with ONLY a JSON object in this exact format:
{{"sentiment": "positive" | "neutral" | "negative", "score": number between -100 and 100}}

Score bands:
- 100 to 50: very positive
- 49 to 10: somewhat positive
- 9 to -9: neutral
- -10 to -49: somewhat negative
- -50 to -100: very negative

Text: {text[:SENTIMENT_TEXT_LIMIT]}"""


def build_topic_identification_prompt(texts: Sequence[str], entity: str) -> str:
    """Build the prompt that names 5-8 discussion topics from sample mention texts."""
    samples = "\n---\n".join(texts)

    return f"""Analyze these customer mentions about {entity} and identify 5-8 main topics people are discussing.

Look for products or features, service quality, pricing and value, customer experience,
technical problems, competitor comparisons, and company decisions.

Customer mentions:
{samples}

Respond with ONLY a JSON array of topic names, e.g.:
["Customer Service", "Pricing", "Build Quality"]"""


def build_topic_assignment_prompt(text: str, topics: Sequence[str], entity: str) -> str:
    """Build the prompt that assigns one mention to one of the numbered topics."""
    topic_lines = "\n".join(f"{i}. {topic}" for i, topic in enumerate(topics, start=1))

    return f"""Which topic does this customer mention about {entity} relate to most closely?

Topics:
{topic_lines}

Mention: "{text}"

Respond with ONLY the topic name exactly as listed (no number, no explanation)."""


def build_topic_description_prompt(topic: str, sample_texts: Sequence[str], entity: str) -> str:
    """Build the one-sentence topic description prompt."""
    samples = "\n- ".join(sample_texts)

    return f"""Summarize in ONE short sentence what customers are saying about {entity}'s {topic}.

Sample mentions:
- {samples}

Respond with ONLY the sentence (no quotes, no preamble)."""


def build_recommendation_prompt(
    cluster: TopicCluster,
    negative_samples: Sequence[Mention],
    entity: str,
) -> str:
    """
    Build the response-strategy prompt for one addressed topic cluster.

    Args:
        cluster: Cluster with counts and average sentiment
        negative_samples: Up to 8 negative mentions from the cluster
        entity: Brand or company name

    Returns:
        Prompt string expecting {"issue", "impact", "postSuggestions": [...]}
    """
    negative_pct = round(cluster.negative_count / cluster.mention_count * 100) if cluster.mention_count else 0
    sample_lines = "\n".join(f'- "{m.text}" (score: {m.score:g})' for m in negative_samples)

    return f"""You are a social media strategist helping {entity} respond publicly to customer concerns about "{cluster.topic}".

Topic description: {cluster.description}

Sentiment stats:
- Total mentions: {cluster.mention_count}
- Negative: {cluster.negative_count} ({negative_pct}%)
- Average sentiment: {cluster.average_sentiment:.1f}

Sample negative feedback:
{sample_lines}

Suggest 3-4 social media post ideas {entity} could publish to address these concerns.
Ideas should be transparent, empathetic, not defensive, and vary in approach.

Respond with ONLY a JSON object in this exact format:
{{
  "issue": "The core issue in one sentence",
  "impact": "Why it matters to the business in one sentence",
  "postSuggestions": [
    {{
      "id": "unique-id-1",
      "title": "Short title for the post idea",
      "description": "What the post communicates in one sentence",
      "angle": "The approach, e.g. 'acknowledge and explain', 'share roadmap', 'educate users'"
    }}
  ]
}}"""


def build_executive_summary_prompt(
    high_priority: Sequence[Any],
    medium_priority: Sequence[Any],
    entity: str,
) -> str:
    """Build the 2-3 sentence executive summary prompt over recommendations."""
    high_lines = "\n".join(f"- {r.topic}: {r.issue}" for r in high_priority)
    medium_lines = "\n".join(f"- {r.topic}: {r.issue}" for r in medium_priority)

    return f"""Summarize the key customer concerns for {entity} based on these priority issues:

High priority issues ({len(high_priority)}):
{high_lines}

Medium priority issues ({len(medium_priority)}):
{medium_lines}

Write a 2-3 sentence executive summary highlighting the most critical areas to address."""


PLATFORM_GUIDELINES: Dict[str, str] = {
    "twitter": """- Short, punchy sentences with a strong hook
- Line breaks for readability
- 1-2 relevant hashtags, worked in naturally
- At most 1-2 emojis
- Stay under 280 characters""",
    "linkedin": """- Open with a hook or a question
- Professional but conversational tone
- Short paragraphs of 2-3 sentences
- Share the company's perspective
- End with a question or call to action
- 3-5 relevant hashtags at the end""",
    "facebook": """- Engaging opening line
- Friendly, conversational tone with some storytelling
- 3-5 emojis for personality
- Short paragraphs
- End with a question or call to action
- 2-3 hashtags if relevant""",
    "instagram": """- Attention-grabbing first line (it shows in the preview)
- Tell a story or share a behind-the-scenes view
- Emojis throughout and short chunks separated by line breaks
- End with a strong call to action
- 5-10 relevant hashtags at the bottom
- Assume the post accompanies an image or video""",
}


def build_platform_prompt(
    entity: str,
    topic: str,
    post_idea: Dict[str, str],
    platform: str,
    config: Dict[str, Any],
) -> str:
    """
    Build the platform-specific drafting prompt.

    Args:
        entity: Brand or company name (the post is written as this entity)
        topic: Topic cluster the post responds to
        post_idea: Dict with title, description and angle
        platform: One of twitter/linkedin/facebook/instagram
        config: Platform config with max_chars, style and hashtags

    Returns:
        Prompt string expecting the bare post text
    """
    return f"""You are writing a {platform} post for {entity} about "{topic}".

Post concept: {post_idea.get("title", "")}
Goal: {post_idea.get("description", "")}
Approach: {post_idea.get("angle", "")}

Platform: {platform}
Style: {config["style"]}
Character limit: {config["max_chars"]}
Hashtags: at most {config["hashtags"]}

{PLATFORM_GUIDELINES[platform]}

IMPORTANT RULES:
1. Write as {entity} in the first person ("we", not "they")
2. Be authentic and transparent, acknowledge issues honestly
3. Show empathy for customer concerns
4. Provide value: information, updates, solutions or insights
5. Match how {entity} typically communicates
6. Do NOT be defensive or make excuses
7. Stay within the {platform} character limit
8. Make it ready to post with no editing

Write ONLY the post content (no explanation, no surrounding quotes, no preamble)."""


def format_summary_mentions(mentions: List[Mention]) -> str:
    """Format mentions as `[LABEL] text\\nbody (score: n)` blocks separated by blank lines."""
    blocks = []
    for m in mentions:
        body = f"\n{m.body}" if m.body else ""
        blocks.append(f"[{m.label.upper()}] {m.text}{body} (score: {m.score:g})")
    return "\n\n".join(blocks)


def build_summary_prompt(
    score: float,
    total: int,
    positive: int,
    neutral: int,
    negative: int,
    mentions: List[Mention],
) -> str:
    """
    Build the snapshot executive-summary prompt (entry point B).

    Returns:
        Prompt string expecting {"executive_summary": str, "key_themes": [...]}
    """
    return f"""You are analyzing Reddit sentiment data. Provide an executive summary and identify key themes.

SENTIMENT DATA:
- Overall score: {score:.2f} (-100 to 100 scale)
- Total mentions: {total}
- Positive: {positive}
- Neutral: {neutral}
- Negative: {negative}

REDDIT POSTS (with full text):
{format_summary_mentions(mentions)}

Respond with ONLY valid JSON in this exact format:
{{
  "executive_summary": "A concise 2-3 sentence summary of the overall sentiment and key findings.",
  "key_themes": [
    {{
      "theme": "Theme name",
      "sentiment": "positive" | "neutral" | "negative",
      "description": "Brief description of this theme"
    }}
  ]
}}

Identify 3-5 key themes. Be specific and actionable."""
