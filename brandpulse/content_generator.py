"""Platform-specific post drafting.

Expands one post idea into ready-to-publish copy for twitter, linkedin,
facebook or instagram. Unlike the analysis stages, a failed model call is
not degraded here: it raises ContentGenerationError so the caller can report
it, and generate_all_platforms fails as a whole if any platform fails.
"""

import asyncio
import re
from typing import Any, Dict, List, Tuple, Union

import structlog

from brandpulse.ai_parser import MalformedResponseError, extract_json_object, strip_wrapping_quotes
from brandpulse.models.content_models import PLATFORMS, PlatformPost, PostIdea
from brandpulse.prompts import build_platform_prompt


logger = structlog.get_logger()

CONTENT_TEMPERATURE = 0.7

PLATFORM_CONFIGS: Dict[str, Dict[str, Any]] = {
    "twitter": {"max_chars": 280, "style": "concise and punchy", "hashtags": 2},
    "linkedin": {"max_chars": 3000, "style": "professional and detailed", "hashtags": 5},
    "facebook": {"max_chars": 63206, "style": "conversational and engaging", "hashtags": 3},
    "instagram": {"max_chars": 2200, "style": "visual and story-driven", "hashtags": 10},
}

# Checked in order against the lowercased angle; first match wins
MEDIA_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("data", "stats"), "📊 Consider adding: A chart or infographic visualizing the data"),
    (("behind", "team"), "📸 Consider adding: A behind-the-scenes photo or team photo"),
    (("product", "feature"), "🎥 Consider adding: A product demo video or feature screenshot"),
]

PLATFORM_MEDIA_DEFAULTS = {
    "twitter": "Consider adding: An infographic, chart, or branded image",
    "linkedin": "Consider adding: A professional photo, chart, or document preview",
    "facebook": "Consider adding: A photo, video, or link preview",
    "instagram": "REQUIRED: High-quality photo or video (this is a visual platform)",
}

_JSON_CONTENT = re.compile(r'\{[\s\S]*"content"\s*:\s*"([\s\S]*?)"\s*[,}]')
_HASHTAG = re.compile(r"#\w+")


class ContentGenerationError(Exception):
    """Raised when the model call for a platform post fails."""
    pass


def clean_post_content(raw: str) -> str:
    """Unwrap {"content": ...} JSON, else strip quotes and unescape \\n and \\".

    Examples:
        >>> clean_post_content('{"content": "We hear you.\\\\nMore soon."}')
        'We hear you.\\nMore soon.'
        >>> clean_post_content('"Thanks for the feedback!"')
        'Thanks for the feedback!'
    """
    content = (raw or "").strip()

    try:
        data = extract_json_object(content)
    except MalformedResponseError:
        data = {}
    if isinstance(data.get("content"), str):
        return strip_wrapping_quotes(data["content"].strip())

    match = _JSON_CONTENT.search(content)
    if match:
        content = match.group(1)

    content = strip_wrapping_quotes(content)
    return content.replace("\\n", "\n").replace('\\"', '"')


def extract_hashtags(content: str) -> List[str]:
    return _HASHTAG.findall(content)


def suggest_media(platform: str, angle: str) -> str:
    """Pick a media suggestion from MEDIA_RULES by angle keywords, else the platform default."""
    lower_angle = (angle or "").lower()
    for keywords, suggestion in MEDIA_RULES:
        if any(keyword in lower_angle for keyword in keywords):
            return suggestion
    return PLATFORM_MEDIA_DEFAULTS.get(platform, "Consider adding relevant visual content")


def _idea_fields(post_idea: Union[PostIdea, Dict[str, Any]]) -> Dict[str, str]:
    if isinstance(post_idea, PostIdea):
        return {"title": post_idea.title, "description": post_idea.description, "angle": post_idea.angle}
    return {
        "title": str(post_idea.get("title") or ""),
        "description": str(post_idea.get("description") or ""),
        "angle": str(post_idea.get("angle") or ""),
    }


class ContentGenerator:
    """Draft platform posts for a post idea.

    Args:
        ai_client: Object exposing async generate_text(prompt, temperature=..., model=...)
    """

    def __init__(self, ai_client: Any):
        self.ai_client = ai_client

    async def generate_content(
        self,
        entity: str,
        topic: str,
        post_idea: Union[PostIdea, Dict[str, Any]],
        platform: str,
    ) -> PlatformPost:
        """Draft one post.

        Raises:
            ValueError: Unknown platform
            ContentGenerationError: The model call failed
        """
        if platform not in PLATFORM_CONFIGS:
            raise ValueError(f"Unsupported platform '{platform}'. Must be one of: {', '.join(PLATFORMS)}")

        idea = _idea_fields(post_idea)
        prompt = build_platform_prompt(entity, topic, idea, platform, PLATFORM_CONFIGS[platform])

        try:
            raw = await self.ai_client.generate_text(prompt, temperature=CONTENT_TEMPERATURE)
        except Exception as e:
            logger.error(
                "content_generation_failed",
                entity=entity,
                platform=platform,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ContentGenerationError(f"Failed to generate {platform} post: {e}") from e

        content = clean_post_content(raw)

        logger.info(
            "content_generated",
            entity=entity,
            platform=platform,
            character_count=len(content),
            over_limit=len(content) > PLATFORM_CONFIGS[platform]["max_chars"],
        )

        return PlatformPost(
            platform=platform,
            content=content,
            hashtags=extract_hashtags(content),
            character_count=len(content),
            media_recommendation=suggest_media(platform, idea["angle"]),
        )

    async def generate_all_platforms(
        self,
        entity: str,
        topic: str,
        post_idea: Union[PostIdea, Dict[str, Any]],
    ) -> List[PlatformPost]:
        """Draft all four platforms concurrently, in PLATFORMS order.

        Raises:
            ContentGenerationError: Any platform failed
        """
        return list(await asyncio.gather(
            *(self.generate_content(entity, topic, post_idea, platform) for platform in PLATFORMS)
        ))
