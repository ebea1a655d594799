"""Post drafting API endpoint (entry point D).

- POST /posts: Draft a post idea for one platform, or all four with generate_all
"""

from fastapi import APIRouter, Request

from brandpulse.api.models import PostRequest
from brandpulse.api.responses import OPENAI_API_ERROR, raise_api_error, wrap_response
from brandpulse.backend.utils.logging_config import get_logger
from brandpulse.content_generator import ContentGenerationError, ContentGenerator

router = APIRouter(tags=["posts"])
logger = get_logger(__name__)


@router.post("/posts")
async def create_posts(request: Request, body: PostRequest):
    """Draft platform posts.

    Request body:
        {"entity": "Tesla", "topic": "Service Wait Times",
         "post_idea": {"title": ..., "description": ..., "angle": ...},
         "platform": "twitter"}            # or "generate_all": true

    Returns:
        Envelope whose data is one PlatformPost, or a list of four when
        generate_all is true

    Raises:
        422 VALIDATION_ERROR: Missing fields, or no platform without generate_all
        502 OPENAI_API_ERROR: Any platform draft failed
    """
    generator = ContentGenerator(request.app.state.ai_client)
    post_idea = body.post_idea.model_dump()

    try:
        if body.generate_all:
            posts = await generator.generate_all_platforms(body.entity, body.topic, post_idea)
            return wrap_response(posts, total=len(posts))

        post = await generator.generate_content(body.entity, body.topic, post_idea, body.platform)
        return wrap_response(post)

    except ContentGenerationError as e:
        logger.error("post_generation_failed", entity=body.entity, topic=body.topic, error=str(e))
        raise_api_error(OPENAI_API_ERROR, str(e))
