"""
Shared pytest fixtures for BrandPulse tests.

FakeAIClient stands in for OpenAIClient: it exposes the same
generate_text() coroutine and answers from a script, so every pipeline
stage can be exercised without network access.
"""

import pytest

from brandpulse.config import Settings
from brandpulse.models.content_models import Mention


class FakeAIClient:
    """Scripted replacement for OpenAIClient.

    Args:
        responses: Either a list consumed in call order, or a callable
            taking the prompt and returning the response text. An Exception
            instance in the list (or returned by the callable) is raised.
        default: Returned once a list of responses is exhausted
    """

    def __init__(self, responses=None, default=""):
        self.responses = responses if responses is not None else []
        self.default = default
        self.calls = []
        self.is_configured = True
        self.monthly_tokens = 0

    async def generate_text(self, prompt, temperature=0.3, model=None, max_tokens=1000):
        self.calls.append({"prompt": prompt, "temperature": temperature, "model": model})

        if callable(self.responses):
            response = self.responses(prompt)
        elif self.responses:
            response = self.responses.pop(0)
        else:
            response = self.default

        if isinstance(response, Exception):
            raise response
        return response

    @property
    def prompts(self):
        return [call["prompt"] for call in self.calls]


def make_mention(mention_id="m1", label="neutral", score=0.0, text=None, **overrides):
    """Build a Mention with sensible defaults."""
    fields = dict(
        id=mention_id,
        text=text if text is not None else f"Mention {mention_id} about Tesla",
        label=label,
        score=score,
        author="user",
        community_tag="cars",
        created_at="2026-01-01T00:00:00+00:00",
        url=f"https://reddit.com/r/cars/{mention_id}",
    )
    fields.update(overrides)
    return Mention(**fields)


@pytest.fixture
def fake_ai():
    """Provide an unscripted FakeAIClient (every call returns "")."""
    return FakeAIClient()


@pytest.fixture
def fast_settings():
    """Settings with all inter-request delays disabled."""
    return Settings(
        search_delay_seconds=0.0,
        reply_delay_seconds=0.0,
        topic_count=2,
        target_item_count=10,
    )


@pytest.fixture
def test_client():
    """Provide a FastAPI TestClient with the lifespan started.

    Route tests replace app.state.ai_client / reddit / settings with fakes.
    """
    from fastapi.testclient import TestClient
    from brandpulse.api.app import app

    with TestClient(app) as client:
        yield client
