"""Pydantic models for API request/response structures.

Response Structure:
    All successful responses use ResponseEnvelope with:
    - data: The actual response payload (any type)
    - meta: Metadata including timestamp, version, and optional total count

Error Structure:
    All error responses use ErrorEnvelope with:
    - error: ErrorDetail containing code and message

Request bodies:
    SnapshotIn: a SentimentSnapshot posted back for summarization (entry point B)
    PostRequest: a post idea to draft for one or all platforms (entry point D)
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MetaModel(BaseModel):
    """Metadata included in all successful responses.

    Attributes:
        timestamp: ISO 8601 formatted UTC timestamp of the response
        version: API version string
        total: Optional item count (e.g. number of drafted posts)
    """
    timestamp: str
    version: str
    total: Optional[int] = None


class ResponseEnvelope(BaseModel):
    data: Any
    meta: MetaModel


class ErrorDetail(BaseModel):
    """Error details included in error responses.

    Attributes:
        code: Machine-readable error code (see responses.py for constants)
        message: Human-readable error message
    """
    code: str
    message: str


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


class MentionIn(BaseModel):
    """A mention as returned inside a snapshot by GET /sentiment."""
    id: str = ""
    text: str
    label: Literal["positive", "neutral", "negative"]
    score: float = Field(ge=-100, le=100)
    author: str = ""
    community_tag: str = ""
    created_at: str = ""
    url: str = ""
    body: Optional[str] = None


class SnapshotIn(BaseModel):
    """Snapshot fields the summarizer reads; other snapshot fields are ignored."""
    entity: str = ""
    score: float = Field(ge=-100, le=100)
    total: int = Field(ge=0)
    positive_count: int = Field(ge=0)
    neutral_count: int = Field(ge=0)
    negative_count: int = Field(ge=0)
    mentions: List[MentionIn] = Field(default_factory=list)


class PostIdeaIn(BaseModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: str = ""
    angle: str = ""


class PostRequest(BaseModel):
    """Request body for POST /posts.

    `platform` is required unless `generate_all` is true. Entity and topic
    are stripped before the length check, so blank values are rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    entity: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    post_idea: PostIdeaIn
    platform: Optional[Literal["twitter", "linkedin", "facebook", "instagram"]] = None
    generate_all: bool = False

    @model_validator(mode="after")
    def _require_platform(self) -> "PostRequest":
        if not self.generate_all and self.platform is None:
            raise ValueError("platform is required unless generate_all is true")
        return self
