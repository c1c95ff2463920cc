from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from ..timeutils import as_utc
from .posts import PostResponse


class ScheduledPostIn(BaseModel):
    """Request bodies accept camelCase keys (mediaUrl) as well as snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduledPostCreate(ScheduledPostIn):
    # Presence of content and scheduled_at is enforced by the store
    content: Optional[str] = None
    media_url: Optional[str] = None
    comments_enabled: Optional[bool] = None
    scheduled_at: Optional[datetime] = None


class ScheduledPostUpdate(ScheduledPostIn):
    content: Optional[str] = None
    media_url: Optional[str] = None
    comments_enabled: Optional[bool] = None
    scheduled_at: Optional[datetime] = None


class ScheduledPostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    content: str
    media_url: Optional[str] = None
    comments_enabled: bool
    scheduled_at: datetime
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("scheduled_at", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value):
        return as_utc(value)


class ScheduledPostList(BaseModel):
    posts: List[ScheduledPostResponse]
    total: int


class ScheduledPostCancelled(BaseModel):
    message: str
    post: ScheduledPostResponse


class ScheduledPostPublished(BaseModel):
    message: str
    post: PostResponse
