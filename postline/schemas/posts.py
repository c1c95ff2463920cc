from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from ..timeutils import as_utc


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    content: str
    media_url: Optional[str] = None
    comments_enabled: bool
    scheduled_post_id: Optional[int] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value):
        return as_utc(value)
