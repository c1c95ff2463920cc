from .auth import UserCreate, UserLogin, UserResponse, TokenResponse, RefreshRequest
from .posts import PostResponse
from .scheduled_post import (
    ScheduledPostCreate,
    ScheduledPostUpdate,
    ScheduledPostResponse,
    ScheduledPostList,
    ScheduledPostCancelled,
    ScheduledPostPublished,
)

__all__ = [
    "UserCreate", "UserLogin", "UserResponse", "TokenResponse", "RefreshRequest",
    "PostResponse",
    "ScheduledPostCreate", "ScheduledPostUpdate", "ScheduledPostResponse", "ScheduledPostList",
    "ScheduledPostCancelled", "ScheduledPostPublished",
]
