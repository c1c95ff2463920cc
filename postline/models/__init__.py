from .user import User
from .post import Post
from .scheduled_post import ScheduledPost

__all__ = [
    "User",
    "Post",
    "ScheduledPost",
]
