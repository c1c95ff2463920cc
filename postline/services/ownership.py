"""
Ownership checks for scheduled posts.

A record owned by another user is reported exactly like a missing one, so
the API never confirms that someone else's scheduled post exists.
"""
from ..exceptions import InvalidStateTransition, NotFoundOrUnauthorized
from ..models.scheduled_post import ScheduledPost
from ..models.user import User
from .scheduled_posts import ScheduledPostStore


def get_owned_scheduled_post(store: ScheduledPostStore, scheduled_post_id: int, user: User) -> ScheduledPost:
    """Fetch a scheduled post on behalf of ``user`` or raise NotFoundOrUnauthorized."""
    record = store.get_by_id(scheduled_post_id)
    if record is None or record.user_id != user.id:
        raise NotFoundOrUnauthorized()
    return record


def ensure_pending(record: ScheduledPost, action: str) -> ScheduledPost:
    """Reject mutations of posted or cancelled records."""
    if not record.is_pending:
        raise InvalidStateTransition(record.status, action)
    return record
