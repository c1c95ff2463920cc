"""
Scheduled post routes: create, list, edit, cancel and publish-now.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import get_required_user
from ..database import get_db
from ..exceptions import ValidationError
from ..logging_config import api_logger
from ..models.scheduled_post import STATUSES
from ..models.user import User
from ..schemas.posts import PostResponse
from ..schemas.scheduled_post import (
    ScheduledPostCancelled,
    ScheduledPostCreate,
    ScheduledPostList,
    ScheduledPostPublished,
    ScheduledPostResponse,
    ScheduledPostUpdate,
)
from ..services.ownership import ensure_pending, get_owned_scheduled_post
from ..services.publisher import PublicationEngine
from ..services.scheduled_posts import ScheduledPostStore

router = APIRouter(prefix="/api/scheduled-posts", tags=["scheduled-posts"])


def get_publisher(request: Request) -> PublicationEngine:
    return request.app.state.publisher


@router.post("", response_model=ScheduledPostResponse, status_code=201)
def create_scheduled_post(
    body: ScheduledPostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Schedule a post for the current user."""
    return ScheduledPostStore(db).create(
        user_id=current_user.id,
        content=body.content,
        media_url=body.media_url,
        comments_enabled=True if body.comments_enabled is None else body.comments_enabled,
        scheduled_at=body.scheduled_at,
    )


@router.get("", response_model=ScheduledPostList)
def list_scheduled_posts(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """List the current user's scheduled posts, soonest first."""
    if status and status not in STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(STATUSES)}",
            {"field": "status"},
        )

    records, total = ScheduledPostStore(db).list_for_user(
        current_user.id, status=status, page=page, limit=limit
    )
    return ScheduledPostList(
        posts=[ScheduledPostResponse.model_validate(r) for r in records],
        total=total,
    )


@router.get("/{scheduled_post_id}", response_model=ScheduledPostResponse)
def get_scheduled_post(
    scheduled_post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get a single scheduled post (must belong to current user)."""
    return get_owned_scheduled_post(ScheduledPostStore(db), scheduled_post_id, current_user)


@router.put("/{scheduled_post_id}", response_model=ScheduledPostResponse)
def update_scheduled_post(
    scheduled_post_id: int,
    body: ScheduledPostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Merge-patch a pending scheduled post (must belong to current user)."""
    store = ScheduledPostStore(db)
    ensure_pending(get_owned_scheduled_post(store, scheduled_post_id, current_user), "update")
    return store.update(scheduled_post_id, body.model_dump(exclude_unset=True))


@router.delete("/{scheduled_post_id}", response_model=ScheduledPostCancelled)
def cancel_scheduled_post(
    scheduled_post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Cancel a pending scheduled post. The record is kept for history."""
    store = ScheduledPostStore(db)
    ensure_pending(get_owned_scheduled_post(store, scheduled_post_id, current_user), "cancel")
    record = store.cancel(scheduled_post_id)
    return ScheduledPostCancelled(
        message="Scheduled post cancelled successfully",
        post=ScheduledPostResponse.model_validate(record),
    )


@router.post("/{scheduled_post_id}/publish", response_model=ScheduledPostPublished)
def publish_scheduled_post(
    scheduled_post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
    publisher: PublicationEngine = Depends(get_publisher),
):
    """Publish a pending scheduled post immediately."""
    ensure_pending(
        get_owned_scheduled_post(ScheduledPostStore(db), scheduled_post_id, current_user),
        "publish",
    )
    post = publisher.publish_now(db, scheduled_post_id)
    api_logger.info(
        "Scheduled post published on request",
        scheduled_post_id=scheduled_post_id,
        post_id=post.id,
        user_id=current_user.id,
    )
    return ScheduledPostPublished(
        message="Post published successfully",
        post=PostResponse.model_validate(post),
    )
