"""
Live post routes. Posts appear here once a scheduled post is published.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..exceptions import NotFoundOrUnauthorized
from ..models.post import Post
from ..models.user import User
from ..auth import get_required_user
from ..schemas.posts import PostResponse

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=List[PostResponse])
def get_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get the current user's posts, newest first."""
    posts = db.scalars(
        select(Post)
        .where(Post.user_id == current_user.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()
    return [PostResponse.model_validate(p) for p in posts]


@router.get("/{post_id}", response_model=PostResponse)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get a single post by ID (must belong to current user)."""
    post = db.get(Post, post_id)
    if post is None or post.user_id != current_user.id:
        raise NotFoundOrUnauthorized("Post")
    return post
