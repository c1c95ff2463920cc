"""
Publication engine: promotes due scheduled posts into live posts.

Each promotion is its own unit of work. The record is re-read, then the
status flip and the post insert are committed together. A record that is no
longer pending when the guarded write runs has been handled by someone else
and is skipped.
"""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import Database
from ..exceptions import InvalidStateTransition, NotFoundOrUnauthorized, StoreFailure
from ..logging_config import timed, worker_logger
from ..models.post import Post
from ..timeutils import as_utc, utcnow
from .scheduled_posts import ScheduledPostStore


@dataclass
class SweepResult:
    """Outcome counters for one sweep"""
    due: int = 0
    published: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class PublicationEngine:
    """Select due scheduled posts and promote them one at a time."""

    def __init__(self, database: Database, batch_size: Optional[int] = 100):
        self.database = database
        self.batch_size = batch_size

    def promote(self, session: Session, scheduled_post_id: int, now: Optional[datetime] = None) -> Optional[Post]:
        """
        Promote one scheduled post.

        Returns the new live post, or None when the record is missing or no
        longer pending (already posted, cancelled, or taken by a concurrent
        promotion).
        """
        store = ScheduledPostStore(session)
        record = store.get_by_id(scheduled_post_id)
        if record is None or not record.is_pending:
            return None

        try:
            if not store.mark_posted(scheduled_post_id, now):
                session.rollback()
                return None

            post = Post(
                user_id=record.user_id,
                content=record.content,
                media_url=record.media_url,
                comments_enabled=record.comments_enabled,
                scheduled_post_id=record.id,
            )
            session.add(post)
            session.commit()
        except IntegrityError:
            # Another promotion already inserted the post for this record
            session.rollback()
            return None
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreFailure("promote") from e

        worker_logger.info(
            "Scheduled post published",
            scheduled_post_id=scheduled_post_id,
            post_id=post.id,
            user_id=post.user_id,
        )
        return post

    def publish_now(self, session: Session, scheduled_post_id: int) -> Post:
        """Promote a record on request; it must still be pending."""
        post = self.promote(session, scheduled_post_id)
        if post is not None:
            return post

        record = ScheduledPostStore(session).get_by_id(scheduled_post_id)
        if record is None:
            raise NotFoundOrUnauthorized()
        raise InvalidStateTransition(record.status, "publish")

    @timed(worker_logger)
    def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Promote every due record, isolating failures per item.

        Never raises: problems are logged and counted so the next tick can
        retry whatever is still pending.
        """
        now = as_utc(now) or utcnow()

        try:
            with self.database.session_scope() as session:
                due_ids = ScheduledPostStore(session).select_due_ids(now, self.batch_size)
        except (StoreFailure, SQLAlchemyError) as e:
            worker_logger.error("Failed to select due scheduled posts", error=e)
            return SweepResult()

        result = SweepResult(due=len(due_ids))
        for scheduled_post_id in due_ids:
            try:
                with self.database.session_scope() as session:
                    post = self.promote(session, scheduled_post_id, now)
            except Exception as e:
                result.failed += 1
                worker_logger.error(
                    "Failed to publish scheduled post",
                    error=e,
                    scheduled_post_id=scheduled_post_id,
                )
                continue

            if post is None:
                result.skipped += 1
                worker_logger.debug(
                    "Scheduled post no longer pending, skipped",
                    scheduled_post_id=scheduled_post_id,
                )
            else:
                result.published += 1

        if result.due:
            worker_logger.info("Publish sweep finished", **result.to_dict())
        return result
