"""
Scheduled-post store.

Every lifecycle write is a guarded ``UPDATE ... WHERE status = 'pending'``:
the affected row count, not an earlier read, decides whether a transition
happened. That is what keeps overlapping sweeps and concurrent requests from
double-publishing or resurrecting a terminal record.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import InvalidStateTransition, NotFoundOrUnauthorized, StoreFailure, ValidationError
from ..logging_config import db_logger
from ..models.scheduled_post import CANCELLED, PENDING, POSTED, ScheduledPost
from ..timeutils import as_utc, utcnow

MUTABLE_FIELDS = ("content", "media_url", "comments_enabled", "scheduled_at")


class ScheduledPostStore:
    """Persistence and status transitions for scheduled posts, bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    def _failure(self, operation: str, error: Exception) -> StoreFailure:
        self.session.rollback()
        db_logger.error(
            f"Scheduled post store failure during {operation}",
            error=error,
            operation=operation,
        )
        return StoreFailure(operation)

    # ================================================================
    # READS
    # ================================================================

    def get_by_id(self, scheduled_post_id: int) -> Optional[ScheduledPost]:
        """Fetch a record, always re-reading it from the database."""
        try:
            return self.session.get(ScheduledPost, scheduled_post_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._failure("get", e) from e

    def list_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[ScheduledPost], int]:
        """Return one page of a user's records, soonest due first, plus the filtered total."""
        conditions = [ScheduledPost.user_id == user_id]
        if status:
            conditions.append(ScheduledPost.status == status)

        try:
            total = self.session.scalar(
                select(func.count()).select_from(ScheduledPost).where(*conditions)
            )
            records = self.session.scalars(
                select(ScheduledPost)
                .where(*conditions)
                .order_by(ScheduledPost.scheduled_at.asc(), ScheduledPost.id.asc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).all()
        except SQLAlchemyError as e:
            raise self._failure("list", e) from e

        return list(records), total or 0

    def select_due_ids(self, now: datetime, limit: Optional[int] = None) -> List[int]:
        """Ids of pending records whose scheduled time has passed, oldest first."""
        query = (
            select(ScheduledPost.id)
            .where(ScheduledPost.status == PENDING)
            .where(ScheduledPost.scheduled_at <= as_utc(now))
            .order_by(ScheduledPost.scheduled_at.asc(), ScheduledPost.id.asc())
        )
        if limit:
            query = query.limit(limit)

        try:
            return list(self.session.scalars(query).all())
        except SQLAlchemyError as e:
            raise self._failure("select_due", e) from e

    # ================================================================
    # WRITES
    # ================================================================

    def create(
        self,
        user_id: int,
        content: Optional[str],
        scheduled_at: Optional[datetime],
        media_url: Optional[str] = None,
        comments_enabled: bool = True,
    ) -> ScheduledPost:
        if content is None or not content.strip():
            raise ValidationError("content is required", {"field": "content"})
        if scheduled_at is None:
            raise ValidationError("scheduledAt is required", {"field": "scheduledAt"})

        record = ScheduledPost(
            user_id=user_id,
            content=content,
            media_url=media_url,
            comments_enabled=comments_enabled,
            scheduled_at=as_utc(scheduled_at),
            status=PENDING,
        )
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as e:
            raise self._failure("create", e) from e

        db_logger.info(
            "Scheduled post created",
            scheduled_post_id=record.id,
            user_id=user_id,
            scheduled_at=record.scheduled_at,
        )
        return record

    def update(self, scheduled_post_id: int, changes: Dict[str, Any]) -> ScheduledPost:
        """
        Merge-patch a pending record.

        Only keys present in ``changes`` with a non-null value are written;
        everything else keeps its stored value.
        """
        unknown = set(changes) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )

        values = {key: value for key, value in changes.items() if value is not None}
        if "content" in values and not values["content"].strip():
            raise ValidationError("content cannot be empty", {"field": "content"})
        if "scheduled_at" in values:
            values["scheduled_at"] = as_utc(values["scheduled_at"])
        values["updated_at"] = utcnow()

        self._guarded_transition(scheduled_post_id, values, action="update")
        return self.get_by_id(scheduled_post_id)

    def cancel(self, scheduled_post_id: int) -> ScheduledPost:
        """Move a pending record to ``cancelled``; terminal records are rejected."""
        self._guarded_transition(
            scheduled_post_id,
            {"status": CANCELLED, "updated_at": utcnow()},
            action="cancel",
        )
        db_logger.info("Scheduled post cancelled", scheduled_post_id=scheduled_post_id)
        return self.get_by_id(scheduled_post_id)

    def mark_posted(self, scheduled_post_id: int, now: Optional[datetime] = None) -> bool:
        """
        Flip a pending record to ``posted`` inside the caller's transaction.

        Returns False when the record was no longer pending. Does not commit.
        """
        result = self.session.execute(
            update(ScheduledPost)
            .where(ScheduledPost.id == scheduled_post_id)
            .where(ScheduledPost.status == PENDING)
            .values(status=POSTED, updated_at=as_utc(now) or utcnow())
        )
        return result.rowcount == 1

    def _guarded_transition(self, scheduled_post_id: int, values: Dict[str, Any], action: str) -> None:
        try:
            result = self.session.execute(
                update(ScheduledPost)
                .where(ScheduledPost.id == scheduled_post_id)
                .where(ScheduledPost.status == PENDING)
                .values(**values)
            )
            if result.rowcount == 1:
                self.session.commit()
                return
            self.session.rollback()
        except SQLAlchemyError as e:
            raise self._failure(action, e) from e

        record = self.get_by_id(scheduled_post_id)
        if record is None:
            raise NotFoundOrUnauthorized()
        raise InvalidStateTransition(record.status, action)
