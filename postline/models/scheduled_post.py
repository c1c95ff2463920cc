"""
ScheduledPost model: a post waiting for its publication time.
"""
from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base

PENDING = "pending"
POSTED = "posted"
CANCELLED = "cancelled"

STATUSES = (PENDING, POSTED, CANCELLED)


class ScheduledPost(Base):
    __tablename__ = "scheduled_posts"
    __table_args__ = (
        # Due scan: status = 'pending' AND scheduled_at <= now
        Index("ix_scheduled_posts_status_scheduled_at", "status", "scheduled_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    media_url = Column(String(2048), nullable=True)
    comments_enabled = Column(Boolean, nullable=False, default=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=PENDING)  # pending, posted, cancelled
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="scheduled_posts")

    @property
    def is_pending(self) -> bool:
        return self.status == PENDING
