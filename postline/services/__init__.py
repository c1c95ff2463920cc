from .scheduled_posts import ScheduledPostStore
from .publisher import PublicationEngine, SweepResult
from .ownership import get_owned_scheduled_post, ensure_pending

__all__ = [
    "ScheduledPostStore",
    "PublicationEngine",
    "SweepResult",
    "get_owned_scheduled_post",
    "ensure_pending",
]
