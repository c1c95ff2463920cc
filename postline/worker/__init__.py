from .scheduler import PublishScheduler

__all__ = ["PublishScheduler"]
