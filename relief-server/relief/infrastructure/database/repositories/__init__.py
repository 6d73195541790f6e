"""SQLAlchemy-backed repository implementations."""

from .batch_repository import SqlOfflineBatchRepository

__all__ = [
    "SqlOfflineBatchRepository",
]
