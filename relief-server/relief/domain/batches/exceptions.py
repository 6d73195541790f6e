"""Offline batch store specific exceptions."""


class BatchStoreError(Exception):
    """Base class for offline batch errors."""


class BatchNotFound(BatchStoreError):
    """Raised when the requested batch identifier is unknown."""


class BatchItemNotFound(BatchStoreError):
    """Raised when a batch has no item at the requested index."""


class InvalidStatusTransition(BatchStoreError):
    """Raised when a terminal item status would be overwritten."""


class InvalidBatchId(BatchStoreError):
    """Raised when a batch identifier is empty or contains unsupported characters."""
