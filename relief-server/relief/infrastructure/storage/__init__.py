from .file_batch_repository import FileOfflineBatchRepository

__all__ = ["FileOfflineBatchRepository"]
