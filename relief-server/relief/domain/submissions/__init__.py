from .models import BatchReport, Outcome, StopReason, SubmissionResult
from .service import SubmissionOrchestrator

__all__ = [
    "BatchReport",
    "Outcome",
    "StopReason",
    "SubmissionOrchestrator",
    "SubmissionResult",
]
