from .models import (
    ApprovalMilestone,
    ApprovalMilestoneResult,
    EscrowAccount,
    EscrowRelease,
    Milestone,
    MilestoneResult,
    TimeLockedTransfer,
    TimeMilestone,
    TimeMilestoneResult,
)
from .service import ConditionalTransferService

__all__ = [
    "ApprovalMilestone",
    "ApprovalMilestoneResult",
    "ConditionalTransferService",
    "EscrowAccount",
    "EscrowRelease",
    "Milestone",
    "MilestoneResult",
    "TimeLockedTransfer",
    "TimeMilestone",
    "TimeMilestoneResult",
]
