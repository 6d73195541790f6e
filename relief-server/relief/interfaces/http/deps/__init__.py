"""Reusable FastAPI dependencies."""

from .errors import ledger_errors
from .services import (
    get_app_container,
    get_batch_store,
    get_conditional_service,
    get_distribution_service,
    get_orchestrator,
    get_report_service,
)

__all__ = [
    "get_app_container",
    "get_batch_store",
    "get_conditional_service",
    "get_distribution_service",
    "get_orchestrator",
    "get_report_service",
    "ledger_errors",
]
