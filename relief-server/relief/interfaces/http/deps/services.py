"""Service dependency providers."""

from collections.abc import AsyncGenerator

from fastapi import Depends

from relief.core.container import ApplicationContainer, get_container
from relief.domain.batches import OfflineBatchStore
from relief.domain.conditional import ConditionalTransferService
from relief.domain.distributions import DistributionService
from relief.domain.reports import ImpactReportService
from relief.domain.submissions import SubmissionOrchestrator
from relief.infrastructure.database import session_scope


def get_app_container() -> ApplicationContainer:
    return get_container()


async def get_batch_store(
    container: ApplicationContainer = Depends(get_app_container),
) -> AsyncGenerator[OfflineBatchStore, None]:
    """Yield the configured batch store, opening a session only for the database backend."""
    if container.settings.offline.backend == "file":
        yield container.batch_store()
        return
    async with session_scope() as session:
        yield container.batch_store(session)


def get_orchestrator(
    store: OfflineBatchStore = Depends(get_batch_store),
    container: ApplicationContainer = Depends(get_app_container),
) -> SubmissionOrchestrator:
    return container.orchestrator(store)


def get_distribution_service(
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    container: ApplicationContainer = Depends(get_app_container),
) -> DistributionService:
    return DistributionService(
        builder=container.builder,
        accounts=container.ledger,
        funder=container.ledger,
        orchestrator=orchestrator,
        distribution_timeout=container.settings.ledger.distribution_timeout,
    )


def get_conditional_service(
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
    container: ApplicationContainer = Depends(get_app_container),
) -> ConditionalTransferService:
    return ConditionalTransferService(
        builder=container.builder,
        accounts=container.ledger,
        orchestrator=orchestrator,
    )


def get_report_service(container: ApplicationContainer = Depends(get_app_container)) -> ImpactReportService:
    return ImpactReportService(payments=container.ledger)


__all__ = [
    "get_app_container",
    "get_batch_store",
    "get_conditional_service",
    "get_distribution_service",
    "get_orchestrator",
    "get_report_service",
]
