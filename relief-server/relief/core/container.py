"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from relief.core.config import Settings, get_settings
from relief.core.credentials import CredentialProvider
from relief.domain.batches.service import OfflineBatchStore
from relief.domain.submissions.service import SubmissionOrchestrator
from relief.domain.transactions import ConstraintPolicy, EnvelopeCodec, TransactionBuilder
from relief.infrastructure.database.session import get_engine
from relief.infrastructure.ledger.horizon import HorizonClient
from relief.infrastructure.storage.file_batch_repository import FileOfflineBatchRepository


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    codec: EnvelopeCodec = field(init=False)
    policy: ConstraintPolicy = field(init=False)
    builder: TransactionBuilder = field(init=False)
    credentials: CredentialProvider = field(init=False)
    _ledger: Optional[HorizonClient] = field(default=None, init=False)

    def __post_init__(self) -> None:
        network = self.settings.network
        self.codec = EnvelopeCodec(network)
        self.policy = ConstraintPolicy(skew_tolerance=self.settings.ledger.time_skew_tolerance)
        self.builder = TransactionBuilder(network, codec=self.codec, policy=self.policy)
        self.credentials = CredentialProvider(self.settings.credentials)

    @property
    def ledger(self) -> HorizonClient:
        if self._ledger is None:
            self._ledger = HorizonClient(
                self.settings.ledger.horizon_url,
                friendbot_url=self.settings.ledger.friendbot_url,
                timeout=self.settings.ledger.request_timeout,
            )
        return self._ledger

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (database engine, etc.) are initialised."""
        if self.settings.offline.backend == "database":
            get_engine()

    def batch_store(self, session: Optional[AsyncSession] = None) -> OfflineBatchStore:
        if self.settings.offline.backend == "file":
            return OfflineBatchStore(FileOfflineBatchRepository(self.settings.offline.batch_dir), self.codec)
        if session is None:
            raise RuntimeError("database batch backend requires a session")
        return OfflineBatchStore.with_session(session, self.codec)

    def orchestrator(self, store: Optional[OfflineBatchStore] = None) -> SubmissionOrchestrator:
        return SubmissionOrchestrator(ledger=self.ledger, codec=self.codec, policy=self.policy, store=store)

    async def close(self) -> None:
        if self._ledger is not None:
            await self._ledger.aclose()
            self._ledger = None


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
