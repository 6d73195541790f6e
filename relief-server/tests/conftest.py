"""Shared fixtures: deterministic keypairs, a fixed clock and an in-memory ledger."""

from __future__ import annotations

import hashlib
from decimal import Decimal
from typing import Callable, Optional

import pytest
from stellar_sdk import CreateAccount, Keypair, Payment, SetOptions, TransactionEnvelope

from relief.domain.ledger.models import (
    AccountState,
    AccountThresholds,
    Balance,
    LedgerResponse,
    PaymentRecord,
)
from relief.domain.transactions import (
    AccountNotFound,
    ConstraintPolicy,
    EnvelopeCodec,
    NetworkConfig,
    TransactionBuilder,
)

TESTNET = "Test SDF Network ; September 2015"
NOW = 1_760_000_000


def keypair(seed: int) -> Keypair:
    return Keypair.from_raw_ed25519_seed(bytes([seed]) * 32)


class FakeLedger:
    """In-memory stand-in for Horizon.

    Accepted transactions are applied: sequence numbers advance, created
    accounts appear and SetOptions changes signers and thresholds.
    ``outcomes`` is consumed one entry per submission; an entry may be a
    ``LedgerResponse`` or an exception to raise.
    """

    def __init__(self, passphrase: str = TESTNET) -> None:
        self.passphrase = passphrase
        self.accounts: dict[str, AccountState] = {}
        self.submitted: list[str] = []
        self.outcomes: list[object] = []
        self.funded: list[str] = []
        self.payments: list[PaymentRecord] = []
        self.on_submit: Optional[Callable[[str], Optional[LedgerResponse]]] = None

    def add_account(self, public_key: str, sequence: int = 1000, balance: str = "1000") -> AccountState:
        state = AccountState(
            account_id=public_key,
            sequence=sequence,
            balances=[Balance(asset_code="XLM", asset_issuer=None, balance=Decimal(balance))],
            signers={public_key: 1},
            thresholds=AccountThresholds(),
        )
        self.accounts[public_key] = state
        return state

    async def get_account(self, public_id: str) -> AccountState:
        if public_id not in self.accounts:
            raise AccountNotFound(public_id)
        return self.accounts[public_id]

    async def submit(self, envelope_xdr: str) -> LedgerResponse:
        self.submitted.append(envelope_xdr)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, LedgerResponse):
                if outcome.success:
                    self._apply(envelope_xdr)
                return outcome
        if self.on_submit is not None:
            response = self.on_submit(envelope_xdr)
            if response is not None:
                return response
        self._apply(envelope_xdr)
        return LedgerResponse(
            success=True,
            result_code="tx_success",
            transaction_hash=hashlib.sha256(envelope_xdr.encode()).hexdigest(),
            ledger=len(self.submitted),
        )

    async def fund(self, public_id: str) -> None:
        self.funded.append(public_id)
        self.add_account(public_id, balance="10000")

    async def list_payments(self, public_id: str, limit: int = 200):
        return self.payments[:limit]

    def _apply(self, envelope_xdr: str) -> None:
        transaction = TransactionEnvelope.from_xdr(envelope_xdr, self.passphrase).transaction
        source = self.accounts.get(transaction.source.account_id)
        if source is not None:
            source.sequence = transaction.sequence
        for operation in transaction.operations:
            if isinstance(operation, CreateAccount):
                self.add_account(operation.destination, sequence=5000 << 32, balance=operation.starting_balance)
            elif isinstance(operation, SetOptions) and source is not None:
                if operation.master_weight is not None:
                    source.signers[source.account_id] = operation.master_weight
                if operation.med_threshold is not None:
                    source.thresholds.low = operation.low_threshold or source.thresholds.low
                    source.thresholds.medium = operation.med_threshold
                    source.thresholds.high = operation.high_threshold or source.thresholds.high
                if operation.signer is not None:
                    source.signers[operation.signer.signer_key.encoded_signer_key] = operation.signer.weight
            elif isinstance(operation, Payment):
                continue


@pytest.fixture
def network() -> NetworkConfig:
    return NetworkConfig(network_passphrase=TESTNET, base_fee=100, default_timeout=30)


@pytest.fixture
def policy() -> ConstraintPolicy:
    return ConstraintPolicy(clock=lambda: NOW)


@pytest.fixture
def codec(network) -> EnvelopeCodec:
    return EnvelopeCodec(network)


@pytest.fixture
def builder(network, codec, policy) -> TransactionBuilder:
    return TransactionBuilder(network, codec=codec, policy=policy)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def ngo() -> Keypair:
    return keypair(1)


@pytest.fixture
def beneficiary() -> Keypair:
    return keypair(2)


@pytest.fixture
def approver() -> Keypair:
    return keypair(3)
