"""Aid distribution use cases: accounts, online payouts and offline payments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from stellar_sdk import Keypair

from relief.domain.batches.models import OfflineBatch
from relief.domain.batches.service import OfflineBatchStore
from relief.domain.ledger.models import AccountCredentials
from relief.domain.ledger.repository import AccountFunder, AccountStateProvider
from relief.domain.submissions.models import SubmissionResult
from relief.domain.submissions.service import SubmissionOrchestrator
from relief.domain.transactions.builder import TransactionBuilder
from relief.domain.transactions.exceptions import EmptyOperationList
from relief.domain.transactions.models import (
    Asset,
    CreateAccountOperation,
    PaymentOperation,
    parse_amount,
)

from .models import BeneficiaryAccount, BeneficiaryPayment, OfflinePayment

logger = logging.getLogger(__name__)

DEFAULT_BENEFICIARY_BALANCE = "5"


@dataclass(slots=True)
class DistributionService:
    builder: TransactionBuilder
    accounts: AccountStateProvider
    funder: AccountFunder
    orchestrator: SubmissionOrchestrator
    distribution_timeout: int = 100

    async def create_ngo_account(self) -> AccountCredentials:
        """Generate a keypair and activate it through the funding service."""
        keypair = Keypair.random()
        await self.funder.fund(keypair.public_key)
        logger.info("NGO 账户已创建: %s", keypair.public_key)
        return AccountCredentials(public_key=keypair.public_key, secret_key=keypair.secret)

    async def create_beneficiary(
        self,
        ngo: Keypair,
        initial_balance: Union[str, int] = DEFAULT_BENEFICIARY_BALANCE,
    ) -> BeneficiaryAccount:
        starting_balance = parse_amount(initial_balance)
        beneficiary = Keypair.random()

        state = await self.accounts.get_account(ngo.public_key)
        intent = self.builder.build(
            ngo.public_key,
            state.sequence,
            [CreateAccountOperation(destination=beneficiary.public_key, starting_balance=starting_balance)],
        )
        result = await self.orchestrator.submit_online(self.builder.sign(intent, ngo))
        logger.info("受益人账户已创建: %s (初始余额 %s)", beneficiary.public_key, starting_balance)
        return BeneficiaryAccount(
            credentials=AccountCredentials(public_key=beneficiary.public_key, secret_key=beneficiary.secret),
            starting_balance=starting_balance,
            submission=result,
        )

    async def distribute(
        self,
        ngo: Keypair,
        beneficiaries: Sequence[BeneficiaryPayment],
        asset: Asset = Asset(),
    ) -> SubmissionResult:
        """Pay every beneficiary in a single transaction.

        All amounts are validated before the NGO account is even looked up.
        """
        operations = [
            PaymentOperation(destination=item.public_key, amount=item.amount, asset=asset)
            for item in beneficiaries
        ]
        if not operations:
            raise EmptyOperationList("至少需要一名受益人")
        # Validate everything offline before touching the ledger.
        self.builder.build(ngo.public_key, 0, operations, timeout=0)

        state = await self.accounts.get_account(ngo.public_key)
        intent = self.builder.build(
            ngo.public_key,
            state.sequence,
            operations,
            timeout=self.distribution_timeout,
        )
        result = await self.orchestrator.submit_online(self.builder.sign(intent, ngo))
        logger.info("已向 %s 名受益人发放 %s", len(operations), asset.code)
        return result

    async def generate_offline_payment(
        self,
        sender: Keypair,
        recipient: str,
        amount: Union[str, int],
    ) -> OfflinePayment:
        """Signed payment without expiry, to be carried and submitted later."""
        state = await self.accounts.get_account(sender.public_key)
        intent = self.builder.build(
            sender.public_key,
            state.sequence,
            [PaymentOperation(destination=recipient, amount=amount)],
            timeout=0,
        )
        envelope = self.builder.sign(intent, sender)
        return OfflinePayment(envelope=envelope, xdr=self.builder.codec.encode_envelope(envelope))

    async def prepare_offline_batch(
        self,
        store: OfflineBatchStore,
        batch_id: str,
        sender: Keypair,
        payments: Sequence[BeneficiaryPayment],
    ) -> OfflineBatch:
        """Sign one payment per transaction on consecutive sequence numbers and store them."""
        if not payments:
            raise EmptyOperationList("离线批次至少需要一笔支付")
        for item in payments:
            parse_amount(item.amount)

        state = await self.accounts.get_account(sender.public_key)
        intents = self.builder.build_sequence(
            sender.public_key,
            state.sequence,
            [[PaymentOperation(destination=item.public_key, amount=item.amount)] for item in payments],
            timeout=0,
        )
        envelopes = [self.builder.sign(intent, sender) for intent in intents]
        return await store.put(batch_id, envelopes)
