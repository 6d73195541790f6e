"""Conditional transfers: time locks, multi-signature escrow and milestone payments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence, Union

from stellar_sdk import Keypair

from relief.domain.ledger.repository import AccountStateProvider
from relief.domain.submissions.service import SubmissionOrchestrator
from relief.domain.transactions.builder import TransactionBuilder
from relief.domain.transactions.exceptions import InvalidAccount, ValidationError
from relief.domain.transactions.models import (
    CreateAccountOperation,
    Envelope,
    PaymentOperation,
    SetOptionsOperation,
    ThresholdSignature,
    TimeBound,
    parse_amount,
)

from .models import (
    ESCROW_REQUIRED_WEIGHT,
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

logger = logging.getLogger(__name__)

# Covers the escrow account's base reserve, signer sub-entries and fees.
ESCROW_RESERVE = Decimal("5")


@dataclass(slots=True)
class ConditionalTransferService:
    builder: TransactionBuilder
    accounts: AccountStateProvider
    orchestrator: SubmissionOrchestrator
    escrow_reserve: Decimal = ESCROW_RESERVE

    async def create_time_locked_transfer(
        self,
        sender: Keypair,
        recipient: str,
        amount: Union[Decimal, str, int],
        unlock_at: datetime,
        sequence_number: Optional[int] = None,
    ) -> TimeLockedTransfer:
        """Signed payment the ledger accepts only from ``unlock_at`` on.

        ``sequence_number`` overrides the sender's current sequence, for
        chaining several pre-signed transfers.
        """
        unlock_at = _as_utc(unlock_at)
        if sequence_number is None:
            state = await self.accounts.get_account(sender.public_key)
            sequence_number = state.sequence
        intent = self.builder.build(
            sender.public_key,
            sequence_number,
            [PaymentOperation(destination=recipient, amount=amount)],
            constraint=TimeBound(min_time=int(unlock_at.timestamp())),
            timeout=0,
        )
        envelope = self.builder.sign(intent, sender)
        logger.info("已创建定时转账 %s -> %s，解锁时间 %s", sender.public_key, recipient, unlock_at.isoformat())
        return TimeLockedTransfer(
            envelope=envelope,
            xdr=self.builder.codec.encode_envelope(envelope),
            unlock_at=unlock_at,
        )

    async def create_escrow(
        self,
        ngo: Keypair,
        beneficiary: str,
        approver: str,
        amount: Union[Decimal, str, int],
    ) -> EscrowAccount:
        """Open a two-of-three escrow account funded with ``amount`` plus reserve.

        The escrow's own key is disabled (master weight 0) and its secret
        is dropped once the signers are configured.
        """
        signers = [ngo.public_key, beneficiary, approver]
        if len(set(signers)) != len(signers):
            raise ValidationError("托管账户的三个签名者必须互不相同")
        starting_balance = parse_amount(amount) + self.escrow_reserve
        escrow = Keypair.random()

        ngo_state = await self.accounts.get_account(ngo.public_key)
        create = self.builder.build(
            ngo.public_key,
            ngo_state.sequence,
            [CreateAccountOperation(destination=escrow.public_key, starting_balance=starting_balance)],
        )
        await self.orchestrator.submit_online(self.builder.sign(create, ngo))

        escrow_state = await self.accounts.get_account(escrow.public_key)
        configure = self.builder.build(
            escrow.public_key,
            escrow_state.sequence,
            [
                SetOptionsOperation(
                    master_weight=0,
                    low_threshold=ESCROW_REQUIRED_WEIGHT,
                    med_threshold=ESCROW_REQUIRED_WEIGHT,
                    high_threshold=ESCROW_REQUIRED_WEIGHT,
                    signer_key=ngo.public_key,
                    signer_weight=1,
                ),
                SetOptionsOperation(signer_key=beneficiary, signer_weight=1),
                SetOptionsOperation(signer_key=approver, signer_weight=1),
            ],
        )
        await self.orchestrator.submit_online(self.builder.sign(configure, escrow))
        logger.info("托管账户已创建: %s (需 %s 个签名)", escrow.public_key, ESCROW_REQUIRED_WEIGHT)
        return EscrowAccount(public_key=escrow.public_key, signers=signers)

    async def create_escrow_release(
        self,
        escrow_public_key: str,
        beneficiary: str,
        amount: Union[Decimal, str, int],
        timeout: Optional[int] = None,
    ) -> EscrowRelease:
        """Unsigned payment out of the escrow, constrained by the account's ledger signers."""
        state = await self.accounts.get_account(escrow_public_key)
        signers = {key: weight for key, weight in state.signers.items() if weight > 0}
        if not signers:
            raise InvalidAccount(f"账户 {escrow_public_key} 没有可用的签名者")
        threshold = ThresholdSignature(required_weight=max(state.thresholds.medium, 1), signers=signers)

        intent = self.builder.build(
            escrow_public_key,
            state.sequence,
            [PaymentOperation(destination=beneficiary, amount=amount)],
            constraint=threshold,
            timeout=timeout,
        )
        envelope = Envelope(intent=intent)
        return EscrowRelease(
            envelope=envelope,
            xdr=self.builder.codec.encode_envelope(envelope),
            threshold=threshold,
        )

    async def create_milestones(
        self,
        ngo: Keypair,
        milestones: Sequence[Milestone],
    ) -> list[MilestoneResult]:
        """Set up every milestone; results come back in input order.

        Approval milestones submit transactions immediately, so they run
        first. Time milestones are then pre-signed on consecutive sequence
        numbers, earliest unlock first, so none blocks another.
        """
        results: dict[int, MilestoneResult] = {}
        timed: list[tuple[int, TimeMilestone]] = []
        approvals: list[tuple[int, ApprovalMilestone]] = []

        for position, milestone in enumerate(milestones):
            if isinstance(milestone, ApprovalMilestone):
                approvals.append((position, milestone))
            elif isinstance(milestone, TimeMilestone):
                timed.append((position, milestone))
            else:
                raise TypeError(f"unsupported milestone: {milestone!r}")
            parse_amount(milestone.amount)

        for position, milestone in approvals:
            escrow = await self.create_escrow(ngo, milestone.beneficiary, milestone.approver, milestone.amount)
            results[position] = ApprovalMilestoneResult(
                milestone_id=milestone.id,
                name=milestone.name,
                escrow=escrow,
            )

        if timed:
            state = await self.accounts.get_account(ngo.public_key)
            timed.sort(key=lambda entry: _as_utc(entry[1].unlock_at))
            for offset, (position, milestone) in enumerate(timed):
                transfer = await self.create_time_locked_transfer(
                    ngo,
                    milestone.beneficiary,
                    milestone.amount,
                    milestone.unlock_at,
                    sequence_number=state.sequence + offset,
                )
                results[position] = TimeMilestoneResult(
                    milestone_id=milestone.id,
                    name=milestone.name,
                    transfer=transfer,
                )

        return [results[position] for position in range(len(milestones))]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
