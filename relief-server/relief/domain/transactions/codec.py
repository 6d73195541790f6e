"""Conversion between transaction intents and the ledger's XDR envelope text."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from stellar_sdk import Asset as LedgerAsset
from stellar_sdk import (
    CreateAccount,
    Payment,
    Preconditions,
    SetOptions,
    StrKey,
    Signer,
    TimeBounds,
    Transaction,
    TransactionEnvelope,
)
from stellar_sdk.decorated_signature import DecoratedSignature

from .exceptions import InvalidTimeBound, MalformedEnvelope
from .models import (
    Asset,
    Constraint,
    CreateAccountOperation,
    Envelope,
    NetworkConfig,
    NoConstraint,
    Operation,
    PaymentOperation,
    SetOptionsOperation,
    Signature,
    ThresholdSignature,
    TimeBound,
    TransactionIntent,
)

logger = logging.getLogger(__name__)


class EnvelopeCodec:
    """Encodes intents as base64 XDR ``TransactionEnvelope`` text and back.

    Threshold constraints live on the source account, not in the
    transaction, so they are passed back in explicitly when decoding.
    """

    def __init__(self, network: NetworkConfig) -> None:
        self._network = network

    @property
    def network_passphrase(self) -> str:
        return self._network.network_passphrase

    def encode(self, intent: TransactionIntent, signatures: Iterable[Signature] = ()) -> str:
        return self.to_ledger_envelope(intent, signatures).to_xdr()

    def encode_envelope(self, envelope: Envelope) -> str:
        return self.encode(envelope.intent, envelope.signatures)

    def decode(
        self,
        xdr: str,
        threshold: Optional[ThresholdSignature] = None,
    ) -> tuple[TransactionIntent, tuple[Signature, ...]]:
        try:
            ledger_envelope = TransactionEnvelope.from_xdr(xdr, self.network_passphrase)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("交易信封解析失败: %s", exc)
            raise MalformedEnvelope(f"无法解析交易信封: {exc}") from exc

        transaction = ledger_envelope.transaction
        if not transaction.operations:
            raise MalformedEnvelope("交易信封不包含任何操作")

        operations = tuple(self._from_ledger_operation(op) for op in transaction.operations)
        constraint, valid_until = self._from_time_bounds(transaction)
        if threshold is not None:
            if isinstance(constraint, TimeBound):
                raise MalformedEnvelope("带最早生效时间的交易不能附加门限签名约束")
            constraint = threshold

        intent = TransactionIntent(
            source=transaction.source.account_id,
            sequence=transaction.sequence,
            operations=operations,
            constraint=constraint,
            fee_per_op=transaction.fee // len(operations),
            valid_until=valid_until,
            wire_xdr=TransactionEnvelope(transaction, self.network_passphrase).to_xdr(),
        )
        signatures = tuple(
            Signature(hint=bytes(item.signature_hint), signature=bytes(item.signature))
            for item in ledger_envelope.signatures
        )
        return intent, signatures

    def decode_envelope(self, xdr: str, threshold: Optional[ThresholdSignature] = None) -> Envelope:
        intent, signatures = self.decode(xdr, threshold)
        return Envelope(intent=intent, signatures=signatures)

    def transaction_hash(self, intent: TransactionIntent) -> bytes:
        return self.to_ledger_envelope(intent).hash()

    def to_ledger_envelope(
        self,
        intent: TransactionIntent,
        signatures: Iterable[Signature] = (),
    ) -> TransactionEnvelope:
        decorated = [DecoratedSignature(item.hint, item.signature) for item in signatures]
        if intent.wire_xdr is not None:
            ledger_envelope = TransactionEnvelope.from_xdr(intent.wire_xdr, self.network_passphrase)
            ledger_envelope.signatures = decorated
            return ledger_envelope

        time_bounds = self._to_time_bounds(intent)
        transaction = Transaction(
            source=intent.source,
            sequence=intent.sequence,
            fee=intent.total_fee,
            operations=[self._to_ledger_operation(op) for op in intent.operations],
            preconditions=Preconditions(time_bounds=time_bounds),
            v1=True,
        )
        return TransactionEnvelope(transaction, self.network_passphrase, signatures=decorated)

    @staticmethod
    def _to_time_bounds(intent: TransactionIntent) -> TimeBounds:
        constraint = intent.constraint
        if isinstance(constraint, TimeBound):
            if constraint.max_time is not None and constraint.max_time < constraint.min_time:
                raise InvalidTimeBound(f"截止时间 {constraint.max_time} 早于生效时间 {constraint.min_time}")
            return TimeBounds(min_time=constraint.min_time, max_time=constraint.max_time or 0)
        if intent.valid_until is not None:
            return TimeBounds(min_time=0, max_time=intent.valid_until)
        # (0, 0) means the transaction never expires.
        return TimeBounds(min_time=0, max_time=0)

    @staticmethod
    def _from_time_bounds(transaction: Transaction) -> tuple[Constraint, Optional[int]]:
        preconditions = transaction.preconditions
        bounds = preconditions.time_bounds if preconditions is not None else None
        if bounds is None:
            return NoConstraint(), None
        if bounds.min_time > 0:
            return TimeBound(min_time=bounds.min_time, max_time=bounds.max_time or None), None
        return NoConstraint(), bounds.max_time or None

    @staticmethod
    def _to_ledger_asset(asset: Asset) -> LedgerAsset:
        if asset.is_native:
            return LedgerAsset.native()
        return LedgerAsset(asset.code, asset.issuer)

    @staticmethod
    def _from_ledger_asset(asset: LedgerAsset) -> Asset:
        if asset.is_native():
            return Asset.native()
        return Asset(code=asset.code, issuer=asset.issuer)

    def _to_ledger_operation(self, operation: Operation):
        if isinstance(operation, PaymentOperation):
            return Payment(
                destination=operation.destination,
                asset=self._to_ledger_asset(operation.asset),
                amount=operation.amount,
            )
        if isinstance(operation, CreateAccountOperation):
            return CreateAccount(
                destination=operation.destination,
                starting_balance=operation.starting_balance,
            )
        if isinstance(operation, SetOptionsOperation):
            signer = None
            if operation.signer_key is not None:
                signer = Signer.ed25519_public_key(operation.signer_key, operation.signer_weight or 0)
            return SetOptions(
                master_weight=operation.master_weight,
                low_threshold=operation.low_threshold,
                med_threshold=operation.med_threshold,
                high_threshold=operation.high_threshold,
                signer=signer,
            )
        raise TypeError(f"unsupported operation: {operation!r}")

    def _from_ledger_operation(self, operation) -> Operation:
        if operation.source is not None:
            raise MalformedEnvelope("不支持带独立源账户的操作")
        if isinstance(operation, Payment):
            return PaymentOperation(
                destination=operation.destination.account_id,
                amount=Decimal(operation.amount),
                asset=self._from_ledger_asset(operation.asset),
            )
        if isinstance(operation, CreateAccount):
            return CreateAccountOperation(
                destination=operation.destination,
                starting_balance=Decimal(operation.starting_balance),
            )
        if isinstance(operation, SetOptions):
            if any(
                value is not None
                for value in (
                    operation.inflation_dest,
                    operation.clear_flags,
                    operation.set_flags,
                    operation.home_domain,
                )
            ):
                raise MalformedEnvelope("不支持的 SetOptions 字段")
            signer = operation.signer
            if signer is not None and not StrKey.is_valid_ed25519_public_key(signer.signer_key.encoded_signer_key):
                raise MalformedEnvelope(f"不支持的签名者类型: {signer.signer_key.encoded_signer_key}")
            return SetOptionsOperation(
                master_weight=operation.master_weight,
                low_threshold=operation.low_threshold,
                med_threshold=operation.med_threshold,
                high_threshold=operation.high_threshold,
                signer_key=signer.signer_key.encoded_signer_key if signer else None,
                signer_weight=signer.weight if signer else None,
            )
        raise MalformedEnvelope(f"不支持的操作类型: {type(operation).__name__}")
