"""Assembles transaction intents and applies signatures without touching the network."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, Optional, Sequence, Union

from stellar_sdk import Keypair, StrKey

from .codec import EnvelopeCodec
from .constraints import MAX_SIGNER_WEIGHT, ConstraintPolicy, has_valid_signature
from .exceptions import (
    EmptyOperationList,
    InvalidAccount,
    InvalidAsset,
    InvalidFee,
    ValidationError,
)
from .models import (
    NATIVE_ASSET_CODE,
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
    parse_amount,
)

logger = logging.getLogger(__name__)

_ASSET_CODE = re.compile(r"^[A-Za-z0-9]{1,12}$")


class TransactionBuilder:
    """Turns source account, sequence number and operations into signable intents.

    ``sequence_number`` is always the source account's current sequence as
    reported by the ledger; the built transaction consumes the next one.
    """

    def __init__(
        self,
        network: NetworkConfig,
        *,
        codec: Optional[EnvelopeCodec] = None,
        policy: Optional[ConstraintPolicy] = None,
    ) -> None:
        self._network = network
        self._codec = codec or EnvelopeCodec(network)
        self._policy = policy or ConstraintPolicy()

    @property
    def codec(self) -> EnvelopeCodec:
        return self._codec

    @property
    def policy(self) -> ConstraintPolicy:
        return self._policy

    def build(
        self,
        source: str,
        sequence_number: int,
        operations: Iterable[Operation],
        constraint: Constraint = NoConstraint(),
        fee_per_op: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> TransactionIntent:
        operations = tuple(operations)
        if not operations:
            raise EmptyOperationList("交易至少需要一个操作")
        _ensure_account(source)
        normalized = tuple(self._normalize_operation(op) for op in operations)

        fee = self._network.base_fee if fee_per_op is None else fee_per_op
        if isinstance(fee, bool) or not isinstance(fee, int) or fee <= 0:
            raise InvalidFee(f"手续费必须为正整数: {fee!r}")

        timeout = self._network.default_timeout if timeout is None else timeout
        if timeout < 0:
            raise ValidationError(f"超时时间不能为负数: {timeout}")
        valid_until = self._policy.now() + timeout if timeout > 0 else None

        intent = TransactionIntent(
            source=source,
            sequence=sequence_number + 1,
            operations=normalized,
            fee_per_op=fee,
            valid_until=valid_until,
        )
        intent = self._apply_constraint(intent, constraint)
        logger.debug("构建交易 source=%s sequence=%s ops=%s", source, intent.sequence, len(normalized))
        return intent

    def build_sequence(
        self,
        source: str,
        sequence_number: int,
        operation_groups: Iterable[Sequence[Operation]],
        constraint: Constraint = NoConstraint(),
        fee_per_op: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> list[TransactionIntent]:
        """Build one intent per group, consuming consecutive sequence numbers."""
        groups = [tuple(group) for group in operation_groups]
        if not groups:
            raise EmptyOperationList("至少需要一笔交易")
        return [
            self.build(
                source,
                sequence_number + offset,
                group,
                constraint=constraint,
                fee_per_op=fee_per_op,
                timeout=timeout,
            )
            for offset, group in enumerate(groups)
        ]

    def sign(self, target: Union[TransactionIntent, Envelope], credential: Keypair) -> Envelope:
        envelope = target if isinstance(target, Envelope) else Envelope(intent=target)
        if not credential.can_sign():
            raise ValidationError("签名凭据不包含私钥")

        tx_hash = self._codec.transaction_hash(envelope.intent)
        if has_valid_signature(credential.public_key, envelope.signatures, tx_hash):
            return envelope
        signature = Signature(hint=credential.signature_hint(), signature=credential.sign(tx_hash))
        return envelope.with_signature(signature)

    def sign_encoded(
        self,
        xdr: str,
        credential: Keypair,
        threshold: Optional[ThresholdSignature] = None,
    ) -> str:
        envelope = self._codec.decode_envelope(xdr, threshold)
        return self._codec.encode_envelope(self.sign(envelope, credential))

    def _apply_constraint(self, intent: TransactionIntent, constraint: Constraint) -> TransactionIntent:
        if isinstance(constraint, NoConstraint):
            return intent
        if isinstance(constraint, TimeBound):
            return self._policy.apply_time_bound(intent, constraint.min_time, constraint.max_time)
        if isinstance(constraint, ThresholdSignature):
            return self._policy.apply_threshold(intent, constraint.signers, constraint.required_weight)
        raise TypeError(f"unsupported constraint: {constraint!r}")

    @staticmethod
    def _normalize_operation(operation: Operation) -> Operation:
        if isinstance(operation, PaymentOperation):
            _ensure_account(operation.destination)
            _ensure_asset(operation.asset)
            return replace(operation, amount=parse_amount(operation.amount))
        if isinstance(operation, CreateAccountOperation):
            _ensure_account(operation.destination)
            return replace(operation, starting_balance=parse_amount(operation.starting_balance))
        if isinstance(operation, SetOptionsOperation):
            for value in (
                operation.master_weight,
                operation.low_threshold,
                operation.med_threshold,
                operation.high_threshold,
                operation.signer_weight,
            ):
                if value is not None and not 0 <= value <= MAX_SIGNER_WEIGHT:
                    raise ValidationError(f"权重或阈值超出范围: {value}")
            if operation.signer_key is not None:
                _ensure_account(operation.signer_key)
            return operation
        raise TypeError(f"unsupported operation: {operation!r}")


def _ensure_account(public_key: str) -> None:
    if not isinstance(public_key, str) or not StrKey.is_valid_ed25519_public_key(public_key):
        raise InvalidAccount(f"无效的账户公钥: {public_key!r}")


def _ensure_asset(asset: Asset) -> None:
    if asset.is_native:
        if asset.code != NATIVE_ASSET_CODE:
            raise InvalidAsset(f"自定义资产 {asset.code} 需要发行方")
        return
    if not _ASSET_CODE.match(asset.code or ""):
        raise InvalidAsset(f"资产代码无效: {asset.code!r}")
    if not StrKey.is_valid_ed25519_public_key(asset.issuer):
        raise InvalidAsset(f"资产发行方无效: {asset.issuer!r}")
