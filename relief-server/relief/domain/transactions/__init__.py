"""Transaction intents, envelope codec, constraint rules and builder."""

from .builder import TransactionBuilder
from .codec import EnvelopeCodec
from .constraints import ConstraintPolicy
from .exceptions import (
    AccountNotFound,
    EmptyOperationList,
    InsufficientSignatures,
    InvalidAccount,
    InvalidAmount,
    InvalidAsset,
    InvalidFee,
    InvalidTimeBound,
    LedgerError,
    LedgerUnavailable,
    MalformedEnvelope,
    TransactionRejected,
    UnreachableThreshold,
    ValidationError,
)
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
    parse_amount,
)

__all__ = [
    "AccountNotFound",
    "Asset",
    "Constraint",
    "ConstraintPolicy",
    "CreateAccountOperation",
    "EmptyOperationList",
    "Envelope",
    "EnvelopeCodec",
    "InsufficientSignatures",
    "InvalidAccount",
    "InvalidAmount",
    "InvalidAsset",
    "InvalidFee",
    "InvalidTimeBound",
    "LedgerError",
    "LedgerUnavailable",
    "MalformedEnvelope",
    "NetworkConfig",
    "NoConstraint",
    "Operation",
    "PaymentOperation",
    "SetOptionsOperation",
    "Signature",
    "ThresholdSignature",
    "TimeBound",
    "TransactionRejected",
    "TransactionBuilder",
    "TransactionIntent",
    "UnreachableThreshold",
    "ValidationError",
    "parse_amount",
]
