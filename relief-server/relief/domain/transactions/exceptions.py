"""Transaction domain specific exceptions."""


class LedgerError(Exception):
    """Base class for ledger transaction errors."""


class ValidationError(LedgerError):
    """Raised when an intent is malformed; never retried automatically."""


class EmptyOperationList(ValidationError):
    """Raised when a transaction is built without operations."""


class InvalidAmount(ValidationError):
    """Raised when an amount is non-positive or not representable on the ledger."""


class InvalidAccount(ValidationError):
    """Raised when an account reference is not a valid ledger public key."""


class InvalidAsset(ValidationError):
    """Raised when a custom asset is missing its issuer or has an invalid code."""


class InvalidFee(ValidationError):
    """Raised when the per-operation fee is not a positive integer."""


class InvalidTimeBound(ValidationError):
    """Raised when a time bound starts in the past or ends before it starts."""


class UnreachableThreshold(ValidationError):
    """Raised when the listed signer weights cannot reach the required weight."""


class InsufficientSignatures(ValidationError):
    """Raised when an envelope does not carry enough signer weight to be submitted."""


class MalformedEnvelope(LedgerError):
    """Raised when envelope text does not decode to a supported transaction."""


class AccountNotFound(LedgerError):
    """Raised when the ledger has no account for the given public key."""


class LedgerUnavailable(LedgerError):
    """Raised when the ledger cannot be reached; the request may be retried."""


class TransactionRejected(LedgerError):
    """Raised when the ledger refuses a transaction submitted online."""

    def __init__(self, result_code: str | None, transaction_hash: str | None = None) -> None:
        super().__init__(f"交易被账本拒绝: {result_code}")
        self.result_code = result_code
        self.transaction_hash = transaction_hash
