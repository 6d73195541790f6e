"""Translation of domain exceptions into HTTP errors."""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status

from relief.core.credentials import CredentialNotFound
from relief.domain.batches import (
    BatchItemNotFound,
    BatchNotFound,
    InvalidBatchId,
    InvalidStatusTransition,
)
from relief.domain.transactions import (
    AccountNotFound,
    LedgerError,
    LedgerUnavailable,
    MalformedEnvelope,
    TransactionRejected,
    ValidationError,
)

logger = logging.getLogger(__name__)


@contextmanager
def ledger_errors() -> Iterator[None]:
    try:
        yield
    except CredentialNotFound as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (ValidationError, InvalidBatchId) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except MalformedEnvelope as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AccountNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BatchNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"离线批次不存在: {exc}") from exc
    except BatchItemNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"批次条目不存在: {exc}") from exc
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except LedgerUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="账本网络暂不可用") from exc
    except TransactionRejected as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": "交易被账本拒绝", "result_code": exc.result_code},
        ) from exc
    except LedgerError as exc:
        logger.error("账本请求失败: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


__all__ = ["ledger_errors"]
