"""Resolution of signing credentials from configuration or raw secret seeds."""

from __future__ import annotations

import logging
from typing import Mapping

from pydantic import SecretStr
from stellar_sdk import Keypair, StrKey


logger = logging.getLogger(__name__)


class CredentialNotFound(Exception):
    """Raised when a credential reference names no configured or valid secret."""


class CredentialProvider:
    """Looks up signing keypairs by name; raw ``S...`` seeds are accepted as-is.

    Secrets are kept as ``SecretStr`` and never written to logs.
    """

    def __init__(self, credentials: Mapping[str, SecretStr] | None = None) -> None:
        self._credentials = {name.lower(): secret for name, secret in (credentials or {}).items()}

    @property
    def names(self) -> list[str]:
        return sorted(self._credentials)

    def resolve(self, reference: str) -> Keypair:
        if not reference:
            raise CredentialNotFound("未提供签名凭据")

        secret = self._credentials.get(reference.lower())
        if secret is not None:
            seed = secret.get_secret_value()
            if not StrKey.is_valid_ed25519_secret_seed(seed):
                logger.error("配置的签名凭据 %s 格式无效", reference)
                raise CredentialNotFound(f"签名凭据 {reference} 格式无效")
            return Keypair.from_secret(seed)

        if StrKey.is_valid_ed25519_secret_seed(reference):
            return Keypair.from_secret(reference)

        raise CredentialNotFound(f"未找到签名凭据: {reference}")
