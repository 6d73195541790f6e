"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from relief.domain.transactions.models import NetworkConfig

TESTNET_PASSPHRASE = "Test SDF Network ; September 2015"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./relief.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class LedgerSettings(BaseModel):
    horizon_url: str = "https://horizon-testnet.stellar.org"
    friendbot_url: str = "https://friendbot.stellar.org"
    network_passphrase: str = TESTNET_PASSPHRASE
    base_fee: int = Field(default=100, gt=0)
    default_timeout: int = Field(default=30, ge=0)
    distribution_timeout: int = Field(default=100, ge=0)
    request_timeout: float = 30.0
    time_skew_tolerance: int = Field(default=0, ge=0)


class OfflineSettings(BaseModel):
    backend: Literal["database", "file"] = "database"
    batch_dir: Path = Field(default=Path("storage/batches"))


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELIEF_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    project_name: str = "Relief Ledger Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    ledger: LedgerSettings = LedgerSettings()
    offline: OfflineSettings = OfflineSettings()

    # Named signing credentials, e.g. RELIEF_CREDENTIALS__NGO=S...
    credentials: dict[str, SecretStr] = Field(default_factory=dict)

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def network(self) -> NetworkConfig:
        return NetworkConfig(
            network_passphrase=self.ledger.network_passphrase,
            base_fee=self.ledger.base_fee,
            default_timeout=self.ledger.default_timeout,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
