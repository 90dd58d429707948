"""
Configuration management using pydantic-settings.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: Literal["mainnet", "testnet", "signet", "regtest"] = "mainnet"

    electrum_host: str = "127.0.0.1"
    electrum_port: int = Field(default=50001, ge=1, le=65535)
    electrum_tls_enabled: bool = False
    electrum_retry_period: float = Field(default=1.0, gt=0)
    electrum_request_timeout: float = Field(default=30.0, gt=0)

    core_rpc_url: str = "http://127.0.0.1:8332"
    core_rpc_user: str = "rpcuser"
    core_rpc_password: str = "rpcpassword"
    core_rpc_timeout: float = Field(default=30.0, gt=0)

    http_host: str = "127.0.0.1"
    http_port: int = Field(default=8999, ge=1, le=65535)

    cache_ttl: float = Field(default=2.0, ge=0)  # seconds
    # Pages never exceed 10 transactions
    page_size: int = Field(default=10, ge=1, le=10)

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
