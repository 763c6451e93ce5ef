from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    coinbase_api_key: str | None = None
    coinbase_api_secret: str | None = None
    coinbase_base_url: str = "https://api.coinbase.com"
    coinbase_api_version: str = "2021-04-29"
    request_timeout: float = 10.0

    data_dir: Path = Path("data")
    output_dir: Path = Path("output")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
