"""
Settings for the I/O adapters (document fetch, secret stores, output).

The core codec/verify/sign modules take no configuration.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings parsed from ``UNL_*`` environment variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for fetching a document over HTTP(S).",
    )
    user_agent: str = Field(
        default="unl-kernel/0.1",
        min_length=1,
        description="User-Agent sent when fetching documents.",
    )
    output_path: Path = Field(
        default=Path("unl.json"),
        description="Where `sign` writes the generated document.",
    )
    azure_key_vault_url: str | None = Field(
        default=None,
        description="Vault URL, e.g. https://my-vault.vault.azure.net",
    )
    azure_key_vault_api_version: str = Field(
        default="7.4",
        min_length=1,
        description="Key Vault REST API version.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
