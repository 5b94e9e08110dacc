"""
Secret providers for the signing key pair.

A provider returns ``KeyPair | None``; ``None`` means the secret does not
exist and the signing pipeline treats it as fatal. Secret values are JSON
objects with hex ``public_key`` and ``private_key`` members.

Providers never log secret material.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import httpx
from azure.identity.aio import DefaultAzureCredential

from .config import Settings, get_settings
from .errors import ParameterError, SourceUnavailable

logger = logging.getLogger(__name__)

KEY_VAULT_SCOPE = "https://vault.azure.net/.default"


@dataclass(frozen=True)
class KeyPair:
    public_key: str
    private_key: str = field(repr=False)

    @classmethod
    def from_secret(cls, value: str, identifier: str) -> "KeyPair":
        """
        Parse a secret value.

        Raises:
            ParameterError: If the value is not the expected JSON object
        """
        try:
            data = json.loads(value)
        except json.JSONDecodeError:
            raise ParameterError(f"secret {identifier!r} is not valid JSON")
        if not isinstance(data, Mapping):
            raise ParameterError(f"secret {identifier!r} must be a JSON object")

        public_key = data.get("public_key")
        private_key = data.get("private_key")
        if not isinstance(public_key, str) or not isinstance(private_key, str):
            raise ParameterError(
                f"secret {identifier!r} must contain public_key and private_key",
                {"identifier": identifier},
            )
        return cls(public_key=public_key.strip(), private_key=private_key.strip())


class SecretProviderKind(str, Enum):
    ENV = "env"
    AZURE = "azure"

    @classmethod
    def from_str(cls, value: str) -> "SecretProviderKind":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ParameterError(
                f"unknown secret provider: {value!r}",
                {"supported": [k.value for k in cls]},
            )


class SecretProvider(Protocol):
    async def get_secret(self, identifier: str) -> KeyPair | None:
        ...


class EnvironmentSecretProvider:
    """Reads the key pair from the environment variable named ``identifier``."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = environ if environ is not None else os.environ

    async def get_secret(self, identifier: str) -> KeyPair | None:
        value = self.environ.get(identifier)
        if not value:
            logger.debug("environment variable %s not set", identifier)
            return None
        return KeyPair.from_secret(value, identifier)


class AzureKeyVaultSecretProvider:
    """
    Reads the key pair from an Azure Key Vault secret through the REST API.

    The credential and HTTP client may be injected; otherwise a
    ``DefaultAzureCredential`` and a short-lived ``httpx.AsyncClient`` are
    created per call and closed afterwards.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        credential: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        if not self.settings.azure_key_vault_url:
            raise ParameterError("UNL_AZURE_KEY_VAULT_URL must be set for the azure secret provider")
        self.vault_url = self.settings.azure_key_vault_url.rstrip("/")
        self.credential = credential
        self.http_client = http_client

    async def _token(self) -> str:
        if self.credential is not None:
            return (await self.credential.get_token(KEY_VAULT_SCOPE)).token
        async with DefaultAzureCredential() as credential:
            return (await credential.get_token(KEY_VAULT_SCOPE)).token

    async def _get(self, client: httpx.AsyncClient, identifier: str, token: str) -> httpx.Response:
        url = f"{self.vault_url}/secrets/{quote(identifier, safe='')}"
        return await client.get(
            url,
            params={"api-version": self.settings.azure_key_vault_api_version},
            headers={"Authorization": f"Bearer {token}"},
        )

    async def get_secret(self, identifier: str) -> KeyPair | None:
        token = await self._token()
        try:
            if self.http_client is not None:
                response = await self._get(self.http_client, identifier, token)
            else:
                timeout = httpx.Timeout(self.settings.http_timeout_seconds)
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await self._get(client, identifier, token)
        except httpx.HTTPError as exc:
            raise SourceUnavailable(
                f"Key Vault request failed: {exc}",
                {"vault": self.vault_url, "secret": identifier},
            )

        if response.status_code == 404:
            logger.debug("secret %s not found in %s", identifier, self.vault_url)
            return None
        if response.status_code != 200:
            raise SourceUnavailable(
                f"Key Vault returned HTTP {response.status_code}",
                {"vault": self.vault_url, "secret": identifier, "status": response.status_code},
            )

        try:
            value = response.json().get("value")
        except (ValueError, AttributeError):
            value = None
        if not isinstance(value, str):
            raise SourceUnavailable(
                "Key Vault response has no secret value",
                {"vault": self.vault_url, "secret": identifier},
            )
        return KeyPair.from_secret(value, identifier)


def build_provider(kind: SecretProviderKind, settings: Settings | None = None) -> SecretProvider:
    if kind == SecretProviderKind.ENV:
        return EnvironmentSecretProvider()
    if kind == SecretProviderKind.AZURE:
        return AzureKeyVaultSecretProvider(settings)
    raise ParameterError(f"unknown secret provider: {kind!r}")


async def get_secret(
    kind: SecretProviderKind,
    identifier: str,
    settings: Settings | None = None,
) -> KeyPair | None:
    """Fetch ``identifier`` from the provider selected by ``kind``."""
    return await build_provider(kind, settings).get_secret(identifier)
