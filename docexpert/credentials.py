"""Secure credential storage helpers for the docexpert CLI.

Responsibilities:
- Persist provider API keys in the OS-backed keyring, one entry per provider.
- Provide deterministic read/write/delete operations for provider credentials.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

_DEFAULT_SERVICE_NAME = "docexpert"


def account_name_for(provider_id: str) -> str:
    """Return the keyring account name used for one provider's API key."""

    return f"{provider_id.strip().lower()}_api_key"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def get_api_key(self, provider_id: str) -> str | None:
        """Load the stored API key for a provider, when present."""

        raise NotImplementedError

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist an API key for a provider."""

        raise NotImplementedError

    def clear_api_key(self, provider_id: str) -> bool:
        """Delete a provider's stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    backend: Any = keyring

    def get_api_key(self, provider_id: str) -> str | None:
        """Get a normalized API key from keyring, returning `None` when missing.

        Raises:
            RuntimeError: If the keyring backend cannot be read.
        """

        try:
            value = self.backend.get_password(self.service_name, account_name_for(provider_id))
        except KeyringError as exc:
            raise RuntimeError(f"Secure credential storage is unavailable: {exc}") from exc
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a normalized API key in keyring."""

        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        try:
            self.backend.set_password(
                self.service_name, account_name_for(provider_id), normalized
            )
        except KeyringError as exc:
            raise RuntimeError(f"Secure credential storage is unavailable: {exc}") from exc

    def clear_api_key(self, provider_id: str) -> bool:
        """Remove a provider's API key from keyring and report if one was present."""

        if self.get_api_key(provider_id) is None:
            return False
        try:
            self.backend.delete_password(self.service_name, account_name_for(provider_id))
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
