"""Obfuscated key/value storage layered over SafeStorage.

Values are XORed byte-wise against a fixed repeating key and base64
encoded. This is obfuscation, not encryption: it keeps tokens and client
data from being readable at a glance in the storage file, and offers no
protection against anyone who has this source code or the key.
"""

from __future__ import annotations

import base64
import binascii
import json
from itertools import cycle
from typing import Any

import structlog

from contaflix.config import FlatSettings, get_settings
from contaflix.storage.safe import SafeStorage

logger = structlog.get_logger(__name__)

# Physical key prefixes wiped by SecureStorage.clear()
CLEARED_PREFIXES = ("sec_", "contaflix_")


class CodecError(Exception):
    """A value could not be encoded or decoded."""


def _xor(data: bytes, key: bytes) -> bytes:
    return bytes(b ^ k for b, k in zip(data, cycle(key)))


def encode_value(value: str, key: str) -> str:
    """XOR the UTF-8 bytes of ``value`` with ``key`` and base64 the result."""
    if not isinstance(value, str):
        raise CodecError(f"Expected str, got {type(value).__name__}")
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise CodecError(str(e)) from e
    return base64.b64encode(_xor(raw, key.encode("utf-8"))).decode("ascii")


def decode_value(encoded: str, key: str) -> str:
    """Reverse :func:`encode_value`."""
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
        return _xor(raw, key.encode("utf-8")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise CodecError(str(e)) from e


class SecureStorage:
    """Obfuscated storage with transparent migration of legacy plaintext keys."""

    def __init__(
        self,
        storage: SafeStorage,
        settings: FlatSettings | None = None,
    ):
        settings = settings or get_settings()
        self._storage = storage
        self._key = settings.secure_storage_key.get_secret_value()
        self._prefix = settings.secure_storage_prefix
        self._allow_plaintext_fallback = not settings.is_production
        self._logger = logger.bind(component="secure_storage")

    def physical_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def set_item(self, key: str, value: str) -> bool:
        """Store ``value`` obfuscated under the prefixed key."""
        try:
            encoded = encode_value(value, self._key)
        except CodecError as e:
            if self._allow_plaintext_fallback and isinstance(value, str):
                # Development-only escape hatch, never taken in production.
                self._logger.warning(
                    "secure_storage_plaintext_fallback", key=key, error=str(e)
                )
                return self._storage.set_item(key, value)
            self._logger.error("secure_storage_encode_failed", key=key, error=str(e))
            return False
        return self._storage.set_item(self.physical_key(key), encoded)

    def get_item(self, key: str) -> str | None:
        """Read and decode a value, migrating a legacy plaintext copy if needed."""
        encoded = self._storage.get_item(self.physical_key(key))
        if encoded is None:
            return self._migrate_legacy(key)

        try:
            return decode_value(encoded, self._key)
        except CodecError as e:
            self._logger.warning("secure_storage_decode_failed", key=key, error=str(e))
            return None

    def _migrate_legacy(self, key: str) -> str | None:
        legacy = self._storage.get_item(key)
        if legacy is None:
            return None

        # Legacy copy is only dropped once the encrypted copy is in place.
        if self.set_item(key, legacy) and self._storage.get_item(self.physical_key(key)) is not None:
            self._storage.remove_item(key)
            self._logger.info("secure_storage_migrated", key=key)
        else:
            self._logger.warning("secure_storage_migration_deferred", key=key)
        return legacy

    def remove_item(self, key: str) -> None:
        self._storage.remove_item(self.physical_key(key))
        self._storage.remove_item(key)

    def clear(self) -> None:
        """Remove every secure entry and every app-namespaced key."""
        prefixes = tuple({self._prefix, *CLEARED_PREFIXES})
        removed = 0
        for physical in self._storage.keys():
            if physical.startswith(prefixes):
                self._storage.remove_item(physical)
                removed += 1
        self._logger.debug("secure_storage_cleared", removed=removed)


class AuthStorage:
    """Typed accessors for the client-portal credentials kept in SecureStorage."""

    CLIENT_ID = "contaflix_client_id"
    CLIENT_DATA = "contaflix_client_data"
    ACCESS_TOKEN = "contaflix_access_token"
    BIOMETRIC_ID = "contaflix_biometric_id"

    def __init__(self, secure: SecureStorage):
        self._secure = secure

    def set_client_id(self, client_id: str) -> bool:
        return self._secure.set_item(self.CLIENT_ID, client_id)

    def get_client_id(self) -> str | None:
        return self._secure.get_item(self.CLIENT_ID)

    def set_client_data(self, data: dict[str, Any]) -> bool:
        return self._secure.set_item(self.CLIENT_DATA, json.dumps(data, ensure_ascii=False))

    def get_client_data(self) -> dict[str, Any] | None:
        raw = self._secure.get_item(self.CLIENT_DATA)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("client_data_corrupted")
            return None
        return data if isinstance(data, dict) else None

    def set_access_token(self, token: str) -> bool:
        return self._secure.set_item(self.ACCESS_TOKEN, token)

    def get_access_token(self) -> str | None:
        return self._secure.get_item(self.ACCESS_TOKEN)

    def set_biometric_id(self, biometric_id: str) -> bool:
        return self._secure.set_item(self.BIOMETRIC_ID, biometric_id)

    def get_biometric_id(self) -> str | None:
        return self._secure.get_item(self.BIOMETRIC_ID)

    def clear_all(self) -> None:
        self._secure.clear()
