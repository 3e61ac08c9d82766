"""Local persistence: storage backends, guarded access and obfuscated storage."""

from contaflix.storage.backends import (
    FileStorage,
    MemoryStorage,
    StorageBackend,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
)
from contaflix.storage.safe import SafeStorage, create_local_storage, create_session_storage
from contaflix.storage.secure import (
    AuthStorage,
    CodecError,
    SecureStorage,
    decode_value,
    encode_value,
)

__all__ = [
    # Backends
    "StorageBackend",
    "MemoryStorage",
    "FileStorage",
    "StorageError",
    "StorageUnavailableError",
    "StorageQuotaExceededError",
    # Accessors
    "SafeStorage",
    "create_local_storage",
    "create_session_storage",
    # Secure storage
    "SecureStorage",
    "AuthStorage",
    "CodecError",
    "encode_value",
    "decode_value",
]
