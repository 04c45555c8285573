"""Navigator Vault — Password-encrypted storage of one structured value.

    vault = navigator_vault.open("~/.app.vault", "correct-horse")
    vault.save({"api_key": "s3cr3t"})
    vault.load()  # {"api_key": "s3cr3t"}

Security Note (Threat Model):
    Neither the password nor the derived key is ever written to disk. Both
    live in guarded buffers that are zeroized when each call returns. Python
    may still hold transient immutable copies (string literals, buffers
    inside C extensions) that cannot be wiped; this is an accepted
    limitation — mitigation requires native secure memory which is out of
    scope.

    Concurrent ``save`` calls on one path are not coordinated; each write is
    atomic, but serializing access is up to the caller.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    InvalidFormat,
    UnsupportedVersion,
    DecryptionFailed,
    KdfConfigurationError,
    VaultIOError,
    SerializationError,
    DeserializationError,
)
from .config import VaultConfig
from .kdf import KdfParams
from .format import VaultHeader
from .secure import SecretBuffer
from .serializers import Serializer, JSONSerializer, PickleSerializer
from .vault import VaultHandle, open
from .key_rotation import rotate_password, rehash

__all__ = [
    "__version__",
    "open",
    "VaultHandle",
    "VaultConfig",
    "VaultHeader",
    "KdfParams",
    "SecretBuffer",
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "rotate_password",
    "rehash",
    "VaultError",
    "InvalidFormat",
    "UnsupportedVersion",
    "DecryptionFailed",
    "KdfConfigurationError",
    "VaultIOError",
    "SerializationError",
    "DeserializationError",
]
