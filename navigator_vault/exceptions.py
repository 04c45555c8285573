"""
Vault Exceptions — Error taxonomy for the encrypted vault file.

Security Note:
    Error messages never include password, key, plaintext or ciphertext
    material. ``DecryptionFailed`` deliberately does not tell a wrong
    password apart from a tampered file.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for every error raised by navigator_vault."""


class InvalidFormat(VaultError):
    """The data is not a vault container, or it is truncated or malformed."""


class UnsupportedVersion(VaultError):
    """The container was written by a newer format version than this build reads."""

    def __init__(self, version: int, supported: Optional[int] = None):
        self.version = version
        self.supported = supported
        message = f"Unsupported vault version: {version}"
        if supported is not None:
            message += f" (newest supported is {supported})"
        super().__init__(message)


class DecryptionFailed(VaultError):
    """Authentication failed — wrong password or corrupted vault."""

    def __init__(self, message: str = "Decryption failed — wrong password or corrupted vault"):
        super().__init__(message)


class KdfConfigurationError(VaultError):
    """Key derivation parameters are degenerate or outside accepted limits."""


class VaultIOError(VaultError, OSError):
    """A filesystem operation on the vault failed.

    Keeps ``errno`` and ``filename`` of the underlying ``OSError``, which is
    also available as ``__cause__``.
    """

    @classmethod
    def from_oserror(cls, err: OSError, path=None) -> "VaultIOError":
        filename = err.filename if err.filename is not None else path
        if filename is not None:
            return cls(err.errno, err.strerror or str(err), str(filename))
        return cls(err.errno, err.strerror or str(err))


class SerializationError(VaultError):
    """The value could not be turned into bytes by the payload serializer."""


class DeserializationError(VaultError):
    """Decrypted bytes could not be turned back into a value."""
