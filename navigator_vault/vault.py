"""
VaultHandle — Encrypted single-value storage bound to a file path.

Provides the public API of navigator_vault:
- ``save(value)`` — serialize, encrypt and atomically persist a value
- ``load()`` — read, authenticate, decrypt and deserialize the value
- ``exists()`` / ``read_header()`` / ``needs_rehash()`` — inspect the file
- ``close()`` — zeroize the password held by the handle

Every call works on its own copy of the password and on its own derived key;
both are zeroized before the call returns, on success and on every error.
Nothing is shared between calls or kept in module-level state.

Security Note:
    Never log passwords, keys, plaintext or ciphertext values. Only log the
    vault path, format version and cost parameters.
"""
import os
import logging
from pathlib import Path
from typing import Any, Optional, Union

from .atomic import read_file, write_atomically
from .config import VaultConfig
from .crypto import decrypt, encrypt, generate_nonce, generate_salt
from .format import FORMAT_VERSION, VaultHeader, decode, encode, read_header
from .kdf import KdfParams, derive_key
from .secure import SecretBuffer
from .serializers import DEFAULT_SERIALIZER, Serializer

logger = logging.getLogger("navigator.vault")

Password = Union[str, bytes, bytearray, SecretBuffer]


class VaultHandle:
    """Handle to an encrypted vault file.

    The vault stores one serializable value as a single encrypted blob:
    AES-256-GCM under a key derived from the password with Argon2id. No I/O
    happens until ``save`` or ``load``.

    Example::

        with navigator_vault.open("~/.my.vault", "correct-horse") as vault:
            vault.save({"api_key": "s3cr3t"})
            data = vault.load()
    """

    def __init__(
        self,
        path: Union[str, os.PathLike],
        password: Password,
        config: Optional[VaultConfig] = None,
        serializer: Optional[Serializer] = None,
    ):
        self._path = Path(path).expanduser()
        if isinstance(password, SecretBuffer):
            self._password = password.copy()
        else:
            self._password = SecretBuffer(password)
        self._config = config or VaultConfig()
        self._serializer = serializer or DEFAULT_SERIALIZER

    @property
    def path(self) -> Path:
        return self._path

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def serializer(self) -> Serializer:
        return self._serializer

    @property
    def closed(self) -> bool:
        return self._password.wiped

    def with_params(
        self, memory_cost: int, iterations: int, parallelism: int
    ) -> "VaultHandle":
        """Override the Argon2id parameters used by ``save``.

        Raises:
            KdfConfigurationError: Degenerate parameters.
        """
        self._config = self._config.with_params(memory_cost, iterations, parallelism)
        return self

    def exists(self) -> bool:
        """Whether the vault file exists on disk."""
        return self._path.exists()

    def read_header(self) -> VaultHeader:
        """Parse the plaintext header of the vault file; no password needed."""
        return read_header(read_file(self._path))

    def needs_rehash(self) -> bool:
        """True if the stored cost parameters are weaker than the write policy."""
        header = self.read_header()
        return (
            header.version < FORMAT_VERSION
            or header.params.weaker_than(self._config.kdf_params())
        )

    def _password_copy(self) -> SecretBuffer:
        if self._password.wiped:
            raise ValueError("I/O operation on closed vault handle")
        return self._password.copy()

    def save(self, value: Any) -> None:
        """Serialize ``value``, encrypt it and replace the vault file atomically.

        A fresh salt and a fresh nonce are drawn on every call.

        Raises:
            SerializationError: The serializer rejected the value.
            KdfConfigurationError: Invalid write policy.
            VaultIOError: The file could not be written; the previous
                contents (or absence of a file) are left intact.
        """
        with self._password_copy() as password, SecretBuffer(
            self._serializer.dumps(value)
        ) as plaintext:
            header = VaultHeader(
                params=self._config.kdf_params(),
                salt=generate_salt(),
                nonce=generate_nonce(),
            )
            associated_data = header.to_bytes()
            with derive_key(password, header.salt, header.params) as key:
                ciphertext = encrypt(key, header.nonce, plaintext.view(), associated_data)
        write_atomically(self._path, encode(header, ciphertext))
        logger.debug(
            "Vault saved: path=%s version=%d m=%d t=%d p=%d",
            self._path, header.version, header.params.memory_cost,
            header.params.iterations, header.params.parallelism,
        )

    def load(self) -> Any:
        """Read, authenticate, decrypt and deserialize the stored value.

        The key is derived from the parameters stored in the file, never from
        this handle's write policy.

        Raises:
            VaultIOError: The file could not be read.
            InvalidFormat: Not a vault file, or truncated.
            UnsupportedVersion: Written by a newer format version.
            KdfConfigurationError: Stored parameters are degenerate or above
                the configured reader limits.
            DecryptionFailed: Wrong password or tampered file.
            DeserializationError: Decrypted bytes are not a valid payload.
        """
        header, ciphertext = decode(read_file(self._path))
        params: KdfParams = self._config.check_limits(header.params)
        with self._password_copy() as password:
            with derive_key(password, header.salt, params) as key:
                plaintext = decrypt(key, header.nonce, ciphertext, header.to_bytes())
        with plaintext:
            value = self._serializer.loads(plaintext.view())
        logger.debug(
            "Vault loaded: path=%s version=%d", self._path, header.version,
        )
        return value

    def close(self) -> None:
        """Zeroize the password held by this handle."""
        self._password.wipe()

    def __enter__(self) -> "VaultHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<VaultHandle path={str(self._path)!r} closed={self.closed}>"


def open(
    path: Union[str, os.PathLike],
    password: Password,
    *,
    config: Optional[VaultConfig] = None,
    serializer: Optional[Serializer] = None,
) -> VaultHandle:
    """Open (or prepare to create) a vault at ``path``.

    No I/O is performed — the file is only read on ``load`` and written on
    ``save``.
    """
    return VaultHandle(path, password, config=config, serializer=serializer)
