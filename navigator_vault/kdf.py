"""
Vault Key Derivation — Argon2id password hashing into a 256-bit AEAD key.

The cost parameters are stored in every vault header. Writers pick them from
policy (``VaultConfig``); readers always use the ones found in the file, so
vaults written under older defaults stay readable.

Security Note:
    Never log passwords or derived keys. Only log cost parameters.
"""
import logging
from dataclasses import dataclass

from argon2.low_level import ARGON2_VERSION, Type, core, error_to_str, ffi, lib

from .exceptions import KdfConfigurationError
from .secure import SecretBuffer

logger = logging.getLogger("navigator.vault")

KDF_ARGON2ID = "argon2id"
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16

# Argon2id defaults — RFC 9106 second recommended option.
DEFAULT_MEMORY_COST = 65536  # KiB, 64 MiB
DEFAULT_ITERATIONS = 3
DEFAULT_PARALLELISM = 1

_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class KdfParams:
    """Argon2id cost parameters as stored in a vault header."""

    memory_cost: int = DEFAULT_MEMORY_COST
    iterations: int = DEFAULT_ITERATIONS
    parallelism: int = DEFAULT_PARALLELISM

    def validate(self) -> "KdfParams":
        """Reject degenerate parameters instead of clamping them.

        Raises:
            KdfConfigurationError: zero or out-of-range values, or a memory
                cost below the Argon2 floor of ``8 * parallelism`` KiB.
        """
        for name in ("memory_cost", "iterations", "parallelism"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise KdfConfigurationError(
                    f"{name} must be an integer, got {type(value).__name__}"
                )
            if value < 1:
                raise KdfConfigurationError(f"{name} must be at least 1, got {value}")
            if value > _U32_MAX:
                raise KdfConfigurationError(
                    f"{name} does not fit in 32 bits: {value}"
                )
        if self.memory_cost < 8 * self.parallelism:
            raise KdfConfigurationError(
                f"memory_cost must be at least 8 * parallelism "
                f"({8 * self.parallelism} KiB), got {self.memory_cost}"
            )
        return self

    def weaker_than(self, other: "KdfParams") -> bool:
        """True if any cost is below the matching cost of ``other``."""
        return (
            self.memory_cost < other.memory_cost
            or self.iterations < other.iterations
            or self.parallelism < other.parallelism
        )


def derive_key(password: SecretBuffer, salt: bytes, params: KdfParams) -> SecretBuffer:
    """Derive a 32-byte key from a password with Argon2id.

    Deterministic: identical password, salt and parameters always produce the
    same key.

    Args:
        password: Guarded password bytes (left intact; the caller wipes it).
        salt: Random salt of ``SALT_SIZE`` bytes.
        params: Cost parameters, validated before use.

    Returns:
        Guarded key buffer; the caller owns it and must wipe it.

    Raises:
        KdfConfigurationError: Degenerate parameters, wrong salt size, or a
            failure reported by the Argon2 library.
    """
    params.validate()
    if len(salt) != SALT_SIZE:
        raise KdfConfigurationError(
            f"salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    logger.debug(
        "Deriving key: kdf=%s m=%d t=%d p=%d",
        KDF_ARGON2ID, params.memory_cost, params.iterations, params.parallelism,
    )
    key = SecretBuffer.empty(KEY_LENGTH)
    # Argon2 reads the password and writes the key in place: no immutable copies.
    c_out = ffi.from_buffer("uint8_t[]", key.view(), require_writable=True)
    c_pwd = ffi.from_buffer("uint8_t[]", password.view()) if len(password) else ffi.NULL
    c_salt = ffi.new("uint8_t[]", bytes(salt))
    context = ffi.new(
        "argon2_context *",
        dict(
            version=ARGON2_VERSION,
            out=c_out, outlen=KEY_LENGTH,
            pwd=c_pwd, pwdlen=len(password),
            salt=c_salt, saltlen=SALT_SIZE,
            secret=ffi.NULL, secretlen=0,
            ad=ffi.NULL, adlen=0,
            t_cost=params.iterations,
            m_cost=params.memory_cost,
            lanes=params.parallelism,
            threads=params.parallelism,
            allocate_cbk=ffi.NULL, free_cbk=ffi.NULL,
            flags=lib.ARGON2_DEFAULT_FLAGS,
        ),
    )
    rv = core(context, Type.ID.value)
    if rv != lib.ARGON2_OK:
        key.wipe()
        raise KdfConfigurationError(
            f"Argon2id derivation failed: {error_to_str(rv)}"
        )
    return key
