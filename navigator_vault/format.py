"""
Vault Container Format — On-disk byte layout of a vault file.

Layout, version 1 (integers little-endian):
    [magic 4B "NVLT"][version 1B]
    [memory_cost 4B][iterations 4B][parallelism 4B]
    [salt 16B][nonce 12B]
    [ciphertext + GCM tag 16B]

The header (everything before the ciphertext) is bound as AEAD associated
data, so any change to it fails authentication on load.

Parsing is strict and ordered: magic, version, fixed block, payload. Each
known version maps to one layout; a version newer than the last known one is
rejected without parsing anything after the version byte.
"""
from dataclasses import dataclass, field
from struct import Struct

from .crypto import NONCE_SIZE, TAG_SIZE
from .exceptions import InvalidFormat, UnsupportedVersion
from .kdf import KDF_ARGON2ID, SALT_SIZE, KdfParams

MAGIC = b"NVLT"
MAGIC_SIZE = len(MAGIC)
VERSION_V1 = 1
FORMAT_VERSION = VERSION_V1  # written by this build

_PREFIX = Struct("<4sB")  # magic, version


@dataclass(frozen=True)
class HeaderLayout:
    """Fixed-size block that follows magic+version for one format version."""

    version: int
    kdf: str
    body: Struct

    @property
    def size(self) -> int:
        return _PREFIX.size + self.body.size


LAYOUTS: dict[int, HeaderLayout] = {
    VERSION_V1: HeaderLayout(
        version=VERSION_V1,
        kdf=KDF_ARGON2ID,
        body=Struct(f"<III{SALT_SIZE}s{NONCE_SIZE}s"),
    ),
}
LATEST_VERSION = max(LAYOUTS)

HEADER_SIZE = LAYOUTS[FORMAT_VERSION].size  # 45 bytes


@dataclass(frozen=True)
class VaultHeader:
    """Parsed vault header."""

    params: KdfParams
    salt: bytes
    nonce: bytes
    version: int = FORMAT_VERSION
    kdf: str = field(default=KDF_ARGON2ID)

    def __post_init__(self):
        if len(self.salt) != SALT_SIZE:
            raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(self.salt)}")
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}")

    @property
    def layout(self) -> HeaderLayout:
        try:
            return LAYOUTS[self.version]
        except KeyError:
            raise UnsupportedVersion(self.version, LATEST_VERSION) from None

    def to_bytes(self) -> bytes:
        """Serialize the header; these bytes are also the AEAD associated data."""
        layout = self.layout
        if self.kdf != layout.kdf:
            raise ValueError(
                f"version {self.version} stores {layout.kdf} parameters, not {self.kdf}"
            )
        return _PREFIX.pack(MAGIC, self.version) + layout.body.pack(
            self.params.memory_cost,
            self.params.iterations,
            self.params.parallelism,
            self.salt,
            self.nonce,
        )


def encode(header: VaultHeader, payload: bytes) -> bytes:
    """Serialize header + ciphertext into the vault file contents."""
    if len(payload) < TAG_SIZE:
        raise ValueError(
            f"payload must hold at least the {TAG_SIZE}-byte tag, got {len(payload)}"
        )
    return header.to_bytes() + bytes(payload)


def _check_version(version: int) -> HeaderLayout:
    layout = LAYOUTS.get(version)
    if layout is not None:
        return layout
    if version > LATEST_VERSION:
        raise UnsupportedVersion(version, LATEST_VERSION)
    raise InvalidFormat(f"unknown vault version {version}")


def _parse_header(data: bytes) -> VaultHeader:
    if len(data) < _PREFIX.size:
        raise InvalidFormat(
            f"file too small: {len(data)} bytes (minimum is {HEADER_SIZE})"
        )
    magic, version = _PREFIX.unpack_from(data)
    if magic != MAGIC:
        raise InvalidFormat("invalid magic number — not a navigator vault file")
    layout = _check_version(version)
    if len(data) < layout.size:
        raise InvalidFormat(
            f"file too small for version {version}: {len(data)} bytes "
            f"(minimum is {layout.size})"
        )
    memory_cost, iterations, parallelism, salt, nonce = layout.body.unpack_from(
        data, _PREFIX.size
    )
    return VaultHeader(
        params=KdfParams(memory_cost, iterations, parallelism),
        salt=salt,
        nonce=nonce,
        version=version,
        kdf=layout.kdf,
    )


def read_header(data: bytes) -> VaultHeader:
    """Parse only the header; the payload is not checked."""
    return _parse_header(bytes(data))


def decode(data: bytes) -> tuple[VaultHeader, bytes]:
    """Parse vault file contents.

    Returns:
        Tuple of (header, ciphertext with tag).

    Raises:
        InvalidFormat: Bad magic, unknown old version, or truncated data.
        UnsupportedVersion: Version newer than this build understands.
    """
    data = bytes(data)
    header = _parse_header(data)
    payload = data[header.layout.size:]
    if len(payload) < TAG_SIZE:
        raise InvalidFormat(
            f"payload too small: {len(payload)} bytes (minimum is the {TAG_SIZE}-byte tag)"
        )
    return header, payload
