"""
Vault Crypto Core — AES-256-GCM encryption/decryption of the vault payload.

Format of the output: [encrypted_payload + GCM tag 16B]. The nonce and the
key travel separately (nonce in the vault header, key re-derived from the
password).

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit and a fresh salt (hence a fresh key) is drawn on
    every save, so a nonce is never reused under the same key.
"""
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import DecryptionFailed
from .kdf import KEY_LENGTH, SALT_SIZE
from .secure import BytesLike, SecretBuffer

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag


def generate_salt() -> bytes:
    """Generate a cryptographically random KDF salt."""
    return os.urandom(SALT_SIZE)


def generate_nonce() -> bytes:
    """Generate a cryptographically random 96-bit nonce."""
    return os.urandom(NONCE_SIZE)


def _cipher(key: SecretBuffer, nonce: BytesLike) -> AESGCM:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"key must be exactly {KEY_LENGTH} bytes, got {len(key)}")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be exactly {NONCE_SIZE} bytes, got {len(nonce)}")
    return AESGCM(key.view())


def encrypt(
    key: SecretBuffer,
    nonce: BytesLike,
    plaintext: BytesLike,
    associated_data: Optional[BytesLike] = None,
) -> bytes:
    """Encrypt plaintext with AES-256-GCM.

    Args:
        key: Guarded 32-byte key.
        nonce: 12-byte nonce, never reused under the same key.
        plaintext: Data to encrypt.
        associated_data: Authenticated but unencrypted bytes (the vault header).

    Returns:
        Ciphertext with the 16-byte tag appended.
    """
    cipher = _cipher(key, nonce)
    return cipher.encrypt(bytes(nonce), bytes(plaintext), associated_data)


def decrypt(
    key: SecretBuffer,
    nonce: BytesLike,
    ciphertext: BytesLike,
    associated_data: Optional[BytesLike] = None,
) -> SecretBuffer:
    """Decrypt and verify AES-256-GCM ciphertext.

    Args:
        key: Guarded 32-byte key.
        nonce: Nonce the payload was encrypted with.
        ciphertext: Ciphertext with the tag appended.
        associated_data: Same associated data given to ``encrypt``.

    Returns:
        Guarded plaintext; the caller wipes it once deserialized.

    Raises:
        DecryptionFailed: Tag mismatch (wrong key or tampered data).
    """
    cipher = _cipher(key, nonce)
    if len(ciphertext) < TAG_SIZE:
        raise DecryptionFailed()
    try:
        plaintext = cipher.decrypt(bytes(nonce), bytes(ciphertext), associated_data)
    except InvalidTag as err:
        raise DecryptionFailed() from err
    return SecretBuffer(plaintext)
