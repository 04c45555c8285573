"""
Vault Key Rotation — Full re-encryption under a new password or KDF policy.

There is no key wrapping: rotating means decrypting the value and saving it
again, with a fresh salt, nonce and key, through the atomic writer. If
anything fails before the rename, the vault keeps its previous contents and
stays readable with the old password.

Security Note:
    Plaintext exists in memory only during re-encryption.
    Never log passwords, plaintext or ciphertext values.
"""
import os
import logging
from typing import Optional, Union

from .config import VaultConfig
from .serializers import Serializer
from .vault import Password, VaultHandle

logger = logging.getLogger("navigator.vault")


def rotate_password(
    path: Union[str, os.PathLike],
    old_password: Password,
    new_password: Password,
    config: Optional[VaultConfig] = None,
    serializer: Optional[Serializer] = None,
) -> None:
    """Re-encrypt the vault at ``path`` under ``new_password``.

    Args:
        path: Vault file.
        old_password: Password the vault is currently encrypted with.
        new_password: Password to encrypt with from now on.
        config: Write policy for the new file (default policy if omitted).
        serializer: Payload codec the vault was written with.

    Raises:
        DecryptionFailed: ``old_password`` does not open the vault.
        VaultError: Any other load or save failure; the file is unchanged.
    """
    with VaultHandle(path, old_password, config, serializer) as current:
        value = current.load()
    with VaultHandle(path, new_password, config, serializer) as rotated:
        rotated.save(value)
    logger.info("Vault password rotated: path=%s", rotated.path)


def rehash(handle: VaultHandle, force: bool = False) -> bool:
    """Re-encrypt a vault with the handle's current write policy.

    Useful after raising the KDF defaults: old vaults remain readable with
    their stored parameters, and ``rehash`` upgrades them on demand.

    Args:
        handle: Open handle with the vault password.
        force: Re-encrypt even if the stored parameters are already current.

    Returns:
        True if the vault was rewritten.
    """
    if not force and not handle.needs_rehash():
        return False
    old = handle.read_header().params
    handle.save(handle.load())
    new = handle.config.kdf_params()
    logger.info(
        "Vault rehashed: path=%s m=%d->%d t=%d->%d p=%d->%d",
        handle.path,
        old.memory_cost, new.memory_cost,
        old.iterations, new.iterations,
        old.parallelism, new.parallelism,
    )
    return True
