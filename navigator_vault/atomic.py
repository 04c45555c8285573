"""
Vault Atomic Writer — Replace a file's contents with no observable half-state.

Steps: temp file in the target directory -> write -> flush -> fsync ->
``os.replace`` onto the target -> fsync the directory. A reader of the
target sees either the old contents or the new contents, never a prefix.

Concurrent writers on the same path are not coordinated: each write is
all-or-nothing, but the last rename wins. Callers serialize access.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Union

from .exceptions import VaultIOError

logger = logging.getLogger("navigator.vault")

PathLike = Union[str, os.PathLike]


def _fsync_directory(directory: Path) -> None:
    """Persist the directory entry of a rename.

    Windows has no directory handles to fsync; everywhere else a failure
    propagates, since the rename may not survive a crash.
    """
    if os.name == "nt":
        return
    fd = os.open(directory, os.O_RDONLY | getattr(os, "O_DIRECTORY", 0))
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _remove_quietly(tmp_path: str) -> None:
    try:
        os.unlink(tmp_path)
    except FileNotFoundError:
        pass
    except OSError as err:
        logger.warning("Could not remove temporary vault file %s: %s", tmp_path, err)


def write_atomically(path: PathLike, data: bytes) -> None:
    """Durably replace ``path`` with ``data``.

    The temporary file lives in the same directory (same filesystem), so the
    final rename is a metadata-only operation. If any step fails the
    temporary file is removed and ``path`` is left untouched. There is no
    non-atomic fallback.

    Args:
        path: Target file.
        data: Complete new contents.

    Raises:
        VaultIOError: Any filesystem failure, including a directory where a
            temporary file cannot be created.
    """
    target = Path(path)
    directory = target.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{target.name}.", suffix=".tmp"
        )
    except OSError as err:
        raise VaultIOError.from_oserror(err, directory) from err

    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_path, target)
    except BaseException as err:
        _remove_quietly(tmp_path)
        if isinstance(err, OSError):
            raise VaultIOError.from_oserror(err, target) from err
        raise

    try:
        _fsync_directory(directory)
    except OSError as err:
        raise VaultIOError.from_oserror(err, directory) from err
    logger.debug("Wrote %d bytes atomically to %s", len(data), target)


def read_file(path: PathLike) -> bytes:
    """Read a whole vault file, mapping filesystem failures to ``VaultIOError``."""
    try:
        with open(path, "rb") as fp:
            return fp.read()
    except OSError as err:
        raise VaultIOError.from_oserror(err, path) from err
