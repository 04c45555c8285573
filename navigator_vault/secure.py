"""
Guarded buffers — zeroization of password and key bytes.

``SecretBuffer`` owns a ``bytearray`` and overwrites it with zeros when the
owner is done with it, on every exit path:

    with SecretBuffer(derive(...)) as key:
        cipher = AESGCM(key.view())
        ...
    # key bytes are zero here, even if the block raised

Security Note:
    Python gives no guarantee that an object was never copied by the
    interpreter or a C extension (immutable ``bytes`` returned by a
    primitive, internal copies held by a cipher context). Wiping the
    buffers we own is best effort; this is an accepted limitation.
"""
import ctypes
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def zeroize(buffer: Union[bytearray, memoryview]) -> None:
    """Overwrite a mutable buffer with zero bytes in place."""
    if isinstance(buffer, memoryview):
        view = buffer.cast("B")
        view[:] = bytes(view.nbytes)
        return
    size = len(buffer)
    if not size:
        return
    ctypes.memset(
        ctypes.addressof(ctypes.c_char.from_buffer(buffer)), 0, size
    )


class SecretBuffer:
    """A mutable byte buffer that is zeroized when released.

    The constructor copies ``data`` into memory owned by the buffer. When
    ``data`` is itself a ``bytearray`` the source is wiped after the copy,
    so the secret lives in exactly one mutable place.
    """

    __slots__ = ("_data", "_wiped")

    def __init__(self, data: Union[BytesLike, str] = b"", *, consume: bool = True):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = bytearray(data)
        self._wiped = False
        if consume and isinstance(data, bytearray):
            zeroize(data)

    @classmethod
    def empty(cls, size: int) -> "SecretBuffer":
        return cls(bytearray(size))

    def copy(self) -> "SecretBuffer":
        """Return an independent guarded copy (this buffer is left intact)."""
        self._ensure_alive()
        return type(self)(self._data, consume=False)

    def view(self) -> memoryview:
        """Borrow the contents without copying; valid until ``wipe()``."""
        self._ensure_alive()
        return memoryview(self._data)

    def wipe(self) -> None:
        if self._wiped:
            return
        zeroize(self._data)
        self._wiped = True

    @property
    def wiped(self) -> bool:
        return self._wiped

    def _ensure_alive(self) -> None:
        if self._wiped:
            raise RuntimeError("SecretBuffer was already wiped")

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.wipe()

    def __del__(self):
        if hasattr(self, "_wiped"):
            self.wipe()

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        self._ensure_alive()
        return bytes(self._data)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"<SecretBuffer len={len(self._data)} wiped={self._wiped}>"
