# md5.py
# A naive Python implementation of the MD5 message-digest algorithm (RFC 1321).

from __future__ import annotations

import warnings
import typing as t
import copy

from typing_extensions import Buffer, Self

from constants import (
    BLOCK_SIZE,
    DIGEST_SIZE,
    K,
    MASK32,
    MD5_INITIAL_HASH_VALUES,
    S,
)
from functions import ROUND_SCHEDULE, rotl
from preprocessing import iter_blocks, unpack_block

ReadableBuffer = Buffer

State = t.Tuple[int, int, int, int]


def _ensure_bytes(string: t.Any) -> bytes:
    if not isinstance(string, (bytes, bytearray, memoryview)):
        raise TypeError("Strings must be encoded before hashing")
    return bytes(string)


def compress(state: State, block: bytes) -> State:
    """Fold one 64-byte block into the running state.
    See definition in RFC 1321, Section 3.4."""
    M = unpack_block(block)
    a, b, c, d = state

    for t, (fn, g) in enumerate(ROUND_SCHEDULE):
        f = (fn(b, c, d) + a + K[t] + M[g]) & MASK32
        a, b, c, d = d, (b + rotl(f, S[t])) & MASK32, b, c

    return tuple((x + y) & MASK32 for x, y in zip(state, (a, b, c, d)))


def finalize(state: State) -> bytes:
    """Serialize A, B, C, D as little-endian words. See RFC 1321, Section 3.5."""
    return b"".join(word.to_bytes(4, "little") for word in state)


def digest_blocks(blocks: t.Iterable[bytes]) -> bytes:
    state: State = MD5_INITIAL_HASH_VALUES
    for block in blocks:
        state = compress(state, block)
    return finalize(state)


def digest(message: ReadableBuffer) -> str:
    """Return the MD5 digest of *message* as 32 lowercase hex characters."""
    return digest_blocks(iter_blocks((_ensure_bytes(message),))).hex()


class HASH(object):

    __slots__: tuple = (
        "_buffer",
        "digest_size",
        "block_size",
        "name",
        "usedforsecurity",
    )

    def __new__(cls, **kwds) -> HASH:
        if kwds.get("usedforsecurity", False):
            warnings.warn(
                "MD5 is not considered secure for cryptographic purposes.",
                UserWarning,
                stacklevel=3,
            )
        return super().__new__(cls)

    @t.overload
    def __init__(
        self,
        *,
        digest_size: int,
        block_size: int,
        name: str,
        **kwds,
    ) -> None: ...
    def __init__(self, **kwds: t.Union[int, str, bool, bytes]) -> None:

        self._buffer: bytes = b""

        for key, value in kwds.items():
            object.__setattr__(self, key, value)

    def __repr__(self) -> str:
        return f"<{self.name} {self.__class__.__name__} object @ {id(self):#x}>"

    def copy(self) -> Self:
        return copy.deepcopy(self)

    def digest(self) -> bytes:
        return digest_blocks(iter_blocks((self._buffer,)))

    def hexdigest(self) -> str:
        return self.digest().hex()


"""
NOTE: The `usedforsecurity` parameter is primarily advisory. MD5 is kept for
legacy compatibility only, so `usedforsecurity=True` warns; pass
`usedforsecurity=False` for checksums and cache keys.
"""


def md5(string: ReadableBuffer = b"", *, usedforsecurity: bool = True) -> HASH:
    """Return a new MD5 hash object over *string*, like ``hashlib.md5``."""
    return HASH(
        digest_size=DIGEST_SIZE,
        block_size=BLOCK_SIZE,
        name="md5",
        usedforsecurity=usedforsecurity,
        _buffer=_ensure_bytes(string),
    )


md5.digest_size = DIGEST_SIZE
md5.block_size = BLOCK_SIZE
md5.name = "md5"


__all__: list = ["HASH", "compress", "digest", "digest_blocks", "finalize", "md5"]
