# utils.py
# Entry points that acquire bytes from text or files, and the errors they raise.

from __future__ import annotations

import logging
import os
import typing as t

from md5 import digest, digest_blocks
from preprocessing import iter_blocks

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE: int = 64 * 1024


class DigestInputError(Exception):
    """Input bytes for a digest could not be acquired."""


class UnreadableFileError(DigestInputError):
    def __init__(self, path: t.Union[str, os.PathLike], reason: str) -> None:
        super().__init__(f"Cannot read {os.fspath(path)!r}: {reason}")
        self.path = path


class UnreadableStreamError(DigestInputError):
    def __init__(self, name: t.Any, reason: str) -> None:
        super().__init__(f"Cannot read {name!r}: {reason}")
        self.name = name


class TextEncodingError(DigestInputError): ...


class MessageTooLargeError(DigestInputError): ...


def hash_text(text: str, encoding: str = "utf-8") -> str:
    """Return the MD5 hex digest of *text* encoded with *encoding*."""
    if not isinstance(text, str):
        raise TypeError(f"hash_text() expects str, not {type(text).__name__}")

    try:
        data = text.encode(encoding, errors="strict")
    except UnicodeEncodeError as e:
        logger.warning("Cannot encode text as %s: %s", encoding, e)
        raise TextEncodingError(str(e)) from e
    except MemoryError as e:
        raise MessageTooLargeError(f"{len(text)} characters") from e

    return digest(data)


def _read_chunks(fp: t.BinaryIO, chunk_size: int) -> t.Iterator[bytes]:
    while True:
        chunk = fp.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _digest_stream(fp: t.BinaryIO, chunk_size: int) -> str:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return digest_blocks(iter_blocks(_read_chunks(fp, chunk_size))).hex()


def hash_stream(fp: t.BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the MD5 hex digest of everything left in the binary stream *fp*.

    A read failure raises :class:`UnreadableStreamError` and the partial
    state is discarded.
    """
    name = getattr(fp, "name", "<stream>")
    try:
        return _digest_stream(fp, chunk_size)
    except OSError as e:
        logger.warning("Cannot read %s: %s", name, e)
        raise UnreadableStreamError(name, e.strerror or str(e)) from e


def hash_file(
    path: t.Union[str, os.PathLike], chunk_size: int = DEFAULT_CHUNK_SIZE
) -> str:
    """Return the MD5 hex digest of the raw bytes stored at *path*.

    The file is read *chunk_size* bytes at a time and fed block by block,
    so memory use does not grow with the file size. Any failure while
    opening or reading raises :class:`UnreadableFileError`; no partial
    digest is ever returned.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    logger.debug("Hashing %s", os.fspath(path))
    try:
        with open(path, "rb") as fp:
            return _digest_stream(fp, chunk_size)
    except OSError as e:
        logger.warning("Cannot read %s: %s", os.fspath(path), e)
        raise UnreadableFileError(path, e.strerror or str(e)) from e


__all__: list = [
    "DEFAULT_CHUNK_SIZE",
    "DigestInputError",
    "MessageTooLargeError",
    "TextEncodingError",
    "UnreadableFileError",
    "UnreadableStreamError",
    "hash_file",
    "hash_stream",
    "hash_text",
]
