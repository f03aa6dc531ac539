from __future__ import annotations

import struct
import typing as t

from constants import BLOCK_SIZE

_LENGTH_FIELD_SIZE: int = 8


def _length_field(message_len: int) -> bytes:
    # Bit length modulo 2**64, little-endian (RFC 1321, Section 3.2)
    return ((message_len * 8) & 0xFFFFFFFFFFFFFFFF).to_bytes(_LENGTH_FIELD_SIZE, 'little')


def _padding(message_len: int) -> bytes:
    '''0x80 marker, zero fill up to 56 mod 64, then the length field'''
    zeros = (BLOCK_SIZE - _LENGTH_FIELD_SIZE - 1 - message_len) % BLOCK_SIZE
    return b'\x80' + b'\x00' * zeros + _length_field(message_len)


def pad(message: bytes) -> bytes:
    '''The purpose of this padding is to ensure that the padded
    message is a multiple of 512 bits. See definition in RFC 1321,
    Sections 3.1 and 3.2'''
    message = bytes(message)
    return message + _padding(len(message))


def unpack_block(block: bytes) -> tuple:
    '''Reinterpret a 64-byte block as sixteen little-endian 32-bit words'''
    if len(block) != BLOCK_SIZE:
        raise ValueError(f'MD5 blocks are {BLOCK_SIZE} bytes, got {len(block)}')
    return struct.unpack('<16I', block)


def iter_blocks(chunks: t.Iterable[bytes]) -> t.Iterator[bytes]:
    '''Yield 64-byte blocks from an iterable of byte chunks.

    Chunks may have any size. Padding is appended once the iterable is
    exhausted, so the blocks are the same as slicing
    ``pad(b''.join(chunks))`` without holding the whole message in memory.
    '''
    pending = bytearray()
    total = 0

    for chunk in chunks:
        total += len(chunk)
        pending += chunk
        full = len(pending) - len(pending) % BLOCK_SIZE
        for offset in range(0, full, BLOCK_SIZE):
            yield bytes(pending[offset : offset + BLOCK_SIZE])
        del pending[:full]

    pending += _padding(total)
    for offset in range(0, len(pending), BLOCK_SIZE):
        yield bytes(pending[offset : offset + BLOCK_SIZE])
