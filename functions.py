from __future__ import annotations

from constants import MASK32


def rotl(x: int, n: int) -> int:
    '''Rotate Left (circular left shift) of a 32-bit word'''
    x &= MASK32
    return ((x << n) | (x >> (32 - n))) & MASK32


def f(b: int, c: int, d: int) -> int:
    '''Selection
    _
    MD5 -> 0 <= i <= 15'''
    return (b & c) | (~b & d)

def g(b: int, c: int, d: int) -> int:
    '''Selection on d
    _
    MD5 -> 16 <= i <= 31'''
    return (d & b) | (~d & c)

def h(b: int, c: int, d: int) -> int:
    '''Parity
    _
    MD5 -> 32 <= i <= 47'''
    return b ^ c ^ d

def i(b: int, c: int, d: int) -> int:
    '''MD5 -> 48 <= i <= 63'''
    return c ^ (b | ~d)


def word_index(t: int) -> int:
    '''Index of the message word consumed by round t'''
    if t <= 15:
        return t
    if t <= 31:
        return (5 * t + 1) % 16
    if t <= 47:
        return (3 * t + 5) % 16
    return (7 * t) % 16


# (round function, message word index) for each of the 64 rounds
ROUND_SCHEDULE: tuple = tuple(
    ((f, g, h, i)[t // 16], word_index(t)) for t in range(64)
)


__all__: list = ['ROUND_SCHEDULE', 'f', 'g', 'h', 'i', 'rotl', 'word_index']
