"""Small numeric and byte helpers shared by the decoders."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional

__all__ = [
    "sxt64",
    "memcmp_masked",
    "align_to_size",
    "count_digits",
    "format_hash",
    "print_hash",
    "enumerate_range",
]


def sxt64(value: int, bits: int) -> int:
    """Sign-extend the low ``bits`` bits of ``value`` to a signed 64-bit integer."""
    if not 1 <= bits <= 64:
        raise ValueError(f"bit count must be between 1 and 64, got {bits}")
    field = value & ((1 << bits) - 1)
    if field & (1 << (bits - 1)):
        field -= 1 << bits
    return field


def memcmp_masked(first: bytes, second: bytes, mask: Optional[bytes] = None) -> bool:
    """Return True when ``first`` and ``second`` agree on every bit selected by ``mask``.

    A missing mask compares every bit.
    """
    if len(first) != len(second):
        raise ValueError("buffers must have the same length")
    if mask is None:
        return bytes(first) == bytes(second)
    if len(mask) < len(first):
        raise ValueError("mask is shorter than the buffers")
    return all((a & m) == (b & m) for a, b, m in zip(first, second, mask))


def align_to_size(size: int, alignment: int) -> int:
    """Round ``size`` up to the next multiple of the power-of-two ``alignment``."""
    return (size + alignment - 1) & ~(alignment - 1)


def count_digits(num: int) -> int:
    """Number of characters needed to print ``num`` in decimal, sign included."""
    if num == 0:
        return 1
    digits = 0
    if num < 0:
        num = -num
        digits += 1
    while num:
        num //= 10
        digits += 1
    return digits


def format_hash(digest: bytes) -> str:
    """Lower-case hexadecimal rendering of a digest."""
    return bytes(digest).hex()


def print_hash(digest: bytes) -> None:
    """Write a digest as hexadecimal to standard output, without a newline."""
    print(format_hash(digest), end="")


def enumerate_range(start: int, end: int, alignment: int, nbytes: int) -> Iterator[int]:
    """Yield aligned addresses from ``start`` towards ``end``.

    Walks forwards when ``start < end`` and backwards otherwise, leaving room
    for an ``nbytes`` wide read at each address. Yields nothing when the
    arguments describe an empty or invalid range. Stop early by leaving the loop.
    """
    if start == end or alignment == 0 or nbytes == 0 or nbytes % alignment:
        return

    if start < end:
        end -= nbytes
        if start >= end:
            return
        cur = start
        while cur + alignment < end:
            yield cur
            cur += alignment
    else:
        start -= nbytes
        if start <= end:
            return
        cur = start
        while cur - alignment > end:
            yield cur
            cur -= alignment