"""Overflow-checked buffer allocation."""

from __future__ import annotations

import ctypes
import sys

# Largest object size the interpreter can index.
MAX_SIZE = sys.maxsize


def checked_alloc(count: int, size: int) -> bytearray | None:
    """Allocate ``count`` records of ``size`` bytes each.

    Returns ``None`` when ``count`` is zero. Raises :class:`MemoryError`
    without allocating anything when ``count * size`` would exceed
    :data:`MAX_SIZE`.
    """

    if size <= 0:
        raise ValueError("record size must be positive")
    if count < 0:
        raise ValueError("record count must not be negative")
    if count == 0:
        return None
    if count > MAX_SIZE // size:
        raise MemoryError(f"cannot allocate {count} records of {size} bytes")
    return bytearray(count * size)


def checked_alloc_records(count: int, record_type) -> bytearray | None:
    """Allocate room for ``count`` instances of a ctypes ``record_type``."""

    return checked_alloc(count, ctypes.sizeof(record_type))


__all__ = ["MAX_SIZE", "checked_alloc", "checked_alloc_records"]
