# src/scsi_tool/utils.py

from __future__ import annotations
from typing import Sequence


def get_be(data: Sequence[int], offset: int, num_bytes: int) -> int:
    """Big-endian unsigned value; bytes beyond the buffer read as zero."""
    value = 0
    for idx in range(offset, offset + num_bytes):
        value <<= 8
        if 0 <= idx < len(data):
            value |= data[idx]
    return value


def get_be16(data: Sequence[int], offset: int = 0) -> int:
    return get_be(data, offset, 2)


def get_be24(data: Sequence[int], offset: int = 0) -> int:
    return get_be(data, offset, 3)


def get_be32(data: Sequence[int], offset: int = 0) -> int:
    return get_be(data, offset, 4)


def get_be64(data: Sequence[int], offset: int = 0) -> int:
    return get_be(data, offset, 8)


def hex_string(data: Sequence[int]) -> str:
    return "".join(f"{b:02x}" for b in data)


def is_printable(value: int) -> bool:
    return 0x20 <= value < 0x7F


def all_printable(data: Sequence[int]) -> bool:
    return all(is_printable(b) for b in data)


def as_text(data: bytes, encoding: str = "ascii") -> str:
    """Decode designator text, stopping at the first NUL like a C string."""
    end = data.find(b"\x00")
    if end >= 0:
        data = data[:end]
    return data.decode(encoding, errors="replace")
