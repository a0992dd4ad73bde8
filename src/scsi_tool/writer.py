# src/scsi_tool/writer.py

from __future__ import annotations
from typing import Optional, TextIO


class BoundedWriter:
    """
    Append-only text sink with a fixed capacity.

    Every render operation writes through one of these. ``write`` reports the
    number of characters actually stored, which is capped at the remaining
    capacity, so the sink never grows past ``capacity``. A ``capacity`` of
    ``None`` means unbounded. When ``stream`` is given every stored chunk is
    mirrored to it as well.
    """

    def __init__(self, capacity: Optional[int] = None, stream: Optional[TextIO] = None):
        if capacity is not None and capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self.stream = stream
        self._parts: list[str] = []
        self._length = 0
        self.total_requested = 0

    @property
    def remaining(self) -> Optional[int]:
        if self.capacity is None:
            return None
        return self.capacity - self._length

    @property
    def full(self) -> bool:
        return self.capacity is not None and self._length >= self.capacity

    def write(self, text: str) -> int:
        if not text:
            return 0
        self.total_requested += len(text)
        room = self.remaining
        if room is not None and len(text) > room:
            text = text[:room]
        if not text:
            return 0
        self._parts.append(text)
        self._length += len(text)
        if self.stream is not None:
            self.stream.write(text)
        return len(text)

    def printf(self, fmt: str, *args) -> int:
        return self.write(fmt % args if args else fmt)

    def getvalue(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return self.getvalue()
