# src/scsi_tool/hexdump.py

from __future__ import annotations
from typing import List, Sequence

from .utils import is_printable
from .writer import BoundedWriter


class HexDumpFormatter:
    """
    Render a byte range as labelled hex lines.

    This is the universal fallback whenever structured decoding is not
    possible. Each line is ``leadin`` + optional address + hex bytes +
    optional ASCII column, with trailing whitespace trimmed.
    """

    def __init__(
        self,
        bytes_per_line: int = 16,
        address: bool = True,
        ascii: bool = True,
        leadin: str = "",
        half_gap: bool = True,
    ):
        if bytes_per_line < 1:
            raise ValueError("bytes_per_line must be >= 1")
        self.bytes_per_line = bytes_per_line
        self.address = address
        self.ascii = ascii
        self.leadin = leadin
        self.half_gap = half_gap

    @classmethod
    def from_mode(cls, mode: int, leadin: str = "", bytes_per_line: int = 16) -> "HexDumpFormatter":
        """
        Build a formatter from a numeric format code.

        0 -> address and ASCII, 1 -> address only, 2 -> ASCII only,
        3 or negative -> bare hex bytes.
        """
        if mode < 0:
            mode = 3
        mode &= 3
        return cls(
            bytes_per_line=bytes_per_line,
            address=mode in (0, 1),
            ascii=mode in (0, 2),
            leadin=leadin,
        )

    def _hex_width(self) -> int:
        width = 3 * self.bytes_per_line - 1
        if self._half() is not None:
            width += 1
        return width

    def _half(self):
        if self.half_gap and self.bytes_per_line >= 2 and self.bytes_per_line % 2 == 0:
            return self.bytes_per_line // 2
        return None

    def lines(self, data: Sequence[int]) -> List[str]:
        out: List[str] = []
        half = self._half()
        for offset in range(0, len(data), self.bytes_per_line):
            chunk = data[offset : offset + self.bytes_per_line]
            cells = []
            for idx, value in enumerate(chunk):
                if half is not None and idx == half:
                    cells.append("")
                cells.append(f"{value:02x}")
            hex_part = " ".join(cells)
            line = self.leadin
            if self.address:
                line += f"{offset:02x}     "
            if self.ascii:
                text = "".join(chr(b) if is_printable(b) else "." for b in chunk)
                line += hex_part.ljust(self._hex_width()) + "    " + text
            else:
                line += hex_part
            out.append(line.rstrip())
        return out

    def format(self, data: Sequence[int]) -> str:
        return "".join(line + "\n" for line in self.lines(data))

    def write_to(self, writer: BoundedWriter, data: Sequence[int]) -> int:
        written = 0
        for line in self.lines(data):
            written += writer.write(line + "\n")
            if writer.full:
                break
        return written


def hex_dump(data: Sequence[int], leadin: str = "", mode: int = 0, bytes_per_line: int = 16) -> str:
    return HexDumpFormatter.from_mode(mode, leadin=leadin, bytes_per_line=bytes_per_line).format(data)
