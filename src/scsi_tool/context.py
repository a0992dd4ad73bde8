# src/scsi_tool/context.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .config import DecodeOptions
from .hexdump import HexDumpFormatter
from .models import RecursionGuard
from .names import AbstractNameResolver, DEFAULT_RESOLVER
from .writer import BoundedWriter


@dataclass
class RenderContext:
    """Everything a renderer needs besides the bytes: sink, names, options, depth."""

    writer: BoundedWriter
    resolver: AbstractNameResolver = DEFAULT_RESOLVER
    options: DecodeOptions = field(default_factory=DecodeOptions)
    guard: RecursionGuard = field(default_factory=RecursionGuard)
    # set by the top-level sense renderer so descriptor 0xc can recurse
    render_nested: Optional[Callable[["RenderContext", bytes, str], None]] = None

    @classmethod
    def create(
        cls,
        writer: Optional[BoundedWriter] = None,
        resolver: Optional[AbstractNameResolver] = None,
        options: Optional[DecodeOptions] = None,
        guard: Optional[RecursionGuard] = None,
    ) -> "RenderContext":
        if options is None:
            options = DecodeOptions()
        if writer is None:
            writer = BoundedWriter(options.capacity)
        if guard is None:
            guard = RecursionGuard(max_depth=options.max_depth)
        return cls(
            writer=writer,
            resolver=resolver if resolver is not None else DEFAULT_RESOLVER,
            options=options,
            guard=guard,
        )

    @property
    def full(self) -> bool:
        return self.writer.full

    def out(self, fmt: str, *args) -> int:
        return self.writer.printf(fmt, *args)

    def hexdump(self, data: Sequence[int], leadin: str = "", mode: int = 0) -> int:
        formatter = HexDumpFormatter.from_mode(
            mode, leadin=leadin, bytes_per_line=self.options.bytes_per_line
        )
        return formatter.write_to(self.writer, data)
