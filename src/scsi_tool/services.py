# src/scsi_tool/services.py

import sys
from typing import Optional, Sequence, TextIO

from .config import DecodeOptions
from .context import RenderContext
from .designators import list_designators, render_device_id_page, render_device_ids
from .models import IterStatus, SenseCategory
from .names import AbstractNameResolver, DEFAULT_RESOLVER
from .sense import sense_category, write_sense
from .writer import BoundedWriter


class SenseDecoder:
    """
    Facade over the sense and device identification renderers.

    Options and the name resolver are fixed per instance; each call gets a
    fresh writer and recursion guard so one instance can be shared.
    """

    def __init__(
        self,
        options: Optional[DecodeOptions] = None,
        resolver: Optional[AbstractNameResolver] = None,
    ):
        if options is None:
            options = DecodeOptions.from_env()
        self.options = options
        self.resolver = resolver if resolver is not None else DEFAULT_RESOLVER

    def _context(self) -> RenderContext:
        writer = BoundedWriter(self.options.capacity)
        return RenderContext.create(writer, self.resolver, self.options)

    def render(
        self,
        data: Sequence[int],
        leadin: Optional[str] = None,
        sb_len: Optional[int] = None,
    ) -> str:
        ctx, _ = write_sense(
            data,
            sb_len=sb_len,
            leadin=leadin,
            writer=BoundedWriter(self.options.capacity),
            resolver=self.resolver,
            options=self.options,
        )
        return ctx.writer.getvalue()

    def print_sense(
        self,
        data: Sequence[int],
        leadin: Optional[str] = None,
        stream: Optional[TextIO] = None,
    ) -> int:
        """Write the rendered sense data to ``stream`` (stderr by default)."""
        if stream is None:
            stream = sys.stderr
        _, written = write_sense(
            data,
            leadin=leadin,
            writer=BoundedWriter(self.options.capacity, stream=stream),
            resolver=self.resolver,
            options=self.options,
        )
        return written

    def render_device_id(self, page: Sequence[int], full_page: bool = True) -> str:
        """Render VPD page 0x83, either with its 4-byte header or just the descriptor list."""
        ctx = self._context()
        if full_page:
            render_device_id_page(page, ctx)
        else:
            render_device_ids(page, ctx)
        return ctx.writer.getvalue()

    def designators(self, page: Sequence[int]):
        found, status = list_designators(page)
        return found, status is IterStatus.END

    def category(self, data: Sequence[int]) -> SenseCategory:
        return sense_category(data)
