# src/scsi_tool/sense.py
"""
SCSI sense data: header normalisation, the top-level renderer and the fixed
format (0x70/0x71) renderer. Descriptor format bodies are handed to
:mod:`scsi_tool.descriptors`.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from .config import DecodeOptions
from .context import RenderContext
from .descriptors import iter_descriptors, render_descriptors, sense_key_specific_text
from .models import (
    DescriptorType,
    RecursionGuard,
    ResponseCode,
    SenseCategory,
    SenseHeader,
    SenseKey,
)
from .names import AbstractNameResolver
from .utils import get_be16, get_be24, get_be32, get_be64
from .writer import BoundedWriter

logger = logging.getLogger(__name__)

# ASC 0, ASCQ 0x1d: ATA PASS-THROUGH information available (SAT)
ASCQ_ATA_PT_INFO_AVAILABLE = 0x1D

SCSI1_MAX_LEN = 32

_FORMAT_TEXT = {
    ResponseCode.FIXED_CURRENT: "Fixed format, current",
    ResponseCode.FIXED_DEFERRED: "Fixed format, <<<deferred>>>",
    ResponseCode.DESCRIPTOR_CURRENT: "Descriptor format, current",
    ResponseCode.DESCRIPTOR_DEFERRED: "Descriptor format, <<<deferred>>>",
}


def _effective_len(data: Sequence[int], sb_len: Optional[int]) -> int:
    if sb_len is None:
        return len(data)
    return max(0, min(sb_len, len(data)))


def normalize_sense(data: Sequence[int], sb_len: Optional[int] = None) -> Optional[SenseHeader]:
    """
    Pull the response code, sense key, ASC and ASCQ out of a sense buffer.

    Returns None when the buffer is empty or byte 0 does not hold one of
    the 0x70..0x73 or 0x7f response codes. Vendor specific (0x7f) sense has
    no standard layout, so only its response code is filled in. Fields
    beyond the available bytes are left at 0.
    """
    n = _effective_len(data, sb_len)
    if n < 1:
        return None
    rc = data[0] & 0x7F
    if rc == ResponseCode.VENDOR_SPECIFIC:
        return SenseHeader(response_code=rc)
    if rc < ResponseCode.FIXED_CURRENT or rc > ResponseCode.DESCRIPTOR_DEFERRED:
        return None
    header = SenseHeader(response_code=rc)
    if header.descriptor_format:
        if n > 1:
            header.sense_key = data[1] & 0xF
        if n > 2:
            header.asc = data[2]
        if n > 3:
            header.ascq = data[3]
        if n > 7:
            header.additional_length = data[7]
    else:
        if n > 2:
            header.sense_key = data[2] & 0xF
        if n > 7:
            n = min(n, data[7] + 8)
            if n > 12:
                header.asc = data[12]
            if n > 13:
                header.ascq = data[13]
    return header


class FixedFormatSenseRenderer:
    """Renders the body of fixed format sense data after the header line."""

    def __init__(self, ctx: RenderContext):
        self.ctx = ctx

    @staticmethod
    def effective_length(data: Sequence[int], sb_len: int) -> int:
        if sb_len > 7:
            return min(sb_len, data[7] + 8)
        return sb_len

    def render(self, data: Sequence[int], length: int, header: SenseHeader, lip: str = "") -> bool:
        ctx = self.ctx
        if length < 3:
            ctx.out("%s fixed descriptor length too short, len=%d\n", lip, length)
            return False
        if (
            length > 12
            and header.asc == 0
            and header.ascq == ASCQ_ATA_PT_INFO_AVAILABLE
        ):
            self._render_ata_pass_through(data, header, lip)
            return True
        if length > 12:
            ctx.out("%s %s\n", lip, ctx.resolver.asc_ascq(header.asc, header.ascq))
        valid = bool(data[0] & 0x80)
        info = 0
        if length > 6:
            info = get_be32(data, 3)
            if valid:
                ctx.out("%s  Info fld=0x%x [%d] ", lip, info, info)
            elif info > 0:
                ctx.out("%s  Valid=0, Info fld=0x%x [%d] ", lip, info, info)
        flags = data[2]
        if flags & 0xE0:
            if not (length > 6 and (valid or info > 0)):
                ctx.out("%s", lip)
            if flags & 0x80:
                ctx.out(" FMK")
            if flags & 0x40:
                ctx.out(" EOM")
            if flags & 0x20:
                ctx.out(" ILI")
            ctx.out("\n")
        elif valid or info > 0:
            ctx.out("\n")
        # byte 14 may lie past sb_len but still be inside the buffer
        if length >= 14 and len(data) > 14 and data[14]:
            ctx.out("%s  Field replaceable unit code: %d\n", lip, data[14])
        processed = True
        if length > 17 and data[15] & 0x80:
            text, processed = sense_key_specific_text(
                header.sense_key, data[15], get_be16(data, 16)
            )
            ctx.out("%s  Sense Key Specific: %s\n", lip, text)
        return processed

    def _render_ata_pass_through(self, data: Sequence[int], header: SenseHeader, lip: str) -> None:
        ctx = self.ctx
        ctx.out("%s %s\n", lip, ctx.resolver.asc_ascq(header.asc, header.ascq))
        ctx.out(
            "%s  error=0x%x, status=0x%x, device=0x%x, sector_count(7:0)=0x%x%s\n",
            lip,
            data[3],
            data[4],
            data[5],
            data[6],
            "+" if data[8] & 0x40 else "",
        )
        ctx.out(
            "%s  extend=%d, log_index=0x%x, lba_high,mid,low(7:0)=0x%x,0x%x,0x%x%s\n",
            lip,
            1 if data[8] & 0x80 else 0,
            data[8] & 0xF,
            data[9],
            data[10],
            data[11],
            "+" if data[8] & 0x20 else "",
        )


def _render_scsi1(ctx: RenderContext, data: Sequence[int], lip: str) -> None:
    valid = data[0] & 0x80
    ctx.out("%sProbably uninitialized data.\n", lip)
    ctx.out("%s  Try to view as SCSI-1 non-extended sense:\n", lip)
    ctx.out(
        "%s  AdValid=%d  Error class=%d  Error code=%d\n",
        lip,
        1 if valid else 0,
        (data[0] >> 4) & 0x7,
        data[0] & 0xF,
    )
    if valid:
        ctx.out("%s  lba=0x%x\n", lip, get_be24(data, 1) & 0x1FFFFF)


def _render(
    ctx: RenderContext,
    data: Sequence[int],
    lip: str = "",
    leadin: Optional[str] = None,
    sb_len: Optional[int] = None,
    raw: bool = False,
) -> None:
    n = _effective_len(data, sb_len)
    if n < 1:
        ctx.out("%ssense buffer empty\n", lip)
        return
    first = lip
    if leadin:
        ctx.out("%s%s: ", lip, leadin)
        first = ""
    length = n
    header = normalize_sense(data, n)
    if header is not None and not header.vendor_specific:
        rc = header.response_code
        if header.descriptor_format:
            overflow = n > 4 and bool(data[4] & 0x80)
        else:
            length = FixedFormatSenseRenderer.effective_length(data, n)
            overflow = n > 2 and bool(data[2] & 0x10)
        ctx.out(
            "%s %s;  Sense key: %s\n",
            first,
            _FORMAT_TEXT[rc],
            ctx.resolver.sense_key(header.sense_key),
        )
        if overflow:
            ctx.out("%s Sense data overflow\n", lip)
        if header.descriptor_format:
            ctx.out("%s %s\n", lip, ctx.resolver.asc_ascq(header.asc, header.ascq))
            render_descriptors(ctx, data, n, header, lip)
        else:
            FixedFormatSenseRenderer(ctx).render(data, length, header, lip)
    else:
        if n < 4:
            ctx.out("%ssense buffer too short (4 byte minimum)\n", first)
            return
        if header is not None:
            ctx.out("%sVendor specific sense buffer, in hex:\n", first)
            ctx.hexdump(data[:n], lip + "  ", mode=-1)
            return
        logger.debug("byte 0 (0x%x) is not a sense response code", data[0])
        if leadin:
            ctx.out("\n")
        _render_scsi1(ctx, data, lip)
        length = min(n, SCSI1_MAX_LEN)
    if raw:
        ctx.out("%s Raw sense data (in hex), sb_len=%d", lip, n)
        if n > 7:
            calculated = data[7] + 8
            if calculated != n:
                ctx.out(", calculated_len=%d", calculated)
        ctx.out("\n")
        ctx.hexdump(data[:length], lip + "        ", mode=1)


def _render_nested(ctx: RenderContext, data: bytes, lip: str) -> None:
    _render(ctx, data, lip)


def write_sense(
    data: Sequence[int],
    *,
    sb_len: Optional[int] = None,
    leadin: Optional[str] = None,
    raw: Optional[bool] = None,
    writer: Optional[BoundedWriter] = None,
    resolver: Optional[AbstractNameResolver] = None,
    options: Optional[DecodeOptions] = None,
    guard: Optional[RecursionGuard] = None,
) -> Tuple[RenderContext, int]:
    """
    Render sense data into a writer.

    Returns the context used, whose writer holds the text, and the number of
    characters this call stored.
    """
    ctx = RenderContext.create(writer, resolver, options, guard)
    ctx.render_nested = _render_nested
    if raw is None:
        raw = ctx.options.raw
    before = len(ctx.writer)
    _render(ctx, bytes(data), leadin=leadin, sb_len=sb_len, raw=raw)
    return ctx, len(ctx.writer) - before


def render_sense(data: Sequence[int], **kwargs) -> str:
    """
    Render sense data as text.

    Accepts the keyword arguments of :func:`write_sense`. Never raises for
    malformed input; the worst case is a short diagnostic plus a hex dump.
    """
    ctx, _ = write_sense(data, **kwargs)
    return ctx.writer.getvalue()


def find_sense_descriptor(
    data: Sequence[int], dtype: int, sb_len: Optional[int] = None
) -> Optional[bytes]:
    """First descriptor of type ``dtype`` in descriptor format sense data, or None."""
    n = _effective_len(data, sb_len)
    if n < 8:
        return None
    if (data[0] & 0x7F) not in (
        ResponseCode.DESCRIPTOR_CURRENT,
        ResponseCode.DESCRIPTOR_DEFERRED,
    ):
        return None
    for desc in iter_descriptors(data, n):
        if desc.short:
            break
        if desc.dtype == dtype:
            return desc.raw
    return None


def get_sense_info_field(data: Sequence[int], sb_len: Optional[int] = None) -> Tuple[bool, int]:
    """(valid, information) from fixed bytes 3-6 or the information descriptor."""
    n = _effective_len(data, sb_len)
    if n < 7:
        return False, 0
    rc = data[0] & 0x7F
    if rc in (ResponseCode.FIXED_CURRENT, ResponseCode.FIXED_DEFERRED):
        return bool(data[0] & 0x80), get_be32(data, 3)
    desc = find_sense_descriptor(data, DescriptorType.INFORMATION, n)
    if desc is not None and desc[1] == 0x0A:
        return bool(desc[2] & 0x80), get_be64(desc, 4)
    return False, 0


def get_sense_filemark_eom_ili(
    data: Sequence[int], sb_len: Optional[int] = None
) -> Tuple[bool, bool, bool, bool]:
    """(found, filemark, eom, ili); found is False when none of the three is set."""
    n = _effective_len(data, sb_len)
    if n < 7:
        return False, False, False, False
    rc = data[0] & 0x7F
    if rc in (ResponseCode.FIXED_CURRENT, ResponseCode.FIXED_DEFERRED):
        flags = data[2]
        if flags & 0xE0:
            return True, bool(flags & 0x80), bool(flags & 0x40), bool(flags & 0x20)
        return False, False, False, False
    desc = find_sense_descriptor(data, DescriptorType.STREAM_COMMANDS, n)
    if desc is not None and desc[1] >= 2 and desc[3] & 0xE0:
        flags = desc[3]
        return True, bool(flags & 0x80), bool(flags & 0x40), bool(flags & 0x20)
    desc = find_sense_descriptor(data, DescriptorType.BLOCK_COMMANDS, n)
    if desc is not None and desc[1] >= 2 and desc[3] & 0x20:
        return True, False, False, True
    return False, False, False, False


def get_sense_progress_field(data: Sequence[int], sb_len: Optional[int] = None) -> Optional[int]:
    """16-bit progress indication, or None when the sense data carries none."""
    n = _effective_len(data, sb_len)
    header = normalize_sense(data, n)
    if header is None or header.vendor_specific:
        return None
    in_progress = header.sense_key in (SenseKey.NO_SENSE, SenseKey.NOT_READY)
    if not header.descriptor_format:
        if in_progress and n > 17 and data[15] & 0x80:
            return get_be16(data, 16)
        return None
    if in_progress:
        desc = find_sense_descriptor(data, DescriptorType.SENSE_KEY_SPECIFIC, n)
        if desc is not None and desc[1] == 6 and desc[4] & 0x80:
            return get_be16(desc, 5)
    desc = find_sense_descriptor(data, DescriptorType.ANOTHER_PROGRESS_INDICATION, n)
    if desc is not None and desc[1] == 6:
        return get_be16(desc, 6)
    return None


def sense_category(data: Sequence[int], sb_len: Optional[int] = None) -> SenseCategory:
    """Coarse classification of sense data, as used to decide on retries."""
    n = _effective_len(data, sb_len)
    header = normalize_sense(data, n) if n > 2 else None
    if header is None or header.vendor_specific:
        return SenseCategory.SENSE
    sk = header.sense_key
    if sk == SenseKey.RECOVERED_ERROR:
        return SenseCategory.RECOVERED
    if sk == SenseKey.NOT_READY:
        return SenseCategory.NOT_READY
    if sk in (SenseKey.MEDIUM_ERROR, SenseKey.HARDWARE_ERROR, SenseKey.BLANK_CHECK):
        return SenseCategory.MEDIUM_HARD
    if sk == SenseKey.UNIT_ATTENTION:
        return SenseCategory.UNIT_ATTENTION
    if sk == SenseKey.ILLEGAL_REQUEST:
        if header.asc == 0x20 and header.ascq == 0:
            return SenseCategory.INVALID_OP
        return SenseCategory.ILLEGAL_REQ
    if sk == SenseKey.ABORTED_COMMAND:
        return SenseCategory.ABORTED_COMMAND
    if sk == SenseKey.NO_SENSE:
        return SenseCategory.NO_SENSE
    return SenseCategory.SENSE
