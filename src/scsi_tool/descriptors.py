# src/scsi_tool/descriptors.py
"""Descriptor format (0x72/0x73) sense data, one decoder per descriptor type."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from .context import RenderContext
from .designators import render_designation_descriptor
from .hexdump import HexDumpFormatter
from .models import DecodeIssue, Descriptor, DescriptorType, SenseHeader, SenseKey
from .utils import get_be16, get_be64, hex_string

logger = logging.getLogger(__name__)

DESCRIPTOR_TOO_SHORT = "   >> descriptor too short"

DESCRIPTOR_NAMES = {
    DescriptorType.INFORMATION: "Information",
    DescriptorType.COMMAND_SPECIFIC: "Command specific",
    DescriptorType.SENSE_KEY_SPECIFIC: "Sense key specific",
    DescriptorType.FIELD_REPLACEABLE_UNIT: "Field replaceable unit code",
    DescriptorType.STREAM_COMMANDS: "Stream commands",
    DescriptorType.BLOCK_COMMANDS: "Block commands",
    DescriptorType.OSD_OBJECT_IDENTIFICATION: "OSD object identification",
    DescriptorType.OSD_RESPONSE_INTEGRITY: "OSD response integrity check value",
    DescriptorType.OSD_ATTRIBUTE_IDENTIFICATION: "OSD attribute identification",
    DescriptorType.ATA_STATUS_RETURN: "ATA Status Return",
    DescriptorType.ANOTHER_PROGRESS_INDICATION: "Another progress indication",
    DescriptorType.USER_DATA_SEGMENT_REFERRAL: "User data segment referral",
    DescriptorType.FORWARDED_SENSE_DATA: "Forwarded sense data",
    DescriptorType.DIRECT_ACCESS_BLOCK_DEVICE: "Direct-access block device",
    DescriptorType.DEVICE_DESIGNATION: "Device designation",
    DescriptorType.MICROCODE_ACTIVATION: "Microcode activation",
}

USAGE_REASONS = [
    "Unknown",
    "resend this and further commands to:",
    "resend this command to:",
    "new subsidiary lu added to this administrative lu:",
    "administrative lu associated with a preferred binding:",
]


def progress_text(progress: int) -> str:
    """Percentage of a 16-bit progress indication, truncated to two places."""
    scaled = progress * 100
    return "%d.%02d%%" % (scaled // 65536, (scaled % 65536) // 656)


def sense_key_specific_text(sense_key: int, sks: int, field: int) -> Tuple[str, bool]:
    """
    Text for a sense-key-specific field.

    ``sks`` is the byte holding SKSV, C/D and BPV; ``field`` is the 16-bit
    value that follows it. The flag is False when the sense key has no
    sense-key-specific meaning.
    """
    if sense_key == SenseKey.ILLEGAL_REQUEST:
        text = "Error in %s: byte %d" % (
            "Command" if sks & 0x40 else "Data parameters",
            field,
        )
        if sks & 0x08:
            text += " bit %d" % (sks & 0x07)
        return text, True
    if sense_key == SenseKey.COPY_ABORTED:
        text = "Segment pointer: Relative to start of %s, byte %d" % (
            "segment descriptor" if sks & 0x20 else "parameter list",
            field,
        )
        if sks & 0x08:
            text += " bit %d" % (sks & 0x07)
        return text, True
    if sense_key in (
        SenseKey.HARDWARE_ERROR,
        SenseKey.MEDIUM_ERROR,
        SenseKey.RECOVERED_ERROR,
    ):
        return "Actual retry count: 0x%02x%02x" % (field >> 8, field & 0xFF), True
    if sense_key in (SenseKey.NO_SENSE, SenseKey.NOT_READY):
        return "Progress indication: %s" % progress_text(field), True
    if sense_key == SenseKey.UNIT_ATTENTION:
        return "Unit attention condition queue: overflow flag is %d" % (sks & 0x1), True
    return "Sense_key: 0x%x unexpected" % sense_key, False


def _sense_data_source(value: int) -> str:
    if value < 1:
        return "Unknown [0]"
    if value == 1:
        return "EXTENDED COPY command copy source"
    if value <= 9:
        return "EXTENDED COPY command copy destination %d" % (value - 1)
    return "Reserved [%d]" % value


def _too_short(ctx: RenderContext) -> bool:
    ctx.out("%s\n", DESCRIPTOR_TOO_SHORT)
    return False


# Each decoder has already had "  Descriptor type: " written for it and
# returns True when the payload was fully interpreted.

def _information(ctx, desc: Descriptor, header: SenseHeader, lip: str) -> bool:
    dp = desc.raw
    ctx.out("Information: ")
    if desc.add_len < 10:
        return _too_short(ctx)
    if not dp[2] & 0x80:
        ctx.out("Valid=0 (-> vendor specific) ")
    ctx.out("0x%s\n", hex_string(dp[4:12]))
    return True


def _command_specific(ctx, desc, header, lip) -> bool:
    ctx.out("Command specific: ")
    if desc.add_len < 10:
        return _too_short(ctx)
    ctx.out("0x%s\n", hex_string(desc.raw[4:12]))
    return True


def _sense_key_specific(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("Sense key specific:")
    if header.sense_key == SenseKey.UNIT_ATTENTION:
        # only the overflow flag in byte 4 is needed
        if desc.add_len < 3:
            return _too_short(ctx)
    elif desc.add_len < 6:
        return _too_short(ctx)
    text, processed = sense_key_specific_text(header.sense_key, dp[4], get_be16(dp, 5))
    ctx.out(" %s\n", text)
    return processed


def _field_replaceable_unit(ctx, desc, header, lip) -> bool:
    ctx.out("Field replaceable unit code: ")
    if desc.add_len < 2:
        return _too_short(ctx)
    ctx.out("0x%x\n", desc.raw[3])
    return True


def _stream_commands(ctx, desc, header, lip) -> bool:
    ctx.out("Stream commands: ")
    if desc.add_len < 2:
        return _too_short(ctx)
    flags = desc.raw[3]
    names = []
    if flags & 0x80:
        names.append("FILEMARK")
    if flags & 0x40:
        names.append("End Of Medium (EOM)")
    if flags & 0x20:
        names.append("Incorrect Length Indicator (ILI)")
    ctx.out("%s\n", " ".join(names))
    return True


def _block_commands(ctx, desc, header, lip) -> bool:
    ctx.out("Block commands: ")
    if desc.add_len < 2:
        return _too_short(ctx)
    ctx.out(
        "Incorrect Length Indicator (ILI) %s\n",
        "set" if desc.raw[3] & 0x20 else "clear",
    )
    return True


def _osd(ctx, desc, header, lip) -> bool:
    ctx.out("%s\n", DESCRIPTOR_NAMES[desc.dtype])
    return False


def _ata_status_return(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("ATA Status Return\n")
    if desc.add_len < 12:
        return _too_short(ctx)
    extend = dp[2] & 0x1
    if extend:
        count = (dp[4] << 8) | dp[5]
        lba_bytes = (10, 8, 6, 11, 9, 7)
    else:
        count = dp[5]
        lba_bytes = (11, 9, 7)
    lba = 0
    for offset in lba_bytes:
        lba = (lba << 8) | dp[offset]
    ctx.out(
        "%s    extend=%d  error=0x%x  sector_count=0x%x\n", lip, extend, dp[3], count
    )
    # two hex digits per LBA byte, leading zeros kept
    ctx.out("%s    lba=0x%0*x\n", lip, 2 * len(lba_bytes), lba)
    ctx.out("%s    device=0x%x  status=0x%x\n", lip, dp[12], dp[13])
    return True


def _another_progress(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("Another progress indication: ")
    if desc.add_len < 6:
        return _too_short(ctx)
    ctx.out("%s", progress_text(get_be16(dp, 6)))
    ctx.out(" [sense_key=0x%x asc,ascq=0x%x,0x%x]\n", dp[2], dp[3], dp[4])
    return True


def _user_data_segment_referral(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("User data segment referral\n")
    if desc.add_len < 2:
        return _too_short(ctx)
    ctx.out("%s    Not all referrals: %d\n", lip, dp[2] & 0x1)
    # sub-records start after the 4 byte descriptor header
    records = dp[4:]
    dlen = desc.add_len - 2
    k = 0
    num = 1
    while k + 4 < dlen:
        tpgd = records[k + 3]
        size = tpgd * 4 + 20
        ctx.out("%s    Descriptor %d\n", lip, num)
        if k + size > dlen:
            ctx.out("%s      truncated descriptor, stop\n", lip)
            logger.debug("user data segment referral %d overruns descriptor", num)
            return False
        ctx.out("%s      first uds LBA: 0x%x\n", lip, get_be64(records, k + 4))
        ctx.out("%s      last uds LBA:  0x%x\n", lip, get_be64(records, k + 12))
        for j in range(tpgd):
            tp = records[k + 20 + j * 4 : k + 24 + j * 4]
            ctx.out(
                "%s        tpg: %d  state: %s\n",
                lip,
                get_be16(tp, 2),
                ctx.resolver.tpgs_state(tp[0] & 0xF),
            )
        k += size
        num += 1
        if ctx.full:
            break
    return True


def _forwarded_sense_data(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("Forwarded sense data\n")
    if desc.add_len < 2:
        return _too_short(ctx)
    ctx.out("%s    FSDT: %s\n", lip, "set" if dp[2] & 0x80 else "clear")
    ctx.out("%s    Sense data source: %s\n", lip, _sense_data_source(dp[2] & 0xF))
    ctx.out("%s    Forwarded status: %s\n", lip, ctx.resolver.scsi_status(dp[3]))
    if desc.add_len > 2:
        nested = bytes(dp[4 : 2 + desc.add_len])
        ctx.out("%s vvvvvvvvvvvvvvvv\n", lip)
        if ctx.guard.enter():
            try:
                if ctx.render_nested is not None:
                    ctx.render_nested(ctx, nested, lip + "    ")
            finally:
                ctx.guard.leave()
        else:
            logger.debug(
                "forwarded sense data at depth %d not decoded", ctx.guard.depth
            )
            ctx.out(
                "%s    >> forwarded sense data nested too deeply (depth %d), not decoded\n",
                lip,
                ctx.guard.depth,
            )
            ctx.hexdump(nested, lip + "    ", mode=-1)
        ctx.out("%s ^^^^^^^^^^^^^^^^\n", lip)
    return True


def _direct_access_block_device(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("Direct-access block device\n")
    if desc.add_len < 28:
        return _too_short(ctx)
    processed = True
    if dp[2] & 0x20:
        ctx.out("%s    ILI (incorrect length indication) set\n", lip)
    if dp[4] & 0x80:
        text, processed = sense_key_specific_text(header.sense_key, dp[4], get_be16(dp, 5))
        ctx.out("%s    Sense key specific: %s\n", lip, text)
    ctx.out("%s    Field replaceable unit code: 0x%x\n", lip, dp[7])
    if dp[2] & 0x80:
        ctx.out("%s    Information: 0x%s\n", lip, hex_string(dp[8:16]))
    ctx.out("%s    Command specific: 0x%s\n", lip, hex_string(dp[16:24]))
    return processed


def _device_designation(ctx, desc, header, lip) -> bool:
    dp = desc.raw
    ctx.out("Device designation\n")
    if desc.add_len < 2:
        return _too_short(ctx)
    reason = dp[3]
    if reason < len(USAGE_REASONS):
        ctx.out("%s    Usage reason: %s\n", lip, USAGE_REASONS[reason])
    else:
        ctx.out("%s    Usage reason: reserved[%d]\n", lip, reason)
    issues_before = len(ctx.guard.issues)
    if render_designation_descriptor(
        bytes(dp[4 : 2 + desc.add_len]), ctx, leadin=lip + "    ", print_assoc=True
    ):
        return True
    # a mismatched or reserved designator has been hex dumped already; only
    # a bad designator length leaves the payload to the caller
    return DecodeIssue.STRUCTURALLY_INVALID not in ctx.guard.issues[issues_before:]


def _microcode_activation(ctx, desc, header, lip) -> bool:
    ctx.out("Microcode activation ")
    if desc.add_len < 6:
        return _too_short(ctx)
    seconds = get_be16(desc.raw, 6)
    if seconds:
        ctx.out("time: %d seconds\n", seconds)
    else:
        ctx.out("time: unknown\n")
    return True


def _vendor_or_unknown(ctx, desc, header, lip) -> bool:
    if desc.dtype >= 0x80:
        ctx.out("Vendor specific [0x%x]\n", desc.dtype)
    else:
        ctx.out("Unknown [0x%x]\n", desc.dtype)
    return False


DescriptorDecoder = Callable[[RenderContext, Descriptor, SenseHeader, str], bool]

DESCRIPTOR_DECODERS: Dict[int, DescriptorDecoder] = {
    DescriptorType.INFORMATION: _information,
    DescriptorType.COMMAND_SPECIFIC: _command_specific,
    DescriptorType.SENSE_KEY_SPECIFIC: _sense_key_specific,
    DescriptorType.FIELD_REPLACEABLE_UNIT: _field_replaceable_unit,
    DescriptorType.STREAM_COMMANDS: _stream_commands,
    DescriptorType.BLOCK_COMMANDS: _block_commands,
    DescriptorType.OSD_OBJECT_IDENTIFICATION: _osd,
    DescriptorType.OSD_RESPONSE_INTEGRITY: _osd,
    DescriptorType.OSD_ATTRIBUTE_IDENTIFICATION: _osd,
    DescriptorType.ATA_STATUS_RETURN: _ata_status_return,
    DescriptorType.ANOTHER_PROGRESS_INDICATION: _another_progress,
    DescriptorType.USER_DATA_SEGMENT_REFERRAL: _user_data_segment_referral,
    DescriptorType.FORWARDED_SENSE_DATA: _forwarded_sense_data,
    DescriptorType.DIRECT_ACCESS_BLOCK_DEVICE: _direct_access_block_device,
    DescriptorType.DEVICE_DESIGNATION: _device_designation,
    DescriptorType.MICROCODE_ACTIVATION: _microcode_activation,
}


def _raw_payload_dump(ctx: RenderContext, payload: Sequence[int], leadin: str) -> int:
    formatter = HexDumpFormatter(
        bytes_per_line=24, address=False, ascii=False, leadin=leadin, half_gap=False
    )
    return formatter.write_to(ctx.writer, payload)


def iter_descriptors(data: Sequence[int], sb_len: Optional[int] = None):
    """
    Yield each descriptor of a descriptor format sense buffer.

    A descriptor whose length byte lies outside the list is yielded with
    ``add_len`` of None and ends the walk; a declared length that runs past
    the list is clamped to what is left.
    """
    n = len(data) if sb_len is None else min(sb_len, len(data))
    if n < 8:
        return
    add_sen_len = min(data[7], n - 8)
    descs = data[8 : 8 + add_sen_len]
    k = 0
    while k < add_sen_len:
        if k < add_sen_len - 1:
            add_len = descs[k + 1]
            if k + add_len + 2 > add_sen_len:
                logger.debug(
                    "descriptor at offset %d says %d bytes, clamped to %d",
                    k + 8,
                    add_len,
                    add_sen_len - k - 2,
                )
                add_len = add_sen_len - k - 2
        else:
            add_len = None
        desc = Descriptor(descs[k], add_len, bytes(descs[k : k + (add_len or 0) + 2]))
        yield desc
        if desc.short:
            return
        k += desc.length


def render_descriptors(
    ctx: RenderContext,
    data: Sequence[int],
    sb_len: int,
    header: SenseHeader,
    lip: str = "",
) -> bool:
    """
    Render every descriptor of a descriptor format sense buffer.

    Returns False when any descriptor could not be fully interpreted.
    """
    all_processed = True
    for desc in iter_descriptors(data, sb_len):
        ctx.out("%s  Descriptor type: ", lip)
        if desc.short:
            # the type byte is all there is
            ctx.out("%s\n", DESCRIPTOR_NAMES.get(desc.dtype, "0x%x" % desc.dtype))
            ctx.out("%s    short descriptor\n", lip)
            ctx.guard.issues.append(DecodeIssue.TRUNCATED)
            return False
        decoder = DESCRIPTOR_DECODERS.get(desc.dtype, _vendor_or_unknown)
        processed = decoder(ctx, desc, header, lip)
        if not processed:
            all_processed = False
            if desc.add_len > 0:
                _raw_payload_dump(ctx, desc.raw[2:], lip + "    ")
        if ctx.full:
            logger.debug("output capacity reached while rendering descriptors")
            return False
    return all_processed
