# src/scsi_tool/designators.py
"""
Designation descriptors, as found in the Device Identification VPD page
(0x83) and nested in sense data descriptor 0xe.

Each designator type has its own decoder in ``DESIGNATOR_DECODERS``. A
decoder checks code set, association and length before interpreting the
payload and falls back to a hex dump when they do not match what the type
requires.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .context import RenderContext
from .models import (
    Association,
    CodeSet,
    DecodeIssue,
    DesignatorDescriptor,
    DesignatorType,
    IterStatus,
    TransportProtocol,
)
from .utils import (
    all_printable,
    as_text,
    get_be16,
    get_be24,
    get_be32,
    get_be64,
    get_be,
    hex_string,
)

logger = logging.getLogger(__name__)

VPD_DEVICE_ID = 0x83


def _mismatch(ctx: RenderContext, dd: DesignatorDescriptor, lip: str, reason: str) -> bool:
    ctx.out("%s      << %s >>\n", lip, reason)
    ctx.hexdump(dd.designator, lip + "      ", mode=0)
    ctx.guard.issues.append(DecodeIssue.SEMANTIC_MISMATCH)
    return False


def _text_or_hex(ctx: RenderContext, dd: DesignatorDescriptor, data: bytes, lip: str, label: str) -> None:
    if dd.code_set in (CodeSet.ASCII, CodeSet.UTF8) and all_printable(data):
        ctx.out("%s      %s: %s\n", lip, label, as_text(data))
    else:
        ctx.out("%s      %s: 0x%s\n", lip, label, hex_string(data))


def _vendor_specific(ctx, dd: DesignatorDescriptor, lip: str) -> bool:
    ip = dd.designator
    if dd.code_set in (CodeSet.ASCII, CodeSet.UTF8) and all_printable(ip):
        ctx.out("%s      vendor specific: %s\n", lip, as_text(ip))
    else:
        ctx.out("%s      vendor specific:\n", lip)
        ctx.hexdump(ip, lip + "      ", mode=0)
    return True


def _t10_vendor_id(ctx, dd, lip) -> bool:
    ip = dd.designator
    ctx.out("%s      vendor id: %s\n", lip, as_text(ip[:8]))
    if len(ip) > 8:
        _text_or_hex(ctx, dd, ip[8:], lip, "vendor specific")
    return True


def _eui64(ctx, dd, lip) -> bool:
    ip = dd.designator
    dlen = len(ip)
    if not ctx.options.long_out:
        if dlen not in (8, 12, 16):
            return _mismatch(ctx, dd, lip, "expect 8, 12 and 16 byte EUI, got %d" % dlen)
        ctx.out("%s      0x%s\n", lip, hex_string(ip))
        return True
    ctx.out("%s      EUI-64 based %d byte identifier\n", lip, dlen)
    if dd.code_set != CodeSet.BINARY:
        return _mismatch(ctx, dd, lip, "expected code_set 1 (binary)")
    ci_off = 0
    if dlen == 16:
        ci_off = 8
        ctx.out("%s      Identifier extension: 0x%x\n", lip, get_be64(ip, 0))
    elif dlen not in (8, 12):
        return _mismatch(ctx, dd, lip, "can only decode 8, 12 and 16 byte ids")
    ctx.out("%s      IEEE identifier: 0x%x\n", lip, get_be24(ip, ci_off))
    ctx.out(
        "%s      Vendor Specific Extension Identifier: 0x%x\n",
        lip,
        get_be(ip, ci_off + 3, 5),
    )
    if dlen == 12:
        ctx.out("%s      Directory ID: 0x%x\n", lip, get_be32(ip, 8))
    return True


def _naa_company_id(ip: bytes) -> int:
    return ((ip[0] & 0xF) << 20) | (ip[1] << 12) | (ip[2] << 4) | ((ip[3] & 0xF0) >> 4)


def _naa_vendor_id(ip: bytes) -> int:
    return ((ip[3] & 0xF) << 32) | get_be32(ip, 4)


def _naa(ctx, dd, lip) -> bool:
    ip = dd.designator
    dlen = len(ip)
    if dd.code_set != CodeSet.BINARY:
        return _mismatch(ctx, dd, lip, "unexpected code set %d for NAA" % dd.code_set)
    if dlen < 1:
        return _mismatch(ctx, dd, lip, "NAA designator is empty")
    naa = ip[0] >> 4
    long_out = ctx.options.long_out
    if naa == 2:
        if dlen != 8:
            return _mismatch(ctx, dd, lip, "unexpected NAA 2 identifier length: 0x%x" % dlen)
        if long_out:
            ctx.out("%s      NAA 2, IEEE Extended:\n", lip)
            ctx.out("%s      vendor specific identifier A: 0x%x\n", lip, get_be16(ip, 0) & 0xFFF)
            ctx.out("%s      IEEE Company_id: 0x%x\n", lip, get_be24(ip, 2))
            ctx.out("%s      vendor specific identifier B: 0x%x\n", lip, get_be24(ip, 5))
            ctx.out("%s      [0x%s]\n", lip, hex_string(ip))
        else:
            ctx.out("%s      0x%s\n", lip, hex_string(ip))
    elif naa == 3:
        if dlen != 8:
            return _mismatch(ctx, dd, lip, "unexpected NAA 3 identifier length: 0x%x" % dlen)
        if long_out:
            ctx.out("%s      NAA 3, Locally assigned:\n", lip)
        ctx.out("%s      0x%s\n", lip, hex_string(ip))
    elif naa == 5:
        if dlen != 8:
            return _mismatch(ctx, dd, lip, "unexpected NAA 5 identifier length: 0x%x" % dlen)
        if long_out:
            ctx.out("%s      NAA 5, IEEE Registered:\n", lip)
            ctx.out("%s      IEEE Company_id: 0x%x\n", lip, _naa_company_id(ip))
            ctx.out("%s      Vendor Specific Identifier: 0x%x\n", lip, _naa_vendor_id(ip))
            ctx.out("%s      [0x%s]\n", lip, hex_string(ip))
        else:
            ctx.out("%s      0x%s\n", lip, hex_string(ip))
    elif naa == 6:
        if dlen != 16:
            return _mismatch(ctx, dd, lip, "unexpected NAA 6 identifier length: 0x%x" % dlen)
        if long_out:
            ctx.out("%s      NAA 6, IEEE Registered Extended:\n", lip)
            ctx.out("%s      IEEE Company_id: 0x%x\n", lip, _naa_company_id(ip))
            ctx.out("%s      Vendor Specific Identifier: 0x%x\n", lip, _naa_vendor_id(ip))
            ctx.out(
                "%s      Vendor Specific Identifier Extension: 0x%x\n",
                lip,
                get_be64(ip, 8),
            )
            ctx.out("%s      [0x%s]\n", lip, hex_string(ip))
        else:
            ctx.out("%s      0x%s\n", lip, hex_string(ip))
    else:
        return _mismatch(ctx, dd, lip, "unexpected NAA [0x%x]" % naa)
    return True


def _port_or_group(label: str, association: int) -> Callable:
    def decode(ctx, dd, lip) -> bool:
        ip = dd.designator
        if dd.code_set != CodeSet.BINARY or dd.association != association or len(ip) != 4:
            return _mismatch(
                ctx,
                dd,
                lip,
                "expected binary code_set, %s association, length 4"
                % ctx.resolver.designator_association(association),
            )
        ctx.out("%s      %s: 0x%x\n", lip, label, get_be16(ip, 2))
        return True

    return decode


def _md5_logical_unit(ctx, dd, lip) -> bool:
    if dd.code_set != CodeSet.BINARY or dd.association != Association.LOGICAL_UNIT:
        return _mismatch(ctx, dd, lip, "expected binary code_set, logical unit association")
    ctx.out("%s      MD5 logical unit identifier:\n", lip)
    ctx.hexdump(dd.designator, lip + "      ", mode=0)
    return True


def _scsi_name_string(ctx, dd, lip) -> bool:
    if dd.code_set == CodeSet.ASCII:
        if ctx.options.verbose:
            ctx.out("%s      << expected UTF-8, use ASCII >>\n", lip)
    elif dd.code_set != CodeSet.UTF8:
        return _mismatch(ctx, dd, lip, "expected UTF-8 code_set")
    ctx.out("%s      SCSI name string:\n", lip)
    ctx.out("%s      %s\n", lip, as_text(dd.designator, "utf-8"))
    return True


def _protocol_specific_port(ctx, dd, lip) -> bool:
    ip = dd.designator
    if not dd.piv:
        # warn, then decode by protocol id anyway
        ctx.out("%s      >>>> Protocol specific port identifier expects protocol\n", lip)
        ctx.out("%s           identifier to be valid and it is not\n", lip)
        ctx.guard.issues.append(DecodeIssue.SEMANTIC_MISMATCH)
    if dd.protocol_id == TransportProtocol.UAS:
        if len(ip) < 3:
            return _mismatch(ctx, dd, lip, "USB designator too short")
        ctx.out("%s      USB device address: 0x%x\n", lip, ip[0] & 0x7F)
        ctx.out("%s      USB interface number: 0x%x\n", lip, ip[2])
    elif dd.protocol_id == TransportProtocol.SOP:
        if len(ip) < 2:
            return _mismatch(ctx, dd, lip, "PCIe designator too short")
        ctx.out("%s      PCIe routing ID, bus number: 0x%x\n", lip, ip[0])
        ctx.out("%s          function number: 0x%x\n", lip, ip[1])
        ctx.out(
            "%s          [or device number: 0x%x, function number: 0x%x]\n",
            lip,
            (ip[1] >> 3) & 0x1F,
            ip[1] & 0x7,
        )
    else:
        ctx.out(
            "%s      >>>> unexpected protocol identifier: %s\n",
            lip,
            ctx.resolver.transport_protocol(dd.protocol_id),
        )
        ctx.out("%s           with Protocol specific port identifier\n", lip)
        ctx.hexdump(ip, lip + "      ", mode=0)
        ctx.guard.issues.append(DecodeIssue.SEMANTIC_MISMATCH)
        return False
    return dd.piv


def format_uuid(data: bytes) -> str:
    """16 bytes as the 8-4-4-4-12 hex grouping."""
    h = hex_string(data)
    return "-".join((h[0:8], h[8:12], h[12:16], h[16:20], h[20:32]))


def _uuid(ctx, dd, lip) -> bool:
    ip = dd.designator
    if dd.code_set != CodeSet.BINARY:
        return _mismatch(ctx, dd, lip, "expected binary code_set")
    if len(ip) != 18 or (ip[0] >> 4) != 1:
        return _mismatch(ctx, dd, lip, "expected locally assigned UUID, 16 bytes long")
    if ctx.options.long_out:
        ctx.out("%s      Locally assigned UUID: %s\n", lip, format_uuid(ip[2:18]))
    else:
        ctx.out("%s      %s\n", lip, format_uuid(ip[2:18]))
    return True


def _reserved(ctx, dd, lip) -> bool:
    ctx.out("%s      reserved designator=0x%x\n", lip, dd.designator_type)
    ctx.hexdump(dd.designator, lip + "      ", mode=0)
    return False


DesignatorDecoder = Callable[[RenderContext, DesignatorDescriptor, str], bool]

DESIGNATOR_DECODERS: Dict[int, DesignatorDecoder] = {
    DesignatorType.VENDOR_SPECIFIC: _vendor_specific,
    DesignatorType.T10_VENDOR_ID: _t10_vendor_id,
    DesignatorType.EUI_64: _eui64,
    DesignatorType.NAA: _naa,
    DesignatorType.RELATIVE_TARGET_PORT: _port_or_group(
        "Relative target port", Association.TARGET_PORT
    ),
    DesignatorType.TARGET_PORT_GROUP: _port_or_group(
        "Target port group", Association.TARGET_PORT
    ),
    DesignatorType.LOGICAL_UNIT_GROUP: _port_or_group(
        "Logical unit group", Association.LOGICAL_UNIT
    ),
    DesignatorType.MD5_LOGICAL_UNIT_ID: _md5_logical_unit,
    DesignatorType.SCSI_NAME_STRING: _scsi_name_string,
    DesignatorType.PROTOCOL_SPECIFIC_PORT_ID: _protocol_specific_port,
    DesignatorType.UUID: _uuid,
}


def render_designation_descriptor(
    data: Sequence[int],
    ctx: Optional[RenderContext] = None,
    leadin: str = "",
    print_assoc: bool = False,
) -> bool:
    """
    Render one designation descriptor (4-byte header plus designator).

    Returns True when the designator was decoded according to its type.
    """
    if ctx is None:
        ctx = RenderContext.create()
    data = bytes(data)
    lip = leadin
    if len(data) < 4:
        ctx.out("%s    designator too short: %d bytes\n", lip, len(data))
        ctx.guard.issues.append(DecodeIssue.STRUCTURALLY_INVALID)
        return False
    dd = DesignatorDescriptor.from_bytes(data)
    if dd.length > len(data) - 4:
        ctx.out(
            "%s    designator too long: says it is %d bytes, but given %d bytes\n",
            lip,
            dd.length,
            len(data) - 4,
        )
        ctx.guard.issues.append(DecodeIssue.STRUCTURALLY_INVALID)
        return False
    if print_assoc:
        ctx.out("%s  %s:\n", lip, ctx.resolver.designator_association(dd.association))
    type_name = ctx.resolver.designator_type(dd.designator_type)
    if type_name is None:
        type_name = "unknown"
    code_set = ctx.resolver.code_set(dd.code_set)
    if code_set is None:
        code_set = "unknown"
    ctx.out("%s    designator type: %s,  code set: %s\n", lip, type_name, code_set)
    if dd.piv and dd.association in (Association.TARGET_PORT, Association.TARGET_DEVICE):
        ctx.out(
            "%s     transport: %s\n",
            lip,
            ctx.resolver.transport_protocol(dd.protocol_id),
        )
    decoder = DESIGNATOR_DECODERS.get(dd.designator_type, _reserved)
    return decoder(ctx, dd, lip)


def decode_designator(data: Sequence[int], leadin: str = "", print_assoc: bool = False, **kwargs) -> str:
    """Render one designation descriptor and return the text."""
    ctx = RenderContext.create(**kwargs)
    render_designation_descriptor(data, ctx, leadin=leadin, print_assoc=print_assoc)
    return ctx.writer.getvalue()


def dev_id_iter(
    page: Sequence[int],
    page_len: int,
    off: int,
    m_assoc: int = -1,
    m_desig_type: int = -1,
    m_code_set: int = -1,
) -> Tuple[IterStatus, int]:
    """
    Advance to the next designation descriptor matching the filters.

    ``page`` is the descriptor list of a Device Identification page. Start
    with ``off`` of -1 and pass back the returned offset on each call. A
    filter of -1 matches anything. Returns ``(OK, offset)`` for a match,
    ``(END, page_len)`` when the list is used up exactly and
    ``(MALFORMED, offset)`` when a descriptor would run past the list.
    """
    page_len = min(page_len, len(page))
    if off < 0 and page_len <= 0:
        return IterStatus.END, 0
    k = off
    while k + 3 < page_len:
        k = 0 if k < 0 else k + page[k + 3] + 4
        if k + 4 > page_len:
            break
        c_set = page[k] & 0xF
        if m_code_set >= 0 and c_set != m_code_set:
            continue
        assoc = (page[k + 1] >> 4) & 0x3
        if m_assoc >= 0 and assoc != m_assoc:
            continue
        desig_type = page[k + 1] & 0xF
        if m_desig_type >= 0 and desig_type != m_desig_type:
            continue
        if k + 4 + page[k + 3] > page_len:
            logger.debug("designation descriptor at offset %d overruns page", k)
            return IterStatus.MALFORMED, k
        return IterStatus.OK, k
    if k == page_len:
        return IterStatus.END, k
    logger.debug("designation descriptor list malformed at offset %d", k)
    return IterStatus.MALFORMED, k


def list_designators(
    page: Sequence[int],
    page_len: Optional[int] = None,
    m_assoc: int = -1,
    m_desig_type: int = -1,
    m_code_set: int = -1,
) -> Tuple[List[DesignatorDescriptor], IterStatus]:
    """Decode every matching designation descriptor of a descriptor list."""
    page = bytes(page)
    if page_len is None:
        page_len = len(page)
    found: List[DesignatorDescriptor] = []
    off = -1
    while True:
        status, off = dev_id_iter(page, page_len, off, m_assoc, m_desig_type, m_code_set)
        if status is not IterStatus.OK:
            return found, status
        found.append(DesignatorDescriptor.from_bytes(page[off : off + 4 + page[off + 3]]))


def _report_malformed(ctx: RenderContext, page_len: int, off: int) -> None:
    ctx.guard.issues.append(DecodeIssue.MALFORMED)
    if 0 <= off and off + 4 <= page_len:
        ctx.out("    VPD page error: designator length longer than\n")
        ctx.out("     remaining response length=%d\n", page_len - off)
    else:
        ctx.out("    VPD page error: short designator around offset %d\n", off)


def render_device_ids(
    page: Sequence[int],
    ctx: Optional[RenderContext] = None,
    print_if_found: Optional[str] = None,
    m_assoc: int = -1,
    m_desig_type: int = -1,
    m_code_set: int = -1,
) -> IterStatus:
    """
    Render the designation descriptor list of a Device Identification page.

    Each descriptor is preceded by its association, or, when
    ``print_if_found`` is given, that title is printed once before the first
    match. Stops at the first malformed descriptor, keeping what was
    already rendered.
    """
    if ctx is None:
        ctx = RenderContext.create()
    page = bytes(page)
    page_len = len(page)
    printed = False
    off = -1
    while True:
        status, off = dev_id_iter(page, page_len, off, m_assoc, m_desig_type, m_code_set)
        if status is not IterStatus.OK:
            break
        desc = page[off : off + 4 + page[off + 3]]
        if print_if_found is not None:
            if not printed:
                ctx.out("  %s:\n", print_if_found)
                printed = True
        else:
            assoc = (desc[1] >> 4) & 0x3
            ctx.out("  %s:\n", ctx.resolver.designator_association(assoc))
        render_designation_descriptor(desc, ctx)
        if ctx.full:
            return status
    if status is IterStatus.MALFORMED:
        _report_malformed(ctx, page_len, off)
    return status


def render_device_id_page(
    page: Sequence[int],
    ctx: Optional[RenderContext] = None,
    group_by_association: bool = True,
) -> IterStatus:
    """
    Render a complete Device Identification VPD page (4-byte header included).

    With ``group_by_association`` the designators are listed under logical
    unit, then target port, then target device, as a sequence of filtered
    passes over the list.
    """
    if ctx is None:
        ctx = RenderContext.create()
    page = bytes(page)
    if len(page) < 4:
        ctx.out("Device Identification VPD page length too short=%d\n", len(page))
        ctx.guard.issues.append(DecodeIssue.STRUCTURALLY_INVALID)
        return IterStatus.MALFORMED
    if page[1] != VPD_DEVICE_ID:
        ctx.out("  expected VPD page 0x%x, got page 0x%x\n", VPD_DEVICE_ID, page[1])
    page_len = get_be16(page, 2)
    avail = len(page) - 4
    if page_len > avail:
        logger.debug("VPD page says %d bytes, only %d received", page_len, avail)
        ctx.out("  page truncated: page_len=%d, received %d bytes\n", page_len, avail)
        ctx.guard.issues.append(DecodeIssue.TRUNCATED)
        page_len = avail
    descs = page[4 : 4 + page_len]
    ctx.out(
        "Device Identification VPD page (%s):\n",
        ctx.resolver.peripheral_device_type(page[0] & 0x1F),
    )
    if not group_by_association:
        return render_device_ids(descs, ctx)
    status = IterStatus.END
    for assoc in (Association.LOGICAL_UNIT, Association.TARGET_PORT, Association.TARGET_DEVICE):
        status = render_device_ids(
            descs,
            ctx,
            print_if_found=ctx.resolver.designator_association(assoc),
            m_assoc=assoc,
        )
        if status is IterStatus.MALFORMED or ctx.full:
            break
    return status


def decode_device_id_page(page: Sequence[int], **kwargs) -> str:
    """Render a complete Device Identification VPD page and return the text."""
    ctx = RenderContext.create(**kwargs)
    render_device_id_page(page, ctx)
    return ctx.writer.getvalue()
