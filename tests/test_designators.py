import pytest

from scsi_tool.config import DecodeOptions
from scsi_tool.context import RenderContext
from scsi_tool.designators import (
    decode_designator,
    decode_device_id_page,
    dev_id_iter,
    format_uuid,
    list_designators,
    render_designation_descriptor,
    render_device_ids,
)
from scsi_tool.models import DecodeIssue, DesignatorDescriptor, IterStatus

NAA5_LU = bytes([0x01, 0x03, 0x00, 0x08, 0x53, 0x33, 0x33, 0x30, 0, 0, 0x1F, 0x40])
RTP_SAS = bytes([0x61, 0x94, 0x00, 0x04, 0, 0, 0, 1])


def test_naa3_locally_assigned():
    out = decode_designator([0x01, 0x03, 0, 8, 0x30, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77])
    assert "    designator type: NAA,  code set: Binary\n" in out
    assert "      NAA 3, Locally assigned:\n      0x3011223344556677\n" in out


def test_naa6_company_id_and_extension():
    desig = [0x01, 0x03, 0, 16, 0x60, 0x01, 0x02, 0x03, 0x44, 0x55, 0x66, 0x77,
             0x88, 0x99, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF]
    out = decode_designator(desig)
    assert "NAA 6, IEEE Registered Extended:" in out
    assert "      IEEE Company_id: 0x1020\n" in out
    assert "      Vendor Specific Identifier: 0x344556677\n" in out
    assert "      Vendor Specific Identifier Extension: 0x8899aabbccddeeff\n" in out


def test_naa_wrong_length_falls_back_to_hex():
    ctx = RenderContext.create()
    ok = render_designation_descriptor([0x01, 0x03, 0, 6, 0x50, 1, 2, 3, 4, 5], ctx)
    out = ctx.writer.getvalue()
    assert ok is False
    assert "<< unexpected NAA 5 identifier length: 0x6 >>" in out
    assert "      00     50 01 02 03 04 05" in out
    assert DecodeIssue.SEMANTIC_MISMATCH in ctx.guard.issues


def test_naa_short_output():
    options = DecodeOptions(long_out=False)
    out = decode_designator(NAA5_LU, options=options)
    assert out.endswith("      0x5333333000001f40\n")
    assert "IEEE Registered" not in out


def test_eui64_variants():
    twelve = decode_designator([1, 2, 0, 12, 0x00, 0x11, 0x22, 0x33, 0x44, 0x55,
                                0x66, 0x77, 0xDE, 0xAD, 0xBE, 0xEF])
    assert "      EUI-64 based 12 byte identifier\n" in twelve
    assert "      IEEE identifier: 0x1122\n" in twelve
    assert "      Vendor Specific Extension Identifier: 0x3344556677\n" in twelve
    assert "      Directory ID: 0xdeadbeef\n" in twelve
    sixteen = decode_designator([1, 2, 0, 16] + [0xA0] * 8 + [0, 0, 1, 0, 0, 0, 0, 2])
    assert "      Identifier extension: 0xa0a0a0a0a0a0a0a0\n" in sixteen
    assert "      IEEE identifier: 0x1\n" in sixteen
    odd = decode_designator([1, 2, 0, 4, 1, 2, 3, 4])
    assert "<< can only decode 8, 12 and 16 byte ids >>" in odd


def test_relative_target_port_with_transport():
    out = decode_designator(RTP_SAS)
    assert "    designator type: Relative target port,  code set: Binary\n" in out
    assert "     transport: Serial Attached SCSI Protocol (SPL-4)\n" in out
    assert "      Relative target port: 0x1\n" in out


def test_target_port_group_needs_target_port_association():
    out = decode_designator([0x01, 0x05, 0, 4, 0, 0, 0, 2])
    assert "<< expected binary code_set, Target port association, length 4 >>" in out
    ok = decode_designator([0x01, 0x15, 0, 4, 0, 0, 0, 2])
    assert "      Target port group: 0x2\n" in ok
    lu_group = decode_designator([0x01, 0x06, 0, 4, 0, 0, 0x01, 0x00])
    assert "      Logical unit group: 0x100\n" in lu_group


def test_md5_logical_unit_identifier():
    out = decode_designator([0x01, 0x07, 0, 16] + list(range(16)))
    assert "      MD5 logical unit identifier:\n      00     00 01 02" in out


def test_scsi_name_string():
    out = decode_designator([0x03, 0x08, 0, 8] + list(b"iqn.test"))
    assert "      SCSI name string:\n      iqn.test\n" in out
    binary = decode_designator([0x01, 0x08, 0, 4] + list(b"iqn."))
    assert "<< expected UTF-8 code_set >>" in binary


def test_scsi_name_string_ascii_tolerated():
    quiet = decode_designator([0x02, 0x08, 0, 4] + list(b"naa."))
    assert "use ASCII" not in quiet
    assert "      naa.\n" in quiet
    loud = decode_designator([0x02, 0x08, 0, 4] + list(b"naa."), options=DecodeOptions(verbose=1))
    assert "<< expected UTF-8, use ASCII >>" in loud


def test_usb_and_pcie_port_identifiers():
    usb = decode_designator([0x91, 0x99, 0, 4, 0x85, 0, 0x02, 0])
    assert "      USB device address: 0x5\n" in usb
    assert "      USB interface number: 0x2\n" in usb
    pcie = decode_designator([0xA1, 0x99, 0, 4, 0x03, 0x0A, 0, 0])
    assert "      PCIe routing ID, bus number: 0x3\n" in pcie
    assert "          function number: 0xa\n" in pcie
    assert "          [or device number: 0x1, function number: 0x2]\n" in pcie


def test_protocol_specific_port_without_piv_still_decodes():
    ctx = RenderContext.create()
    ok = render_designation_descriptor([0x91, 0x19, 0, 4, 0x05, 0, 0x02, 0], ctx)
    out = ctx.writer.getvalue()
    assert ok is False
    assert "expects protocol" in out
    assert "      USB device address: 0x5\n" in out
    assert "      USB interface number: 0x2\n" in out
    assert DecodeIssue.SEMANTIC_MISMATCH in ctx.guard.issues


def test_protocol_specific_port_unknown_protocol_dumps_payload():
    out = decode_designator([0x61, 0x99, 0, 4, 0x05, 0, 0x02, 0])
    assert ">>>> unexpected protocol identifier: Serial Attached SCSI" in out
    assert "      00     05 00 02 00" in out


def test_uuid_designator():
    out = decode_designator([0x01, 0x0A, 0, 18, 0x10, 0] + list(range(16)))
    assert "      Locally assigned UUID: 00010203-0405-0607-0809-0a0b0c0d0e0f\n" in out
    bad = decode_designator([0x01, 0x0A, 0, 18, 0x20, 0] + list(range(16)))
    assert "<< expected locally assigned UUID, 16 bytes long >>" in bad
    assert format_uuid(bytes(16)) == "00000000-0000-0000-0000-000000000000"


def test_vendor_specific_and_t10_vendor_id():
    text = decode_designator([0x02, 0x00, 0, 4] + list(b"ABCD"))
    assert "      vendor specific: ABCD\n" in text
    binary = decode_designator([0x01, 0x00, 0, 2, 0x01, 0x02])
    assert "      vendor specific:\n      00     01 02" in binary
    t10 = decode_designator([0x02, 0x01, 0, 12] + list(b"VENDOR  SN01"))
    assert "      vendor id: VENDOR  \n" in t10
    assert "      vendor specific: SN01\n" in t10


def test_reserved_designator_type():
    out = decode_designator([0x01, 0x0B, 0, 2, 1, 2])
    assert "      reserved designator=0xb\n" in out


def test_designator_length_checks():
    assert "designator too short: 2 bytes" in decode_designator(b"\x01\x03")
    out = decode_designator([1, 3, 0, 8, 1, 2])
    assert "designator too long: says it is 8 bytes, but given 2 bytes" in out
    assert "designator type" not in out


def test_print_association():
    out = decode_designator(RTP_SAS, leadin="  ", print_assoc=True)
    assert out.startswith("    Target port:\n      designator type: Relative target port")


def test_dev_id_iter_walks_to_end():
    page = NAA5_LU + RTP_SAS
    assert dev_id_iter(page, len(page), -1) == (IterStatus.OK, 0)
    assert dev_id_iter(page, len(page), 0) == (IterStatus.OK, 12)
    assert dev_id_iter(page, len(page), 12) == (IterStatus.END, 20)
    assert dev_id_iter(b"", 0, -1) == (IterStatus.END, 0)


def test_dev_id_iter_filters():
    page = NAA5_LU + RTP_SAS
    assert dev_id_iter(page, len(page), -1, m_assoc=1) == (IterStatus.OK, 12)
    assert dev_id_iter(page, len(page), -1, m_desig_type=3) == (IterStatus.OK, 0)
    assert dev_id_iter(page, len(page), 0, m_desig_type=3) == (IterStatus.END, 20)
    assert dev_id_iter(page, len(page), -1, m_code_set=2) == (IterStatus.END, 20)


def test_dev_id_iter_malformed_without_overread():
    """A declared length past the page ends the walk abnormally."""
    long_body = NAA5_LU + bytes([0x01, 0x03, 0, 20, 1, 2, 3])
    assert dev_id_iter(long_body, len(long_body), 0) == (IterStatus.MALFORMED, 12)
    short_header = NAA5_LU + bytes([0x01, 0x03])
    assert dev_id_iter(short_header, len(short_header), 0) == (IterStatus.MALFORMED, 12)
    found, status = list_designators(long_body)
    assert status is IterStatus.MALFORMED
    assert len(found) == 1


def test_list_designators():
    found, status = list_designators(NAA5_LU + RTP_SAS)
    assert status is IterStatus.END
    assert [d.designator_type for d in found] == [3, 4]
    assert found[1].piv and found[1].association == 1 and found[1].protocol_id == 6
    assert found[0].to_dict()["designator"] == "5333333000001f40"


def test_designator_from_bytes_rejects_short_header():
    with pytest.raises(ValueError):
        DesignatorDescriptor.from_bytes(b"\x01\x02")


def test_render_device_ids_groups_by_association():
    ctx = RenderContext.create()
    status = render_device_ids(NAA5_LU + RTP_SAS, ctx)
    out = ctx.writer.getvalue()
    assert status is IterStatus.END
    assert out.index("  Addressed logical unit:\n") < out.index("  Target port:\n")


def test_device_id_page_with_naa5_target_port():
    naa5_tport = bytes([0x01, 0x13]) + NAA5_LU[2:]
    page = bytes([0x00, 0x83, 0x00, len(naa5_tport)]) + naa5_tport
    out = decode_device_id_page(page)
    assert out.startswith("Device Identification VPD page (disk):\n")
    assert "  Target port:\n" in out
    assert "      NAA 5, IEEE Registered:\n" in out
    assert "      IEEE Company_id: 0x333333\n" in out
    assert "VPD page error" not in out


def test_device_id_page_keeps_output_before_malformed_entry():
    descs = NAA5_LU + bytes([0x01, 0x03, 0, 20, 1, 2, 3])
    page = bytes([0x00, 0x83, 0x00, len(descs)]) + descs
    out = decode_device_id_page(page)
    assert "NAA 5, IEEE Registered" in out
    assert "    VPD page error: designator length longer than\n" in out
    assert out.count("VPD page error") == 1


def test_device_id_page_truncated_and_short():
    page = bytes([0x00, 0x83, 0x00, 40]) + NAA5_LU
    out = decode_device_id_page(page)
    assert "page truncated: page_len=40, received 12 bytes" in out
    assert "NAA 5" in out
    assert "length too short=2" in decode_device_id_page(b"\x00\x83")
