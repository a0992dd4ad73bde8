from scsi_tool import utils


def test_get_be_reads_past_end_as_zero():
    """Out-of-range bytes read as zero instead of raising."""
    assert utils.get_be16(b"\x12\x34") == 0x1234
    assert utils.get_be32(b"\x12\x34", 0) == 0x12340000
    assert utils.get_be16(b"\x12", 5) == 0


def test_as_text_stops_at_nul():
    """as_text behaves like a C string."""
    assert utils.as_text(b"ABC\x00DEF") == "ABC"
    assert utils.as_text(b"iqn.x", "utf-8") == "iqn.x"


def test_printable_checks():
    assert utils.is_printable(ord("A"))
    assert not utils.is_printable(0x7F)
    assert not utils.all_printable(b"AB\x01")
    assert utils.hex_string(b"\x00\xab") == "00ab"
