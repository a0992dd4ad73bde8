import io

from scsi_tool import SenseDecoder, decode_sense
from scsi_tool.config import DecodeOptions
from scsi_tool.models import SenseCategory

ILLEGAL_REQUEST = bytes(
    [0x70, 0, 0x05, 0, 0, 0, 0, 0x0A, 0, 0, 0, 0, 0, 0, 5, 0x80, 0, 3, 0x41]
)
NAA5_LU = bytes([0x01, 0x03, 0x00, 0x08, 0x53, 0x33, 0x33, 0x30, 0, 0, 0x1F, 0x40])


def _decoder(**changes):
    return SenseDecoder(DecodeOptions(**changes))


def test_render_returns_text():
    out = _decoder().render(ILLEGAL_REQUEST)
    assert out.startswith(" Fixed format, current;  Sense key: Illegal Request\n")
    assert decode_sense(ILLEGAL_REQUEST, options=DecodeOptions()) == out


def test_render_respects_capacity():
    out = _decoder(capacity=20).render(ILLEGAL_REQUEST)
    assert out == " Fixed format, curre"


def test_print_sense_to_stream():
    stream = io.StringIO()
    written = _decoder().print_sense(ILLEGAL_REQUEST, leadin="sda", stream=stream)
    text = stream.getvalue()
    assert text.startswith("sda:  Fixed format, current;")
    assert written == len(text)


def test_print_sense_defaults_to_stderr(capsys):
    _decoder().print_sense(ILLEGAL_REQUEST)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Illegal Request" in captured.err


def test_device_id_rendering():
    decoder = _decoder()
    page = bytes([0, 0x83, 0, len(NAA5_LU)]) + NAA5_LU
    assert "NAA 5, IEEE Registered" in decoder.render_device_id(page)
    bare = decoder.render_device_id(NAA5_LU, full_page=False)
    assert bare.startswith("  Addressed logical unit:\n")


def test_designators_and_category():
    decoder = _decoder()
    found, complete = decoder.designators(NAA5_LU)
    assert complete
    assert found[0].designator_type == 3
    _, complete = decoder.designators(NAA5_LU[:-2])
    assert not complete
    assert decoder.category(ILLEGAL_REQUEST) is SenseCategory.ILLEGAL_REQ


def test_options_come_from_environment(monkeypatch):
    monkeypatch.setenv("SCSI_TOOL_CAPACITY", "5")
    assert SenseDecoder().render(ILLEGAL_REQUEST) == " Fixe"
