from pathlib import Path

import pytest

from scsi_tool import cli

ILLEGAL_REQUEST = "70 00 05 00 00 00 00 0a 00 00 00 00 00 00 05 80 00 03 41"
NAA5_PAGE = "00 83 00 0c 01 03 00 08 53 33 33 30 00 00 1f 40"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SCSI_TOOL_CAPACITY", "SCSI_TOOL_MAX_DEPTH", "SCSI_TOOL_BYTES_PER_LINE"):
        monkeypatch.delenv(name, raising=False)


def test_parse_hex_tokens():
    assert cli.parse_hex_tokens(["70", "0x05", "a"]) == b"\x70\x05\x0a"
    with pytest.raises(ValueError):
        cli.parse_hex_tokens(["123"])
    with pytest.raises(ValueError):
        cli.parse_hex_tokens(["zz"])


def test_parse_hex_text_comments_and_commas():
    text = "70,00 05  # key\n00 00\n# whole line comment\n0a\n"
    assert cli.parse_hex_text(text) == bytes([0x70, 0, 5, 0, 0, 0x0A])


def test_parse_hex_text_nospace():
    assert cli.parse_hex_text("7000\n05", nospace=True) == b"\x70\x00\x05"
    with pytest.raises(ValueError):
        cli.parse_hex_text("700", nospace=True)


def test_main_decodes_hex_arguments(capsys):
    assert cli.main(ILLEGAL_REQUEST.split()) == 0
    out = capsys.readouterr().out
    assert out.startswith(" Fixed format, current;  Sense key: Illegal Request\n")
    assert "Error in Data parameters: byte 3" in out


def test_main_nospace(capsys):
    assert cli.main(["--nospace", ILLEGAL_REQUEST.replace(" ", "")]) == 0
    assert "Illegal Request" in capsys.readouterr().out


def test_main_raw_dump(capsys):
    assert cli.main(["--raw"] + ILLEGAL_REQUEST.split()) == 0
    assert "Raw sense data (in hex)" in capsys.readouterr().out


def test_main_reads_hex_file(tmp_path: Path, capsys):
    path = tmp_path / "sense.txt"
    path.write_text("# captured sense\n" + ILLEGAL_REQUEST + "\n", encoding="utf-8")
    assert cli.main(["-f", str(path)]) == 0
    assert "Illegal Request" in capsys.readouterr().out


def test_main_reads_binary_file(tmp_path: Path, capsys):
    path = tmp_path / "sense.bin"
    path.write_bytes(bytes.fromhex(ILLEGAL_REQUEST.replace(" ", "")))
    assert cli.main(["-b", str(path)]) == 0
    assert "Illegal Request" in capsys.readouterr().out


def test_main_vpd_page(capsys):
    assert cli.main(["--vpd"] + NAA5_PAGE.split()) == 0
    out = capsys.readouterr().out
    assert out.startswith("Device Identification VPD page (disk):\n")
    assert "IEEE Company_id: 0x333333" in out


def test_main_bad_input(capsys):
    assert cli.main(["70", "zz"]) == 1
    assert "Error reading input" in capsys.readouterr().err


def test_main_missing_file(tmp_path: Path, capsys):
    assert cli.main(["-f", str(tmp_path / "absent.txt")]) == 1
    assert "Error reading input" in capsys.readouterr().err


def test_main_no_bytes(capsys):
    assert cli.main([]) == 1
    assert "No bytes to decode." in capsys.readouterr().err


def test_main_rejects_file_with_hex_arguments(tmp_path: Path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-f", str(tmp_path / "x.txt"), "70"])
    assert excinfo.value.code == 2


def test_main_help(capsys, monkeypatch):
    monkeypatch.setenv("SCSI_TOOL_VERSION", "1.2.3")
    assert cli.main(["-h"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("SCSI-DECODE(1)")
    assert out.rstrip().endswith("v1.2.3")


def test_main_version(capsys, monkeypatch):
    monkeypatch.setenv("SCSI_TOOL_VERSION", "1.2.3")
    assert cli.main(["-V"]) == 0
    assert capsys.readouterr().out.strip() == "1.2.3"


def test_error_log_path_override(monkeypatch, tmp_path: Path):
    target = tmp_path / "custom.log"
    monkeypatch.setenv("SCSI_TOOL_ERROR_LOG", str(target))
    assert cli._error_log_path() == target


def test_error_log_path_uses_temp(monkeypatch, tmp_path: Path):
    monkeypatch.delenv("SCSI_TOOL_ERROR_LOG", raising=False)
    monkeypatch.setenv("TEMP", str(tmp_path))
    assert cli._error_log_path() == tmp_path / "scsi_tool_error.log"


def test_run_writes_error_log(monkeypatch, tmp_path: Path, capsys):
    log_path = tmp_path / "err.log"
    monkeypatch.setenv("SCSI_TOOL_ERROR_LOG", str(log_path))

    def boom():
        raise RuntimeError("decoder exploded")

    monkeypatch.setattr(cli, "main", boom)
    with pytest.raises(SystemExit) as excinfo:
        cli.run()
    assert excinfo.value.code == 1
    logged = log_path.read_text(encoding="utf-8")
    assert "scsi-decode error" in logged
    assert "RuntimeError: decoder exploded" in logged
    assert f"Full traceback saved to: {log_path}" in capsys.readouterr().err


def test_run_passes_exit_code(monkeypatch):
    monkeypatch.setattr(cli, "main", lambda: 0)
    with pytest.raises(SystemExit) as excinfo:
        cli.run()
    assert excinfo.value.code == 0
