import dataclasses

import pytest

from scsi_tool.config import DEFAULT_MAX_DEPTH, DecodeOptions


def test_defaults():
    options = DecodeOptions()
    assert options.max_depth == DEFAULT_MAX_DEPTH == 4
    assert options.capacity is None
    assert options.bytes_per_line == 16
    assert options.long_out and not options.raw


def test_from_env_reads_overrides():
    env = {
        "SCSI_TOOL_MAX_DEPTH": "2",
        "SCSI_TOOL_CAPACITY": "0x100",
        "SCSI_TOOL_BYTES_PER_LINE": "8",
        "SCSI_TOOL_VERBOSE": "1",
    }
    options = DecodeOptions.from_env(env)
    assert (options.max_depth, options.capacity, options.bytes_per_line, options.verbose) == (2, 256, 8, 1)


def test_from_env_ignores_bad_values():
    env = {"SCSI_TOOL_MAX_DEPTH": "deep", "SCSI_TOOL_BYTES_PER_LINE": "0", "SCSI_TOOL_CAPACITY": "-5"}
    assert DecodeOptions.from_env(env) == DecodeOptions()


def test_keyword_overrides_beat_environment():
    options = DecodeOptions.from_env({"SCSI_TOOL_MAX_DEPTH": "2"}, max_depth=7, raw=True)
    assert options.max_depth == 7
    assert options.raw


def test_from_env_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("SCSI_TOOL_CAPACITY", "64")
    assert DecodeOptions.from_env().capacity == 64


def test_options_are_frozen():
    options = DecodeOptions()
    with pytest.raises(dataclasses.FrozenInstanceError):
        options.max_depth = 1
    assert options.with_changes(max_depth=1).max_depth == 1
    assert options.max_depth == 4
