import io

import pytest

from scsi_tool.writer import BoundedWriter


def test_unbounded_writer_keeps_everything():
    """Without a capacity every character is stored."""
    w = BoundedWriter()
    assert w.write("abc") == 3
    assert w.printf("%d-%s", 7, "x") == 3
    assert w.getvalue() == "abc7-x"
    assert w.remaining is None
    assert not w.full


def test_capacity_truncates_and_reports_stored_count():
    """write() reports only what fit and the sink never grows past capacity."""
    w = BoundedWriter(5)
    assert w.write("abc") == 3
    assert w.write("defgh") == 2
    assert w.write("more") == 0
    assert w.getvalue() == "abcde"
    assert len(w) == 5
    assert w.full
    assert w.total_requested == 12


def test_zero_capacity_stores_nothing():
    w = BoundedWriter(0)
    assert w.write("x") == 0
    assert w.full
    assert str(w) == ""


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        BoundedWriter(-1)


def test_stream_mirrors_stored_text_only():
    """The mirror stream sees the same (truncated) text as the sink."""
    stream = io.StringIO()
    w = BoundedWriter(4, stream=stream)
    w.write("hello")
    assert stream.getvalue() == "hell"
