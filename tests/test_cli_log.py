import io
from datetime import datetime

import pytest

from schemashift.cli_log import CliLog


def test_plain_message_gets_newline():
    stream = io.StringIO()
    log = CliLog(False, stream)
    log.log("hello")
    assert stream.getvalue() == "hello\n"


def test_newline_not_doubled():
    stream = io.StringIO()
    log = CliLog(False, stream)
    log.log("hello\n")
    log.log("world")
    assert stream.getvalue() == "hello\nworld\n"


def test_verbose_prefixes_timestamp():
    stream = io.StringIO()
    log = CliLog(True, stream)
    log.log("hello")
    output = stream.getvalue()
    suffix = " hello\n"
    assert output.endswith(suffix)
    prefix = output[: -len(suffix)]
    assert len(prefix) == 19
    parsed = datetime.strptime(prefix, "%Y/%m/%d %H:%M:%S")
    assert parsed.year >= 2000


def test_verbose_flag_reported():
    assert CliLog(True, io.StringIO()).verbose() is True
    assert CliLog(False, io.StringIO()).verbose() is False


def test_default_stream_is_stderr(capsys):
    CliLog().log("to stderr")
    captured = capsys.readouterr()
    assert captured.err == "to stderr\n"
    assert captured.out == ""


def test_fatal_logs_and_exits():
    stream = io.StringIO()
    log = CliLog(False, stream)
    with pytest.raises(SystemExit) as info:
        log.fatal("boom")
    assert info.value.code == 1
    assert stream.getvalue() == "boom\n"