import io
import threading
import time

import pytest

from slimlog.levels import Level
from slimlog.syslog import syslog_level_writer
from slimlog.writers import (
    FilteredLevelWriter,
    LevelWriterAdapter,
    MultiLevelWriter,
    ShortWriteError,
    SyncWriter,
    TestingLogWriter,
    TriggerLevelWriter,
    as_level_writer,
)


class RecordingSyslog:
    def __init__(self):
        self.events = []

    def write(self, data):
        return 0

    def debug(self, m):
        self.events.append(("Debug", m))

    def info(self, m):
        self.events.append(("Info", m))

    def warning(self, m):
        self.events.append(("Warning", m))

    def err(self, m):
        self.events.append(("Err", m))

    def emerg(self, m):
        self.events.append(("Emerg", m))

    def crit(self, m):
        self.events.append(("Crit", m))


class CountingWriter:
    def __init__(self, fail, calls):
        self.fail = fail
        self.calls = calls

    def write(self, data):
        self.calls.append(self)
        if self.fail:
            raise OSError("Expected error")
        return len(data)


def test_multi_syslog_writer():
    sw = RecordingSyslog()
    writer = MultiLevelWriter(syslog_level_writer(sw))
    writer.write_level(Level.DEBUG, b'{"level":"debug","message":"debug"}\n')
    writer.write_level(Level.INFO, b'{"level":"info","message":"info"}\n')
    writer.write_level(Level.WARN, b'{"level":"warn","message":"warn"}\n')
    writer.write_level(Level.ERROR, b'{"level":"error","message":"error"}\n')
    writer.write_level(Level.NO_LEVEL, b'{"message":"nolevel"}\n')
    assert sw.events == [
        ("Debug", '{"level":"debug","message":"debug"}\n'),
        ("Info", '{"level":"info","message":"info"}\n'),
        ("Warning", '{"level":"warn","message":"warn"}\n'),
        ("Err", '{"level":"error","message":"error"}\n'),
        ("Info", '{"message":"nolevel"}\n'),
    ]


@pytest.mark.parametrize(
    "fails, raises",
    [
        ((False, False), False),
        ((True, True), True),
        ((True, False), True),
        ((False, True), True),
    ],
    ids=["all-valid", "all-invalid", "first-invalid", "first-valid"],
)
def test_resilient_multi_writer_calls_every_writer(fails, raises):
    calls = []
    writers = [CountingWriter(fail, calls) for fail in fails]
    multi = MultiLevelWriter(*writers)
    data = b'{"level":"info","message":"Test msg"}\n'
    if raises:
        with pytest.raises(OSError, match="Expected error"):
            multi.write_level(Level.INFO, data)
    else:
        assert multi.write_level(Level.INFO, data) == len(data)
    assert len(calls) == len(writers)


def test_multi_writer_writes_to_all():
    first, second = io.BytesIO(), io.BytesIO()
    multi = MultiLevelWriter(first, second)
    assert multi.write(b"line\n") == 5
    assert first.getvalue() == b"line\n"
    assert second.getvalue() == b"line\n"


def test_multi_writer_short_write():
    class Short:
        def write(self, data):
            return 1

    with pytest.raises(ShortWriteError):
        MultiLevelWriter(Short()).write(b"abc")


def test_multi_writer_close_stops_at_first_error():
    closed = []

    class Closer:
        def __init__(self, name, fail):
            self.name = name
            self.fail = fail

        def write(self, data):
            return len(data)

        def close(self):
            closed.append(self.name)
            if self.fail:
                raise OSError("close failed")

    multi = MultiLevelWriter(Closer("a", False), Closer("b", True), Closer("c", False))
    with pytest.raises(OSError, match="close failed"):
        multi.close()
    assert closed == ["a", "b"]


@pytest.mark.parametrize(
    "written, wanted",
    [(b"newline\n", "newline"), (b"oneline", "oneline"), (b"twoline\n\n", "twoline")],
)
def test_testing_log_writer(written, wanted):
    lines = []
    writer = TestingLogWriter(lines.append)
    assert writer.write(written) == len(written)
    assert lines == [wanted]


def _write_through_helper(writer, data):
    return writer.write(data)


def test_testing_log_writer_frame_prefix():
    lines = []
    writer = TestingLogWriter(lines.append, frame=1)
    _write_through_helper(writer, b"hello\n")
    assert len(lines) == 1
    assert lines[0].startswith("test_writers.py:")
    assert lines[0].endswith(": hello")


def test_filtered_level_writer():
    buf = io.BytesIO()
    writer = FilteredLevelWriter(LevelWriterAdapter(buf), Level.INFO)
    assert writer.write_level(Level.DEBUG, b"no") == 2
    assert writer.write_level(Level.INFO, b"yes") == 3
    assert buf.getvalue() == b"yes"


@pytest.mark.parametrize(
    "writes, want, everything",
    [
        (
            [(Level.DEBUG, b"no\n"), (Level.INFO, b"yes\n")],
            b"yes\n",
            b"yes\nno\n",
        ),
        (
            [
                (Level.DEBUG, b"yes1\n"),
                (Level.INFO, b"yes2\n"),
                (Level.ERROR, b"yes3\n"),
                (Level.DEBUG, b"yes4\n"),
            ],
            b"yes2\nyes1\nyes3\nyes4\n",
            b"yes2\nyes1\nyes3\nyes4\n",
        ),
    ],
)
def test_trigger_level_writer(writes, want, everything):
    buf = io.BytesIO()
    writer = TriggerLevelWriter(
        LevelWriterAdapter(buf),
        conditional_level=Level.DEBUG,
        trigger_level=Level.ERROR,
    )
    try:
        for level, line in writes:
            assert writer.write_level(level, line) == len(line)
        assert buf.getvalue() == want
        writer.trigger()
        assert buf.getvalue() == everything
    finally:
        writer.close()


def test_trigger_level_writer_close_drops_buffer():
    buf = io.BytesIO()
    writer = TriggerLevelWriter(buf)
    writer.write_level(Level.DEBUG, b"held\n")
    writer.close()
    writer.trigger()
    assert buf.getvalue() == b""
    assert writer.triggered is True


def test_adapter_text_stream():
    stream = io.StringIO()
    adapter = LevelWriterAdapter(stream)
    assert adapter.write_level(Level.INFO, b"caf\xc3\xa9\n") == 6
    assert stream.getvalue() == "café\n"


def test_adapter_close_delegates():
    buf = io.BytesIO()
    LevelWriterAdapter(buf).close()
    assert buf.closed


def test_as_level_writer():
    sw = RecordingSyslog()
    level_writer = syslog_level_writer(sw)
    assert as_level_writer(level_writer) is level_writer
    buf = io.BytesIO()
    adapted = as_level_writer(buf)
    assert isinstance(adapted, LevelWriterAdapter)
    assert adapted.writer is buf
    assert as_level_writer(None).write(b"dropped") == 7


def test_sync_writer_serialises_calls():
    overlaps = []
    lines = []
    results = []
    results_lock = threading.Lock()

    class Unsafe:
        active = False

        def write(self, data):
            if self.active:
                overlaps.append(data)
            self.active = True
            time.sleep(0)
            lines.append(data)
            self.active = False
            return len(data)

    writer = SyncWriter(Unsafe())

    def worker(index):
        for _ in range(50):
            written = writer.write_level(Level.INFO, f"{index}\n".encode())
            with results_lock:
                results.append(written)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    final = writer.write(b"end\n")
    assert final == 4
    assert lines[-1] == b"end\n"
    assert overlaps == []
    assert len(lines) == 201
    assert sorted(lines[:-1]) == sorted(f"{i}\n".encode() for i in range(4) for _ in range(50))
    assert results == [2] * 200


def test_sync_writer_passes_level_and_closes():
    received = []
    closed = []

    class Target:
        def write(self, data):
            return len(data)

        def write_level(self, level, data):
            received.append((level, data))
            return len(data)

        def close(self):
            closed.append(True)

    writer = SyncWriter(Target())
    assert writer.write_level(Level.WARN, b"x") == 1
    writer.close()
    assert received == [(Level.WARN, b"x")]
    assert closed == [True]