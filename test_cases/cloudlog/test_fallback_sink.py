import io
import queue

from cloudlog.fallback_sink import FileLineSink, QueueLineSink, StreamLineSink


def test_stream_sink_defaults_to_stderr(capsys) -> None:
    StreamLineSink().write("INFO      : {msg:x}")
    assert capsys.readouterr().err == "INFO      : {msg:x}\n"


def test_stream_sink_swallows_closed_stream() -> None:
    buf = io.StringIO()
    buf.close()
    StreamLineSink(buf).write("lost")


def test_file_sink_creates_parent_and_appends(tmp_path) -> None:
    path = tmp_path / "nested" / "dir" / "fallback.log"
    sink = FileLineSink(str(path), prefix="fallback-test ")
    sink.write("one")
    sink.close()

    sink = FileLineSink(str(path))
    sink.write("two")
    sink.close()

    assert sink.path == path
    assert path.read_text(encoding="utf-8") == "fallback-test one\ntwo\n"


def test_file_sink_write_after_close_does_not_raise(tmp_path) -> None:
    sink = FileLineSink(str(tmp_path / "f.log"))
    sink.close()
    sink.write("ignored")
    sink.close()


def test_queue_sink_drops_when_full() -> None:
    q: queue.Queue = queue.Queue(maxsize=1)
    sink = QueueLineSink(q)
    sink.write("first")
    sink.write("second")
    assert q.get_nowait() == "first"
    assert q.empty()
