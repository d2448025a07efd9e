import itertools

import pytest
import zmq

from cloudlog.cloudlog_exceptions import BackendUnavailableError
from cloudlog.execution_context import SystemContext
from cloudlog.log_entry import LogEntry
from cloudlog.log_severity import Severity
from cloudlog.logger import new_logger
from cloudlog.remote.zmq_backend import LogCollector, ZmqBackend, decode_entry, encode_entry

_ids = itertools.count()


@pytest.fixture
def endpoint() -> str:
    return f"inproc://cloudlog-test-{next(_ids)}"


@pytest.fixture
def collector(endpoint: str):
    c = LogCollector(endpoint, zmq.Context.instance())
    yield c
    c.close()


class RecordingSink:
    def __init__(self):
        self.lines = []

    def write(self, line: str) -> None:
        self.lines.append(line)


def test_encode_decode_entry() -> None:
    raw = encode_entry("svc", {"env": "test"}, LogEntry(Severity.ERROR, {"msg": "boom", "k": "v"}))
    item = decode_entry(raw)
    assert item.stream == "svc"
    assert item.labels == {"env": "test"}
    assert item.entry == LogEntry(Severity.ERROR, {"msg": "boom", "k": "v"})
    assert item.timestamp > 0


def test_decode_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        decode_entry(b"not json")
    with pytest.raises(ValueError):
        decode_entry(b'{"stream": "svc"}')
    with pytest.raises(ValueError):
        decode_entry(b"[1, 2]")
    with pytest.raises(ValueError):
        decode_entry(b"5")
    with pytest.raises(ValueError):
        decode_entry(b'{"severity": "INFO", "payload": [1]}')


def test_empty_endpoint_is_unavailable() -> None:
    with pytest.raises(BackendUnavailableError):
        ZmqBackend().acquire_client("", "svc", {})


def test_malformed_endpoint_is_unavailable() -> None:
    with pytest.raises(BackendUnavailableError):
        ZmqBackend().acquire_client("not-an-endpoint", "svc", {})


def test_logger_ships_entries_to_collector(endpoint: str, collector: LogCollector) -> None:
    sink = RecordingSink()
    log = new_logger(
        SystemContext.background(), endpoint, "svc", sink, {"env": "test"},
        backend=ZmqBackend(zmq.Context.instance()),
    )

    log.info("started", "port", "8080")
    log.error("boom", {"k": "v"})

    items = collector.drain(2)
    log.close()

    assert sink.lines == []
    assert [i.entry.severity for i in items] == [Severity.INFO, Severity.ERROR]
    assert items[0].entry.payload == {"msg": "started", "port": "8080"}
    assert items[1].entry.payload == {"msg": "boom", "k": "v"}
    assert all(i.stream == "svc" and i.labels == {"env": "test"} for i in items)


def test_entries_arrive_in_submission_order(endpoint: str, collector: LogCollector) -> None:
    client = ZmqBackend(zmq.Context.instance()).acquire_client(endpoint, "svc", {})
    for n in range(20):
        client.submit(LogEntry(Severity.DEBUG, {"msg": str(n)}))

    items = collector.drain(20)
    client.release()

    assert [i.entry.payload["msg"] for i in items] == [str(n) for n in range(20)]
    assert client.dropped == 0


def test_submit_after_release_is_dropped(endpoint: str, collector: LogCollector) -> None:
    messages = []
    client = ZmqBackend(zmq.Context.instance(), logger=messages.append).acquire_client(endpoint, "svc", {})
    client.release()

    client.submit(LogEntry(Severity.INFO, {"msg": "late"}))

    assert client.dropped == 1
    assert any("dropped" in m for m in messages)


def test_collector_skips_non_object_records(endpoint: str, collector: LogCollector) -> None:
    push = zmq.Context.instance().socket(zmq.PUSH)
    push.setsockopt(zmq.LINGER, 0)
    push.connect(endpoint)
    try:
        push.send(b"[1, 2]")
        push.send(encode_entry("svc", {}, LogEntry(Severity.INFO, {"msg": "ok"})))
        items = collector.drain(1)
    finally:
        push.close()

    assert [i.entry.payload for i in items] == [{"msg": "ok"}]
