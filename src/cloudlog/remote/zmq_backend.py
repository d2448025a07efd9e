# zmq_backend.py
from __future__ import annotations

import json
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

import zmq

from cloudlog.cloudlog_exceptions import BackendUnavailableError
from cloudlog.log_entry import LogEntry
from cloudlog.log_severity import Severity
from cloudlog.remote.remote_backend import RemoteBackend, RemoteClient

BACKEND_NAME = "zmq"


def encode_entry(stream_name: str, labels: Mapping[str, str], entry: LogEntry) -> bytes:
    record = {
        "stream": stream_name,
        "labels": dict(labels),
        "severity": str(entry.severity),
        "payload": dict(entry.payload),
        "timestamp": time.time(),
    }
    return json.dumps(record, ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class CollectedEntry:
    """An entry as seen by the collector, with the stream metadata it travelled with."""

    stream: str
    entry: LogEntry
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: float = 0.0


def decode_entry(raw: bytes) -> CollectedEntry:
    """
    Decode one collector message.

    Raises ValueError if the message is not a valid entry record.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except Exception as e:
        raise ValueError(f"Invalid entry record (not JSON): {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Invalid entry record (not an object): {type(data).__name__}")

    try:
        severity = Severity.parse(data["severity"])
        payload = {str(k): str(v) for k, v in data["payload"].items()}
    except (KeyError, AttributeError) as e:
        raise ValueError(f"Entry record missing field: {e}")

    return CollectedEntry(
        stream=str(data.get("stream", "")),
        entry=LogEntry(severity=severity, payload=payload),
        labels={str(k): str(v) for k, v in (data.get("labels") or {}).items()},
        timestamp=float(data.get("timestamp", 0.0)),
    )


class ZmqClient(RemoteClient):
    """
    ZmqClient: queue + sender thread in front of a PUSH socket.

    Thread ownership model:
      - the socket is created and connected by the backend, then handed
        to the sender thread, which is its only user from then on
      - submit() only enqueues, so it never blocks and is safe to call
        from any thread

    Entries that cannot be queued or sent without blocking are dropped
    and counted; they are reported through the diagnostic logger only.
    """

    def __init__(
        self,
        sock: Any,
        stream_name: str,
        common_labels: Mapping[str, str],
        *,
        max_pending: int = 1000,
        poll_timeout: float = 0.05,
        join_timeout: float = 2.0,
        logger: Optional[Callable[[str], None]] = None,
    ):
        self._sock = sock
        self._stream = stream_name
        self._labels = dict(common_labels)
        self._poll_timeout = poll_timeout
        self._join_timeout = join_timeout
        self._log = logger or (lambda s: None)

        self._send_q: "queue.Queue[bytes]" = queue.Queue(maxsize=max_pending)
        self._stop_evt = threading.Event()
        self._dropped = 0
        self._dropped_lock = threading.Lock()

        self._thread = threading.Thread(
            target=self._run, name=f"ZmqClient[{stream_name}]", daemon=True
        )
        self._thread.start()

    @property
    def dropped(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def submit(self, entry: LogEntry) -> None:
        if self._stop_evt.is_set():
            self._drop("client released")
            return
        try:
            self._send_q.put_nowait(encode_entry(self._stream, self._labels, entry))
        except queue.Full:
            self._drop("send queue full")

    def release(self) -> None:
        self._stop_evt.set()
        self._thread.join(timeout=self._join_timeout)
        if self._thread.is_alive():
            raise TimeoutError(
                f"sender thread for stream '{self._stream}' did not stop within {self._join_timeout}s"
            )

    # --------------------------
    # Sender thread internals
    # --------------------------

    def _drop(self, reason: str) -> None:
        with self._dropped_lock:
            self._dropped += 1
        self._log(f"[ZmqClient] {self._stream}: entry dropped ({reason})")

    def _run(self) -> None:
        try:
            # Drain what is already queued before honouring a stop request.
            while not (self._stop_evt.is_set() and self._send_q.empty()):
                try:
                    raw = self._send_q.get(timeout=self._poll_timeout)
                except queue.Empty:
                    continue
                try:
                    self._sock.send(raw, flags=zmq.NOBLOCK)
                except zmq.Again:
                    self._drop("socket would block")
        except Exception as e:
            self._log(f"[ZmqClient ERROR] {self._stream}: {e!r}")
        finally:
            self._sock.close()


class ZmqBackend(RemoteBackend):
    """
    Remote backend shipping entries as JSON to a LogCollector over PUSH/PULL.

    identity is the collector endpoint, e.g. "tcp://logs.internal:5570".
    """

    def __init__(
        self,
        context: Optional[zmq.Context] = None,
        *,
        linger_ms: int = 1000,
        max_pending: int = 1000,
        logger: Optional[Callable[[str], None]] = None,
    ):
        self._ctx = context
        self._linger_ms = linger_ms
        self._max_pending = max_pending
        self._log = logger or (lambda s: None)

    def acquire_client(
        self,
        identity: str,
        stream_name: str,
        common_labels: Mapping[str, str],
    ) -> ZmqClient:
        if not identity:
            raise BackendUnavailableError(BACKEND_NAME, "collector endpoint is empty")

        ctx = self._ctx or zmq.Context.instance()
        sock = ctx.socket(zmq.PUSH)
        try:
            sock.setsockopt(zmq.LINGER, self._linger_ms)
            sock.setsockopt(zmq.SNDHWM, self._max_pending)
            sock.connect(identity)
        except zmq.ZMQError as e:
            sock.close(linger=0)
            raise BackendUnavailableError(
                BACKEND_NAME, f"cannot connect to '{identity}'", details=str(e)
            ) from e

        self._log(f"[ZmqBackend] stream '{stream_name}' connected to {identity}")
        return ZmqClient(
            sock,
            stream_name,
            common_labels,
            max_pending=self._max_pending,
            logger=self._log,
        )


class LogCollector:
    """
    Receiving end of ZmqBackend: a PULL socket bound to an endpoint.

    The collector does not run a thread of its own; callers poll it.
    """

    def __init__(
        self,
        endpoint: str,
        context: Optional[zmq.Context] = None,
        *,
        logger: Optional[Callable[[str], None]] = None,
    ):
        self.endpoint = endpoint
        self._log = logger or (lambda s: None)
        self._ctx = context or zmq.Context.instance()
        self._sock = self._ctx.socket(zmq.PULL)
        self._sock.setsockopt(zmq.LINGER, 0)
        self._sock.bind(endpoint)
        self._poller = zmq.Poller()
        self._poller.register(self._sock, zmq.POLLIN)
        self._log(f"[LogCollector] bound to {endpoint}")

    def poll_once(self, timeout_ms: int = 100) -> Optional[CollectedEntry]:
        """Wait up to timeout_ms for one entry; None if nothing usable arrived."""
        events = dict(self._poller.poll(timeout_ms))
        if self._sock not in events:
            return None
        raw = self._sock.recv()
        try:
            return decode_entry(raw)
        except ValueError as e:
            self._log(f"[LogCollector] discarding record: {e}")
            return None

    def drain(self, expected: int, timeout_ms: int = 2000) -> list[CollectedEntry]:
        """Collect up to `expected` entries, giving up once timeout_ms has elapsed."""
        items: list[CollectedEntry] = []
        deadline = time.monotonic() + timeout_ms / 1000.0
        while len(items) < expected:
            remaining = int((deadline - time.monotonic()) * 1000)
            if remaining <= 0:
                break
            item = self.poll_once(remaining)
            if item is not None:
                items.append(item)
        return items

    def close(self) -> None:
        self._sock.close()
