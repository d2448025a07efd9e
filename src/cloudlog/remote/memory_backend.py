from __future__ import annotations

import threading
from typing import Mapping, Optional

from cloudlog.cloudlog_exceptions import BackendUnavailableError
from cloudlog.log_entry import LogEntry
from cloudlog.remote.remote_backend import RemoteBackend, RemoteClient

BACKEND_NAME = "memory"


class InMemoryClient(RemoteClient):
    """
    Client that keeps submitted entries in a list.
    """

    def __init__(
        self,
        identity: str,
        stream_name: str,
        common_labels: Mapping[str, str],
        release_error: Optional[Exception] = None,
    ):
        self.identity = identity
        self.stream_name = stream_name
        self.common_labels = dict(common_labels)
        self.entries: list[LogEntry] = []
        self.release_calls = 0
        self._release_error = release_error
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self.release_calls > 0

    def submit(self, entry: LogEntry) -> None:
        with self._lock:
            self.entries.append(entry)

    def release(self) -> None:
        self.release_calls += 1
        if self._release_error is not None:
            raise self._release_error


class InMemoryBackend(RemoteBackend):
    """
    Lightweight deterministic backend used for development and tests.
    This lets you exercise routing without any real logging service.
    """

    def __init__(
        self,
        *,
        fail_with: Optional[str] = None,
        release_error: Optional[Exception] = None,
    ):
        self._fail_with = fail_with
        self._release_error = release_error
        self.clients: list[InMemoryClient] = []

    def acquire_client(
        self,
        identity: str,
        stream_name: str,
        common_labels: Mapping[str, str],
    ) -> InMemoryClient:
        if self._fail_with is not None:
            raise BackendUnavailableError(BACKEND_NAME, self._fail_with)
        client = InMemoryClient(identity, stream_name, common_labels, self._release_error)
        self.clients.append(client)
        return client
