from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from cloudlog.log_entry import LogEntry


class RemoteClient(ABC):
    @abstractmethod
    def submit(self, entry: LogEntry) -> None:
        """
        Hand one entry to the remote backend.

        Fire-and-forget: the caller does not wait for delivery and
        does not see delivery failures.
        """
        raise NotImplementedError

    @abstractmethod
    def release(self) -> None:
        """
        Flush what the client can and free its resources.
        Raises if the backend reports a shutdown failure.
        """
        raise NotImplementedError


class RemoteBackend(ABC):
    @abstractmethod
    def acquire_client(
        self,
        identity: str,
        stream_name: str,
        common_labels: Mapping[str, str],
    ) -> RemoteClient:
        """
        Connect to the backend and return a client bound to one log stream.

        common_labels are attached by the backend to every entry of the
        stream. Raises BackendUnavailableError when no client can be had.
        """
        raise NotImplementedError
