from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Optional

from cloudlog.cloudlog_exceptions import BackendUnavailableError
from cloudlog.log_entry import LogEntry
from cloudlog.remote.remote_backend import RemoteBackend, RemoteClient

BACKEND_NAME = "gcloud"


def _default_client_factory(project_id: str) -> Any:
    # Imported lazily so the package loads without credentials being probed.
    from google.cloud import logging as gcloud_logging

    return gcloud_logging.Client(project=project_id)


class GCloudClient(RemoteClient):
    """
    Google Cloud Logging client bound to a single log name.

    log_struct is a synchronous API call; a write the service rejects
    is counted in `failed` and reported through the diagnostic logger,
    never raised to the caller.
    """

    def __init__(
        self,
        client: Any,
        logger: Any,
        *,
        diagnostics: Optional[Callable[[str], None]] = None,
    ):
        self._client = client
        self._logger = logger
        self._log = diagnostics or (lambda s: None)
        self._failed = 0
        self._failed_lock = threading.Lock()

    @property
    def failed(self) -> int:
        with self._failed_lock:
            return self._failed

    def submit(self, entry: LogEntry) -> None:
        try:
            self._logger.log_struct(dict(entry.payload), severity=str(entry.severity))
        except Exception as e:
            with self._failed_lock:
                self._failed += 1
            self._log(f"[GCloudClient] {getattr(self._logger, 'name', '?')}: write failed ({e!r})")

    def release(self) -> None:
        self._client.close()


class GCloudBackend(RemoteBackend):
    """
    Remote backend writing structured entries to Google Cloud Logging.

    identity is the GCP project id. Credentials are discovered by the
    google-cloud-logging library itself (ADC, env vars, metadata server).
    """

    def __init__(
        self,
        client_factory: Optional[Callable[[str], Any]] = None,
        *,
        logger: Optional[Callable[[str], None]] = None,
    ):
        self._client_factory = client_factory or _default_client_factory
        self._log = logger or (lambda s: None)

    def acquire_client(
        self,
        identity: str,
        stream_name: str,
        common_labels: Mapping[str, str],
    ) -> GCloudClient:
        if not identity:
            raise BackendUnavailableError(BACKEND_NAME, "project id is empty")
        if not stream_name:
            raise BackendUnavailableError(BACKEND_NAME, "log stream name is empty")

        try:
            client = self._client_factory(identity)
            logger = client.logger(stream_name, labels=dict(common_labels))
        except Exception as e:
            raise BackendUnavailableError(
                BACKEND_NAME, f"cannot create client for project '{identity}'", details=repr(e)
            ) from e

        return GCloudClient(client, logger, diagnostics=self._log)
