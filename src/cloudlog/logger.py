from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from cloudlog.cloudlog_exceptions import BackendUnavailableError
from cloudlog.execution_context import CancellationToken, SystemContext, is_done
from cloudlog.fallback_sink import FallbackSink
from cloudlog.log_entry import LogEntry
from cloudlog.log_severity import Severity
from cloudlog.payload import Fields, build_payload, format_payload, normalize_fields
from cloudlog.remote.remote_backend import RemoteBackend, RemoteClient


@dataclass(frozen=True)
class Absent:
    """No remote client: every entry goes to the fallback sink."""


@dataclass(frozen=True)
class Live:
    client: RemoteClient


RemoteHandle = Union[Absent, Live]

ABSENT = Absent()


def fallback_line(severity: Severity, payload: Mapping[str, str]) -> str:
    """Format one entry for the fallback sink: severity padded to 10, then the payload."""
    return f"{str(severity):<10}: {format_payload(payload)}"


def degraded_warning(backend_name: str, stream_name: str, error: Exception) -> str:
    """The single line written to the fallback sink when no remote client could be had."""
    return (
        f"WARN: Failed to initialize remote logging backend {backend_name} "
        f"for stream '{stream_name}': {error}; using fallback only"
    )


def _merge_fields(fields: tuple, kw_fields: Mapping[str, Any]) -> dict[str, str]:
    # One positional mapping or sequence is taken as-is; several
    # positionals are a flat key/value list.
    shape: Fields
    if len(fields) == 1 and not isinstance(fields[0], str):
        shape = fields[0]
    else:
        shape = fields
    merged = normalize_fields(shape)
    merged.update({str(k): str(v) for k, v in kw_fields.items()})
    return merged


class Logger:
    """
    Convenience façade routing each entry to exactly one sink.

    An entry goes to the remote client when one was acquired and the
    owning context is not done; otherwise it is written as one line to
    the fallback sink. The context is polled on every call, so a Logger
    switches to the fallback as soon as its context is cancelled.
    """

    def __init__(
        self,
        context: Optional[CancellationToken],
        remote: RemoteHandle,
        fallback: FallbackSink,
        *,
        stream_name: str = "",
    ):
        if fallback is None:
            raise ValueError("fallback sink is required")
        self._context = context
        self._remote = remote
        self._fallback = fallback
        self._stream_name = stream_name
        self._close_lock = threading.Lock()

    @property
    def context(self) -> Optional[CancellationToken]:
        return self._context

    @property
    def fallback(self) -> FallbackSink:
        return self._fallback

    @property
    def stream_name(self) -> str:
        return self._stream_name

    @property
    def remote(self) -> RemoteHandle:
        return self._remote

    @property
    def degraded(self) -> bool:
        return isinstance(self._remote, Absent)

    def log(self, severity: Severity, message: str, fields: Fields = None) -> None:
        """
        Build the payload and hand it to exactly one sink.

        Never raises for remote-side failures; those belong to the
        remote client.
        """
        payload = build_payload(message, fields)
        remote = self._remote

        if isinstance(remote, Live) and not is_done(self._context):
            remote.client.submit(LogEntry(severity=severity, payload=payload))
        else:
            self._fallback.write(fallback_line(severity, payload))

    def error(self, message: str, /, *fields: Any, **kw_fields: Any) -> None:
        self.log(Severity.ERROR, message, _merge_fields(fields, kw_fields))

    def warn(self, message: str, /, *fields: Any, **kw_fields: Any) -> None:
        self.log(Severity.WARNING, message, _merge_fields(fields, kw_fields))

    warning = warn

    def info(self, message: str, /, *fields: Any, **kw_fields: Any) -> None:
        self.log(Severity.INFO, message, _merge_fields(fields, kw_fields))

    def debug(self, message: str, /, *fields: Any, **kw_fields: Any) -> None:
        self.log(Severity.DEBUG, message, _merge_fields(fields, kw_fields))

    def close(self) -> None:
        """
        Release the remote client, if any.

        The handle is dropped before release so later calls fall back
        and a second close() is a no-op, even when two threads close
        at once. A release failure is raised to the caller unchanged.
        """
        with self._close_lock:
            remote = self._remote
            if isinstance(remote, Absent):
                return
            self._remote = ABSENT
        remote.client.release()

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def new_logger(
    context: Optional[CancellationToken],
    backend_identity: str,
    stream_name: str,
    fallback: FallbackSink,
    common_labels: Fields = None,
    *,
    backend: Optional[RemoteBackend] = None,
    strict: bool = False,
) -> Logger:
    """
    Acquire a remote client and wrap it in a Logger.

    If acquisition fails the Logger is still returned, permanently on
    the fallback sink, and one warning line describing the failure is
    written to the fallback. With strict=True the failure is raised as
    BackendUnavailableError instead.

    common_labels may be a mapping or a flat key/value sequence; they
    are given to the remote backend only and never reach the fallback.
    """
    if fallback is None:
        raise ValueError("fallback sink is required")
    if context is None:
        context = SystemContext.background()
    if backend is None:
        from cloudlog.remote.gcloud_backend import GCloudBackend

        backend = GCloudBackend()

    labels = normalize_fields(common_labels)

    try:
        client = backend.acquire_client(backend_identity, stream_name, labels)
    except Exception as e:
        if strict:
            if isinstance(e, BackendUnavailableError):
                raise
            raise BackendUnavailableError(
                type(backend).__name__, f"cannot acquire client: {e}", details=repr(e)
            ) from e
        fallback.write(degraded_warning(type(backend).__name__, stream_name, e))
        return Logger(context, ABSENT, fallback, stream_name=stream_name)

    return Logger(context, Live(client), fallback, stream_name=stream_name)
