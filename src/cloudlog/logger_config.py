"""
Module: logger_config.py

Environment-driven configuration for building a Logger.

Recognised variables:
  CLOUDLOG_PROJECT_ID       remote identity (GCP project id for "gcloud")
  CLOUDLOG_STREAM           log stream / log name (default "app")
  CLOUDLOG_LABELS           common labels, "k=v,k2=v2"
  CLOUDLOG_BACKEND          "gcloud" (default) or "zmq"
  CLOUDLOG_ENDPOINT         collector endpoint for the "zmq" backend
  CLOUDLOG_FALLBACK_PATH    file for fallback lines (default: stderr)
  CLOUDLOG_FALLBACK_PREFIX  prefix written before every fallback line
  CLOUDLOG_STRICT           "1"/"true" to fail instead of degrading
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from cloudlog.cloudlog_exceptions import ConfigError
from cloudlog.execution_context import CancellationToken
from cloudlog.fallback_sink import FallbackSink, FileLineSink, StreamLineSink
from cloudlog.logger import Logger, new_logger
from cloudlog.payload import MISSING_VALUE
from cloudlog.remote.remote_backend import RemoteBackend

BACKENDS = ("gcloud", "zmq")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


def parse_labels(text: Optional[str]) -> Dict[str, str]:
    """
    Parse "k=v,k2=v2" into a dict.

    A bare key without "=" gets MISSING_VALUE, matching the payload rule
    for an unmatched trailing key.
    """
    labels: Dict[str, str] = {}
    for item in (text or "").split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        key = key.strip()
        if not key:
            raise ConfigError(f"Label with empty key: {item!r}")
        labels[key] = value.strip() if sep else MISSING_VALUE
    return labels


def _parse_bool(name: str, text: Optional[str]) -> bool:
    value = (text or "").strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {text!r}")


@dataclass(frozen=True)
class LoggerConfig:
    """Everything needed to construct one Logger."""

    project_id: str = ""
    stream_name: str = "app"
    common_labels: Dict[str, str] = field(default_factory=dict)
    backend: str = "gcloud"                 # one of BACKENDS
    endpoint: str = ""                      # zmq collector endpoint
    fallback_path: Optional[str] = None     # None writes to stderr
    fallback_prefix: str = ""
    strict: bool = False

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown backend '{self.backend}', expected one of {', '.join(BACKENDS)}"
            )
        if not self.stream_name:
            raise ConfigError("stream_name must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoggerConfig":
        env = os.environ if environ is None else environ
        return cls(
            project_id=env.get("CLOUDLOG_PROJECT_ID", ""),
            stream_name=env.get("CLOUDLOG_STREAM", "app"),
            common_labels=parse_labels(env.get("CLOUDLOG_LABELS")),
            backend=env.get("CLOUDLOG_BACKEND", "gcloud").strip().lower(),
            endpoint=env.get("CLOUDLOG_ENDPOINT", ""),
            fallback_path=env.get("CLOUDLOG_FALLBACK_PATH") or None,
            fallback_prefix=env.get("CLOUDLOG_FALLBACK_PREFIX", ""),
            strict=_parse_bool("CLOUDLOG_STRICT", env.get("CLOUDLOG_STRICT")),
        )

    @property
    def identity(self) -> str:
        return self.endpoint if self.backend == "zmq" else self.project_id

    def make_fallback(self) -> FallbackSink:
        if self.fallback_path:
            return FileLineSink(self.fallback_path, prefix=self.fallback_prefix)
        return StreamLineSink(prefix=self.fallback_prefix)

    def make_backend(self) -> RemoteBackend:
        if self.backend == "zmq":
            from cloudlog.remote.zmq_backend import ZmqBackend

            return ZmqBackend()
        from cloudlog.remote.gcloud_backend import GCloudBackend

        return GCloudBackend()


def build_logger(
    config: LoggerConfig,
    context: Optional[CancellationToken] = None,
    *,
    fallback: Optional[FallbackSink] = None,
    backend: Optional[RemoteBackend] = None,
) -> Logger:
    """
    Construct a Logger from configuration.

    fallback and backend override what the config would build.
    """
    return new_logger(
        context,
        config.identity,
        config.stream_name,
        fallback if fallback is not None else config.make_fallback(),
        config.common_labels,
        backend=backend if backend is not None else config.make_backend(),
        strict=config.strict,
    )
