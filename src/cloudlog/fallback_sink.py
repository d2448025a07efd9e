import logging
import queue
import sys
import threading
from pathlib import Path
from typing import Optional, Protocol, TextIO


class FallbackSink(Protocol):
    """
    Local, line-oriented destination used when the remote backend
    is unavailable or the owning context is done.
    """

    def write(self, line: str) -> None:
        """
        Receive one fully formatted line (no trailing newline).

        Must not raise exceptions outward.
        """


class StreamLineSink:
    """
    Fallback sink that writes lines to a text stream.

    Writes are serialised so concurrent callers never interleave
    partial lines.
    """

    def __init__(self, stream: Optional[TextIO] = None, prefix: str = ""):
        self._stream = stream if stream is not None else sys.stderr
        self._prefix = prefix
        self._lock = threading.Lock()

    def write(self, line: str) -> None:
        try:
            with self._lock:
                self._stream.write(f"{self._prefix}{line}\n")
                self._stream.flush()
        except Exception:
            # The fallback is the last resort; it must never break the caller.
            pass


class FileLineSink:
    """
    Fallback sink that appends lines to a plain text file.

    Each line is flushed immediately so the file can be tailed.
    """

    def __init__(self, logfile_path: str, prefix: str = ""):
        self._path = Path(logfile_path)
        self._prefix = prefix
        self._lock = threading.Lock()

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._path, "a", encoding="utf-8")

    @property
    def path(self) -> Path:
        return self._path

    def write(self, line: str) -> None:
        try:
            with self._lock:
                self._file.write(f"{self._prefix}{line}\n")
                self._file.flush()
        except Exception:
            pass

    def close(self) -> None:
        try:
            with self._lock:
                self._file.close()
        except Exception:
            pass


class StdlibLoggerSink:
    """
    Fallback sink that hands lines to a standard library logger,
    so the host application's handlers and formatters apply.
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO):
        self._logger = logger
        self._level = level

    def write(self, line: str) -> None:
        self._logger.log(self._level, line)


class QueueLineSink:
    """
    Fallback sink that forwards lines to a thread-safe queue,
    e.g. for a log viewer running on another thread.
    """

    def __init__(self, line_queue: queue.Queue):
        self._queue = line_queue

    def write(self, line: str) -> None:
        try:
            self._queue.put_nowait(line)
        except queue.Full:
            pass
