"""A single migration read from a source and run against a database."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import BinaryIO, Optional

DEFAULT_BUFFER_SIZE = 100000


class Migration:
    """A migration step from ``version`` to ``target_version``.

    ``body`` may be None, which makes this an empty migration that only
    changes the version. ``target_version`` may be -1, meaning no version.
    """

    def __init__(
        self,
        body: Optional[BinaryIO],
        identifier: str,
        version: int,
        target_version: int,
    ) -> None:
        now = datetime.now()
        self.identifier = identifier
        self.version = version
        self.target_version = target_version
        self.body = body
        self.buffered_body: Optional[bytes] = None
        self.buffer_size = 0
        self.scheduled = now
        self.started_buffering: Optional[datetime] = None
        self.finished_buffering: Optional[datetime] = None
        self.finished_reading: Optional[datetime] = None
        self.bytes_read = 0
        self._lock = threading.Lock()

        if body is None:
            if not identifier:
                self.identifier = "<empty>"
            self.started_buffering = now
            self.finished_buffering = now
            self.finished_reading = now
        else:
            self.buffer_size = DEFAULT_BUFFER_SIZE

    def __str__(self) -> str:
        return f"{self.identifier} [{self.version}=>{self.target_version}]"

    def __repr__(self) -> str:
        return f"Migration({self})"

    def log_string(self) -> str:
        """Describe the migration for humans."""
        direction = "d" if self.target_version < self.version else "u"
        return f"{self.version}/{direction} {self.identifier}"

    def buffer(self) -> None:
        """Read the whole body into memory and close it.

        Safe to call from a background thread; calling it again is a no-op.
        """
        with self._lock:
            self._buffer_locked()

    def read_body(self) -> bytes:
        """Return the body's contents, buffering it first if needed."""
        with self._lock:
            self._buffer_locked()
            return self.buffered_body or b""

    def _buffer_locked(self) -> None:
        if self.body is None or self.buffered_body is not None:
            return

        self.started_buffering = datetime.now()
        head = _as_bytes(self.body.read(self.buffer_size))
        self.finished_buffering = datetime.now()
        rest = _as_bytes(self.body.read())
        data = head + rest
        self.finished_reading = datetime.now()
        self.bytes_read = len(data)
        self.buffered_body = data
        self.body.close()


def _as_bytes(data) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)