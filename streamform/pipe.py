from __future__ import annotations

import queue
import threading
from typing import Iterator, Optional, Tuple

from .exceptions import PipeClosedError

# max number of chunks buffered between the producer and the reader
PIPE_DEPTH = 4


def wake_writers(q: queue.Queue):
    """Discard buffered items and wake up any thread blocked in ``put``."""
    with q.mutex:
        q.queue.clear()
        q.not_full.notify_all()


class _Pipe:
    def __init__(self, depth: int):
        self.queue: queue.Queue = queue.Queue(maxsize=depth)
        self.reader_closed = threading.Event()
        self.writer_closed = threading.Event()


class PipeWriter:
    """Write end of a pipe, used by the producer thread only."""

    def __init__(self, p: _Pipe):
        self._p = p

    def _put(self, item) -> None:
        if self._p.reader_closed.is_set():
            raise PipeClosedError("write on closed pipe")
        # a put blocked on a full queue is released by PipeReader.close, the next
        # write then fails on the check above
        self._p.queue.put(item)

    def write(self, data) -> int:
        """Write a copy of ``data`` to the pipe, blocking while the pipe is full.

        Raises:
            PipeClosedError: if either end of the pipe is closed.
        """
        if self._p.writer_closed.is_set():
            raise PipeClosedError("write on closed pipe")
        n = len(data)
        if n:
            self._put(bytes(data))
        return n

    def close(self) -> None:
        """Signal EOF to the reader."""
        self.close_with_error(None)

    def close_with_error(self, error: Optional[BaseException]) -> None:
        """Close the write end, the reader raises ``error`` once it has read every
        buffered chunk. ``None`` means a normal EOF."""
        if self._p.writer_closed.is_set():
            return
        self._p.writer_closed.set()
        try:
            # None acts as a sentinel
            self._put(error)
        except PipeClosedError:
            pass


class PipeReader:
    """Read end of a pipe, handed to the transport as the request body."""

    def __init__(self, p: _Pipe):
        self._p = p
        self._pending = b""
        self._eof = False
        self._error: Optional[BaseException] = None

    def _next_chunk(self) -> bytes:
        if self._p.reader_closed.is_set():
            raise PipeClosedError("read on closed pipe")
        if self._error is not None:
            raise self._error
        if self._eof:
            return b""
        item = self._p.queue.get()
        if isinstance(item, BaseException):
            self._error = item
            raise item
        if item is None:
            self._eof = True
            return b""
        return item

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything until EOF if ``size`` < 0.

        Returns ``b""`` at EOF, and re-raises the error the writer closed with.
        """
        if size < 0:
            chunks = [self._pending]
            self._pending = b""
            while True:
                chunk = self._next_chunk()
                if not chunk:
                    return b"".join(chunks)
                chunks.append(chunk)
        if size == 0:
            return b""
        if not self._pending:
            self._pending = self._next_chunk()
        data, self._pending = self._pending[:size], self._pending[size:]
        return data

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(65536)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        """Close the read end. A writer blocked on the full pipe is released and its
        next write fails."""
        self._p.reader_closed.set()
        wake_writers(self._p.queue)

    @property
    def closed(self) -> bool:
        return self._p.reader_closed.is_set()


def pipe(depth: int = PIPE_DEPTH) -> Tuple[PipeReader, PipeWriter]:
    """Create a bounded in-process pipe.

    Returns:
        the read end and the write end.
    """
    p = _Pipe(depth)
    return PipeReader(p), PipeWriter(p)
