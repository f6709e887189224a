from __future__ import annotations

from abc import ABC, abstractmethod

from codecstream.core.status import BUF_ERROR


class CodecFault(Exception):
    """Native codec failure: a zlib-style status plus the library's message.

    Engines raise it; ``session.step`` turns it back into a status code.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = int(status)
        self.message = message


class CodecEngine(ABC):
    """
    Minimal interface for pluggable stream codecs.

    NOTE: one engine instance = one direction, one stream. The engine owns the
    algorithm state; the caller owns the buffers.
    """

    codec_id: str

    @abstractmethod
    def process(self, data: memoryview, room: int, finish: bool) -> tuple[int, bytes, bool]:
        """Consume a prefix of ``data``; return (consumed, output, stream_end).

        ``output`` is never longer than ``room``. ``finish`` asks a compressor
        to terminate the stream once all of ``data`` has been taken; it is
        ignored by decompressors.
        """
        raise NotImplementedError

    @abstractmethod
    def end(self) -> None:
        raise NotImplementedError


class PendingOutputEngine(CodecEngine):
    """Base for engines whose library call returns an unbounded amount of output.

    Whatever does not fit in the caller's room waits in ``_pending`` and is
    handed out first on the next call.
    """

    chunk_size: int = 16 * 1024

    def __init__(self) -> None:
        self._pending = bytearray()

    def _take(self, room: int) -> bytes:
        if not self._pending or room <= 0:
            return b""
        out = bytes(self._pending[:room])
        del self._pending[:room]
        return out


class StreamCompressor(PendingOutputEngine):
    """Compressor over an incremental ``compress()`` / ``finish`` object.

    Input is taken in chunks and only while there is room left for output, so
    the pending buffer stays bounded the way a native deflate stops at
    ``avail_out == 0``.
    """

    def __init__(self) -> None:
        super().__init__()
        self._finished = False

    @abstractmethod
    def _compress(self, chunk: memoryview) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def _finish(self) -> bytes:
        raise NotImplementedError

    def process(self, data: memoryview, room: int, finish: bool) -> tuple[int, bytes, bool]:
        n = len(data)
        if self._finished and n:
            raise CodecFault(BUF_ERROR, "stream already finished, no more input accepted")

        consumed = 0
        while consumed < n and len(self._pending) < room:
            chunk = data[consumed : consumed + self.chunk_size]
            self._pending += self._compress(chunk)
            consumed += len(chunk)

        if finish and consumed == n and not self._finished:
            self._pending += self._finish()
            self._finished = True

        out = self._take(room)
        return consumed, out, self._finished and not self._pending
