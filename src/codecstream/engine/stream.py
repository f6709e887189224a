"""Forward-only compress/decompress stream over a codec session.

One instance = one direction for its whole life:

  COMPRESS    write() -> codec -> staging buffer -> sink
  DECOMPRESS  source -> staging buffer -> codec -> read()/readinto()

Flush policy (compress):
  - write() hands the staging buffer to the sink only when it is exactly
    full; a partial buffer stays put until flush() or close().
  - flush() finishes the codec stream and writes every step's output.

Teardown:
  - close() flushes a healthy compress stream, closes the sink (unless
    leave_open) and releases the session.
  - __del__ only releases the session. It never flushes and never touches
    the sink, which may already be gone.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from codecstream.core import session as zs
from codecstream.core.status import FINISH, NO_FLUSH, OK, STREAM_END, Wrapper
from codecstream.engine.staging import WORK_DATA_SIZE, StagingBuffer
from codecstream.errors import (
    CodecError,
    CodecInitError,
    InvalidOperation,
    NotSupported,
    StreamClosed,
    UsageError,
)

log = logging.getLogger(__name__)

READ_ALL_CHUNK = 64 * 1024


class Mode(str, enum.Enum):
    COMPRESS = "compress"
    DECOMPRESS = "decompress"

    @classmethod
    def parse(cls, value: str | Mode) -> Mode:
        if isinstance(value, Mode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UsageError(
                f"unknown stream mode {value!r} (expected 'compress' or 'decompress')"
            ) from None


class CodecStream:
    # class-level defaults keep __del__ safe when __init__ bailed out early
    _stream: Any = None
    _session: zs.CodecSession | None = None
    _released = True
    _healthy = False
    _error: CodecError | None = None

    def __init__(
        self,
        stream: Any,
        mode: str | Mode,
        level: int | None = None,
        leave_open: bool = False,
        *,
        codec: str = "zlib",
        wrapper: str | Wrapper | None = None,
        buffer_size: int = WORK_DATA_SIZE,
    ):
        self._mode = Mode.parse(mode)
        if codec not in zs.CODECS:
            raise UsageError(f"unknown codec {codec!r} (expected one of: {', '.join(zs.CODECS)})")
        if int(buffer_size) < 1:
            raise UsageError(f"buffer_size must be >= 1, got {buffer_size}")
        try:
            if wrapper is None:
                wrapper = Wrapper.ZLIB if self._mode is Mode.COMPRESS else Wrapper.AUTO
            else:
                wrapper = Wrapper.parse(wrapper)
        except ValueError as e:
            raise UsageError(str(e)) from e

        self._codec_id = codec
        self._leave_open = bool(leave_open)
        self._bytes_in = 0
        self._bytes_out = 0
        self._staging = StagingBuffer(int(buffer_size))

        z = zs.CodecSession()
        if self._mode is Mode.COMPRESS:
            ret = zs.init_compress(z, level, codec=codec, wrapper=wrapper)
        else:
            ret = zs.init_decompress(z, wrapper=wrapper, codec=codec)
        if ret != OK:
            raise CodecInitError(ret, z.msg)

        self._session = z
        self._released = False
        self._stream = stream
        self._healthy = True
        log.debug(
            "opened %s stream codec=%s level=%s wrapper=%s buffer=%d",
            self._mode.value,
            codec,
            level,
            wrapper.value,
            self._staging.capacity,
        )

    # -------------------
    # context manager / teardown
    # -------------------
    def __enter__(self) -> CodecStream:
        self._check_open()
        return self

    def __exit__(self, exc_type, exc_value, exc_tb) -> bool:
        self.close()
        return False

    def __del__(self) -> None:
        if self._stream is not None and self._healthy and self.mode is Mode.COMPRESS:
            log.warning(
                "compress stream garbage-collected without close(); buffered output dropped"
            )
        self._dispose(disposing=False)

    def close(self) -> None:
        """Finish (compress), close the sink unless leave_open, release the codec.

        Safe to call more than once.
        """
        self._dispose(disposing=True)

    def _dispose(self, disposing: bool) -> None:
        try:
            if disposing and self._stream is not None:
                stream = self._stream
                try:
                    if self._mode is Mode.COMPRESS and self._healthy:
                        self.flush()
                finally:
                    self._stream = None
                    if not self._leave_open:
                        stream.close()
                    log.debug(
                        "closed %s stream (sink %s)",
                        self._mode.value,
                        "left open" if self._leave_open else "closed",
                    )
        finally:
            self._release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        z = self._session
        if z is None:
            return
        if self._mode is Mode.COMPRESS:
            zs.end_compress(z)
        else:
            zs.end_decompress(z)

    @property
    def closed(self) -> bool:
        return self._stream is None

    def _check_open(self) -> None:
        if self._stream is None:
            raise StreamClosed()

    def _check_usable(self) -> None:
        self._check_open()
        if self._error is not None:
            # a failed session is never stepped again
            raise CodecError(self._error.code, self._error.message)

    def _fail(self, status: int) -> CodecError:
        self._healthy = False
        msg = self._session.msg if self._session is not None else None
        log.debug(
            "codec step failed on %s stream: status=%d msg=%s", self._mode.value, status, msg
        )
        self._error = CodecError(status, msg)
        return self._error

    # -------------------
    # mode gate
    # -------------------
    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def codec_id(self) -> str:
        return self._codec_id

    @property
    def base_stream(self) -> Any:
        return self._stream

    def _base_can(self, name: str) -> bool:
        if self._stream is None:
            return False
        check = getattr(self._stream, name, None)
        return True if check is None else bool(check())

    def readable(self) -> bool:
        return self._mode is Mode.DECOMPRESS and self._base_can("readable")

    def writable(self) -> bool:
        return self._mode is Mode.COMPRESS and self._base_can("writable")

    def seekable(self) -> bool:
        return False

    def isatty(self) -> bool:
        return False

    def seek(self, offset: int, whence: int = 0) -> int:
        raise NotSupported("seek not supported")

    def tell(self) -> int:
        raise NotSupported("position not supported")

    def truncate(self, size: int | None = None) -> int:
        raise NotSupported("truncate/set length not supported")

    @property
    def length(self) -> int:
        raise NotSupported("length not supported")

    # -------------------
    # read path (decompress)
    # -------------------
    def readinto(self, b: Any) -> int:
        """Decompress into ``b``; returns bytes placed (0 only at end of stream).

        Fills ``b`` completely unless the compressed stream ends first.
        """
        if self._mode is Mode.COMPRESS:
            raise InvalidOperation("can't read on a compress stream")
        self._check_usable()

        staging = self._staging
        if staging.at_end:
            return 0

        z = self._session
        dst = memoryview(b).cast("B")
        z.set_output(dst, 0, len(dst))
        read_len = 0
        try:
            while z.avail_out != 0:
                if z.avail_in == 0:
                    n = staging.refill(self._stream)
                    z.set_input(staging.view, 0, n)
                    self._bytes_in += n

                in_count = z.avail_in
                out_count = z.avail_out
                # flush mode has no effect on decompression
                ret = zs.step(z, NO_FLUSH)

                staging.pos += in_count - z.avail_in
                read_len += out_count - z.avail_out

                if ret == STREAM_END:
                    staging.mark_end()
                    break
                if ret != OK:
                    raise self._fail(ret)
        finally:
            z.clear_output()

        self._bytes_out += read_len
        return read_len

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self.readall()
        buf = bytearray(size)
        n = self.readinto(buf)
        del buf[n:]
        return bytes(buf)

    def readall(self) -> bytes:
        chunks: list[bytes] = []
        while True:
            chunk = self.read(READ_ALL_CHUNK)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    # -------------------
    # write path (compress)
    # -------------------
    def write(self, b: Any) -> int:
        """Compress ``b``; returns ``len(b)`` (all input is charged as consumed)."""
        if self._mode is Mode.DECOMPRESS:
            raise InvalidOperation("can't write on a decompression stream")
        self._check_usable()

        staging = self._staging
        z = self._session
        src = memoryview(b).cast("B")
        count = len(src)

        z.set_input(src, 0, count)
        z.set_output(staging.view, staging.pos, staging.room)
        try:
            while z.avail_in != 0:
                if z.avail_out == 0:
                    # only a completely full buffer goes out here; partial
                    # buffers wait for flush()
                    self._bytes_out += staging.drain_to(self._stream)
                    z.set_output(staging.view, 0, staging.capacity)

                out_count = z.avail_out
                ret = zs.step(z, NO_FLUSH)
                staging.pos += out_count - z.avail_out

                if ret != OK:
                    raise self._fail(ret)
        finally:
            z.clear_input()

        self._bytes_in += count
        return count

    def flush(self) -> None:
        """Finish the codec stream and push everything buffered to the sink."""
        if self._mode is Mode.DECOMPRESS:
            raise InvalidOperation("can't flush a decompression stream")
        self._check_usable()

        staging = self._staging
        z = self._session
        z.clear_input()
        z.set_output(staging.view, staging.pos, staging.room)

        ret = OK
        while ret != STREAM_END:
            if z.avail_out != 0:
                out_count = z.avail_out
                ret = zs.step(z, FINISH)
                staging.pos += out_count - z.avail_out
                if ret not in (OK, STREAM_END):
                    raise self._fail(ret)

            self._bytes_out += staging.drain_to(self._stream)
            z.set_output(staging.view, 0, staging.capacity)

        sink_flush = getattr(self._stream, "flush", None)
        if sink_flush is not None:
            sink_flush()

    # -------------------
    # stats
    # -------------------
    @property
    def bytes_in(self) -> int:
        return self._bytes_in

    @property
    def bytes_out(self) -> int:
        return self._bytes_out

    @property
    def compression_ratio(self) -> float:
        """Percent size reduction (same meaning for compression/decompression)."""
        if self._mode is Mode.COMPRESS:
            if self._bytes_in == 0:
                return 0.0
            return 100.0 - (self._bytes_out * 100.0 / self._bytes_in)
        if self._bytes_out == 0:
            return 0.0
        return 100.0 - (self._bytes_in * 100.0 / self._bytes_out)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<CodecStream {self._mode.value} codec={self._codec_id} {state}>"
