"""Codec session: the four-field buffer-window protocol.

A session owns one codec engine plus two windows:

  input  = in_buf[next_in : next_in + avail_in]
  output = out_buf[next_out : next_out + avail_out]

``step`` moves bytes from the input window into the output window and
advances the fields by what it actually transferred. Between calls the
fields always describe what is *left*; nobody resets them except the owner
arming a new window.
"""

from __future__ import annotations

from dataclasses import dataclass

from codecstream.core.codec_base import CodecEngine, CodecFault
from codecstream.core.codec_zlib import DEFAULT_LEVEL as ZLIB_DEFAULT_LEVEL
from codecstream.core.codec_zlib import ZlibCompressor, ZlibDecompressor
from codecstream.core.codec_zstd import DEFAULT_LEVEL as ZSTD_DEFAULT_LEVEL
from codecstream.core.codec_zstd import ZstdStreamCompressor, ZstdStreamDecompressor
from codecstream.core.status import (
    BUF_ERROR,
    FINISH,
    NO_FLUSH,
    OK,
    STREAM_END,
    STREAM_ERROR,
    Wrapper,
)

CODECS: tuple[str, ...] = ("zlib", "zstd")

DEFAULT_LEVELS: dict[str, int] = {"zlib": ZLIB_DEFAULT_LEVEL, "zstd": ZSTD_DEFAULT_LEVEL}

_NO_BYTES = memoryview(b"")


@dataclass(eq=False)
class CodecSession:
    in_buf: memoryview = _NO_BYTES
    next_in: int = 0
    avail_in: int = 0
    out_buf: memoryview = _NO_BYTES
    next_out: int = 0
    avail_out: int = 0
    msg: str | None = None
    engine: CodecEngine | None = None

    def set_input(self, buf: memoryview, offset: int, count: int) -> None:
        self.in_buf = buf
        self.next_in = offset
        self.avail_in = count

    def set_output(self, buf: memoryview, offset: int, count: int) -> None:
        self.out_buf = buf
        self.next_out = offset
        self.avail_out = count

    def clear_input(self) -> None:
        self.set_input(_NO_BYTES, 0, 0)

    def clear_output(self) -> None:
        self.set_output(_NO_BYTES, 0, 0)


def _check_codec(z: CodecSession, codec: str) -> bool:
    if codec in CODECS:
        return True
    z.msg = f"unknown codec {codec!r} (expected one of: {', '.join(CODECS)})"
    return False


def init_compress(
    z: CodecSession, level: int | None, codec: str = "zlib", wrapper: Wrapper = Wrapper.ZLIB
) -> int:
    """Arm ``z`` for compression. Returns OK or an error status (``z.msg`` set)."""
    if not _check_codec(z, codec):
        return STREAM_ERROR
    lvl = DEFAULT_LEVELS[codec] if level is None else int(level)
    try:
        if codec == "zstd":
            z.engine = ZstdStreamCompressor(lvl)
        else:
            z.engine = ZlibCompressor(lvl, wrapper)
    except CodecFault as e:
        z.msg = e.message
        return e.status
    z.msg = None
    return OK


def init_decompress(z: CodecSession, wrapper: Wrapper = Wrapper.AUTO, codec: str = "zlib") -> int:
    """Arm ``z`` for decompression. ``wrapper`` is ignored by zstd."""
    if not _check_codec(z, codec):
        return STREAM_ERROR
    try:
        if codec == "zstd":
            z.engine = ZstdStreamDecompressor()
        else:
            z.engine = ZlibDecompressor(wrapper)
    except CodecFault as e:
        z.msg = e.message
        return e.status
    z.msg = None
    return OK


def step(z: CodecSession, flush: int) -> int:
    """Run the codec once over the current windows.

    Returns OK, STREAM_END or a negative status. As with zlib, a call that
    can make no progress at all returns BUF_ERROR: that is how a truncated
    compressed stream shows up once the source is dry.
    """
    engine = z.engine
    if engine is None:
        z.msg = "session not initialized or already ended"
        return STREAM_ERROR
    if flush not in (NO_FLUSH, FINISH):
        z.msg = f"unsupported flush mode {flush}"
        return STREAM_ERROR

    if z.avail_in:
        src = z.in_buf[z.next_in : z.next_in + z.avail_in]
    else:
        src = _NO_BYTES

    try:
        consumed, out, done = engine.process(src, z.avail_out, flush == FINISH)
    except CodecFault as e:
        z.msg = e.message
        return e.status

    produced = len(out)
    if produced:
        z.out_buf[z.next_out : z.next_out + produced] = out
    z.next_in += consumed
    z.avail_in -= consumed
    z.next_out += produced
    z.avail_out -= produced

    if done:
        return STREAM_END
    if consumed == 0 and produced == 0:
        z.msg = "no progress possible (unexpected end of input?)"
        return BUF_ERROR
    return OK


def end_compress(z: CodecSession) -> None:
    _end(z)


def end_decompress(z: CodecSession) -> None:
    _end(z)


def _end(z: CodecSession) -> None:
    engine, z.engine = z.engine, None
    if engine is not None:
        engine.end()
    z.clear_input()
    z.clear_output()
