from __future__ import annotations

import re
import zlib

from codecstream.core.codec_base import CodecEngine, CodecFault, StreamCompressor
from codecstream.core.status import DATA_ERROR, MEM_ERROR, STREAM_ERROR, Wrapper

DEFAULT_LEVEL = -1  # Z_DEFAULT_COMPRESSION

# window bits per wrapper (15 = 32K window)
_WBITS: dict[Wrapper, int] = {
    Wrapper.DEFLATE: -zlib.MAX_WBITS,
    Wrapper.ZLIB: zlib.MAX_WBITS,
    Wrapper.GZIP: 16 + zlib.MAX_WBITS,
    Wrapper.AUTO: 32 + zlib.MAX_WBITS,
}

# "Error -3 while decompressing data: incorrect header check"
_ERROR_RE = re.compile(r"^Error (-?\d+) while [^:]*:\s*(.*)$")


def _fault(e: zlib.error, default_status: int) -> CodecFault:
    m = _ERROR_RE.match(str(e))
    if m is None:
        return CodecFault(default_status, str(e))
    return CodecFault(int(m.group(1)), m.group(2) or str(e))


class ZlibCompressor(StreamCompressor):
    """zlib/DEFLATE stream compressor (no external deps)."""

    codec_id = "zlib"

    def __init__(self, level: int = DEFAULT_LEVEL, wrapper: Wrapper = Wrapper.ZLIB):
        super().__init__()
        if not (-1 <= level <= 9):
            raise CodecFault(STREAM_ERROR, f"zlib level must be -1..9, got {level}")
        if wrapper is Wrapper.AUTO:
            # auto-detection only makes sense when reading a header
            wrapper = Wrapper.ZLIB
        self.level = level
        self.wrapper = wrapper
        try:
            self._obj = zlib.compressobj(level, zlib.DEFLATED, _WBITS[wrapper])
        except MemoryError as e:
            raise CodecFault(MEM_ERROR, "out of memory") from e
        except (ValueError, zlib.error) as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def _compress(self, chunk: memoryview) -> bytes:
        try:
            return self._obj.compress(chunk)
        except zlib.error as e:
            raise _fault(e, STREAM_ERROR) from e

    def _finish(self) -> bytes:
        try:
            return self._obj.flush(zlib.Z_FINISH)
        except zlib.error as e:
            raise _fault(e, STREAM_ERROR) from e

    def end(self) -> None:
        self._obj = None
        self._pending.clear()


class ZlibDecompressor(CodecEngine):
    """
    zlib/DEFLATE stream decompressor.

    Output is bounded natively (``max_length``); input the library did not
    take stays in the caller's window and is offered again next call.
    """

    codec_id = "zlib"

    def __init__(self, wrapper: Wrapper = Wrapper.AUTO):
        self.wrapper = wrapper
        try:
            self._obj = zlib.decompressobj(_WBITS[wrapper])
        except MemoryError as e:
            raise CodecFault(MEM_ERROR, "out of memory") from e
        except (ValueError, zlib.error) as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def process(self, data: memoryview, room: int, finish: bool) -> tuple[int, bytes, bool]:
        obj = self._obj
        if obj.eof:
            return 0, b"", True
        if room <= 0:
            # max_length=0 would mean "unbounded"
            return 0, b"", False

        unused_before = len(obj.unused_data)
        try:
            out = obj.decompress(data, room)
        except zlib.error as e:
            raise _fault(e, DATA_ERROR) from e

        consumed = len(data) - len(obj.unconsumed_tail) - (len(obj.unused_data) - unused_before)
        return consumed, out, obj.eof

    def end(self) -> None:
        self._obj = None
