from __future__ import annotations

import sys

import zstandard as zstd

if sys.version_info >= (3, 14):
    from compression import zstd as zstd_frames
else:
    from backports import zstd as zstd_frames

from codecstream.core.codec_base import CodecEngine, CodecFault, StreamCompressor
from codecstream.core.status import DATA_ERROR, MEM_ERROR, STREAM_ERROR

DEFAULT_LEVEL = 3


class ZstdStreamCompressor(StreamCompressor):
    """
    Zstandard stream compressor (single frame per stream, checksummed).
    """

    codec_id = "zstd"

    def __init__(self, level: int = DEFAULT_LEVEL):
        super().__init__()
        if level > zstd.MAX_COMPRESSION_LEVEL:
            raise CodecFault(
                STREAM_ERROR, f"zstd level must be <= {zstd.MAX_COMPRESSION_LEVEL}, got {level}"
            )
        self.level = level
        try:
            cctx = zstd.ZstdCompressor(level=int(level), write_checksum=True)
            self._obj = cctx.compressobj()
        except MemoryError as e:
            raise CodecFault(MEM_ERROR, "out of memory") from e
        except zstd.ZstdError as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def _compress(self, chunk: memoryview) -> bytes:
        try:
            return self._obj.compress(chunk)
        except zstd.ZstdError as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def _finish(self) -> bytes:
        try:
            return self._obj.flush(zstd.COMPRESSOBJ_FLUSH_FINISH)
        except zstd.ZstdError as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def end(self) -> None:
        self._obj = None
        self._pending.clear()


class ZstdStreamDecompressor(CodecEngine):
    """
    Zstandard stream decompressor (stops after the first frame).

    Output is bounded natively (``max_length``). Input the decoder has taken
    but not decoded yet stays inside it, and no new bytes are taken from the
    caller until it reports ``needs_input`` again.
    """

    codec_id = "zstd"

    def __init__(self) -> None:
        try:
            self._obj = zstd_frames.ZstdDecompressor()
        except MemoryError as e:
            raise CodecFault(MEM_ERROR, "out of memory") from e
        except zstd_frames.ZstdError as e:
            raise CodecFault(STREAM_ERROR, str(e)) from e

    def process(self, data: memoryview, room: int, finish: bool) -> tuple[int, bytes, bool]:
        obj = self._obj
        if obj.eof:
            return 0, b"", True
        if room <= 0:
            return 0, b"", False

        feed = data if obj.needs_input else b""
        unused_before = len(obj.unused_data)
        try:
            out = obj.decompress(feed, room)
        except zstd_frames.ZstdError as e:
            raise CodecFault(DATA_ERROR, str(e)) from e

        # bytes after the end of the frame are not ours
        consumed = len(feed) - (len(obj.unused_data) - unused_before)
        return consumed, out, obj.eof

    def end(self) -> None:
        self._obj = None
