"""Whole-buffer and whole-file helpers on top of CodecStream."""

from __future__ import annotations

import io
import shutil
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Any, BinaryIO

from codecstream.engine.stream import CodecStream, Mode
from codecstream.errors import UsageError

COPY_CHUNK = 1024 * 1024


def compress_bytes(data: bytes, **opts: Any) -> bytes:
    sink = io.BytesIO()
    with CodecStream(sink, Mode.COMPRESS, leave_open=True, **opts) as cs:
        cs.write(data)
    return sink.getvalue()


def decompress_bytes(blob: bytes, **opts: Any) -> bytes:
    with CodecStream(io.BytesIO(blob), Mode.DECOMPRESS, **opts) as cs:
        return cs.readall()


def _open_in(stack: ExitStack, p: str | Path) -> BinaryIO:
    if str(p) == "-":
        return sys.stdin.buffer
    return stack.enter_context(Path(p).open("rb"))


def _open_out(stack: ExitStack, p: str | Path) -> BinaryIO:
    if str(p) == "-":
        return sys.stdout.buffer
    return stack.enter_context(Path(p).open("wb"))


def _check_file_opts(opts: dict[str, Any]) -> None:
    if "leave_open" in opts:
        raise UsageError("leave_open is not an option of the file helpers")


def compress_file(src: str | Path, dst: str | Path, **opts: Any) -> float:
    """Compress src into dst ('-' = stdin/stdout). Returns the compression ratio."""
    _check_file_opts(opts)
    with ExitStack() as stack:
        inp = _open_in(stack, src)
        out = _open_out(stack, dst)
        # the ExitStack owns the sink, the stream must not close it
        cs = CodecStream(out, Mode.COMPRESS, leave_open=True, **opts)
        with cs:
            shutil.copyfileobj(inp, cs, COPY_CHUNK)
    return cs.compression_ratio


def decompress_file(src: str | Path, dst: str | Path, **opts: Any) -> float:
    """Decompress src into dst ('-' = stdin/stdout). Returns the compression ratio."""
    _check_file_opts(opts)
    with ExitStack() as stack:
        inp = _open_in(stack, src)
        out = _open_out(stack, dst)
        cs = CodecStream(inp, Mode.DECOMPRESS, leave_open=True, **opts)
        with cs:
            shutil.copyfileobj(cs, out, COPY_CHUNK)
        out.flush()
    return cs.compression_ratio
