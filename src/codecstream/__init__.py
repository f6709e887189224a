"""codecstream: forward-only compress/decompress streams over block codecs."""

from __future__ import annotations

from codecstream.core.status import Wrapper
from codecstream.engine.stream import CodecStream, Mode
from codecstream.errors import (
    CodecError,
    CodecInitError,
    CodecStreamError,
    InvalidOperation,
    NotSupported,
    StreamClosed,
    UsageError,
)
from codecstream.files import compress_bytes, compress_file, decompress_bytes, decompress_file

__all__ = [
    "CodecError",
    "CodecInitError",
    "CodecStream",
    "CodecStreamError",
    "InvalidOperation",
    "Mode",
    "NotSupported",
    "StreamClosed",
    "UsageError",
    "Wrapper",
    "compress_bytes",
    "compress_file",
    "decompress_bytes",
    "decompress_file",
]
