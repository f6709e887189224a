"""Codec status codes, flush modes and wrapper formats.

Values mirror zlib's so native diagnostics line up with what users see
from other zlib bindings.
"""

from __future__ import annotations

import enum

OK = 0
STREAM_END = 1
NEED_DICT = 2
ERRNO = -1
STREAM_ERROR = -2
DATA_ERROR = -3
MEM_ERROR = -4
BUF_ERROR = -5
VERSION_ERROR = -6

NO_FLUSH = 0
FINISH = 4

_STATUS_NAMES: dict[int, str] = {
    OK: "ok",
    STREAM_END: "stream end",
    NEED_DICT: "need dictionary",
    ERRNO: "file error",
    STREAM_ERROR: "stream error",
    DATA_ERROR: "data error",
    MEM_ERROR: "insufficient memory",
    BUF_ERROR: "buffer error",
    VERSION_ERROR: "incompatible version",
}


def status_name(code: int) -> str:
    return _STATUS_NAMES.get(int(code), "unknown status")


class Wrapper(str, enum.Enum):
    """Framing around the deflate payload (zlib codec only)."""

    DEFLATE = "deflate"
    ZLIB = "zlib"
    GZIP = "gzip"
    # decompress only: zlib or gzip header, detected from the first bytes
    AUTO = "auto"

    @classmethod
    def parse(cls, value: str | Wrapper) -> Wrapper:
        if isinstance(value, Wrapper):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(w.value for w in cls)
            raise ValueError(f"unknown wrapper {value!r} (expected one of: {allowed})") from None
